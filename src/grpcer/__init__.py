"""grpcer package initialization."""

from __future__ import annotations

from . import model

__all__ = [
    "Client",
    "DefaultTemplateRenderer",
    "GeneratedFile",
    "GeneratorConfig",
    "ITemplateRenderer",
    "Receiver",
    "RenderError",
    "TypeIndex",
    "UnknownMethodError",
    "build_index",
    "generate_code",
    "model",
    "prune_dependencies",
]


def __getattr__(name: str):
    if name in {"Client", "Receiver", "UnknownMethodError"}:
        from .client import Client, Receiver, UnknownMethodError

        mapping = {
            "Client": Client,
            "Receiver": Receiver,
            "UnknownMethodError": UnknownMethodError,
        }
        return mapping[name]

    if name in {"DefaultTemplateRenderer", "GeneratedFile", "ITemplateRenderer", "RenderError"}:
        from .codegen import DefaultTemplateRenderer, GeneratedFile, ITemplateRenderer, RenderError

        mapping = {
            "DefaultTemplateRenderer": DefaultTemplateRenderer,
            "GeneratedFile": GeneratedFile,
            "ITemplateRenderer": ITemplateRenderer,
            "RenderError": RenderError,
        }
        return mapping[name]

    if name in {"TypeIndex", "build_index"}:
        from .descriptor_index import TypeIndex, build_index

        mapping = {
            "TypeIndex": TypeIndex,
            "build_index": build_index,
        }
        return mapping[name]

    if name == "GeneratorConfig":
        from .config import GeneratorConfig

        return GeneratorConfig

    if name == "prune_dependencies":
        from .dependencies import prune_dependencies

        return prune_dependencies

    if name == "generate_code":
        from .plugin import generate_code

        return generate_code

    raise AttributeError(name)
