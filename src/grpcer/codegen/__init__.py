"""Code generation back-ends for grpcer."""

from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional, Protocol, Sequence

from google.protobuf import descriptor_pb2

from ..model import GeneratedFile, IndexedType
from .client import GENERATOR_NAME, ClientTemplate, RenderError, render_client


class ITemplateRenderer(Protocol):
    """Renders the adapter source for one service of one root file."""

    def render(
        self,
        package_name: str,
        proto_file_name: str,
        service: descriptor_pb2.ServiceDescriptorProto,
        dependencies: Sequence[str],
        types: Mapping[str, Optional[IndexedType]],
    ) -> str:
        ...


class DefaultTemplateRenderer:
    """Renderer backed by :class:`ClientTemplate`.

    *timestamp* pins the generation time written into the header, which makes
    output reproducible.
    """

    def __init__(self, *, timestamp: datetime | None = None) -> None:
        self._timestamp = timestamp

    def render(
        self,
        package_name: str,
        proto_file_name: str,
        service: descriptor_pb2.ServiceDescriptorProto,
        dependencies: Sequence[str],
        types: Mapping[str, Optional[IndexedType]],
    ) -> str:
        return render_client(
            package_name,
            proto_file_name,
            service,
            dependencies,
            types,
            timestamp=self._timestamp,
        )


__all__ = [
    "ClientTemplate",
    "DefaultTemplateRenderer",
    "GENERATOR_NAME",
    "GeneratedFile",
    "ITemplateRenderer",
    "RenderError",
    "render_client",
]
