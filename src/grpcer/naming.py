"""Name derivation shared by the renderer and the orchestrator."""

from __future__ import annotations

import posixpath
import re
from typing import Tuple

_PROTO_SUFFIX = ".proto"
_CLIENT_SUFFIX = "_grpcer.py"

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def proto_base_name(proto_file_name: str) -> str:
    """Return the proto file's base name without its ``.proto`` extension."""

    base = posixpath.basename(proto_file_name)
    if base.endswith(_PROTO_SUFFIX):
        base = base[: -len(_PROTO_SUFFIX)]
    return base


def import_path(proto_file_name: str) -> str:
    """Return the directory of *proto_file_name*, ``.`` for top-level files."""

    return posixpath.dirname(proto_file_name) or "."


def python_package(directory: str) -> str:
    """Translate a proto directory into a dotted Python package ('' for the root)."""

    if directory in ("", "."):
        return ""
    return ".".join(part for part in directory.split("/") if part and part != ".")


def module_import(proto_file_name: str, suffix: str = "_pb2") -> Tuple[str, str]:
    """Return ``(package, module)`` of the protoc Python output for *proto_file_name*."""

    package = python_package(import_path(proto_file_name))
    module = proto_base_name(proto_file_name).replace("-", "_") + suffix
    return package, module


def module_alias(proto_file_name: str) -> str:
    """Return the alias grpc's own generator uses for a ``_pb2`` import."""

    stem = proto_file_name[: -len(_PROTO_SUFFIX)] if proto_file_name.endswith(_PROTO_SUFFIX) else proto_file_name
    return stem.replace("_", "__").replace("/", "_dot_").replace("-", "_") + "__pb2"


def snake_case(name: str) -> str:
    """``GreeterService`` -> ``greeter_service``."""

    return _CAMEL_BOUNDARY.sub("_", name).lower()


def client_class_name(service_name: str) -> str:
    return service_name + "Client"


def client_output_path(
    destination: str,
    proto_file_name: str,
    service_name: str | None = None,
) -> str:
    """Return the generated file name for a root file (and service).

    *service_name* is only given when the root file declares several services.
    """

    base = proto_base_name(proto_file_name)
    if service_name:
        base = f"{base}_{snake_case(service_name)}"
    return posixpath.normpath(posixpath.join(destination or ".", base + _CLIENT_SUFFIX))


__all__ = [
    "client_class_name",
    "client_output_path",
    "import_path",
    "module_alias",
    "module_import",
    "proto_base_name",
    "python_package",
    "snake_case",
]
