"""Client adapter template for grpcer generated modules."""

from __future__ import annotations

import keyword
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from google.protobuf import descriptor_pb2

from .. import naming
from ..model import IndexedType

GENERATOR_NAME = "protoc-gen-grpcer"
DEFAULT_PACKAGE = "main"


class RenderError(Exception):
    """Raised when a service cannot be rendered from the supplied descriptors."""


def _is_python_name(name: str) -> bool:
    return name.isidentifier() and not keyword.iskeyword(name)


class ClientTemplate:
    """Render the client adapter module for one service."""

    def __init__(
        self,
        package_name: str,
        proto_file_name: str,
        service: descriptor_pb2.ServiceDescriptorProto,
        dependencies: Sequence[str],
        types: Mapping[str, Optional[IndexedType]],
        *,
        timestamp: datetime | None = None,
    ) -> None:
        self._package_name = package_name or DEFAULT_PACKAGE
        self._proto_file_name = proto_file_name
        self._service = service
        self._dependencies = list(dependencies)
        self._types = types
        self._timestamp = timestamp
        self._import_path = naming.import_path(proto_file_name)

    # Public API ---------------------------------------------------------
    def render(self) -> str:
        self._validate()
        references = self._resolve_input_types()

        lines: List[str] = []
        lines.extend(self._render_header())
        lines.append("")
        lines.extend(self._render_imports(references))
        lines.append("")
        lines.append("_METHODS = (")
        for method in self._service.method:
            lines.append(f'    "{method.name}",')
        lines.append(")")
        lines.append("")
        lines.append("")
        lines.extend(self._render_receivers())
        lines.append("")
        lines.append("")
        lines.extend(self._render_client_class(references))
        lines.append("")
        lines.append("")
        lines.append("def new_client(channel: grpc.Channel) -> Client:")
        lines.append(f"    return {self._class_name}(channel)")
        lines.append("")
        return "\n".join(lines)

    # Resolution ---------------------------------------------------------
    def _validate(self) -> None:
        if not _is_python_name(self._service.name):
            raise RenderError(
                f"{self._proto_file_name}: invalid service name {self._service.name!r}"
            )
        for method in self._service.method:
            if not _is_python_name(method.name):
                raise RenderError(
                    f"{self._proto_file_name}: {self._service.name} has invalid method name {method.name!r}"
                )

    def _resolve_input_types(self) -> Dict[str, Tuple[str, str]]:
        """Map each input type name to ``(module alias, attribute path)``.

        Types from other files are imported from the defining file's ``_pb2``
        module, wherever that file lives.
        """

        references: Dict[str, Tuple[str, str]] = {}
        for method in self._service.method:
            type_name = method.input_type
            if type_name in references:
                continue
            resolved = self._types.get(type_name)
            if resolved is None:
                raise RenderError(
                    f"{self._proto_file_name}: {self._service.name}.{method.name}: "
                    f"unknown input type {type_name!r}"
                )
            if resolved.file_name == self._proto_file_name:
                references[type_name] = ("pb", resolved.relative_name)
            else:
                references[type_name] = (naming.module_alias(resolved.file_name), resolved.relative_name)
        return references

    def _dependency_files(self, references: Mapping[str, Tuple[str, str]]) -> List[str]:
        """Order the imported files: pruned dependency directories first, then the rest."""

        files = sorted(
            {
                resolved.file_name
                for type_name in references
                if (resolved := self._types.get(type_name)) is not None
                and resolved.file_name != self._proto_file_name
            }
        )
        ordered: List[str] = []
        for directory in dict.fromkeys([self._import_path, *self._dependencies]):
            ordered.extend(file_name for file_name in files if naming.import_path(file_name) == directory)
        ordered.extend(file_name for file_name in files if file_name not in ordered)
        return ordered

    # Rendering helpers --------------------------------------------------
    @property
    def _class_name(self) -> str:
        return naming.client_class_name(self._service.name)

    def _render_header(self) -> List[str]:
        timestamp = self._timestamp or datetime.now(timezone.utc)
        return [
            f"# Generated with {GENERATOR_NAME}",
            f'#\tfrom "{self._proto_file_name}"',
            f"#\tat   {timestamp.isoformat(timespec='seconds')}",
            "#",
            "# DO NOT EDIT!",
            f'"""Name-dispatched client for the {self._service.name} service.',
            "",
            f"Destination package: {self._package_name}",
            '"""',
        ]

    def _render_imports(self, references: Mapping[str, Tuple[str, str]]) -> List[str]:
        lines = [
            "from __future__ import annotations",
            "",
            "from typing import Any, Optional, Sequence",
            "",
            "import grpc",
            "",
            "from grpcer.client import Client, Receiver, UnknownMethodError",
            "",
            self._import_line(self._proto_file_name, "_pb2", "pb"),
            self._import_line(self._proto_file_name, "_pb2_grpc", "pb_grpc"),
        ]
        for file_name in self._dependency_files(references):
            lines.append(self._import_line(file_name, "_pb2", naming.module_alias(file_name)))
        return lines

    def _import_line(self, proto_file_name: str, suffix: str, alias: str) -> str:
        package, module = naming.module_import(proto_file_name, suffix)
        if package:
            return f"from {package} import {module} as {alias}"
        return f"import {module} as {alias}"

    def _render_receivers(self) -> List[str]:
        return [
            "class _OnceReceiver(Receiver):",
            "    def __init__(self, out: Any) -> None:",
            "        self._out = out",
            "        self._done = False",
            "",
            "    def recv(self) -> Any:",
            "        if self._done:",
            "            raise EOFError",
            "        out = self._out",
            "        self._done, self._out = True, None",
            "        return out",
            "",
            "",
            "class _StreamReceiver(Receiver):",
            "    def __init__(self, responses: Any) -> None:",
            "        self._responses = iter(responses)",
            "",
            "    def recv(self) -> Any:",
            "        try:",
            "            return next(self._responses)",
            "        except StopIteration:",
            "            raise EOFError from None",
        ]

    def _render_client_class(self, references: Mapping[str, Tuple[str, str]]) -> List[str]:
        lines = [
            f"class {self._class_name}(Client):",
            "    def __init__(self, channel: grpc.Channel) -> None:",
            f"        self._stub = pb_grpc.{self._service.name}Stub(channel)",
            "",
            "    def methods(self) -> Sequence[str]:",
            "        return _METHODS",
            "",
            "    def input(self, name: str) -> Optional[Any]:",
        ]
        for method in self._service.method:
            alias, attribute = references[method.input_type]
            lines.append(f'        if name == "{method.name}":')
            lines.append(f"            return {alias}.{attribute}()")
        lines.append("        return None")
        lines.append("")
        lines.append("    def call(self, name: str, request: Any, **options: Any) -> Receiver:")
        for method in self._service.method:
            alias, attribute = references[method.input_type]
            lines.append(f'        if name == "{method.name}":')
            if not method.client_streaming:
                lines.append(f"            if not isinstance(request, {alias}.{attribute}):")
                lines.append(
                    f'                raise TypeError(f"{method.name} expects {attribute}, got {{type(request).__name__}}")'
                )
            receiver = "_StreamReceiver" if method.server_streaming else "_OnceReceiver"
            lines.append(f"            return {receiver}(self._stub.{method.name}(request, **options))")
        lines.append("        raise UnknownMethodError(name)")
        return lines


def render_client(
    package_name: str,
    proto_file_name: str,
    service: descriptor_pb2.ServiceDescriptorProto,
    dependencies: Sequence[str],
    types: Mapping[str, Optional[IndexedType]],
    *,
    timestamp: datetime | None = None,
) -> str:
    """Render the adapter module source for *service*; raises :class:`RenderError`."""

    template = ClientTemplate(
        package_name,
        proto_file_name,
        service,
        dependencies,
        types,
        timestamp=timestamp,
    )
    return template.render()


__all__ = ["ClientTemplate", "GENERATOR_NAME", "RenderError", "render_client"]
