from __future__ import annotations

"""Dataclasses shared between the resolution, rendering and orchestration steps."""

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from google.protobuf import descriptor_pb2
from google.protobuf.compiler import plugin_pb2


@dataclass(frozen=True, slots=True)
class IndexedType:
    """A message type registered in the :class:`~grpcer.descriptor_index.TypeIndex`."""

    full_name: str
    descriptor: descriptor_pb2.DescriptorProto
    file_name: str
    package: str = ""

    @property
    def relative_name(self) -> str:
        """Name relative to the package, e.g. ``Outer.Inner`` for ``.pkg.Outer.Inner``."""

        prefix = "." + self.package + "." if self.package else "."
        if self.full_name.startswith(prefix):
            return self.full_name[len(prefix):]
        return self.full_name.lstrip(".")


# Qualified name -> indexed type; ``None`` marks a resolution miss.
NeededTypes = Dict[str, Optional[IndexedType]]
RootSet = Dict[str, descriptor_pb2.FileDescriptorProto]
TypeTable = Mapping[str, IndexedType]


@dataclass(frozen=True, slots=True)
class GeneratedFile:
    """A single generated artifact returned to protoc."""

    name: str
    content: str


@dataclass(slots=True)
class GenerationOutcome:
    """Units and the first error collected by concurrent rendering tasks."""

    files: List[GeneratedFile] = field(default_factory=list)
    error: Optional[str] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def add_file(self, generated: GeneratedFile) -> None:
        with self._lock:
            self.files.append(generated)

    def add_error(self, message: str) -> bool:
        """Record *message* unless an error was already recorded.

        Returns ``True`` when *message* became the aggregate error.
        """

        with self._lock:
            if self.error is not None:
                return False
            self.error = message
            return True

    def to_response(self) -> plugin_pb2.CodeGeneratorResponse:
        response = plugin_pb2.CodeGeneratorResponse()
        response.supported_features = plugin_pb2.CodeGeneratorResponse.FEATURE_PROTO3_OPTIONAL
        with self._lock:
            for generated in self.files:
                response_file = response.file.add()
                response_file.name = generated.name
                response_file.content = generated.content
            if self.error is not None:
                response.error = self.error
        return response


__all__ = [
    "GeneratedFile",
    "GenerationOutcome",
    "IndexedType",
    "NeededTypes",
    "RootSet",
    "TypeTable",
]
