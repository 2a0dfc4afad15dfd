from __future__ import annotations

"""Index message types and locate root files in a CodeGeneratorRequest."""

from typing import Collection, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from google.protobuf import descriptor_pb2

from .log import get_logger
from .model import IndexedType, NeededTypes, RootSet

_logger = get_logger(__name__)


class TypeIndex(Mapping[str, IndexedType]):
    """Read-only lookup from qualified message name (``.pkg.Name``) to its descriptor.

    Build it with :func:`build_index` or :func:`index_request`; it is scoped to a
    single generation run and never mutated after construction.
    """

    __slots__ = ("_types",)

    def __init__(self, types: Dict[str, IndexedType]) -> None:
        self._types = types

    def __getitem__(self, full_name: str) -> IndexedType:
        return self._types[full_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)

    def __repr__(self) -> str:
        return f"TypeIndex({len(self._types)} types)"

    def resolve(self, full_name: str) -> Optional[IndexedType]:
        """Return the indexed type for *full_name*, or ``None`` on a miss."""

        return self._types.get(full_name)


def qualify_name(package: str, *names: str) -> str:
    """Return the leading-dot qualified name protoc uses in type references."""

    segments = [package] if package else []
    segments.extend(names)
    return "." + ".".join(segments)


def _register_messages(
    types: Dict[str, IndexedType],
    file_proto: descriptor_pb2.FileDescriptorProto,
    messages: Iterable[descriptor_pb2.DescriptorProto],
    parents: Tuple[str, ...],
) -> None:
    for message_proto in messages:
        chain = parents + (message_proto.name,)
        full_name = qualify_name(file_proto.package, *chain)
        types[full_name] = IndexedType(
            full_name=full_name,
            descriptor=message_proto,
            file_name=file_proto.name,
            package=file_proto.package,
        )
        _register_messages(types, file_proto, message_proto.nested_type, chain)


def index_request(
    requested: Collection[str],
    files: Sequence[descriptor_pb2.FileDescriptorProto],
) -> Tuple[TypeIndex, RootSet]:
    """Build the type index and the root set in one pass over *files*.

    Files are walked from the end of the list to the start, and every
    registration overwrites the previous one. A name defined in several files
    therefore resolves to the definition from the file nearest the *start* of
    *files*. Root matching stops once every requested name has been seen;
    type indexing always covers every file.
    """

    wanted = set(requested)
    types: Dict[str, IndexedType] = {}
    roots: RootSet = {}
    for file_proto in reversed(files):
        _register_messages(types, file_proto, file_proto.message_type, ())
        if len(roots) == len(wanted):
            continue
        if file_proto.name in wanted and file_proto.name not in roots:
            roots[file_proto.name] = file_proto

    missing = sorted(wanted.difference(roots))
    if missing:
        _logger.warning("requested file(s) not present in request: %s", ", ".join(missing))
    return TypeIndex(types), roots


def build_index(files: Sequence[descriptor_pb2.FileDescriptorProto]) -> TypeIndex:
    """Return the :class:`TypeIndex` for *files* (see :func:`index_request`)."""

    index, _ = index_request((), files)
    return index


def find_roots(
    requested: Collection[str],
    files: Sequence[descriptor_pb2.FileDescriptorProto],
) -> RootSet:
    """Return the requested files keyed by name."""

    _, roots = index_request(requested, files)
    return roots


def collect_needed_types(roots: Mapping[str, descriptor_pb2.FileDescriptorProto], index: TypeIndex) -> NeededTypes:
    """Collect the input and output types referenced by every root service method.

    Only the method signatures are inspected; message fields are not followed.
    A name missing from *index* is recorded as ``None`` instead of raising.
    """

    needed: NeededTypes = {}
    for file_proto in roots.values():
        for service in file_proto.service:
            for method in service.method:
                for type_name in (method.input_type, method.output_type):
                    if not type_name or type_name in needed:
                        continue
                    resolved = index.resolve(type_name)
                    if resolved is None:
                        _logger.warning(
                            "%s: %s.%s references unknown type %s",
                            file_proto.name,
                            service.name,
                            method.name,
                            type_name,
                        )
                    needed[type_name] = resolved
    return needed


def missing_types(needed: NeededTypes) -> List[str]:
    """Return the sorted names that failed to resolve."""

    return sorted(name for name, resolved in needed.items() if resolved is None)


__all__ = [
    "TypeIndex",
    "build_index",
    "collect_needed_types",
    "find_roots",
    "index_request",
    "missing_types",
    "qualify_name",
]
