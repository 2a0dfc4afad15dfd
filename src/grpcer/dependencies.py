"""Reduce a root file's declared imports to the ones a service needs."""

from __future__ import annotations

import posixpath
from typing import Iterable, List, Sequence, Set

from google.protobuf import descriptor_pb2


def needed_packages(methods: Iterable[descriptor_pb2.MethodDescriptorProto]) -> Set[str]:
    """Return the leading package segments of the methods' input types.

    Output types are deliberately not consulted: generated adapters only ever
    name input types.
    """

    needed: Set[str] = set()
    for method in methods:
        type_name = method.input_type
        if not type_name.startswith("."):
            continue
        needed.add(type_name[1:].split(".", 1)[0])
    return needed


def prune_dependencies(
    methods: Iterable[descriptor_pb2.MethodDescriptorProto],
    dependencies: Sequence[str],
) -> List[str]:
    """Return the directories of the *dependencies* whose package is needed.

    A dependency's directory stands in for its package path: ``pkgA/x.proto``
    is kept when ``pkgA`` is the leading package of some method input type.
    Declaration order is preserved.
    """

    needed = needed_packages(methods)
    kept: List[str] = []
    for dependency in dependencies:
        directory = posixpath.dirname(dependency) or "."
        if posixpath.basename(directory) not in needed:
            continue
        kept.append(directory)
    return kept


__all__ = ["needed_packages", "prune_dependencies"]
