from __future__ import annotations

"""Command-line helpers for generating client adapters without protoc."""

import argparse
import sys
from pathlib import Path
from typing import List, Sequence

from google.protobuf import descriptor_pb2
from google.protobuf.compiler import plugin_pb2

from grpcer.log import configure_logging, get_logger
from grpcer.plugin import generate_code

_logger = get_logger(__name__)


class GenerationFailed(RuntimeError):
    """Raised when the plugin reports an error for the requested files."""

    def __init__(self, message: str, written: List[Path]) -> None:
        super().__init__(message)
        self.written = written


def _build_request(
    descriptor_set: descriptor_pb2.FileDescriptorSet,
    targets: Sequence[str] | None,
    parameter: str,
) -> plugin_pb2.CodeGeneratorRequest:
    request = plugin_pb2.CodeGeneratorRequest()
    request.proto_file.extend(descriptor_set.file)
    request.parameter = parameter

    if targets:
        request.file_to_generate.extend(targets)
    else:
        request.file_to_generate.extend(file_proto.name for file_proto in descriptor_set.file)

    return request


def _parameter(package: str | None, path: str | None) -> str:
    entries = []
    if package:
        entries.append(f"package={package}")
    if path:
        entries.append(f"path={path}")
    return ",".join(entries)


def generate_clients(
    descriptor_set_path: Path | str,
    targets: Sequence[str] | None,
    output_dir: Path | str,
    *,
    package: str | None = None,
    path: str | None = None,
) -> List[Path]:
    """Generate client adapters for the given targets.

    Parameters
    ----------
    descriptor_set_path:
        Path to a serialized :class:`~google.protobuf.descriptor_pb2.FileDescriptorSet`
        produced with ``protoc --include_imports --descriptor_set_out``.
    targets:
        Proto filenames (as understood by ``protoc``) to generate. ``None`` means "all".
    output_dir:
        Directory that receives the ``*_grpcer.py`` files.
    package, path:
        Same as the plugin's ``package`` and ``path`` parameters.

    Every produced file is written even when generation partially fails;
    :class:`GenerationFailed` is raised afterwards in that case.
    """

    descriptor_set_path = Path(descriptor_set_path)
    output_dir = Path(output_dir)

    descriptor_set = descriptor_pb2.FileDescriptorSet()
    descriptor_set.ParseFromString(descriptor_set_path.read_bytes())

    request = _build_request(descriptor_set, targets, _parameter(package, path))
    response = generate_code(request)

    written: List[Path] = []
    for generated in sorted(response.file, key=lambda item: item.name):
        destination = output_dir / Path(generated.name)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(generated.content, encoding="utf-8")
        written.append(destination)

    if response.HasField("error"):
        raise GenerationFailed(response.error, written)
    return written


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate *_grpcer.py client adapters from a descriptor set produced by protoc."
    )
    parser.add_argument(
        "descriptor_set",
        type=Path,
        help="Path to a serialized FileDescriptorSet (protoc --include_imports --descriptor_set_out)",
    )
    parser.add_argument(
        "--proto",
        dest="protos",
        action="append",
        help=(
            "Proto file to generate (relative to the descriptor). Repeat for multiple files. "
            "Defaults to all entries in the descriptor set."
        ),
    )
    parser.add_argument(
        "--out",
        dest="output",
        required=True,
        type=Path,
        help="Directory to write the generated client adapters to",
    )
    parser.add_argument("--package", help="Destination package recorded in generated modules")
    parser.add_argument("--path", help="Sub-directory of --out for generated modules")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point used by ``python -m grpcer.tools.generate``."""

    parser = _build_argument_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose)

    try:
        generated_paths = generate_clients(
            args.descriptor_set,
            args.protos,
            args.output,
            package=args.package,
            path=args.path,
        )
    except GenerationFailed as exc:
        for path in exc.written:
            print(path)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    for path in generated_paths:
        print(path)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
