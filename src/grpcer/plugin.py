"""Protocol Buffers compiler plugin entry point for grpcer."""
from __future__ import annotations

import sys
from concurrent import futures
from typing import List, Tuple

from google.protobuf import descriptor_pb2
from google.protobuf.compiler import plugin_pb2
from google.protobuf.message import DecodeError

from . import naming
from .codegen import DefaultTemplateRenderer, ITemplateRenderer, RenderError
from .config import GeneratorConfig
from .dependencies import prune_dependencies
from .descriptor_index import collect_needed_types, index_request, missing_types
from .log import configure_logging, get_logger
from .model import GeneratedFile, GenerationOutcome, NeededTypes

_logger = get_logger(__name__)

_Task = Tuple[descriptor_pb2.FileDescriptorProto, descriptor_pb2.ServiceDescriptorProto]

# Upper bound on concurrent rendering threads.
MAX_WORKERS = 32


def _render_service(
    outcome: GenerationOutcome,
    renderer: ITemplateRenderer,
    config: GeneratorConfig,
    root: descriptor_pb2.FileDescriptorProto,
    service: descriptor_pb2.ServiceDescriptorProto,
    needed: NeededTypes,
) -> None:
    service_suffix = service.name if len(root.service) > 1 else None
    destination = naming.client_output_path(config.path, root.name, service_suffix)
    unresolved = missing_types(
        {
            type_name: needed.get(type_name)
            for method in service.method
            for type_name in (method.input_type, method.output_type)
            if type_name
        }
    )
    try:
        if unresolved:
            raise RenderError(f"{root.name}: {service.name}: unresolved type reference(s): {', '.join(unresolved)}")
        dependencies = prune_dependencies(service.method, root.dependency)
        content = renderer.render(config.package, root.name, service, dependencies, needed)
    except RenderError as exc:
        message = str(exc)
    except Exception as exc:
        _logger.exception("rendering %s for %s failed", service.name, root.name)
        message = f"{root.name}: {service.name}: {type(exc).__name__}: {exc}"
    else:
        outcome.add_file(GeneratedFile(name=destination, content=content))
        _logger.debug("generated %s from %s (%s)", destination, root.name, service.name)
        return

    _logger.error("%s", message)
    outcome.add_error(message)


def generate_code(
    request: plugin_pb2.CodeGeneratorRequest,
    *,
    renderer: ITemplateRenderer | None = None,
) -> plugin_pb2.CodeGeneratorResponse:
    """Generate one client adapter per service of every requested file.

    Rendering failures never raise: every service that renders is returned,
    and the first failure observed is reported in ``response.error``.
    """

    config = GeneratorConfig.from_parameter_string(request.parameter)
    renderer = renderer or DefaultTemplateRenderer()

    index, roots = index_request(request.file_to_generate, request.proto_file)
    needed = collect_needed_types(roots, index)

    tasks: List[_Task] = [(root, service) for root in roots.values() for service in root.service]
    outcome = GenerationOutcome()
    if tasks:
        with futures.ThreadPoolExecutor(max_workers=min(len(tasks), MAX_WORKERS)) as executor:
            pending = [
                executor.submit(_render_service, outcome, renderer, config, root, service, needed)
                for root, service in tasks
            ]
        for future in pending:
            future.result()

    _logger.info(
        "generated %d file(s) for %d service(s)%s",
        len(outcome.files),
        len(tasks),
        f"; error: {outcome.error}" if outcome.error else "",
    )
    return outcome.to_response()


def main() -> None:
    """Execute the protoc plugin workflow."""

    configure_logging()

    request_payload = sys.stdin.buffer.read()

    request = plugin_pb2.CodeGeneratorRequest()
    try:
        request.ParseFromString(request_payload)
    except DecodeError as exc:
        _logger.critical("cannot parse CodeGeneratorRequest: %s", exc)
        raise SystemExit(1) from exc

    response = generate_code(request)
    sys.stdout.buffer.write(response.SerializeToString())
    sys.stdout.buffer.flush()


if __name__ == "__main__":  # pragma: no cover - convenience execution entry.
    main()
