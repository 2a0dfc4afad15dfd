from __future__ import annotations

import io
import logging
import sys
import threading
from datetime import datetime, timezone
from typing import Any, List

import pytest

pytest.importorskip("google.protobuf")

from google.protobuf.compiler import plugin_pb2

from grpcer import plugin
from grpcer.codegen import DefaultTemplateRenderer
from grpcer.plugin import generate_code, main


def _build_request(parameter: str = "") -> plugin_pb2.CodeGeneratorRequest:
    request = plugin_pb2.CodeGeneratorRequest()
    request.parameter = parameter

    common = request.proto_file.add()
    common.name = "common/common.proto"
    common.package = "common"
    common.message_type.add(name="Empty")

    greeter = request.proto_file.add()
    greeter.name = "example/greeter.proto"
    greeter.package = "example"
    greeter.dependency.append("common/common.proto")
    greeter.message_type.add(name="HelloRequest")
    greeter.message_type.add(name="HelloReply")
    service = greeter.service.add(name="Greeter")
    service.method.add(
        name="SayHello",
        input_type=".example.HelloRequest",
        output_type=".example.HelloReply",
    )
    service.method.add(
        name="Ping",
        input_type=".common.Empty",
        output_type=".common.Empty",
    )

    echo = request.proto_file.add()
    echo.name = "example/echo.proto"
    echo.package = "example"
    echo.message_type.add(name="EchoMessage")
    echo_service = echo.service.add(name="Echo")
    echo_service.method.add(
        name="Stream",
        input_type=".example.EchoMessage",
        output_type=".example.EchoMessage",
        server_streaming=True,
    )

    request.file_to_generate.extend(["example/greeter.proto", "example/echo.proto"])
    return request


def test_generate_code_renders_one_file_per_service() -> None:
    response = generate_code(_build_request())

    assert not response.HasField("error")
    assert sorted(file.name for file in response.file) == ["echo_grpcer.py", "greeter_grpcer.py"]
    assert response.supported_features == plugin_pb2.CodeGeneratorResponse.FEATURE_PROTO3_OPTIONAL

    greeter = next(file for file in response.file if file.name == "greeter_grpcer.py")
    assert "from common import common_pb2 as common_dot_common__pb2" in greeter.content
    assert "return common_dot_common__pb2.Empty()" in greeter.content
    assert "from example import greeter_pb2 as pb" in greeter.content


def test_generate_code_applies_parameters() -> None:
    response = generate_code(_build_request("package=foo,path=out/clients,unknown=baz"))

    assert not response.HasField("error")
    names = sorted(file.name for file in response.file)
    assert names == ["out/clients/echo_grpcer.py", "out/clients/greeter_grpcer.py"]
    assert all("Destination package: foo" in file.content for file in response.file)


def test_generate_code_skips_files_not_requested() -> None:
    request = _build_request()
    del request.file_to_generate[:]
    request.file_to_generate.append("example/echo.proto")

    response = generate_code(request)

    assert [file.name for file in response.file] == ["echo_grpcer.py"]


def test_partial_failure_keeps_well_formed_services(caplog: pytest.LogCaptureFixture) -> None:
    request = _build_request()
    broken = request.proto_file[2].service.add(name="Broken")
    broken.method.add(
        name="Missing",
        input_type=".example.DoesNotExist",
        output_type=".example.EchoMessage",
    )

    with caplog.at_level(logging.WARNING, logger="grpcer"):
        response = generate_code(request)

    assert response.error
    assert ".example.DoesNotExist" in response.error
    names = sorted(file.name for file in response.file)
    # example/echo.proto now declares two services, so file names carry the service.
    assert names == ["echo_echo_grpcer.py", "greeter_grpcer.py"]
    assert ".example.DoesNotExist" in caplog.text


def test_service_with_unresolved_output_type_is_not_rendered() -> None:
    request = _build_request()
    request.proto_file[2].service[0].method[0].output_type = ".example.Gone"

    response = generate_code(request)

    assert response.error == "example/echo.proto: Echo: unresolved type reference(s): .example.Gone"
    assert [file.name for file in response.file] == ["greeter_grpcer.py"]


def test_only_well_formed_services_of_a_file_are_rendered() -> None:
    request = _build_request()
    bad = request.proto_file[2].service.add(name="Bad")
    bad.method.add(name="Get", input_type=".example.EchoMessage", output_type=".example.Missing")

    response = generate_code(request)

    assert ".example.Missing" in response.error
    assert sorted(file.name for file in response.file) == ["echo_echo_grpcer.py", "greeter_grpcer.py"]


def test_render_exceptions_do_not_stop_sibling_tasks() -> None:
    class ExplodingRenderer:
        def __init__(self) -> None:
            self.lock = threading.Lock()
            self.rendered: List[str] = []
            self._inner = DefaultTemplateRenderer()

        def render(self, package_name: str, proto_file_name: str, service: Any, dependencies: Any, types: Any) -> str:
            with self.lock:
                self.rendered.append(service.name)
            if service.name == "Greeter":
                raise ValueError("boom")
            return self._inner.render(package_name, proto_file_name, service, dependencies, types)

    renderer = ExplodingRenderer()
    response = generate_code(_build_request(), renderer=renderer)

    assert sorted(renderer.rendered) == ["Echo", "Greeter"]
    assert response.error == "example/greeter.proto: Greeter: ValueError: boom"
    assert [file.name for file in response.file] == ["echo_grpcer.py"]


def test_first_error_wins_when_every_task_fails() -> None:
    class FailingRenderer:
        def render(self, *args: Any) -> str:
            raise ValueError(args[2].name)

    response = generate_code(_build_request(), renderer=FailingRenderer())

    assert response.error in {
        "example/greeter.proto: Greeter: ValueError: Greeter",
        "example/echo.proto: Echo: ValueError: Echo",
    }
    assert len(response.file) == 0


def test_generation_is_stable_with_pinned_timestamp() -> None:
    renderer = DefaultTemplateRenderer(timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc))

    first = generate_code(_build_request(), renderer=renderer)
    second = generate_code(_build_request(), renderer=renderer)

    assert {f.name: f.content for f in first.file} == {f.name: f.content for f in second.file}


def test_request_without_services_produces_empty_response() -> None:
    request = plugin_pb2.CodeGeneratorRequest()
    file_proto = request.proto_file.add(name="plain.proto", package="plain")
    file_proto.message_type.add(name="Only")
    request.file_to_generate.append("plain.proto")

    response = generate_code(request)

    assert len(response.file) == 0
    assert not response.HasField("error")


class _Stream:
    def __init__(self, payload: bytes = b"") -> None:
        self.buffer = io.BytesIO(payload)


def test_main_round_trips_request_and_response(monkeypatch: pytest.MonkeyPatch) -> None:
    stdout = _Stream()
    monkeypatch.setattr(sys, "stdin", _Stream(_build_request("path=gen").SerializeToString()))
    monkeypatch.setattr(sys, "stdout", stdout)

    main()

    response = plugin_pb2.CodeGeneratorResponse()
    response.ParseFromString(stdout.buffer.getvalue())
    assert sorted(file.name for file in response.file) == ["gen/echo_grpcer.py", "gen/greeter_grpcer.py"]


def test_main_reports_generation_errors_in_band(monkeypatch: pytest.MonkeyPatch) -> None:
    request = _build_request()
    request.proto_file[1].service[0].method[0].input_type = ".example.Gone"
    stdout = _Stream()
    monkeypatch.setattr(sys, "stdin", _Stream(request.SerializeToString()))
    monkeypatch.setattr(sys, "stdout", stdout)

    main()

    response = plugin_pb2.CodeGeneratorResponse()
    response.ParseFromString(stdout.buffer.getvalue())
    assert ".example.Gone" in response.error
    assert [file.name for file in response.file] == ["echo_grpcer.py"]


def test_main_exits_non_zero_on_unparseable_request(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "stdin", _Stream(b"\xff\xff\xff"))
    monkeypatch.setattr(sys, "stdout", _Stream())

    with pytest.raises(SystemExit) as excinfo:
        main()

    assert excinfo.value.code == 1


def test_generate_code_does_not_mutate_request() -> None:
    request = _build_request()
    snapshot = request.SerializeToString()

    generate_code(request)

    assert request.SerializeToString() == snapshot


def _request_importing(dependency: str, package: str, message: str) -> plugin_pb2.CodeGeneratorRequest:
    request = plugin_pb2.CodeGeneratorRequest()

    imported = request.proto_file.add(name=dependency, package=package)
    imported.message_type.add(name=message)

    root = request.proto_file.add(name="svc/api.proto", package="svc")
    root.dependency.append(dependency)
    root.message_type.add(name="Pong")
    service = root.service.add(name="Api")
    service.method.add(name="Ping", input_type=f".{package}.{message}", output_type=".svc.Pong")

    request.file_to_generate.append("svc/api.proto")
    return request


def test_well_known_type_input_is_imported_from_its_module() -> None:
    response = generate_code(_request_importing("google/protobuf/empty.proto", "google.protobuf", "Empty"))

    assert not response.HasField("error")
    assert [file.name for file in response.file] == ["api_grpcer.py"]
    content = response.file[0].content
    assert "from google.protobuf import empty_pb2 as google_dot_protobuf_dot_empty__pb2" in content
    assert "return google_dot_protobuf_dot_empty__pb2.Empty()" in content


def test_versioned_package_input_is_imported_from_its_module() -> None:
    response = generate_code(_request_importing("acme/common/v1/types.proto", "acme.common.v1", "Token"))

    assert not response.HasField("error")
    assert [file.name for file in response.file] == ["api_grpcer.py"]
    content = response.file[0].content
    assert "from acme.common.v1 import types_pb2 as acme_dot_common_dot_v1_dot_types__pb2" in content
    assert "return acme_dot_common_dot_v1_dot_types__pb2.Token()" in content


def test_worker_threads_are_capped(monkeypatch: pytest.MonkeyPatch) -> None:
    sizes: List[int] = []
    executor_class = plugin.futures.ThreadPoolExecutor

    class RecordingExecutor(executor_class):
        def __init__(self, max_workers: int) -> None:
            sizes.append(max_workers)
            super().__init__(max_workers=max_workers)

    monkeypatch.setattr(plugin.futures, "ThreadPoolExecutor", RecordingExecutor)
    request = plugin_pb2.CodeGeneratorRequest()
    file_proto = request.proto_file.add(name="many.proto", package="many")
    file_proto.message_type.add(name="Msg")
    for number in range(plugin.MAX_WORKERS + 8):
        file_proto.service.add(name=f"Service{number}").method.add(
            name="Call", input_type=".many.Msg", output_type=".many.Msg"
        )
    request.file_to_generate.append("many.proto")

    response = generate_code(request)

    assert sizes == [plugin.MAX_WORKERS]
    assert len(response.file) == plugin.MAX_WORKERS + 8
    assert not response.HasField("error")
