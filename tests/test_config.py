from __future__ import annotations

from grpcer.config import DEFAULT_PACKAGE, DEFAULT_PATH, GeneratorConfig


def test_generator_config_defaults() -> None:
    config = GeneratorConfig.from_parameter_string(None)

    assert config.package == DEFAULT_PACKAGE == "main"
    assert config.path == DEFAULT_PATH == "."


def test_generator_config_reads_package_and_path_ignoring_unknown_keys() -> None:
    config = GeneratorConfig.from_parameter_string("package=foo,path=bar,unknown=baz")

    assert config.package == "foo"
    assert config.path == "bar"


def test_generator_config_skips_tokens_without_separator() -> None:
    config = GeneratorConfig.from_parameter_string("verbose,package=foo,,path")

    assert config.package == "foo"
    assert config.path == "."


def test_generator_config_keeps_everything_after_first_separator() -> None:
    config = GeneratorConfig.from_parameter_string("path=out/a=b")

    assert config.path == "out/a=b"


def test_generator_config_last_occurrence_wins() -> None:
    config = GeneratorConfig.from_parameter_string("package=one,package=two")

    assert config.package == "two"
