"""Configuration helpers for grpcer code generation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from .log import get_logger

_logger = get_logger(__name__)

DEFAULT_PACKAGE = "main"
DEFAULT_PATH = "."

_KNOWN_KEYS = frozenset({"package", "path"})


def _parse_parameter_string(parameter: str | None) -> Dict[str, str]:
    if not parameter:
        return {}

    result: Dict[str, str] = {}
    for entry in parameter.split(","):
        # Tokens without a key/value separator carry no setting.
        if "=" not in entry:
            continue
        key, value = entry.split("=", 1)
        result[key] = value
    return result


@dataclass(slots=True)
class GeneratorConfig:
    """Runtime configuration for client adapter generation."""

    package: str = DEFAULT_PACKAGE
    path: str = DEFAULT_PATH

    @classmethod
    def from_parameter_string(cls, parameter: str | None) -> "GeneratorConfig":
        overrides = _parse_parameter_string(parameter)

        unknown = sorted(key for key in overrides if key not in _KNOWN_KEYS)
        if unknown:
            _logger.debug("ignoring unknown parameter(s): %s", ", ".join(unknown))

        config = cls(
            package=overrides.get("package", DEFAULT_PACKAGE),
            path=overrides.get("path", DEFAULT_PATH),
        )
        _logger.debug(
            "parameter=%r => package=%r path=%r", parameter or "", config.package, config.path
        )
        return config


__all__ = ["DEFAULT_PACKAGE", "DEFAULT_PATH", "GeneratorConfig"]
