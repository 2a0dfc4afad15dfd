from __future__ import annotations

import logging
from typing import Iterator

import pytest


@pytest.fixture(autouse=True)
def _reset_grpcer_logger() -> Iterator[None]:
    """Undo ``configure_logging`` so caplog keeps seeing grpcer records."""
    logger = logging.getLogger("grpcer")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate
