"""Shared fixtures: isolate config singleton and logging state."""

from __future__ import annotations

import pytest

from jsonentity.config import reset_config
from jsonentity.logging import shutdown_logging


@pytest.fixture(autouse=True)
def _reset_ambient_state(monkeypatch):
    for name in (
        "JSONENTITY_LOG_FORMATTER",
        "JSONENTITY_LOG_DESTINATION",
        "JSONENTITY_LOG_LEVEL",
        "JSONENTITY_LOG_FORMAT",
        "JSONENTITY_LOG_PATH",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    shutdown_logging()
    reset_config()
