"""Tests for structured logging setup and the engine's log events."""

from __future__ import annotations

import json
import logging

import pytest

from jsonentity import Entity
from jsonentity.config import LogConfig
from jsonentity.logging import (
    JsonlFileDestination,
    LogDestination,
    LogFormatter,
    StderrDestination,
    StdlibFormatter,
    StructlogFormatter,
    configure,
    get_logger,
    setup_logging,
    shutdown_logging,
)


def _managed_handlers() -> list[logging.Handler]:
    return [
        h
        for h in logging.getLogger("jsonentity").handlers
        if getattr(h, "_jsonentity_managed", False)
    ]


class TestProtocols:
    def test_formatters(self):
        assert isinstance(StructlogFormatter(), LogFormatter)
        assert isinstance(StdlibFormatter(), LogFormatter)

    def test_destinations(self, tmp_path):
        assert isinstance(StderrDestination(), LogDestination)
        jsonl = JsonlFileDestination(LogConfig(jsonl_path=str(tmp_path / "x.jsonl")))
        assert isinstance(jsonl, LogDestination)


class TestSetup:
    def test_unknown_formatter(self):
        with pytest.raises(ValueError, match="Unknown log formatter"):
            setup_logging(LogConfig(log_formatter="loguru"))

    def test_unknown_destination(self):
        with pytest.raises(ValueError, match="Unknown log destination"):
            setup_logging(LogConfig(log_destination="victorialogs"))

    def test_single_managed_handler(self):
        setup_logging(LogConfig())
        setup_logging(LogConfig())
        assert len(_managed_handlers()) == 1

    def test_root_logger_untouched(self):
        setup_logging(LogConfig())
        assert not any(
            getattr(h, "_jsonentity_managed", False) for h in logging.getLogger().handlers
        )

    def test_shutdown_detaches(self):
        setup_logging(LogConfig())
        shutdown_logging()
        assert _managed_handlers() == []

    def test_level_applied(self):
        setup_logging(LogConfig(log_level="debug"))
        assert logging.getLogger("jsonentity").level == logging.DEBUG

    def test_configure_reads_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("JSONENTITY_LOG_LEVEL", "ERROR")
        configure(tmp_path / "missing.yaml")
        assert logging.getLogger("jsonentity").level == logging.ERROR


class TestJsonlDestination:
    def test_stdlib_json_lines(self, tmp_path):
        path = tmp_path / "logs" / "entity.jsonl"
        setup_logging(
            LogConfig(
                log_formatter="stdlib",
                log_destination="jsonl",
                log_level="DEBUG",
                jsonl_path=str(path),
            )
        )
        Entity({"_id": {"as": "id"}})
        shutdown_logging()

        lines = [json.loads(line) for line in path.read_text().splitlines()]
        compiled = [line for line in lines if line["event"] == "entity.rule_compiled"]
        assert compiled == [
            {
                "timestamp": compiled[0]["timestamp"],
                "level": "debug",
                "logger": "jsonentity.entity",
                "event": "entity.rule_compiled",
                "key": "_id",
                "alias": "id",
                "mode": "none",
            }
        ]

    def test_structlog_json_lines(self, tmp_path):
        path = tmp_path / "entity.jsonl"
        setup_logging(
            LogConfig(log_destination="jsonl", log_level="DEBUG", jsonl_path=str(path))
        )
        Entity({"id": True}).extend({"name": True})
        shutdown_logging()

        events = [json.loads(line)["event"] for line in path.read_text().splitlines()]
        assert "entity.rule_compiled" in events
        assert "entity.extended" in events


class TestEngineEvents:
    def test_fallback_logger_before_setup(self, caplog):
        caplog.set_level(logging.DEBUG, logger="jsonentity")
        get_logger("jsonentity.test").debug("custom.event", answer=42)
        (record,) = [r for r in caplog.records if r.getMessage() == "custom.event"]
        assert record.fields == {"answer": 42}

    def test_skipped_declaration_logged(self, caplog):
        caplog.set_level(logging.DEBUG, logger="jsonentity")
        Entity({"secret": False})
        assert any(r.getMessage() == "entity.declaration_skipped" for r in caplog.records)

    def test_safe_required_skip_logged(self, caplog):
        caplog.set_level(logging.DEBUG, logger="jsonentity")
        Entity({"id": {"require": True}}).represent({}, {"safe": True})
        (record,) = [r for r in caplog.records if r.getMessage() == "entity.required_skipped"]
        assert record.fields == {"key": "id"}
