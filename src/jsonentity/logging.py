"""Structured logging: swappable formatter × destination via config.

    LogFormatter  : HOW records are structured (structlog, stdlib JSON)
    LogDestination: WHERE output goes (stderr, JSONL file)

setup_logging(config) composes them: formatter.setup() returns a
logging.Formatter, destination.create_handler() returns a logging.Handler,
and the handler is attached to the "jsonentity" logger. Nothing is wired
until an application calls setup_logging() or configure(); until then
get_logger() hands out a stdlib wrapper that accepts structured kwargs.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from jsonentity.config import LogConfig

_PACKAGE_LOGGER = "jsonentity"


@runtime_checkable
class LogFormatter(Protocol):
    """Strategy: how log records are structured."""

    def setup(self, config: LogConfig) -> logging.Formatter: ...

    def get_logger(self, name: str, **kwargs: Any) -> Any: ...


@runtime_checkable
class LogDestination(Protocol):
    """Strategy: where formatted log output is written."""

    def create_handler(self, formatter: logging.Formatter) -> logging.Handler: ...

    def shutdown(self) -> None: ...


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


class StructlogFormatter:
    """structlog processor pipeline bridged onto stdlib handlers."""

    def setup(self, config: LogConfig) -> logging.Formatter:
        import structlog

        if config.log_format == "console":
            renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
        else:
            renderer = structlog.processors.JSONRenderer()

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.add_logger_name,
                structlog.processors.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        return structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )

    def get_logger(self, name: str, **kwargs: Any) -> Any:
        import structlog

        return structlog.get_logger(name, **kwargs)


class StdlibFormatter:
    """Plain stdlib logging, JSON lines or a console layout."""

    def setup(self, config: LogConfig) -> logging.Formatter:
        if config.log_format == "console":
            return logging.Formatter(
                "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        return _JsonLineFormatter()

    def get_logger(self, name: str, **kwargs: Any) -> Any:
        return _KeywordLogger(logging.getLogger(name))


class _JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%SZ"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
        }
        line.update(getattr(record, "fields", {}))
        if record.exc_info and record.exc_info[1]:
            line["exception"] = self.formatException(record.exc_info)
        return json.dumps(line, default=str)


class _KeywordLogger:
    """stdlib logger with structlog's ``logger.debug("event", key=value)`` call shape.

    Keyword fields ride on the LogRecord as ``record.fields``.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _log(self, level: int, event: str, **fields: Any) -> None:
        if self._logger.isEnabledFor(level):
            self._logger.log(level, event, extra={"fields": fields})

    def debug(self, event: str, **kw: Any) -> None:
        self._log(logging.DEBUG, event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._log(logging.INFO, event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._log(logging.WARNING, event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._log(logging.ERROR, event, **kw)


# ---------------------------------------------------------------------------
# Destinations
# ---------------------------------------------------------------------------


class StderrDestination:
    def create_handler(self, formatter: logging.Formatter) -> logging.Handler:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        return handler

    def shutdown(self) -> None:
        pass


class JsonlFileDestination:
    """Append to a JSONL file."""

    def __init__(self, config: LogConfig) -> None:
        self._path = Path(config.jsonl_path or "jsonentity.jsonl")
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._handler: logging.Handler | None = None

    def create_handler(self, formatter: logging.Formatter) -> logging.Handler:
        self._handler = logging.FileHandler(str(self._path), mode="a", encoding="utf-8")
        self._handler.setFormatter(formatter)
        return self._handler

    def shutdown(self) -> None:
        if self._handler is not None:
            self._handler.close()


# ---------------------------------------------------------------------------
# Registries
# ---------------------------------------------------------------------------

_FORMATTERS: dict[str, type] = {
    "structlog": StructlogFormatter,
    "stdlib": StdlibFormatter,
}

_DESTINATIONS: dict[str, type] = {
    "stderr": StderrDestination,
    "jsonl": JsonlFileDestination,
}


# ---------------------------------------------------------------------------
# Module state
# ---------------------------------------------------------------------------

_active_formatter: LogFormatter | None = None
_active_destination: LogDestination | None = None


def setup_logging(config: LogConfig) -> None:
    """Compose formatter × destination from config and attach the handler."""
    global _active_formatter, _active_destination

    formatter_cls = _FORMATTERS.get(config.log_formatter)
    if formatter_cls is None:
        raise ValueError(
            f"Unknown log formatter: {config.log_formatter!r}. Available: {list(_FORMATTERS)}."
        )
    dest_cls = _DESTINATIONS.get(config.log_destination)
    if dest_cls is None:
        raise ValueError(
            f"Unknown log destination: {config.log_destination!r}. Available: {list(_DESTINATIONS)}."
        )

    shutdown_logging()

    formatter = formatter_cls()
    destination = dest_cls() if dest_cls is StderrDestination else dest_cls(config)
    handler = destination.create_handler(formatter.setup(config))

    handler._jsonentity_managed = True  # type: ignore[attr-defined]
    package_logger = logging.getLogger(_PACKAGE_LOGGER)
    package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, config.log_level.upper(), logging.WARNING))

    _active_formatter = formatter
    _active_destination = destination


def configure(path: Path | None = None) -> None:
    """Load LogConfig (YAML + env) and set up logging from it."""
    from jsonentity.config import get_config

    setup_logging(get_config(path))


def get_logger(name: str = _PACKAGE_LOGGER, **kwargs: Any) -> Any:
    """Get a logger from the active formatter.

    Falls back to a kwargs-aware stdlib wrapper before setup_logging().
    """
    if _active_formatter is not None:
        return _active_formatter.get_logger(name, **kwargs)
    return _KeywordLogger(logging.getLogger(name))


def shutdown_logging() -> None:
    """Detach our handler and close the active destination.

    Handlers added by the application (or pytest caplog) are left alone.
    """
    global _active_formatter, _active_destination
    package_logger = logging.getLogger(_PACKAGE_LOGGER)
    package_logger.handlers = [
        h for h in package_logger.handlers if not getattr(h, "_jsonentity_managed", False)
    ]
    if _active_destination is not None:
        _active_destination.shutdown()
    _active_formatter = None
    _active_destination = None
