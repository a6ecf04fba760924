"""Logging configuration: YAML file + env var overrides.

Priority: env var > YAML file > default.
Env vars use JSONENTITY_{SETTING} (e.g. JSONENTITY_LOG_LEVEL=DEBUG).
YAML file default: ~/.jsonentity/config.yaml

    Formatter:   JSONENTITY_LOG_FORMATTER=structlog (default) | stdlib
    Destination: JSONENTITY_LOG_DESTINATION=stderr (default) | jsonl
    Renderer:    JSONENTITY_LOG_FORMAT=json (default) | console
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

_ENV_PREFIX = "JSONENTITY_"
_DEFAULT_PATH = Path("~/.jsonentity/config.yaml").expanduser()

# Settings whose env var does not follow the JSONENTITY_{NAME} pattern
_ENV_OVERRIDES = {"jsonl_path": "JSONENTITY_LOG_PATH"}


@dataclass
class LogConfig:
    """How jsonentity's structured logs are formatted and where they go."""

    log_formatter: str = "structlog"  # "structlog" | "stdlib"
    log_destination: str = "stderr"  # "stderr" | "jsonl"
    log_level: str = "WARNING"
    log_format: str = "json"  # "json" | "console"
    jsonl_path: str | None = None

    @classmethod
    def load(cls, path: Path | None = None) -> LogConfig:
        """Load settings from a YAML file, then override with env vars."""
        file_path = path or _DEFAULT_PATH
        file_values: dict[str, str] = {}

        if file_path.exists():
            raw = yaml.safe_load(file_path.read_text()) or {}
            if isinstance(raw, dict):
                for k, v in raw.items():
                    if isinstance(v, (str, int, float)) and not isinstance(v, bool):
                        file_values[k] = str(v)

        kwargs: dict[str, str] = {}
        for f in fields(cls):
            name = f.name
            env_key = _ENV_OVERRIDES.get(name, f"{_ENV_PREFIX}{name.upper()}")

            if os.environ.get(env_key):
                kwargs[name] = os.environ[env_key]
            elif name in file_values:
                kwargs[name] = file_values[name]
            # else: use dataclass default

        return cls(**kwargs)

    def to_dict(self) -> dict[str, str | None]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


# Singleton
_config: LogConfig | None = None


def get_config(path: Path | None = None) -> LogConfig:
    """Get the singleton LogConfig instance."""
    global _config
    if _config is None:
        _config = LogConfig.load(path)
    return _config


def reset_config() -> None:
    """Reset for testing."""
    global _config
    _config = None
