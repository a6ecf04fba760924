"""Errors raised while compiling or applying entity rules."""

from __future__ import annotations


def _message(text: str) -> str:
    return f"jsonentity: {text}"


class EntityError(Exception):
    """Base class for every error raised by jsonentity."""

    def __init__(self, message: str) -> None:
        super().__init__(_message(message))


class ConfigurationError(EntityError, ValueError):
    """A rule declaration is malformed, or a merge cannot be applied.

    Always a programmer error in the entity definition.
    """


class MissingPropertyError(EntityError, KeyError):
    """A ``require`` rule found no value and no default."""

    def __init__(self, key: str) -> None:
        super().__init__(f"missing required property {key}")
        self.key = key

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])
