"""Entity: a compiled, append-only whitelist of exposure rules.

Usage:
    User = Entity({
        "id": True,
        "name": lambda user, opts: f"{user['first']} {user['last']}",
        "email_address": {"as": "email", "if": lambda user, opts: opts.get("full")},
    })
    User.represent({"id": 1, "first": "A", "last": "B", "password": "x"})
    # {"id": 1, "name": "A B"}

There is deliberately no way to remove a rule once exposed. To hide a
field an extended entity inherited, build a new Entity instead.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from jsonentity.compiler import compile_declarations, compile_rule
from jsonentity.logging import get_logger
from jsonentity.models import Rule
from jsonentity.projector import project

# Python keyword-safe spellings accepted by expose(**kwargs)
_KEYWORD_OPTIONS = {"as_": "as", "if_": "if"}


class RuleList:
    """Ordered rule storage that can only grow."""

    __slots__ = ("_rules",)

    def __init__(self) -> None:
        self._rules: list[Rule] = []

    def append(self, rule: Rule) -> None:
        self._rules.append(rule)

    def snapshot(self) -> tuple[Rule, ...]:
        return tuple(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)


class Entity:
    """Whitelist of rules that projects records into new dicts."""

    @staticmethod
    def is_entity(value: Any) -> bool:
        """True if ``value`` is a compiled Entity."""
        return isinstance(value, Entity)

    def __init__(self, *declarations: Any) -> None:
        self._rules = RuleList()
        for rule in compile_declarations(*declarations):
            self._append(rule)

    @property
    def rules(self) -> tuple[Rule, ...]:
        """Read-only view of the compiled rules, in declaration order."""
        return self._rules.snapshot()

    def expose(self, field: str, options: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        """Add one rule for ``field``.

        Meant for internal use: prefer declaring rules in the constructor so
        the whitelist reads in one place. ``as_`` and ``if_`` keyword
        arguments stand in for the reserved option names.
        """
        bag = dict(options or {})
        for name, value in kwargs.items():
            bag[_KEYWORD_OPTIONS.get(name, name)] = value
        self._append(compile_rule(field, bag))

    def extend(self, *declarations: Any) -> Entity:
        """Return a new Entity with this one's rules followed by new ones.

        The receiver is not modified.
        """
        child = Entity(self.rules, *declarations)
        get_logger(__name__).debug(
            "entity.extended",
            inherited=len(self._rules),
            added=len(child) - len(self._rules),
        )
        return child

    def represent(self, data: Any, options: Mapping[str, Any] | None = None) -> Any:
        """Project a record (or list/tuple of records) through the rules.

        ``options`` is passed unchanged to every ``if``/``value``/``filter``
        callable and to nested ``using`` entities. ``safe=True`` skips
        missing required properties instead of raising.
        """
        if options is None:
            options = {}
        return project(self._rules, data, options)

    def _append(self, rule: Rule) -> None:
        self._rules.append(rule)
        get_logger(__name__).debug(
            "entity.rule_compiled",
            key=rule.key,
            alias=rule.alias,
            mode=rule.mode.value,
        )

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules.snapshot())

    def __repr__(self) -> str:
        return f"Entity({[rule.alias for rule in self._rules]!r})"
