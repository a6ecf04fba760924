"""Core data models for entity rules.

These models define the contract between the two halves of an Entity:
- The compiler turns raw declarations into RuleInput variants, then Rules
- The projector reads Rules and never inspects raw declarations again
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from jsonentity.entity import Entity


class _Absent:
    """Marker for a strictly undefined value (not None, not falsy data)."""

    _instance: _Absent | None = None

    def __new__(cls) -> _Absent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _Absent:
        return self

    def __deepcopy__(self, memo: dict) -> _Absent:
        return self

    def __reduce__(self) -> str:
        return "ABSENT"


ABSENT: Any = _Absent()

# Keys kept from a declaration bag; everything else is dropped.
OPTION_NAMES = frozenset({"as", "default", "filter", "if", "merge", "require", "using", "value"})

# (record, options) -> Any
ValueFn = Callable[[Any, Mapping[str, Any]], Any]
# (item, record, options) -> bool
FilterFn = Callable[[Any, Any, Mapping[str, Any]], Any]


class Mode(str, Enum):
    """Where a rule's value comes from."""

    NONE = "none"  # read rule.key from the record
    COMPUTED = "computed"  # call rule.value(record, options)
    LITERAL = "literal"  # rule.value as-is


# =============================================================================
# Rule inputs (raw declaration → variant)
# =============================================================================


@dataclass(frozen=True)
class Always:
    """Expose the field as-is."""


@dataclass(frozen=True)
class Never:
    """Declared but not exposed."""


@dataclass(frozen=True)
class Computed:
    """Value produced by a callable."""

    fn: ValueFn


@dataclass(frozen=True)
class Options:
    """Full option bag (as, default, if, merge, ...)."""

    bag: Mapping[str, Any] = field(default_factory=dict)


RuleInput = Always | Never | Computed | Options


# =============================================================================
# Compiled rule
# =============================================================================


@dataclass(frozen=True)
class Rule:
    """One compiled exposure directive.

    ``alias`` is the ``as`` option and ``condition`` the ``if`` option;
    both names are reserved words in Python.
    """

    key: str
    alias: str
    mode: Mode = Mode.NONE
    value: Any = ABSENT
    default: Any = ABSENT
    condition: ValueFn | None = None
    merge: bool = False
    require: bool = False
    using: Entity | None = None
    filter: FilterFn | None = None

    @property
    def has_default(self) -> bool:
        return self.default is not ABSENT

    def options(self) -> dict[str, Any]:
        """Return the declaration bag that recompiles to an equal rule."""
        bag: dict[str, Any] = {"key": self.key, "as": self.alias}
        if self.mode is not Mode.NONE:
            bag["value"] = self.value
        if self.has_default:
            bag["default"] = self.default
        if self.condition is not None:
            bag["if"] = self.condition
        if self.merge:
            bag["merge"] = True
        if self.require:
            bag["require"] = True
        if self.using is not None:
            bag["using"] = self.using
        if self.filter is not None:
            bag["filter"] = self.filter
        return bag
