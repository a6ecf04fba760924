"""Projector: apply a compiled rule list to a record.

Per rule, in declaration order:
    guard (if) → resolve (mode) → absence (default / require) →
    filter → nested projection (using) → placement (assign or merge)

Later rules overwrite earlier writes to the same output key.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import fields, is_dataclass
from typing import Any

from jsonentity.errors import ConfigurationError, MissingPropertyError
from jsonentity.logging import get_logger
from jsonentity.models import ABSENT, Mode, Rule

_SCALAR_SEQUENCES = (str, bytes, bytearray)


def is_sequence(value: Any) -> bool:
    """True for list/tuple data; strings and mappings are not sequences."""
    return isinstance(value, (list, tuple)) and not isinstance(value, _SCALAR_SEQUENCES)


def is_record(value: Any) -> bool:
    """True for data whose fields can be spread by ``merge``.

    Mappings, dataclass instances, and plain objects carrying a ``__dict__``
    count. Scalars, sequences, classes and functions do not.
    """
    if isinstance(value, Mapping):
        return True
    if isinstance(value, type) or is_sequence(value):
        return False
    if is_dataclass(value):
        return True
    return hasattr(value, "__dict__") and not callable(value)


def record_items(value: Any) -> Iterable[tuple[str, Any]]:
    """Top-level (field, value) pairs of a record, without copying nested data."""
    if isinstance(value, Mapping):
        return value.items()
    if is_dataclass(value):
        return [(f.name, getattr(value, f.name)) for f in fields(value)]
    return vars(value).items()


def read_field(record: Any, key: str) -> Any:
    """Read ``key`` from a mapping, or as an attribute of any other object."""
    if isinstance(record, Mapping):
        return record.get(key, ABSENT)
    return getattr(record, key, ABSENT)


def project(rules: Iterable[Rule], data: Any, options: Mapping[str, Any]) -> Any:
    """Project ``data`` (a record or a sequence of records) through ``rules``."""
    if is_sequence(data):
        rules = tuple(rules)
        return [project(rules, item, options) for item in data]
    return project_record(rules, data, options)


def project_record(rules: Iterable[Rule], data: Any, options: Mapping[str, Any]) -> dict[str, Any]:
    """Build a fresh output dict for a single record."""
    result: dict[str, Any] = {}

    for rule in rules:
        if rule.condition is not None and not rule.condition(data, options):
            continue

        value = _resolve(rule, data, options)

        if value is ABSENT:
            if rule.has_default:
                value = rule.default
            elif rule.require and not options.get("safe"):
                raise MissingPropertyError(rule.key)
            else:
                if rule.require:
                    get_logger(__name__).debug("entity.required_skipped", key=rule.key)
                continue

        if rule.filter is not None and is_sequence(value):
            value = [item for item in value if rule.filter(item, data, options)]

        if rule.using is not None:
            value = rule.using.represent(value, options)

        _place(result, rule, value)

    return result


def _resolve(rule: Rule, data: Any, options: Mapping[str, Any]) -> Any:
    if rule.mode is Mode.COMPUTED:
        return rule.value(data, options)
    if rule.mode is Mode.LITERAL:
        return rule.value
    return read_field(data, rule.key)


def _place(result: dict[str, Any], rule: Rule, value: Any) -> None:
    if not rule.merge:
        result[rule.alias] = value
        return

    if is_sequence(value):
        existing = result.get(rule.alias, ABSENT)
        if existing is not ABSENT and not is_sequence(existing):
            raise ConfigurationError(
                f"attempting to merge array with non-array for property {rule.alias}"
            )
        result[rule.alias] = [*(existing or ()), *value]
    elif is_record(value):
        # Shallow spread at the top level; rule.alias is bypassed
        for key, item in record_items(value):
            result[key] = item
    # Scalars contribute nothing when merged
