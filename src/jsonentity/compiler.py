"""Rule compiler: raw declarations → canonical Rule records.

A declaration is a mapping of field name to one of:
    True / False          expose / skip
    callable              computed value, called as fn(record, options)
    mapping               option bag (as, default, if, merge, require, using, value, filter)
    Rule                  an already-compiled rule (how ``extend`` re-seeds)

A sequence of Rules (or option bags carrying ``key``) is also accepted, so a
compiled rule list can be fed back in without renaming fields to indexes.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from jsonentity.errors import ConfigurationError
from jsonentity.logging import get_logger
from jsonentity.models import (
    ABSENT,
    OPTION_NAMES,
    Always,
    Computed,
    Mode,
    Never,
    Options,
    Rule,
    RuleInput,
)


def to_rule_input(raw: Any, field: str) -> RuleInput:
    """Decide which RuleInput variant a raw declaration value is."""
    if isinstance(raw, (Always, Never, Computed, Options)):
        return raw
    if isinstance(raw, bool):
        return Always() if raw is True else Never()
    if isinstance(raw, Rule):
        return Options(raw.options())
    if isinstance(raw, Mapping):
        return Options(raw)
    if callable(raw):
        return Computed(raw)
    raise ConfigurationError(f"unknown options type for property {field}")


def compile_rule(field: str, options: Mapping[str, Any] | None = None) -> Rule:
    """Build one canonical Rule for ``field`` from an option bag.

    Unrecognized keys are dropped. ``if``, ``using`` and ``filter`` are
    validated here so that projection never has to.
    """
    from jsonentity.entity import Entity

    opts = {k: v for k, v in (options or {}).items() if k in OPTION_NAMES}

    condition = _unset_to_none(opts.get("if"))
    if condition is not None and not callable(condition):
        raise ConfigurationError('"if" must be a function')

    using = _unset_to_none(opts.get("using"))
    if using is not None and not Entity.is_entity(using):
        raise ConfigurationError('"using" must be an Entity')

    item_filter = _unset_to_none(opts.get("filter"))
    if item_filter is not None and not callable(item_filter):
        raise ConfigurationError('"filter" must be a function')

    value = opts.get("value", ABSENT)
    if callable(value):
        mode = Mode.COMPUTED
    elif value is not ABSENT:
        mode = Mode.LITERAL
    else:
        mode = Mode.NONE

    return Rule(
        key=field,
        alias=opts.get("as") or field,
        mode=mode,
        value=value,
        default=opts.get("default", ABSENT),
        condition=condition,
        merge=bool(opts.get("merge")),
        require=bool(opts.get("require")),
        using=using,
        filter=item_filter,
    )


def compile_input(field: str, rule_input: RuleInput) -> Rule | None:
    """Compile a decided RuleInput. Returns None for ``Never``."""
    match rule_input:
        case Always():
            return compile_rule(field)
        case Computed(fn=fn):
            return compile_rule(field, {"value": fn})
        case Options(bag=bag):
            return compile_rule(field, bag)
        case _:
            return None


def compile_declarations(*declarations: Any) -> list[Rule]:
    """Compile declarations in argument order, preserving key order."""
    rules: list[Rule] = []
    for declaration in declarations:
        for name, raw in _iter_declaration(declaration):
            field = _target_field(name, raw)
            rule = compile_input(field, to_rule_input(raw, field))
            if rule is None:
                get_logger(__name__).debug("entity.declaration_skipped", field=field)
                continue
            rules.append(rule)
    return rules


def _iter_declaration(declaration: Any) -> Iterator[tuple[str, Any]]:
    if isinstance(declaration, Mapping):
        yield from declaration.items()
    elif isinstance(declaration, (list, tuple)):
        for index, raw in enumerate(declaration):
            yield str(index), raw
    else:
        raise ConfigurationError(
            f"unknown entity definition type {type(declaration).__name__}"
        )


def _target_field(name: str, raw: Any) -> str:
    """Prefer an explicit ``key`` carried by the value over the mapping key."""
    if isinstance(raw, Rule):
        return raw.key
    if isinstance(raw, Options):
        raw = raw.bag
    if isinstance(raw, Mapping) and raw.get("key"):
        return raw["key"]
    return name


def _unset_to_none(value: Any) -> Any:
    """None, False, 0 and "" leave an option unset; containers do not."""
    if isinstance(value, (bool, int, float, str)) and not value:
        return None
    return value
