"""Delta lookup and application rules."""

from __future__ import annotations

from dataclasses import dataclass, replace
from types import MappingProxyType

from .enums import ActionCategory, CrisisMethod
from .errors import UnknownActionKey
from .models import BOUNDED_AXES, COUNTER_AXES, STAT_MAX, STAT_MIN, ActionDelta, StatVector
from .rules_config import DEFAULT_RULES, DeltaRules


@dataclass(frozen=True, slots=True)
class ResolvedDelta:
    """Delta ready for application plus how it was derived."""

    delta: ActionDelta
    recognised: bool
    method: CrisisMethod | None = None


def lookup_delta(
    category: ActionCategory | str,
    key: str,
    *,
    rules: DeltaRules = DEFAULT_RULES.deltas,
) -> ActionDelta:
    """Return the table entry for ``key`` or raise :class:`UnknownActionKey`."""

    category = ActionCategory(category)
    table = rules.table_for(category)
    try:
        return table[key]
    except KeyError as exc:
        raise UnknownActionKey(str(category), key) from exc


def parse_method(method: CrisisMethod | str | None) -> CrisisMethod | None:
    """Interpret a crisis method; unspecified or unknown methods map to ``None``."""

    if method is None or isinstance(method, CrisisMethod):
        return method
    try:
        return CrisisMethod(method)
    except ValueError:
        return None


def merge_deltas(*deltas: ActionDelta) -> dict[str, int]:
    """Sum deltas axis by axis."""

    merged: dict[str, int] = {}
    for delta in deltas:
        for axis, value in delta.items():
            merged[axis] = merged.get(axis, 0) + value
    return merged


def build_delta(
    category: ActionCategory | str,
    key: str,
    method: CrisisMethod | str | None = None,
    *,
    rules: DeltaRules = DEFAULT_RULES.deltas,
) -> ResolvedDelta:
    """Resolve an action to the delta it applies.

    Unknown keys fall back to the category's fallback delta.  Crisis actions
    add the method modifier on top of the base delta, and laws and crises
    bump their counter by one.
    """

    category = ActionCategory(category)
    recognised = True
    try:
        base = lookup_delta(category, key, rules=rules)
    except UnknownActionKey:
        base = rules.fallbacks[category]
        recognised = False

    parsed_method = None
    parts = [base]
    if category is ActionCategory.CRISIS:
        parsed_method = parse_method(method)
        if parsed_method is not None:
            parts.append(rules.methods[parsed_method])

    merged = merge_deltas(*parts)
    counter = rules.counters.get(category)
    if counter is not None:
        merged[counter] = 1
    return ResolvedDelta(
        delta=MappingProxyType(merged), recognised=recognised, method=parsed_method
    )


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def apply_delta(vector: StatVector, delta: ActionDelta) -> StatVector:
    """Return a new vector with ``delta`` applied.

    Bounded axes are clamped to ``[0, 100]``, chaos is floored at zero but
    never capped, and counters are added as-is.  Keys naming no axis are
    ignored.
    """

    vector.validate()
    changes: dict[str, int] = {}
    for axis in BOUNDED_AXES:
        if axis in delta:
            changes[axis] = _clamp(getattr(vector, axis) + delta[axis], STAT_MIN, STAT_MAX)
    if "chaos" in delta:
        changes["chaos"] = max(0, vector.chaos + delta["chaos"])
    for counter in COUNTER_AXES:
        if counter in delta:
            step = delta[counter]
            if step < 0:
                raise ValueError(f"counter '{counter}' cannot decrease (got {step})")
            changes[counter] = getattr(vector, counter) + step
    return replace(vector, **changes)


def apply_action(
    vector: StatVector,
    category: ActionCategory | str,
    key: str,
    method: CrisisMethod | str | None = None,
    *,
    rules: DeltaRules = DEFAULT_RULES.deltas,
) -> StatVector:
    """Look up the action's delta and apply it to ``vector``."""

    resolved = build_delta(category, key, method, rules=rules)
    return apply_delta(vector, resolved.delta)
