"""Declarative rule configuration for the presidency domain.

Every table is frozen at import time.  The numeric values are game-balance
data; the combination and clamping mechanics live in :mod:`deltas`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .enums import ActionCategory, CrisisMethod
from .models import ActionDelta


def _table(entries: Mapping[str, Mapping[str, int]]) -> Mapping[str, ActionDelta]:
    return MappingProxyType({key: MappingProxyType(dict(delta)) for key, delta in entries.items()})


_LAWS = _table(
    {
        "tax_cut": {"approval": +5, "economy": +8, "stability": -2, "chaos": -1, "power": 0},
        "emergency_rule": {
            "approval": -10,
            "stability": +10,
            "justice": -8,
            "power": +12,
            "chaos": +5,
        },
        "welfare_boost": {"approval": +8, "economy": -6, "justice": +5, "chaos": -2, "power": 0},
        "police_reform": {"approval": -3, "justice": +12, "stability": +2, "chaos": -1, "power": -2},
    }
)

_CRISES = _table(
    {
        "pandemic": {
            "approval": -6,
            "stability": -10,
            "economy": -12,
            "justice": 0,
            "power": +5,
            "chaos": +8,
        },
        "economic_shock": {
            "approval": -8,
            "stability": -6,
            "economy": -15,
            "justice": 0,
            "power": +3,
            "chaos": +6,
        },
        "diplomatic_row": {"approval": -4, "stability": -3, "economy": -2, "power": -1, "chaos": +2},
    }
)

_DIPLOMACY = _table(
    {
        "treaty": {"approval": +2, "stability": +3, "economy": +2, "chaos": -1},
        "trade": {"approval": +1, "economy": +6, "stability": +1},
        "rivalry": {"approval": -3, "stability": -4, "chaos": +4},
    }
)

_REBELLION = _table(
    {
        "negotiate": {"approval": +5, "stability": +6, "chaos": -8, "power": -5},
        "suppress": {"approval": -12, "stability": +10, "chaos": +10, "power": +8},
        "appease": {"approval": +3, "stability": +4, "economy": -4, "chaos": -5},
    }
)

_COSMIC = _table(
    {
        "probe": {"approval": -2, "chaos": +10, "power": +3},
        "entreat": {"approval": +4, "chaos": -6, "stability": +2},
        "distort": {"approval": -20, "chaos": +25, "stability": -15, "power": +20},
    }
)

_FALLBACKS = MappingProxyType(
    {
        ActionCategory.LAW: MappingProxyType({"approval": 0}),
        ActionCategory.CRISIS: MappingProxyType({"approval": -2}),
        ActionCategory.DIPLOMACY: MappingProxyType({"approval": 0}),
        ActionCategory.REBELLION: MappingProxyType({"approval": 0}),
        ActionCategory.COSMIC: MappingProxyType({"chaos": +5}),
    }
)

_METHODS = MappingProxyType(
    {
        CrisisMethod.BOLD: MappingProxyType({"power": +5, "chaos": +4, "approval": -3}),
        CrisisMethod.MEASURED: MappingProxyType({"stability": +4, "approval": +2, "economy": -3}),
        CrisisMethod.IGNORE: MappingProxyType({"approval": -10, "stability": -12, "chaos": +10}),
    }
)

# Counter bumped when an action of the category resolves.
_COUNTERS = MappingProxyType({ActionCategory.LAW: "laws", ActionCategory.CRISIS: "crises"})


@dataclass(frozen=True, slots=True)
class DeltaRules:
    """Per-category delta tables, fallbacks and crisis method modifiers."""

    laws: Mapping[str, ActionDelta] = field(default_factory=lambda: _LAWS)
    crises: Mapping[str, ActionDelta] = field(default_factory=lambda: _CRISES)
    diplomacy: Mapping[str, ActionDelta] = field(default_factory=lambda: _DIPLOMACY)
    rebellion: Mapping[str, ActionDelta] = field(default_factory=lambda: _REBELLION)
    cosmic: Mapping[str, ActionDelta] = field(default_factory=lambda: _COSMIC)
    fallbacks: Mapping[ActionCategory, ActionDelta] = field(default_factory=lambda: _FALLBACKS)
    methods: Mapping[CrisisMethod, ActionDelta] = field(default_factory=lambda: _METHODS)
    counters: Mapping[ActionCategory, str] = field(default_factory=lambda: _COUNTERS)

    def table_for(self, category: ActionCategory) -> Mapping[str, ActionDelta]:
        return {
            ActionCategory.LAW: self.laws,
            ActionCategory.CRISIS: self.crises,
            ActionCategory.DIPLOMACY: self.diplomacy,
            ActionCategory.REBELLION: self.rebellion,
            ActionCategory.COSMIC: self.cosmic,
        }[category]


@dataclass(frozen=True, slots=True)
class ThresholdRules:
    """Constants behind the rebellion and game-over evaluators."""

    rebellion_chaos_above: int = 65
    rebellion_stability_below: int = 20
    rebellion_approval_below: int = 15
    approval_intensity_base: int = 40
    approval_intensity_floor: int = 10
    stability_pivot: int = 50


@dataclass(frozen=True, slots=True)
class RulesConfig:
    """Aggregate of every rule table used by the simulation."""

    deltas: DeltaRules = field(default_factory=DeltaRules)
    thresholds: ThresholdRules = field(default_factory=ThresholdRules)


DEFAULT_RULES = RulesConfig()
