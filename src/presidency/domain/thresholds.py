"""Rebellion risk and game-over evaluation."""

from __future__ import annotations

import math

from .enums import GameOverReason
from .models import STAT_MAX, STAT_MIN, GameOverStatus, RebellionRisk, StatVector
from .rules_config import DEFAULT_RULES, ThresholdRules


def game_over(vector: StatVector, chaos_threshold: int) -> GameOverStatus:
    """Report whether the presidency has ended.

    Only the first breached condition is reported: chaos, then stability,
    then approval.
    """

    if vector.chaos >= chaos_threshold:
        return GameOverStatus(over=True, reason=GameOverReason.CHAOS_EXCEEDED)
    if vector.stability <= 0:
        return GameOverStatus(over=True, reason=GameOverReason.STABILITY_COLLAPSED)
    if vector.approval <= 0:
        return GameOverStatus(over=True, reason=GameOverReason.APPROVAL_VANISHED)
    return GameOverStatus(over=False)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def rebellion_risk(
    vector: StatVector, *, rules: ThresholdRules = DEFAULT_RULES.thresholds
) -> RebellionRisk:
    """Score the chance of an uprising.

    Disorder (high chaos or low stability) and unpopularity (low approval)
    trigger separately and use different intensity formulas.
    """

    if (
        vector.chaos > rules.rebellion_chaos_above
        or vector.stability < rules.rebellion_stability_below
    ):
        raw = _round_half_up((vector.chaos + (rules.stability_pivot - vector.stability)) / 2)
        return RebellionRisk(active=True, intensity=max(STAT_MIN, min(STAT_MAX, raw)))
    if vector.approval < rules.rebellion_approval_below:
        intensity = max(
            rules.approval_intensity_floor, rules.approval_intensity_base - vector.approval
        )
        return RebellionRisk(active=True, intensity=intensity)
    return RebellionRisk(active=False)
