"""Enumerations used across the presidency domain."""

from __future__ import annotations

from enum import StrEnum


class ActionCategory(StrEnum):
    """Families of player actions, one delta table each."""

    LAW = "law"
    CRISIS = "crisis"
    DIPLOMACY = "diplomacy"
    REBELLION = "rebellion"
    COSMIC = "cosmic"


class CrisisMethod(StrEnum):
    """Response styles that modify a crisis' base delta."""

    BOLD = "bold"
    MEASURED = "measured"
    IGNORE = "ignore"


class GameOverReason(StrEnum):
    """Why a presidency ended, in evaluation priority order."""

    CHAOS_EXCEEDED = "chaos_exceeded"
    STABILITY_COLLAPSED = "stability_collapsed"
    APPROVAL_VANISHED = "approval_vanished"


class TimelineType(StrEnum):
    """Kinds of human-readable timeline entries."""

    SYSTEM = "system"
    LAW = "law"
    CRISIS = "crisis"
    DIPLOMACY = "diplomacy"
    REBELLION = "rebellion"
    COSMIC = "cosmic"
    ACHIEVEMENT = "achievement"
    ARCHIVE = "archive"


class ArchiveKind(StrEnum):
    """Archives are written automatically on end or on manual export."""

    FINAL = "final"
    MANUAL = "manual"
