"""Dataclasses describing the presidency simulation state.

The rules layer operates purely on these in-memory types.  Persistence
adapters translate between them and the SQLAlchemy rows in
:mod:`presidency.models`; nothing in :mod:`presidency.domain` touches the
database directly.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import NewType

from .enums import GameOverReason
from .errors import InvalidVectorState

# --- Strongly typed identifiers -------------------------------------------------

SessionID = NewType("SessionID", str)
MatchID = NewType("MatchID", str)

# --- Axis names -----------------------------------------------------------------

BOUNDED_AXES: tuple[str, ...] = ("approval", "stability", "economy", "justice", "power")
COUNTER_AXES: tuple[str, ...] = ("laws", "crises")
STAT_MIN = 0
STAT_MAX = 100

ActionDelta = Mapping[str, int]
"""Partial, read-only mapping from axis name to a signed adjustment."""


@dataclass(frozen=True, slots=True)
class StatVector:
    """Six-axis condition of a government plus its event counters."""

    approval: int = 50
    stability: int = 50
    economy: int = 50
    justice: int = 50
    power: int = 50
    chaos: int = 0
    laws: int = 0
    crises: int = 0

    def validate(self) -> StatVector:
        """Return ``self`` or raise :class:`InvalidVectorState`."""

        for name in BOUNDED_AXES:
            value = getattr(self, name)
            if not isinstance(value, int) or not STAT_MIN <= value <= STAT_MAX:
                raise InvalidVectorState(name, value)
        for name in ("chaos", *COUNTER_AXES):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                raise InvalidVectorState(name, value)
        return self

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


DEFAULT_STATS = StatVector()


@dataclass(frozen=True, slots=True)
class AchievementUnlock:
    """A rule that fired; the caller stamps session and time onto it."""

    key: str
    description: str


@dataclass(frozen=True, slots=True)
class Achievement:
    """Persisted one-time unlock for a session."""

    session_id: SessionID
    key: str
    description: str
    unlocked_at: datetime


@dataclass(frozen=True, slots=True)
class GameOverStatus:
    over: bool
    reason: GameOverReason | None = None


@dataclass(frozen=True, slots=True)
class RebellionRisk:
    active: bool
    intensity: int = 0
