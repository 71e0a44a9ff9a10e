"""SQLAlchemy models for the presidency simulator.

This module exports all database models and the declarative base.
"""

from .achievement import Achievement
from .archive import Archive
from .base import Base, TimestampCreatedMixin, new_uuid, utc_now
from .match import MultiplayerMatch
from .session import PresidencySession, Stats
from .timeline import TimelineEvent

__all__ = [
    "Achievement",
    "Archive",
    "Base",
    "MultiplayerMatch",
    "PresidencySession",
    "Stats",
    "TimelineEvent",
    "TimestampCreatedMixin",
    "new_uuid",
    "utc_now",
]
