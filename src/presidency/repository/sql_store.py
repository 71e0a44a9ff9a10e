"""SQLAlchemy-backed repository for presidency sessions."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from presidency import models as orm
from presidency.domain import models as dm
from presidency.domain.enums import ArchiveKind, TimelineType
from presidency.domain.errors import InvalidVectorState

logger = logging.getLogger(__name__)


class SessionNotFoundError(LookupError):
    """No session exists with the requested identifier."""


class MatchNotFoundError(LookupError):
    """No multiplayer match exists with the requested identifier."""


class PresidencyRepository:
    """Translate between ORM rows and domain records within one DB session.

    The repository never commits; callers wrap a unit of work in
    ``session_factory.begin()`` so every request is all-or-nothing.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    # --- sessions -------------------------------------------------------------

    def create_session(
        self,
        *,
        player_name: str,
        country: str,
        difficulty: str,
        chaos_threshold: int,
        stats: dm.StatVector = dm.DEFAULT_STATS,
    ) -> orm.PresidencySession:
        record = orm.PresidencySession(
            player_name=player_name,
            country=country,
            difficulty=difficulty,
            chaos_threshold=chaos_threshold,
        )
        record.stats = orm.Stats(**stats.validate().as_dict())
        self.db.add(record)
        self.db.flush()
        return record

    def get_session(self, session_id: dm.SessionID | str) -> orm.PresidencySession:
        record = self.db.get(orm.PresidencySession, str(session_id))
        if record is None:
            raise SessionNotFoundError(f"session '{session_id}' not found")
        return record

    # --- stats ----------------------------------------------------------------

    def _stats_row(self, session_id: dm.SessionID | str) -> orm.Stats:
        stmt = select(orm.Stats).where(orm.Stats.session_id == str(session_id)).with_for_update()
        row = self.db.scalars(stmt).one_or_none()
        if row is None:
            raise SessionNotFoundError(f"stats for session '{session_id}' not found")
        return row

    def load_stats(self, session_id: dm.SessionID | str) -> dm.StatVector:
        """Return the stored vector, raising ``InvalidVectorState`` if corrupt."""

        row = self._stats_row(session_id)
        vector = dm.StatVector(
            approval=row.approval,
            stability=row.stability,
            economy=row.economy,
            justice=row.justice,
            power=row.power,
            chaos=row.chaos,
            laws=row.laws,
            crises=row.crises,
        )
        try:
            return vector.validate()
        except InvalidVectorState:
            logger.warning("stored stats for session %s failed validation", session_id)
            raise

    def save_stats(self, session_id: dm.SessionID | str, vector: dm.StatVector) -> None:
        row = self._stats_row(session_id)
        for name, value in vector.validate().as_dict().items():
            setattr(row, name, value)
        self.db.flush()

    # --- achievements ---------------------------------------------------------

    def unlocked_keys(self, session_id: dm.SessionID | str) -> set[str]:
        stmt = select(orm.Achievement.key).where(orm.Achievement.session_id == str(session_id))
        return set(self.db.scalars(stmt))

    def add_achievement(
        self, session_id: dm.SessionID | str, unlock: dm.AchievementUnlock
    ) -> dm.Achievement:
        row = orm.Achievement(
            session_id=str(session_id), key=unlock.key, description=unlock.description
        )
        self.db.add(row)
        self.db.flush()
        return self.to_achievement(row)

    def list_achievements(self, session_id: dm.SessionID | str) -> list[dm.Achievement]:
        stmt = (
            select(orm.Achievement)
            .where(orm.Achievement.session_id == str(session_id))
            .order_by(orm.Achievement.id)
        )
        return [self.to_achievement(row) for row in self.db.scalars(stmt)]

    @staticmethod
    def to_achievement(row: orm.Achievement) -> dm.Achievement:
        return dm.Achievement(
            session_id=dm.SessionID(row.session_id),
            key=row.key,
            description=row.description,
            unlocked_at=row.at,
        )

    # --- timeline -------------------------------------------------------------

    def push_timeline(
        self, session_id: dm.SessionID | str, event_type: TimelineType, description: str
    ) -> orm.TimelineEvent:
        row = orm.TimelineEvent(
            session_id=str(session_id), event_type=str(event_type), description=description
        )
        self.db.add(row)
        self.db.flush()
        return row

    def list_timeline(self, session_id: dm.SessionID | str) -> list[orm.TimelineEvent]:
        stmt = (
            select(orm.TimelineEvent)
            .where(orm.TimelineEvent.session_id == str(session_id))
            .order_by(orm.TimelineEvent.id)
        )
        return list(self.db.scalars(stmt))

    # --- archives -------------------------------------------------------------

    def add_archive(
        self,
        session_id: dm.SessionID | str,
        *,
        kind: ArchiveKind,
        glyphs: str,
        snapshot: Mapping[str, Any],
    ) -> orm.Archive:
        row = orm.Archive(
            session_id=str(session_id), kind=str(kind), glyphs=glyphs, snapshot=dict(snapshot)
        )
        self.db.add(row)
        self.db.flush()
        return row

    # --- matches --------------------------------------------------------------

    def create_match(
        self, session_a_id: dm.SessionID | str, session_b_id: dm.SessionID | str, mode: str
    ) -> orm.MultiplayerMatch:
        row = orm.MultiplayerMatch(
            session_a_id=str(session_a_id), session_b_id=str(session_b_id), mode=mode
        )
        self.db.add(row)
        self.db.flush()
        return row

    def get_match(self, match_id: dm.MatchID | str) -> orm.MultiplayerMatch:
        row = self.db.get(orm.MultiplayerMatch, str(match_id))
        if row is None:
            raise MatchNotFoundError(f"match '{match_id}' not found")
        return row
