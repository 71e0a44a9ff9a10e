"""Session and stats models for the presidency simulator.

A session is one presidency run.  Its stat vector lives in a separate
``stats`` row so the hot per-action update touches a single narrow table.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, new_uuid, utc_now

if TYPE_CHECKING:
    from .achievement import Achievement
    from .archive import Archive
    from .timeline import TimelineEvent


class PresidencySession(Base):
    """Represents a single presidency run.

    Attributes:
        id: UUID primary key
        player_name: Display name of the player
        country: Country being governed
        difficulty: Free-form difficulty label chosen at start
        chaos_threshold: Chaos level at which the run ends
        started_at: When the session was created
        ended_at: When the session was closed, if it has been
    """

    __tablename__ = "presidency_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)

    player_name: Mapped[str] = mapped_column(String, nullable=False)
    country: Mapped[str] = mapped_column(String, nullable=False)
    difficulty: Mapped[str] = mapped_column(String, nullable=False)
    chaos_threshold: Mapped[int] = mapped_column(Integer, nullable=False)

    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    stats: Mapped["Stats"] = relationship(
        "Stats", back_populates="session", uselist=False, cascade="all, delete-orphan"
    )
    timeline: Mapped[list["TimelineEvent"]] = relationship(
        "TimelineEvent",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="TimelineEvent.id",
    )
    achievements: Mapped[list["Achievement"]] = relationship(
        "Achievement", back_populates="session", cascade="all, delete-orphan"
    )
    archives: Mapped[list["Archive"]] = relationship(
        "Archive", back_populates="session", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("chaos_threshold > 0", name="ck_sessions_chaos_threshold"),
    )

    def __repr__(self) -> str:
        return f"<PresidencySession(id='{self.id}', player='{self.player_name}', country='{self.country}')>"


class Stats(Base):
    """Current stat vector of a session.

    Attributes:
        session_id: Owning session (also the primary key)
        approval, stability, economy, justice, power: Bounded 0-100 axes
        chaos: Accumulated disorder, unbounded above
        laws, crises: Counters of resolved laws and crises
    """

    __tablename__ = "stats"

    session_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("presidency_sessions.id"), primary_key=True
    )

    approval: Mapped[int] = mapped_column(Integer, nullable=False)
    stability: Mapped[int] = mapped_column(Integer, nullable=False)
    economy: Mapped[int] = mapped_column(Integer, nullable=False)
    justice: Mapped[int] = mapped_column(Integer, nullable=False)
    power: Mapped[int] = mapped_column(Integer, nullable=False)
    chaos: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    laws: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    crises: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    session: Mapped["PresidencySession"] = relationship(
        "PresidencySession", back_populates="stats"
    )

    __table_args__ = (
        CheckConstraint("approval BETWEEN 0 AND 100", name="ck_stats_approval"),
        CheckConstraint("stability BETWEEN 0 AND 100", name="ck_stats_stability"),
        CheckConstraint("economy BETWEEN 0 AND 100", name="ck_stats_economy"),
        CheckConstraint("justice BETWEEN 0 AND 100", name="ck_stats_justice"),
        CheckConstraint("power BETWEEN 0 AND 100", name="ck_stats_power"),
        CheckConstraint("chaos >= 0", name="ck_stats_chaos"),
        CheckConstraint("laws >= 0 AND crises >= 0", name="ck_stats_counters"),
    )

    def __repr__(self) -> str:
        return f"<Stats(session_id='{self.session_id}', approval={self.approval}, chaos={self.chaos})>"
