"""Timeline model for the presidency simulator.

Timeline events are the human-readable log of a session: every resolved
action, unlock and archive appends one.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, utc_now

if TYPE_CHECKING:
    from .session import PresidencySession


class TimelineEvent(Base):
    """Represents one entry in a session's timeline.

    Attributes:
        id: Autoincrement primary key, also the display order
        session_id: Foreign key to the session
        event_type: Kind of entry (law/crisis/achievement/...)
        description: Human-readable text
        at: When the entry was recorded
    """

    __tablename__ = "timeline_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("presidency_sessions.id"), nullable=False
    )
    event_type: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(String, nullable=False)
    at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)

    session: Mapped["PresidencySession"] = relationship(
        "PresidencySession", back_populates="timeline"
    )

    __table_args__ = (
        CheckConstraint(
            "event_type IN ('system', 'law', 'crisis', 'diplomacy', 'rebellion', "
            "'cosmic', 'achievement', 'archive')",
            name="ck_timeline_events_type",
        ),
        Index("idx_timeline_events_session", "session_id", "id"),
    )

    def __repr__(self) -> str:
        return f"<TimelineEvent(id={self.id}, type='{self.event_type}')>"
