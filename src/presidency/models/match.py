"""Multiplayer match model for the presidency simulator."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, new_uuid, utc_now


class MultiplayerMatch(Base):
    """Pairs two sessions that play against each other.

    Attributes:
        id: UUID primary key
        session_a_id, session_b_id: The two participating sessions
        mode: Free-form match mode, ``versus`` by default
        started_at: When the match was created
        ended_at: When the match was closed, if it has been
    """

    __tablename__ = "multiplayer_matches"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    session_a_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("presidency_sessions.id"), nullable=False
    )
    session_b_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("presidency_sessions.id"), nullable=False
    )
    mode: Mapped[str] = mapped_column(String, nullable=False, default="versus")
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<MultiplayerMatch(id='{self.id}', mode='{self.mode}')>"
