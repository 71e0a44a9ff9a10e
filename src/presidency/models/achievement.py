"""Achievement model for the presidency simulator."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, utc_now

if TYPE_CHECKING:
    from .session import PresidencySession


class Achievement(Base):
    """A one-time unlock owned by a session.

    Attributes:
        id: Autoincrement primary key
        session_id: Foreign key to the session
        key: Achievement identifier, unique per session
        description: Human-readable text
        at: When it was unlocked
    """

    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("presidency_sessions.id"), nullable=False
    )
    key: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(String, nullable=False)
    at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)

    session: Mapped["PresidencySession"] = relationship(
        "PresidencySession", back_populates="achievements"
    )

    __table_args__ = (UniqueConstraint("session_id", "key", name="uq_achievements_session_key"),)

    def __repr__(self) -> str:
        return f"<Achievement(session_id='{self.session_id}', key='{self.key}')>"
