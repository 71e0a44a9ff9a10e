"""Archive model for the presidency simulator.

An archive stores the glyph rendering of a session snapshot together with
the JSON snapshot itself, since the glyph form cannot be decoded.
"""

from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, CheckConstraint, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampCreatedMixin, new_uuid

if TYPE_CHECKING:
    from .session import PresidencySession


class Archive(Base, TimestampCreatedMixin):
    """Represents one archived snapshot of a session.

    Attributes:
        id: UUID primary key
        session_id: Foreign key to the session
        kind: ``final`` when written on session end, ``manual`` on export
        glyphs: Glyph rendering of the snapshot
        snapshot: The JSON snapshot the glyphs were derived from
    """

    __tablename__ = "archives"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    session_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("presidency_sessions.id"), nullable=False
    )
    kind: Mapped[str] = mapped_column(String, nullable=False)
    glyphs: Mapped[str] = mapped_column(Text, nullable=False)
    snapshot: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    session: Mapped["PresidencySession"] = relationship(
        "PresidencySession", back_populates="archives"
    )

    __table_args__ = (CheckConstraint("kind IN ('final', 'manual')", name="ck_archives_kind"),)

    def __repr__(self) -> str:
        return f"<Archive(id='{self.id}', kind='{self.kind}')>"
