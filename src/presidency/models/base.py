"""Base model class and common mixins for SQLAlchemy models.

This module provides the declarative base for all models and common patterns
used throughout the presidency database schema.
"""

from datetime import UTC, datetime
from typing import ClassVar
from uuid import uuid4

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models.

    Provides type_annotation_map for automatic type inference from Python types.
    """

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
    }


def utc_now() -> datetime:
    """Get current UTC time with timezone awareness.

    Returns:
        datetime: Current time in UTC with timezone info
    """
    return datetime.now(UTC)


def new_uuid() -> str:
    """Return a random identifier for string primary keys."""
    return str(uuid4())


class TimestampCreatedMixin:
    """Mixin for immutable records that only need a created_at timestamp."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )
