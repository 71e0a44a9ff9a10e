"""Persistence adapters for presidency sessions."""

from .sql_store import MatchNotFoundError, PresidencyRepository, SessionNotFoundError

__all__ = ["MatchNotFoundError", "PresidencyRepository", "SessionNotFoundError"]
