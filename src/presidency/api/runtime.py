"""Runtime primitives backing the presidency HTTP API."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Iterable, Mapping
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, TypeVar

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from presidency import models as orm
from presidency.config import Settings, get_settings
from presidency.database import create_db_engine, create_session_factory, init_db
from presidency.domain import models as dm
from presidency.domain.achievements import evaluate_achievements, mythic_unlock
from presidency.domain.archive import encode_archive
from presidency.domain.deltas import apply_delta, build_delta
from presidency.domain.enums import ActionCategory, ArchiveKind, CrisisMethod, TimelineType
from presidency.domain.rules_config import DEFAULT_RULES, RulesConfig
from presidency.domain.thresholds import game_over, rebellion_risk
from presidency.models import utc_now
from presidency.repository import MatchNotFoundError, PresidencyRepository, SessionNotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")

__all__ = [
    "ActionOutcome",
    "ActionRequest",
    "ApiState",
    "ArchiveResult",
    "DuplicateAchievementError",
    "MatchNotFoundError",
    "MatchService",
    "PresidencyService",
    "SessionClosedError",
    "SessionLocks",
    "SessionNotFoundError",
    "build_state",
]


class SessionClosedError(RuntimeError):
    """The session or match has already ended."""


class DuplicateAchievementError(RuntimeError):
    """The session already owns the achievement being unlocked."""


class SessionLocks:
    """Per-session ``asyncio.Lock`` registry serialising state mutation.

    A lock is dropped once its last holder releases it and nobody waits on
    it, so the registry only tracks sessions with work in flight.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def _hold(self, session_id: str) -> AsyncIterator[None]:
        lock = self.lock_for(session_id)
        self._holders[session_id] = self._holders.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._holders[session_id] - 1
            if remaining:
                self._holders[session_id] = remaining
            else:
                del self._holders[session_id]
                del self._locks[session_id]

    async def run(self, session_ids: Iterable[str], func: Callable[..., T], *args: Any) -> T:
        """Run blocking ``func`` in a worker thread while holding every lock.

        Locks are taken in sorted order so two multi-session operations can
        not deadlock.
        """

        async with AsyncExitStack() as stack:
            for session_id in sorted(set(session_ids)):
                await stack.enter_async_context(self._hold(session_id))
            return await asyncio.to_thread(func, *args)


@dataclass(slots=True)
class ActionRequest:
    """API-facing description of one player action."""

    category: ActionCategory
    key: str
    method: CrisisMethod | str | None = None
    target: str | None = None
    description: str | None = None


@dataclass(slots=True)
class ActionOutcome:
    stats: dm.StatVector
    achievements: list[dm.Achievement]
    rebellion: dm.RebellionRisk
    game_over: dm.GameOverStatus
    recognised: bool
    method: CrisisMethod | None = None


@dataclass(slots=True)
class ArchiveResult:
    archive_id: str
    glyphs: str
    kind: ArchiveKind
    snapshot: dict[str, Any] = field(default_factory=dict)


def default_description(request: ActionRequest, method: CrisisMethod | None) -> str:
    """Timeline wording used when the client supplies no description."""

    match request.category:
        case ActionCategory.LAW:
            return f"Enforced law: {request.key}"
        case ActionCategory.CRISIS:
            return f"Resolved crisis {request.key} by {method or 'default'}"
        case ActionCategory.DIPLOMACY:
            return f"Diplomacy {request.key} with {request.target or 'unknown'}"
        case ActionCategory.REBELLION:
            return f"Rebellion action: {request.key}"
        case _:
            return f"Cosmic act: {request.key}"


class PresidencyService:
    """Load, mutate and persist presidency sessions through the rules engine."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        settings: Settings,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> None:
        self._session_factory = session_factory
        self._settings = settings
        self._rules = rules

    # --- session lifecycle ----------------------------------------------------

    def start_session(
        self,
        *,
        player_name: str = "Player",
        country: str = "Republic",
        difficulty: str = "normal",
        chaos_threshold: int | None = None,
    ) -> dict[str, object]:
        """Create a session with the default stat vector."""

        threshold = (
            chaos_threshold
            if chaos_threshold is not None
            else self._settings.default_chaos_threshold
        )
        with self._session_factory.begin() as db:
            repo = PresidencyRepository(db)
            record = repo.create_session(
                player_name=player_name,
                country=country,
                difficulty=difficulty,
                chaos_threshold=threshold,
            )
            repo.push_timeline(
                record.id,
                TimelineType.SYSTEM,
                f"Session started for {player_name} in {country} ({difficulty})",
            )
            logger.info("session %s started (threshold=%d)", record.id, threshold)
            return self.to_session_dict(record, dm.DEFAULT_STATS)

    def get_session(self, session_id: str) -> dict[str, object]:
        with self._session_factory() as db:
            repo = PresidencyRepository(db)
            record = repo.get_session(session_id)
            return self.to_session_dict(record, repo.load_stats(session_id))

    def get_stats(self, session_id: str) -> dict[str, object]:
        """Return the current vector with its derived risk and game-over status."""

        with self._session_factory() as db:
            repo = PresidencyRepository(db)
            record = repo.get_session(session_id)
            vector = repo.load_stats(session_id)
            return {
                "stats": vector.as_dict(),
                "rebellion": self.to_rebellion_dict(
                    rebellion_risk(vector, rules=self._rules.thresholds)
                ),
                "game_over": self.to_game_over_dict(game_over(vector, record.chaos_threshold)),
            }

    def list_timeline(self, session_id: str) -> list[dict[str, object]]:
        with self._session_factory() as db:
            repo = PresidencyRepository(db)
            repo.get_session(session_id)
            return [self.to_timeline_dict(row) for row in repo.list_timeline(session_id)]

    def list_achievements(self, session_id: str) -> list[dict[str, object]]:
        with self._session_factory() as db:
            repo = PresidencyRepository(db)
            repo.get_session(session_id)
            return [self.to_achievement_dict(a) for a in repo.list_achievements(session_id)]

    # --- actions --------------------------------------------------------------

    def act(self, session_id: str, request: ActionRequest) -> ActionOutcome:
        """Resolve one action: update stats, then achievements, then thresholds."""

        with self._session_factory.begin() as db:
            repo = PresidencyRepository(db)
            record = repo.get_session(session_id)
            if record.ended_at is not None:
                raise SessionClosedError(f"session '{session_id}' has ended")

            current = repo.load_stats(session_id)
            resolved = build_delta(
                request.category, request.key, request.method, rules=self._rules.deltas
            )
            if not resolved.recognised:
                logger.debug(
                    "unknown %s action %r for session %s; applying fallback delta",
                    request.category,
                    request.key,
                    session_id,
                )
            if (
                request.category == ActionCategory.CRISIS
                and request.method is not None
                and resolved.method is None
            ):
                logger.debug("crisis method %r not recognised; no modifier applied", request.method)

            updated = apply_delta(current, resolved.delta)
            repo.save_stats(session_id, updated)
            repo.push_timeline(
                session_id,
                TimelineType(request.category),
                request.description or default_description(request, resolved.method),
            )

            unlocked = repo.unlocked_keys(session_id)
            achievements: list[dm.Achievement] = []
            mythic = mythic_unlock(request.category, request.key)
            if mythic is not None and mythic.key not in unlocked:
                achievements.append(self._record_unlock(repo, session_id, mythic))
                unlocked.add(mythic.key)
            for unlock in evaluate_achievements(unlocked, updated):
                achievements.append(self._record_unlock(repo, session_id, unlock))

            return ActionOutcome(
                stats=updated,
                achievements=achievements,
                rebellion=rebellion_risk(updated, rules=self._rules.thresholds),
                game_over=game_over(updated, record.chaos_threshold),
                recognised=resolved.recognised,
                method=resolved.method,
            )

    @staticmethod
    def _record_unlock(
        repo: PresidencyRepository, session_id: str, unlock: dm.AchievementUnlock
    ) -> dm.Achievement:
        achievement = repo.add_achievement(session_id, unlock)
        repo.push_timeline(
            session_id,
            TimelineType.ACHIEVEMENT,
            f"Achievement unlocked: {unlock.key} - {unlock.description}",
        )
        logger.info("session %s unlocked %s", session_id, unlock.key)
        return achievement

    def unlock_achievement(
        self, session_id: str, key: str, description: str | None = None
    ) -> dm.Achievement:
        """Grant an achievement by hand, outside the rule table."""

        with self._session_factory.begin() as db:
            repo = PresidencyRepository(db)
            repo.get_session(session_id)
            if key in repo.unlocked_keys(session_id):
                raise DuplicateAchievementError(f"achievement '{key}' already unlocked")
            achievement = repo.add_achievement(
                session_id, dm.AchievementUnlock(key=key, description=description or key)
            )
            repo.push_timeline(session_id, TimelineType.ACHIEVEMENT, f"Manually unlocked: {key}")
            return achievement

    # --- archives -------------------------------------------------------------

    def end_session(self, session_id: str) -> ArchiveResult:
        """Close the session and write its final archive."""

        with self._session_factory.begin() as db:
            repo = PresidencyRepository(db)
            record = repo.get_session(session_id)
            if record.ended_at is not None:
                raise SessionClosedError(f"session '{session_id}' has already ended")

            ended_at = utc_now()
            record.ended_at = ended_at
            payload = {
                "sessionId": record.id,
                "stats": repo.load_stats(session_id).as_dict(),
                "endedAt": ended_at.isoformat(),
                "generatedAt": utc_now().isoformat(),
            }
            result = self._write_archive(repo, session_id, ArchiveKind.FINAL, payload)
            repo.push_timeline(session_id, TimelineType.ARCHIVE, "Presidency archived")
            logger.info("session %s ended; archive %s", session_id, result.archive_id)
            return result

    def export_archive(self, session_id: str) -> ArchiveResult:
        """Write a manual archive of the full session history."""

        with self._session_factory.begin() as db:
            repo = PresidencyRepository(db)
            record = repo.get_session(session_id)
            payload = {
                "session": self.to_session_dict(record),
                "stats": repo.load_stats(session_id).as_dict(),
                "timeline": [self.to_timeline_dict(row) for row in repo.list_timeline(session_id)],
                "achievements": [
                    {"key": a.key, "description": a.description, "at": a.unlocked_at.isoformat()}
                    for a in repo.list_achievements(session_id)
                ],
                "exportedAt": utc_now().isoformat(),
            }
            result = self._write_archive(repo, session_id, ArchiveKind.MANUAL, payload)
            repo.push_timeline(session_id, TimelineType.ARCHIVE, "Archive exported manually")
            logger.info("session %s exported archive %s", session_id, result.archive_id)
            return result

    @staticmethod
    def _write_archive(
        repo: PresidencyRepository,
        session_id: str,
        kind: ArchiveKind,
        payload: dict[str, Any],
    ) -> ArchiveResult:
        glyphs = encode_archive(payload)
        row = repo.add_archive(session_id, kind=kind, glyphs=glyphs, snapshot=payload)
        return ArchiveResult(archive_id=row.id, glyphs=glyphs, kind=kind, snapshot=payload)

    # --- serialisation helpers ------------------------------------------------

    @staticmethod
    def to_session_dict(
        record: orm.PresidencySession, stats: dm.StatVector | None = None
    ) -> dict[str, object]:
        """Return a JSON-friendly overview of a session."""

        payload: dict[str, object] = {
            "id": record.id,
            "player_name": record.player_name,
            "country": record.country,
            "difficulty": record.difficulty,
            "chaos_threshold": record.chaos_threshold,
            "started_at": record.started_at.isoformat(),
            "ended_at": record.ended_at.isoformat() if record.ended_at else None,
        }
        if stats is not None:
            payload["stats"] = stats.as_dict()
        return payload

    @staticmethod
    def to_timeline_dict(row: orm.TimelineEvent) -> dict[str, object]:
        return {
            "id": row.id,
            "type": row.event_type,
            "description": row.description,
            "at": row.at.isoformat(),
        }

    @staticmethod
    def to_achievement_dict(achievement: dm.Achievement) -> dict[str, object]:
        return {
            "key": achievement.key,
            "description": achievement.description,
            "unlocked_at": achievement.unlocked_at.isoformat(),
        }

    @staticmethod
    def to_rebellion_dict(risk: dm.RebellionRisk) -> dict[str, object]:
        return {"active": risk.active, "intensity": risk.intensity}

    @staticmethod
    def to_game_over_dict(status: dm.GameOverStatus) -> dict[str, object]:
        return {"over": status.over, "reason": str(status.reason) if status.reason else None}

    @classmethod
    def to_outcome_dict(cls, outcome: ActionOutcome) -> dict[str, object]:
        return {
            "stats": outcome.stats.as_dict(),
            "achievements": [cls.to_achievement_dict(a) for a in outcome.achievements],
            "rebellion": cls.to_rebellion_dict(outcome.rebellion),
            "game_over": cls.to_game_over_dict(outcome.game_over),
            "recognised": outcome.recognised,
            "method": str(outcome.method) if outcome.method else None,
        }


class MatchService:
    """Head-to-head matches applying raw deltas to two sessions."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _require_open(repo: PresidencyRepository, *session_ids: str) -> None:
        for session_id in session_ids:
            if repo.get_session(session_id).ended_at is not None:
                raise SessionClosedError(f"session '{session_id}' has ended")

    def start_match(
        self, session_a_id: str, session_b_id: str, mode: str = "versus"
    ) -> dict[str, object]:
        if session_a_id == session_b_id:
            raise ValueError("a match needs two distinct sessions")

        with self._session_factory.begin() as db:
            repo = PresidencyRepository(db)
            self._require_open(repo, session_a_id, session_b_id)
            match = repo.create_match(session_a_id, session_b_id, mode)
            repo.push_timeline(
                session_a_id,
                TimelineType.SYSTEM,
                f"Multiplayer match {match.id} started vs {session_b_id}",
            )
            repo.push_timeline(
                session_b_id,
                TimelineType.SYSTEM,
                f"Multiplayer match {match.id} started vs {session_a_id}",
            )
            logger.info("match %s started (%s)", match.id, mode)
            return self.to_match_dict(match)

    def participants(self, match_id: str) -> tuple[str, str]:
        with self._session_factory() as db:
            match = PresidencyRepository(db).get_match(match_id)
            return match.session_a_id, match.session_b_id

    def update_match(
        self,
        match_id: str,
        delta_a: Mapping[str, int] | None = None,
        delta_b: Mapping[str, int] | None = None,
        end: bool = False,
    ) -> dict[str, object]:
        """Apply optional deltas to either side and optionally close the match."""

        with self._session_factory.begin() as db:
            repo = PresidencyRepository(db)
            match = repo.get_match(match_id)
            if match.ended_at is not None:
                raise SessionClosedError(f"match '{match_id}' has already ended")
            self._require_open(repo, match.session_a_id, match.session_b_id)

            result: dict[str, object] = {}
            for side, session_id, delta in (
                ("a", match.session_a_id, delta_a),
                ("b", match.session_b_id, delta_b),
            ):
                if not delta:
                    continue
                updated = apply_delta(repo.load_stats(session_id), delta)
                repo.save_stats(session_id, updated)
                repo.push_timeline(
                    session_id,
                    TimelineType.SYSTEM,
                    f"Multiplayer update applied to {side.upper()}",
                )
                result[f"stats_{side}"] = updated.as_dict()

            if end:
                match.ended_at = utc_now()
                for session_id in (match.session_a_id, match.session_b_id):
                    repo.push_timeline(session_id, TimelineType.SYSTEM, f"Match {match.id} ended")
                logger.info("match %s ended", match.id)

            result.update(self.to_match_dict(match))
            return result

    @staticmethod
    def to_match_dict(match: orm.MultiplayerMatch) -> dict[str, object]:
        return {
            "match_id": match.id,
            "session_a_id": match.session_a_id,
            "session_b_id": match.session_b_id,
            "mode": match.mode,
            "ended": match.ended_at is not None,
        }


class ApiState:
    """Aggregated services shared by the FastAPI layer."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        rules: RulesConfig = DEFAULT_RULES,
        engine: Engine | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.rules = rules
        self.engine = engine or create_db_engine(self.settings)
        init_db(self.engine)
        self.session_factory = create_session_factory(self.engine)
        self.locks = SessionLocks()
        self.presidency = PresidencyService(
            self.session_factory, settings=self.settings, rules=rules
        )
        self.matches = MatchService(self.session_factory)

    async def shutdown(self) -> None:
        self.engine.dispose()


def build_state() -> ApiState:
    """Factory used by the API to initialize state."""

    return ApiState()
