"""Tests for API runtime helpers (presidency service, matches and locks)."""

from __future__ import annotations

import asyncio
import logging

import pytest

from presidency.api.runtime import (
    ActionRequest,
    ApiState,
    DuplicateAchievementError,
    MatchNotFoundError,
    SessionClosedError,
    SessionLocks,
    SessionNotFoundError,
)
from presidency.config import Settings
from presidency.domain.enums import ActionCategory, ArchiveKind, GameOverReason


@pytest.fixture
def state(tmp_path):
    settings = Settings(database_url=f"sqlite:///{tmp_path / 'presidency.db'}")
    api_state = ApiState(settings=settings)
    yield api_state
    api_state.engine.dispose()


def _start(state: ApiState, **kwargs) -> str:
    return str(state.presidency.start_session(**kwargs)["id"])


def test_start_session_uses_defaults(state):
    payload = state.presidency.start_session()

    assert payload["player_name"] == "Player"
    assert payload["country"] == "Republic"
    assert payload["chaos_threshold"] == 100
    assert payload["stats"] == {
        "approval": 50,
        "stability": 50,
        "economy": 50,
        "justice": 50,
        "power": 50,
        "chaos": 0,
        "laws": 0,
        "crises": 0,
    }
    timeline = state.presidency.list_timeline(str(payload["id"]))
    assert [entry["type"] for entry in timeline] == ["system"]
    assert timeline[0]["description"] == "Session started for Player in Republic (normal)"


def test_law_action_updates_and_persists_stats(state):
    session_id = _start(state)

    outcome = state.presidency.act(
        session_id, ActionRequest(category=ActionCategory.LAW, key="emergency_rule")
    )

    assert outcome.recognised is True
    assert outcome.stats.approval == 40
    assert outcome.stats.laws == 1
    stored = state.presidency.get_stats(session_id)
    assert stored["stats"]["power"] == 62
    assert stored["game_over"] == {"over": False, "reason": None}
    assert state.presidency.list_timeline(session_id)[-1]["description"] == (
        "Enforced law: emergency_rule"
    )


def test_crisis_description_mentions_method(state):
    session_id = _start(state)

    outcome = state.presidency.act(
        session_id,
        ActionRequest(category=ActionCategory.CRISIS, key="pandemic", method="measured"),
    )

    assert outcome.stats.crises == 1
    assert outcome.stats.stability == 44
    timeline = state.presidency.list_timeline(session_id)
    assert timeline[-1]["description"] == "Resolved crisis pandemic by measured"


def test_unknown_action_applies_fallback(state):
    session_id = _start(state)

    outcome = state.presidency.act(
        session_id, ActionRequest(category=ActionCategory.COSMIC, key="wormhole")
    )

    assert outcome.recognised is False
    assert outcome.stats.chaos == 5
    assert outcome.stats.approval == 50


def test_distort_unlocks_mythic_achievement_once(state):
    session_id = _start(state)
    distort = ActionRequest(category=ActionCategory.COSMIC, key="distort")

    first = state.presidency.act(session_id, distort)
    second = state.presidency.act(session_id, distort)

    assert [a.key for a in first.achievements] == ["distorted_realm"]
    assert second.achievements == []
    assert second.stats.approval == 10
    assert second.rebellion.active is True
    assert second.rebellion.intensity == 30
    keys = [a["key"] for a in state.presidency.list_achievements(session_id)]
    assert keys == ["distorted_realm"]


def test_rule_achievement_unlocks_once_and_game_over_is_reported(state):
    session_id = _start(state)
    suppress = ActionRequest(category=ActionCategory.REBELLION, key="suppress")

    for _ in range(3):
        assert state.presidency.act(session_id, suppress).achievements == []
    fourth = state.presidency.act(session_id, suppress)
    fifth = state.presidency.act(session_id, suppress)

    assert fourth.stats.stability == 90
    assert [a.key for a in fourth.achievements] == ["stable_mandate"]
    assert fifth.achievements == []
    assert fifth.stats.approval == 0
    assert fifth.game_over.over is True
    assert fifth.game_over.reason is GameOverReason.APPROVAL_VANISHED
    timeline = state.presidency.list_timeline(session_id)
    assert sum(1 for entry in timeline if entry["type"] == "achievement") == 1


def test_chaos_threshold_is_taken_from_session(state):
    session_id = _start(state, chaos_threshold=20)

    outcome = state.presidency.act(
        session_id, ActionRequest(category=ActionCategory.COSMIC, key="distort")
    )

    assert outcome.game_over.reason is GameOverReason.CHAOS_EXCEEDED


def test_manual_unlock_rejects_duplicates(state):
    session_id = _start(state)

    achievement = state.presidency.unlock_achievement(session_id, "founder")
    assert achievement.description == "founder"

    with pytest.raises(DuplicateAchievementError):
        state.presidency.unlock_achievement(session_id, "founder", "again")


def test_end_session_archives_and_blocks_further_actions(state):
    session_id = _start(state)

    result = state.presidency.end_session(session_id)

    assert result.kind is ArchiveKind.FINAL
    assert result.glyphs
    assert result.snapshot["sessionId"] == session_id
    assert result.snapshot["stats"]["approval"] == 50
    assert state.presidency.get_session(session_id)["ended_at"] is not None
    with pytest.raises(SessionClosedError):
        state.presidency.act(session_id, ActionRequest(category=ActionCategory.LAW, key="tax_cut"))
    with pytest.raises(SessionClosedError):
        state.presidency.end_session(session_id)


def test_export_archive_includes_history(state):
    session_id = _start(state, player_name="Ada")
    state.presidency.act(session_id, ActionRequest(category=ActionCategory.DIPLOMACY, key="trade"))

    result = state.presidency.export_archive(session_id)

    assert result.kind is ArchiveKind.MANUAL
    assert result.snapshot["session"]["player_name"] == "Ada"
    assert [entry["type"] for entry in result.snapshot["timeline"]] == ["system", "diplomacy"]
    assert result.snapshot["timeline"][1]["description"] == "Diplomacy trade with unknown"
    assert state.presidency.list_timeline(session_id)[-1]["type"] == "archive"


def test_missing_session_raises(state):
    with pytest.raises(SessionNotFoundError):
        state.presidency.get_stats("missing")
    with pytest.raises(SessionNotFoundError):
        state.presidency.act("missing", ActionRequest(category=ActionCategory.LAW, key="tax_cut"))


def test_match_lifecycle(state):
    a = _start(state, player_name="A")
    b = _start(state, player_name="B")

    match = state.matches.start_match(a, b)
    assert match["mode"] == "versus"
    assert set(state.matches.participants(str(match["match_id"]))) == {a, b}

    updated = state.matches.update_match(
        str(match["match_id"]), {"approval": -60, "chaos": 10}, {"laws": 2}, end=True
    )

    assert updated["stats_a"]["approval"] == 0
    assert updated["stats_a"]["chaos"] == 10
    assert updated["stats_b"]["laws"] == 2
    assert updated["ended"] is True
    with pytest.raises(SessionClosedError):
        state.matches.update_match(str(match["match_id"]), {"approval": 1})
    descriptions = [entry["description"] for entry in state.presidency.list_timeline(b)]
    assert descriptions[-1] == f"Match {match['match_id']} ended"


def test_matches_refuse_ended_sessions(state):
    a = _start(state, player_name="A")
    b = _start(state, player_name="B")
    match = state.matches.start_match(a, b)
    state.presidency.end_session(a)
    before = state.presidency.get_stats(a)["stats"]

    with pytest.raises(SessionClosedError):
        state.matches.update_match(str(match["match_id"]), {"approval": -30})
    with pytest.raises(SessionClosedError):
        state.matches.update_match(str(match["match_id"]), None, {"approval": 5})
    with pytest.raises(SessionClosedError):
        state.matches.start_match(b, a)

    assert state.presidency.get_stats(a)["stats"] == before
    assert state.presidency.get_stats(b)["stats"]["approval"] == 50


def test_match_validation(state):
    a = _start(state)

    with pytest.raises(ValueError):
        state.matches.start_match(a, a)
    with pytest.raises(SessionNotFoundError):
        state.matches.start_match(a, "missing")
    with pytest.raises(MatchNotFoundError):
        state.matches.participants("missing")


@pytest.mark.asyncio
async def test_concurrent_actions_on_one_session_are_serialised(state):
    session_id = _start(state)
    law = ActionRequest(category=ActionCategory.LAW, key="tax_cut")

    await asyncio.gather(
        *(state.locks.run([session_id], state.presidency.act, session_id, law) for _ in range(8))
    )

    assert state.presidency.get_stats(session_id)["stats"]["laws"] == 8


@pytest.mark.asyncio
async def test_session_locks_are_per_session():
    locks = SessionLocks()

    assert locks.lock_for("a") is locks.lock_for("a")
    assert locks.lock_for("a") is not locks.lock_for("b")
    assert await locks.run(["b", "a", "a"], sum, [1, 2]) == 3


@pytest.mark.asyncio
async def test_session_locks_are_released_after_use(state):
    first = _start(state)
    second = _start(state)
    law = ActionRequest(category=ActionCategory.LAW, key="tax_cut")

    await asyncio.gather(
        *(
            state.locks.run([session_id], state.presidency.act, session_id, law)
            for session_id in (first, second, first, second)
        )
    )

    assert len(state.locks) == 0
    assert state.presidency.get_stats(first)["stats"]["laws"] == 2


def test_method_on_non_crisis_action_is_not_reported(state, caplog):
    session_id = _start(state)

    with caplog.at_level(logging.DEBUG, logger="presidency.api.runtime"):
        state.presidency.act(
            session_id,
            ActionRequest(category=ActionCategory.LAW, key="tax_cut", method="sideways"),
        )
        assert "not recognised" not in caplog.text

        state.presidency.act(
            session_id,
            ActionRequest(category=ActionCategory.CRISIS, key="economic_shock", method="sideways"),
        )
        assert "crisis method 'sideways' not recognised" in caplog.text
