"""Tests for the SQLAlchemy presidency repository."""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from presidency import models as orm
from presidency.domain import models as dm
from presidency.domain.enums import ArchiveKind, TimelineType
from presidency.domain.errors import InvalidVectorState
from presidency.repository import MatchNotFoundError, PresidencyRepository, SessionNotFoundError


@pytest.fixture
def factory(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'repo.db'}")
    orm.Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine)
    engine.dispose()


def _create(factory) -> str:
    with factory.begin() as db:
        record = PresidencyRepository(db).create_session(
            player_name="Ada", country="Avalon", difficulty="hard", chaos_threshold=80
        )
        return record.id


def test_create_and_load_session(factory):
    session_id = _create(factory)

    with factory() as db:
        repo = PresidencyRepository(db)
        record = repo.get_session(session_id)
        assert record.chaos_threshold == 80
        assert repo.load_stats(session_id) == dm.DEFAULT_STATS


def test_save_stats_roundtrip(factory):
    session_id = _create(factory)
    vector = dm.StatVector(approval=1, stability=2, economy=3, justice=4, power=5, chaos=150)

    with factory.begin() as db:
        PresidencyRepository(db).save_stats(session_id, vector)

    with factory() as db:
        assert PresidencyRepository(db).load_stats(session_id) == vector


def test_invalid_vector_is_not_written(factory):
    session_id = _create(factory)

    with factory.begin() as db:
        with pytest.raises(InvalidVectorState):
            PresidencyRepository(db).save_stats(session_id, dm.StatVector(power=120))


def test_corrupt_stored_counters_fail_loudly(factory):
    session_id = _create(factory)
    with factory.begin() as db:
        db.execute(update(orm.Stats).where(orm.Stats.session_id == session_id).values(laws=1.5))

    with factory() as db:
        with pytest.raises(InvalidVectorState):
            PresidencyRepository(db).load_stats(session_id)


def test_achievement_uniqueness_is_enforced(factory):
    session_id = _create(factory)
    unlock = dm.AchievementUnlock(key="chaos_master", description="Chaos >= 80")

    with factory.begin() as db:
        repo = PresidencyRepository(db)
        stored = repo.add_achievement(session_id, unlock)
        assert stored.session_id == session_id
        assert repo.unlocked_keys(session_id) == {"chaos_master"}

    with pytest.raises(IntegrityError):
        with factory.begin() as db:
            PresidencyRepository(db).add_achievement(session_id, unlock)


def test_timeline_keeps_insertion_order(factory):
    session_id = _create(factory)

    with factory.begin() as db:
        repo = PresidencyRepository(db)
        repo.push_timeline(session_id, TimelineType.LAW, "first")
        repo.push_timeline(session_id, TimelineType.CRISIS, "second")

    with factory() as db:
        rows = PresidencyRepository(db).list_timeline(session_id)
        assert [row.description for row in rows] == ["first", "second"]


def test_archive_keeps_snapshot(factory):
    session_id = _create(factory)

    with factory.begin() as db:
        row = PresidencyRepository(db).add_archive(
            session_id, kind=ArchiveKind.MANUAL, glyphs="✦✧", snapshot={"stats": {"laws": 2}}
        )
        archive_id = row.id

    with factory() as db:
        stored = db.get(orm.Archive, archive_id)
        assert stored.kind == "manual"
        assert stored.snapshot == {"stats": {"laws": 2}}


def test_missing_records_raise(factory):
    with factory() as db:
        repo = PresidencyRepository(db)
        with pytest.raises(SessionNotFoundError):
            repo.get_session("nope")
        with pytest.raises(SessionNotFoundError):
            repo.load_stats("nope")
        with pytest.raises(MatchNotFoundError):
            repo.get_match("nope")
