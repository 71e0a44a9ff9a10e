"""Integration tests for database setup helpers."""

from __future__ import annotations

import pytest
from sqlalchemy import text

from presidency.config import Settings
from presidency.database import (
    check_database_health,
    create_db_engine,
    create_session_factory,
    get_table_names,
    init_db,
)


@pytest.fixture
def engine(tmp_path):
    settings = Settings(database_url=f"sqlite:///{tmp_path / 'integration.db'}")
    engine = create_db_engine(settings)
    yield engine
    engine.dispose()


class TestDatabaseInitialization:
    """Tests for database initialization."""

    def test_all_tables_created(self, engine):
        init_db(engine)

        assert set(get_table_names(engine)) == {
            "achievements",
            "archives",
            "multiplayer_matches",
            "presidency_sessions",
            "stats",
            "timeline_events",
        }

    def test_init_is_idempotent(self, engine):
        init_db(engine)
        init_db(engine)

        assert "stats" in get_table_names(engine)

    def test_health_check(self, engine):
        assert check_database_health(engine) is True


class TestSqlitePragmas:
    """SQLite connections are configured on connect."""

    def test_foreign_keys_enabled(self, engine):
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1

    def test_wal_mode(self, engine):
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"

    def test_session_factory_binds_engine(self, engine):
        factory = create_session_factory(engine)

        with factory() as session:
            assert session.execute(text("SELECT 1")).scalar() == 1
