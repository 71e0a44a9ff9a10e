"""Database connection and session management.

This module provides database connection management, session factories,
and utility functions for database operations.
"""

from typing import Any

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from presidency.config import Settings, get_settings
from presidency.models import Base


def _configure_sqlite(
    dbapi_connection: Any, connection_record: Any  # noqa: ARG001
) -> None:
    """Configure SQLite to use WAL mode and enforce foreign keys.

    Args:
        dbapi_connection: The DBAPI connection
        connection_record: Connection record (required by SQLAlchemy event API)
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(settings: Settings | None = None) -> Engine:
    """Create and configure the database engine.

    Args:
        settings: Settings to read the URL from; defaults to the cached ones

    Returns:
        Engine: Configured SQLAlchemy engine

    Note:
        SQLite connections are shared with worker threads, so
        ``check_same_thread`` is disabled and the pragmas are applied on
        connect.
    """
    settings = settings or get_settings()

    if settings.database_url.startswith("sqlite"):
        engine = create_engine(
            settings.database_url,
            echo=settings.database_echo,
            pool_pre_ping=True,
            connect_args={"check_same_thread": False},
        )
        event.listen(engine, "connect", _configure_sqlite)
    else:
        engine = create_engine(
            settings.database_url,
            echo=settings.database_echo,
            pool_pre_ping=True,
        )

    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Build a session factory bound to ``engine``."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(bind=engine)


def check_database_health(engine: Engine) -> bool:
    """Check if the database is accessible.

    Returns:
        bool: True if a trivial query succeeds, False otherwise
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        return False


def get_table_names(engine: Engine) -> list[str]:
    """Get list of all table names in the database.

    Returns:
        list[str]: List of table names
    """
    inspector = inspect(engine)
    return inspector.get_table_names()
