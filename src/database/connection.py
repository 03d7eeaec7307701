"""
Database Connection Module

Provides synchronous session management for the document store.

Usage:
    with get_db_session() as session:
        record = session.get(ClientRecord, client_id)
"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool, QueuePool, StaticPool

from config.database import DatabaseSettings, get_database_settings

logger = logging.getLogger(__name__)

# Global sync engine and session factory (lazy initialization)
_sync_engine = None
_sync_session_factory = None


def build_engine(settings: DatabaseSettings):
    """
    Create a SQLAlchemy engine for the given settings.

    In-memory SQLite shares one connection so every session sees the same
    database.
    """
    url = settings.sync_url

    if settings.is_sqlite:
        pool_class = StaticPool if url == "sqlite://" else NullPool
        pool_kwargs = {}
    else:
        pool_class = QueuePool
        pool_kwargs = {
            "pool_size": settings.pool_size,
            "max_overflow": settings.max_overflow,
            "pool_timeout": settings.pool_timeout,
            "pool_recycle": settings.pool_recycle,
            "pool_pre_ping": settings.pool_pre_ping,
        }

    return create_engine(
        url,
        echo=settings.echo_sql,
        poolclass=pool_class,
        connect_args=settings.get_connect_args(),
        **pool_kwargs,
    )


def get_sync_engine(settings: Optional[DatabaseSettings] = None):
    """
    Get or create a synchronous SQLAlchemy engine.

    Args:
        settings: Database settings. If None, loads from environment.

    Returns:
        Engine: Synchronous SQLAlchemy engine.
    """
    global _sync_engine

    if _sync_engine is None:
        settings = settings or get_database_settings()

        logger.info(
            "Creating sync database engine",
            extra={
                "driver": settings.driver,
                "database": settings.name if settings.is_postgres else str(settings.sqlite_path),
            }
        )
        _sync_engine = build_engine(settings)

    return _sync_engine


def get_sync_session_factory(
    settings: Optional[DatabaseSettings] = None
) -> sessionmaker:
    """
    Get or create the sync session factory.

    Args:
        settings: Optional database settings.

    Returns:
        sessionmaker: Factory for creating sync sessions.
    """
    global _sync_session_factory

    if _sync_session_factory is None:
        engine = get_sync_engine(settings)
        _sync_session_factory = sessionmaker(
            bind=engine,
            expire_on_commit=False,
            autoflush=False,
        )

    return _sync_session_factory


@contextmanager
def session_scope(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Commit on success, roll back on error, always close."""
    session = session_factory()

    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def get_db_session(
    settings: Optional[DatabaseSettings] = None
) -> Generator[Session, None, None]:
    """
    Get a synchronous database session as a context manager.

    Args:
        settings: Optional database settings.

    Yields:
        Session: SQLAlchemy session that auto-commits on success, rollbacks on error.
    """
    with session_scope(get_sync_session_factory(settings)) as session:
        yield session


def close_sync_engine() -> None:
    """
    Close the sync database engine and cleanup connections.

    Should be called during application shutdown.
    """
    global _sync_engine, _sync_session_factory

    if _sync_engine is not None:
        logger.info("Closing sync database engine")
        _sync_engine.dispose()
        _sync_engine = None
        _sync_session_factory = None
