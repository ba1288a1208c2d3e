"""
Engine and session management.

Uses ALPHIQ_DB_URL / DATABASE_URL for PostgreSQL when set; otherwise falls
back to SQLite (ALPHIQ_DB_PATH or alphiq.db). The engine is created lazily and
cached; tests point ALPHIQ_DB_PATH at a temp file and call reset_engine_for_test().
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from alphiq_backend.alphiq_logging import get_logger
from alphiq_backend.config import env
from alphiq_backend.database.models import Base

logger = get_logger(__name__)

_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def get_engine() -> Engine:
    """Create or return cached engine."""
    global _engine
    if _engine is None:
        url = env.get_database_url()
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        _engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)
        logger.info("database_engine_created", url=env.mask_url(url))
    return _engine


def _get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=get_engine())
    return _SessionLocal


@contextmanager
def session_scope() -> Iterator[Session]:
    """Single session. Commits on success, rolls back on error."""
    session = _get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Create tables if they do not exist. Safe to call on every startup."""
    try:
        engine = get_engine()
        Base.metadata.create_all(bind=engine)
        logger.info("database_init_db", url=env.mask_url(env.get_database_url()))
    except Exception as e:
        logger.exception("database_init_db_failed", error=str(e))
        raise


def reset_engine_for_test() -> None:
    """Clear cached engine and session factory. Tests only."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None
