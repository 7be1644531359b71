"""
Database connection and session management.

Every engine operation runs in its own session_scope(): one session, one
transaction, committed on success and rolled back on any exception. That
transaction is the atomicity boundary for publish and for each channel of
a reschedule.
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from stationplay.config import get_config
from stationplay.database.models.base import Base

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]

_sync_engine: Optional[Engine] = None
_sync_session_factory: Optional[sessionmaker] = None


def _get_engine_kwargs(url: str) -> dict[str, Any]:
    """Get pool configuration for the database type."""
    if url.startswith("sqlite"):
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        # An in-memory database only exists on its one connection
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        return kwargs

    return {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_timeout": 30,
        "pool_recycle": 3600,
        "pool_pre_ping": True,
    }


def _register_sqlite_pragmas(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def on_connect(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine with StationPlay's pool settings and tables in place."""
    engine = create_engine(url, echo=echo, future=True, **_get_engine_kwargs(url))
    if url.startswith("sqlite"):
        _register_sqlite_pragmas(engine)
    Base.metadata.create_all(engine)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        engine,
        class_=Session,
        expire_on_commit=False,
        autoflush=False,
    )


def init_db(url: Optional[str] = None) -> sessionmaker:
    """Initialize the process-wide engine and session factory."""
    global _sync_engine, _sync_session_factory

    config = get_config()
    db_url = url or config.database.url

    _sync_engine = create_db_engine(db_url, echo=config.database.echo)
    _sync_session_factory = create_session_factory(_sync_engine)

    logger.info(f"Database initialized: {_sync_engine.url.render_as_string(hide_password=True)}")
    return _sync_session_factory


def get_session_factory() -> sessionmaker:
    """Get the process-wide session factory, initializing it if needed."""
    if _sync_session_factory is None:
        init_db()
    return _sync_session_factory


@contextmanager
def session_scope(factory: Optional[SessionFactory] = None) -> Generator[Session, None, None]:
    """
    Transactional session scope.

    Commits when the block exits normally, rolls back and re-raises
    otherwise.
    """
    session = (factory or get_session_factory())()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def check_db(factory: Optional[SessionFactory] = None) -> dict[str, Any]:
    """Run a trivial query; used by the health endpoint."""
    try:
        with session_scope(factory) as session:
            session.execute(text("SELECT 1"))
        return {"status": "ok"}
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {"status": "error", "error": str(e)}


def close_db() -> None:
    """Dispose the process-wide engine."""
    global _sync_engine, _sync_session_factory

    if _sync_engine is not None:
        _sync_engine.dispose()
        _sync_engine = None
        _sync_session_factory = None
