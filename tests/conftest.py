"""
StationPlay Test Configuration

Shared fixtures and configuration for all tests.
"""

import os
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from stationplay.clock import FixedClock
from stationplay.config import StationPlayConfig
from stationplay.database.connection import create_session_factory
from stationplay.database.models.base import Base
from stationplay.main import create_app
from stationplay.playout.engine import PlayoutEngine


# ============ Database Fixtures ============


@pytest.fixture(scope="function")
def engine():
    """Create a test database engine (in-memory SQLite)."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine) -> sessionmaker:
    """Session factory the engine operations open their transactions from."""
    return create_session_factory(engine)


@pytest.fixture(scope="function")
def db_session(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Create a new database session for each test."""
    session = session_factory()

    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def db(db_session: Session) -> Generator[Session, None, None]:
    """Alias for db_session."""
    yield db_session


# ============ Engine Fixtures ============


@pytest.fixture
def config() -> StationPlayConfig:
    """Default configuration, independent of any config.yaml on disk."""
    return StationPlayConfig()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock("2025-01-06T00:15:00Z")


@pytest.fixture
def playout_engine(session_factory: sessionmaker, config: StationPlayConfig) -> PlayoutEngine:
    return PlayoutEngine(session_factory, config)


# ============ FastAPI Test Client Fixtures ============


@pytest.fixture(scope="function")
def app(session_factory: sessionmaker, clock: FixedClock, config: StationPlayConfig) -> FastAPI:
    """Create a test FastAPI application bound to the test database."""
    return create_app(session_factory=session_factory, clock=clock, config=config)


@pytest.fixture(scope="function")
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Create a synchronous test client."""
    with TestClient(app) as client:
        yield client


# ============ Temporary File Fixtures ============


@pytest.fixture(scope="function")
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(scope="function")
def temp_config_file(temp_dir: Path) -> Path:
    """Create a temporary config file."""
    config_file = temp_dir / "config.yaml"
    config_content = """
server:
  host: "127.0.0.1"
  port: 8421
  debug: true

database:
  url: "sqlite:///:memory:"

scheduling:
  grace_seconds: 90
  default_base_time: "06:00:00"

logging:
  level: "DEBUG"
  format: "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
"""
    config_file.write_text(config_content)
    return config_file


# ============ Environment Fixtures ============


@pytest.fixture(autouse=True)
def clean_environment():
    """Clean environment variables for each test."""
    original_env = os.environ.copy()

    for key in list(os.environ.keys()):
        if key.startswith("STATIONPLAY_"):
            del os.environ[key]

    yield

    os.environ.clear()
    os.environ.update(original_env)


# ============ Markers ============


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
