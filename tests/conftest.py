"""
Shared fixtures: an isolated in-memory database per test.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["SERVICE_API_KEY"] = "test-service-key"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database.models import Base


@pytest.fixture
def session_factory():
    """Session factory bound to a fresh in-memory SQLite database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine)
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def file_session_factory(tmp_path):
    """Session factory on a SQLite file, so each session gets its own connection."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'serialization.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine)
    engine.dispose()

@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()
