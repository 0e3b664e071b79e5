"""Shared fixtures: an in-memory SQLite engine wired into versionic."""

from collections.abc import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from versionic import init_versionic
from versionic.persistence.store import RecordStore


@pytest.fixture
def engine() -> Iterator[Engine]:
    """One connection shared by every session, so the in-memory DB persists."""
    eng = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine: Engine) -> RecordStore:
    return init_versionic(engine)
