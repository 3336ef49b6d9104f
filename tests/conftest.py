"""Shared database fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from ai_categorize.core.db import get_session_factory, init_db
from ai_categorize.services.cache_store import CacheStore
from ai_categorize.services.queue_store import JobQueueStore


@pytest.fixture
def session_factory():
    """Create a fresh in-memory database for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    try:
        yield get_session_factory(engine)
    finally:
        engine.dispose()


@pytest.fixture
def queue(session_factory) -> JobQueueStore:
    """A job queue on the in-memory database."""
    return JobQueueStore(session_factory)


@pytest.fixture
def cache(session_factory) -> CacheStore:
    """A merchant cache on the in-memory database."""
    return CacheStore(session_factory)
