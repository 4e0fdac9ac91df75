"""
Pytest fixtures for X-Ray tests

This module provides shared fixtures for all tests:
- Database fixtures (in-memory SQLite, file SQLite for threaded tests)
- Deterministic clock
- Tracer / query service wired to the test database
- FastAPI TestClient with dependencies overridden
"""

import threading
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from xray.core.dependencies import RetryPolicy, TracerDependencies
from xray.core.query import ExecutionQueryService
from xray.core.store import ExecutionStore
from xray.core.tracer import XRayTracer
from xray.database import create_db_engine, create_session_factory, init_db


# ============================================================================
# CLOCK FIXTURES
# ============================================================================

class SteppingClock:
    """Returns start, start + step, start + 2*step, ... (thread safe)"""

    def __init__(self, start: datetime = datetime(2026, 10, 19, 12, 0, 0), step: timedelta = timedelta(milliseconds=1)):
        self.current = start
        self.step = step
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            value = self.current
            self.current += self.step
            return value


@pytest.fixture
def clock():
    return SteppingClock()


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """
    In-memory SQLite database.
    Each test gets a fresh database that's torn down after the test.
    """
    engine = create_db_engine("sqlite://")
    init_db(engine)

    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture(scope="function")
def file_db_engine(tmp_path):
    """File-backed SQLite database for tests that write from several threads."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'xray_test.db'}")
    init_db(engine)

    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def store(db_engine):
    return ExecutionStore(create_session_factory(db_engine))


@pytest.fixture
def deps(store, clock):
    return TracerDependencies(
        store=store,
        clock=clock,
        retry=RetryPolicy(max_attempts=5, backoff_seconds=0),
    )


@pytest.fixture
def tracer(deps):
    return XRayTracer(deps)


@pytest.fixture
def query(deps):
    return ExecutionQueryService(deps)


# ============================================================================
# API FIXTURES
# ============================================================================

@pytest.fixture
def client(deps):
    """TestClient whose endpoints use the in-memory test database"""
    from xray.api.main import app, get_dependencies

    app.dependency_overrides[get_dependencies] = lambda: deps
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


# ============================================================================
# CONTEXT FIXTURES
# ============================================================================

@pytest.fixture
def complex_context():
    """Nested producer context"""
    return {
        "pipeline": "pricing",
        "user": {"id": 123, "name": "Test User"},
        "thresholds": [0.5, 2.0],
        "flags": {"dry_run": True, "notes": None},
    }
