"""
Shared pytest fixtures and configuration for dbchain tests.

This module provides:
- Auto-marking of unit vs integration tests by location
- structlog reset between tests so ``capture_logs`` always sees events
- In-memory SQLite sources and an ``accounts`` table for end-to-end tests
- Recording connection doubles
"""

import sys
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog

# Ensure dbchain package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dbchain.sources import CachingConnectionSource, sqlite_connection_source
from tests._support.fakes import RecordingConnection, StaticSource


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Undo any configure_logging() a test performed."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


# =============================================================================
# Connection Fixtures
# =============================================================================


@pytest.fixture
def recording_connection() -> RecordingConnection:
    return RecordingConnection()


@pytest.fixture
def static_source(recording_connection: RecordingConnection) -> StaticSource:
    return StaticSource(recording_connection)


@pytest.fixture
def sqlite_source() -> Generator[CachingConnectionSource, None, None]:
    """One shared in-memory SQLite connection (auto-commit on)."""
    source = CachingConnectionSource(sqlite_connection_source(":memory:"))
    yield source
    source.get().close()


@pytest.fixture
def accounts_source(sqlite_source: CachingConnectionSource) -> CachingConnectionSource:
    """In-memory SQLite with an ``accounts`` table holding two rows."""
    cursor = sqlite_source.get().cursor()
    cursor.execute(
        "CREATE TABLE accounts ("
        " id INTEGER PRIMARY KEY AUTOINCREMENT,"
        " owner TEXT NOT NULL UNIQUE,"
        " balance INTEGER NOT NULL CHECK (balance >= 0))"
    )
    cursor.execute("INSERT INTO accounts (owner, balance) VALUES ('alice', 100)")
    cursor.execute("INSERT INTO accounts (owner, balance) VALUES ('bob', 50)")
    cursor.close()
    return sqlite_source
