"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from askme.config import get_settings  # noqa: E402
from askme.index_store import ItemRecord  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture
def now():
    """A fixed, timezone-aware reference time."""
    return datetime(2026, 10, 17, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Point askme at an empty data directory for the duration of a test."""
    directory = tmp_path / "askme"
    monkeypatch.setenv("ASKME_DATA_DIR", str(directory))
    monkeypatch.delenv("ASKME_INDEX_PARSING", raising=False)
    get_settings.cache_clear()
    yield directory
    get_settings.cache_clear()


@pytest.fixture
def make_record(now):
    """Build an ItemRecord with a due time relative to `now`."""

    def _make(identifier, repetitions=0, easiness=2.5, interval=0.0, due_in_hours=None, tags=()):
        due = None if due_in_hours is None else now + timedelta(hours=due_in_hours)
        return ItemRecord(
            identifier=identifier,
            repetitions=repetitions,
            easiness=easiness,
            interval=interval,
            due=due,
            tags=set(tags),
        )

    return _make
