"""Shared test fixtures for SmartList tests."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Ensure the repo root (holding pkg/) is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from pkg.smartlist.kv import MemoryKeyValueStore


class FakeClock:
    """Deterministic clock: each call advances by one second."""

    def __init__(self, start=None):
        self.now = start or datetime(2025, 8, 5, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


class CountingIds:
    """Sequential fake UUIDs."""

    def __init__(self):
        self.n = 0

    def __call__(self):
        self.n += 1
        return f"00000000-0000-4000-8000-{self.n:012d}"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ids():
    return CountingIds()


@pytest.fixture
def kv():
    return MemoryKeyValueStore()


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "smartlist.db")
