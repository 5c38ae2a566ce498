"""Shared fixtures for Timekeeper tests."""

from datetime import date
from pathlib import Path

import pytest

from db import Database, Stores
from models import HistoryData, Project


class FakeScheduler:
    """Collects scheduled callbacks so tests can fire ticks by hand."""

    def __init__(self):
        self.pending: dict[int, object] = {}
        self.cancelled: list[int] = []
        self._next = 0

    def call_later(self, delay_ms, callback):
        self._next += 1
        self.pending[self._next] = callback
        return self._next

    def cancel(self, handle):
        self.cancelled.append(handle)
        self.pending.pop(handle, None)

    def run_pending(self):
        """Fire everything currently scheduled (not what those callbacks schedule)."""
        callbacks = list(self.pending.values())
        self.pending.clear()
        for callback in callbacks:
            callback()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "timekeeper.db"


@pytest.fixture
def stores(db_path: Path) -> Stores:
    """Stores over a fresh database file."""
    database = Database(db_path)
    database.ensure_schema()
    return Stores(database)


@pytest.fixture
def day() -> date:
    return date(2024, 1, 15)


@pytest.fixture
def project_a() -> Project:
    return Project(id=1, name="Writing", position=0)


@pytest.fixture
def project_b() -> Project:
    return Project(id=2, name="Reading", position=1)


@pytest.fixture
def two_project_entries(day, project_a, project_b) -> dict[Project, HistoryData]:
    return {
        project_a: HistoryData(id=10, project=project_a, date=day, time=3600),
        project_b: HistoryData(id=11, project=project_b, date=day, time=1800),
    }
