"""Tests for the SQLite stores."""

import sqlite3
from datetime import date, datetime

import pytest

from db import Database, Stores
from errors import StorageError
from models import DailyLog, HistoryData, Project


@pytest.fixture
def writing(stores):
    return stores.projects.save(Project(name="Writing", autostart=True, position=0))


@pytest.fixture
def read_only_stores(stores, writing):
    """Stores over the same file with writes disabled."""
    return Stores(Database(stores.database.path, read_only=True))


def _raw_execute(path, sql, params=()):
    conn = sqlite3.connect(path)
    try:
        conn.execute(sql, params)
        conn.commit()
    finally:
        conn.close()


# =============================================================================
# Database file
# =============================================================================

def test_ensure_schema_creates_file_once(tmp_path):
    database = Database(tmp_path / "data" / "timekeeper.db")
    assert database.ensure_schema() is True
    assert database.path.exists()
    assert database.ensure_schema() is False


def test_legacy_file_is_renamed(tmp_path):
    legacy = tmp_path / "timesheetinator.db"
    old = Stores(Database(legacy))
    old.database.ensure_schema()
    old.projects.save(Project(name="Kept"))

    stores = Stores.open(tmp_path / "timekeeper.db", legacy_path=legacy)

    assert not legacy.exists()
    assert [p.name for p in stores.projects.get_all()] == ["Kept"]


def test_read_only_reads_legacy_file_in_place(tmp_path):
    legacy = tmp_path / "timesheetinator.db"
    old = Stores(Database(legacy))
    old.database.ensure_schema()
    old.projects.save(Project(name="Kept"))
    target = tmp_path / "timekeeper.db"

    stores = Stores.open(target, read_only=True, legacy_path=legacy)

    assert legacy.exists()
    assert not target.exists()
    assert stores.database.path == legacy
    assert [p.name for p in stores.projects.get_all()] == ["Kept"]


def test_read_only_does_not_create_database(tmp_path):
    fresh = tmp_path / "data" / "timekeeper.db"

    stores = Stores.open(fresh, read_only=True, legacy_path=None)

    assert not fresh.exists()
    assert not fresh.parent.exists()
    with pytest.raises(StorageError):
        stores.projects.get_all()
    assert not fresh.exists()


def test_legacy_file_left_alone_when_new_one_exists(tmp_path):
    legacy = tmp_path / "timesheetinator.db"
    Database(legacy).ensure_schema()
    current = tmp_path / "timekeeper.db"
    Database(current).ensure_schema()

    Database(current, legacy_path=legacy).ensure_schema()

    assert legacy.exists()
    assert current.exists()


def test_sql_errors_become_storage_errors(stores):
    with pytest.raises(StorageError):
        with stores.database.get_connection() as conn:
            conn.execute("SELECT * FROM no_such_table")


# =============================================================================
# Projects
# =============================================================================

def test_save_assigns_id(stores, writing):
    assert writing.id is not None and writing.id > 0
    loaded = stores.projects.get_by_id(writing.id)
    assert loaded == writing
    assert loaded.name == "Writing"
    assert loaded.autostart is True
    assert loaded.visible is True


def test_placeholder_id_is_inserted(stores):
    placeholder = Project(id=-1, name="Project 1", position=3)
    stores.projects.save(placeholder)
    assert placeholder.id > 0
    assert len(stores.projects.get_all()) == 1


def test_save_updates_existing(stores, writing):
    writing.name = "Editing"
    writing.visible = False
    writing.position = 4
    stores.projects.save(writing)

    (loaded,) = stores.projects.get_all()
    assert loaded.name == "Editing"
    assert loaded.visible is False
    assert loaded.position == 4


def test_get_by_id_missing(stores):
    assert stores.projects.get_by_id(123) is None


def test_delete_project(stores, writing):
    assert stores.projects.delete(writing) is True
    assert stores.projects.get_all() == []
    assert stores.projects.delete(writing) is False


def test_delete_unsaved_project(stores):
    assert stores.projects.delete(Project(name="Never saved")) is False


# =============================================================================
# History
# =============================================================================

def test_history_insert_then_update(stores, writing, day):
    data = stores.history.save(HistoryData(project=writing, date=day, time=60))
    assert data.id is not None

    data.time = 120
    stores.history.save(data)

    (loaded,) = stores.history.get_all()
    assert loaded.id == data.id
    assert loaded.time == 120
    assert loaded.date == day
    assert loaded.project == writing


def test_get_all_for_date(stores, writing, day):
    reading = stores.projects.save(Project(name="Reading", position=1))
    stores.history.save(HistoryData(project=writing, date=day, time=3600))
    stores.history.save(HistoryData(project=reading, date=day, time=1800))
    stores.history.save(HistoryData(project=writing, date=date(2024, 1, 16), time=5))

    by_project = stores.history.get_all_for_date(day)

    assert set(by_project) == {writing, reading}
    assert by_project[writing].time == 3600
    assert by_project[reading].time == 1800
    assert stores.history.get_all_for_date(date(2023, 1, 1)) == {}


def test_get_all_for_date_latest_duplicate_wins(stores, writing, day):
    stores.history.save(HistoryData(project=writing, date=day, time=10))
    stores.history.save(HistoryData(project=writing, date=day, time=20))
    assert stores.history.get_all_for_date(day)[writing].time == 20


def test_history_requires_saved_project(stores, day):
    with pytest.raises(ValueError):
        stores.history.save(HistoryData(project=Project(name="Unsaved"), date=day, time=1))


def test_history_for_deleted_project_is_not_saved(stores, writing, day):
    stale = Project(id=writing.id, name=writing.name)
    stores.delete_project(writing)
    stores.history.save(HistoryData(project=stale, date=day, time=30))
    conn = sqlite3.connect(stores.database.path)
    try:
        count = conn.execute("SELECT COUNT(*) FROM historydata").fetchone()[0]
    finally:
        conn.close()
    assert count == 0


def test_delete_project_removes_history(stores, writing, day):
    stores.history.save(HistoryData(project=writing, date=day, time=30))
    assert stores.delete_project(writing) is True
    assert stores.history.get_all() == []
    assert stores.projects.get_all() == []


def test_delete_history_without_rows_is_not_an_error(stores, writing):
    assert stores.history.delete_all_for_project(writing) is True


def test_orphan_history_rows_are_skipped(stores, writing, day):
    stores.history.save(HistoryData(project=writing, date=day, time=30))
    _raw_execute(stores.database.path,
                 "INSERT INTO historydata (project_id, date, time) VALUES (999, '2024-01-15', 10)")

    (loaded,) = stores.history.get_all()
    assert loaded.project == writing


def test_unparseable_history_date(stores, writing):
    _raw_execute(stores.database.path,
                 "INSERT INTO historydata (project_id, date, time) VALUES (?, 'yesterday', 10)",
                 (writing.id,))
    with pytest.raises(StorageError):
        stores.history.get_all()


@pytest.mark.parametrize("stored_time", [-5, "abc", 1.5])
def test_invalid_history_time(stores, writing, stored_time):
    _raw_execute(stores.database.path,
                 "INSERT INTO historydata (project_id, date, time) VALUES (?, '2024-01-15', ?)",
                 (writing.id, stored_time))
    with pytest.raises(StorageError):
        stores.history.get_all()
    with pytest.raises(StorageError):
        stores.history.get_all_for_date(date(2024, 1, 15))


# =============================================================================
# Daily log
# =============================================================================

def test_daily_log_insert_update_and_read(stores, day):
    log = DailyLog(date=day, start=datetime(2024, 1, 15, 8, 0), end=datetime(2024, 1, 15, 8, 0))
    stores.daily_logs.save(log)
    assert log.id is not None

    log.end = datetime(2024, 1, 15, 17, 45, 30)
    stores.daily_logs.save(log)

    loaded = stores.daily_logs.get_for_date(day)
    assert loaded == log
    assert loaded.start == datetime(2024, 1, 15, 8, 0)
    assert loaded.end == datetime(2024, 1, 15, 17, 45, 30)


def test_daily_log_missing_day(stores, day):
    assert stores.daily_logs.get_for_date(day) is None


def test_unparseable_daily_log(stores, day):
    _raw_execute(stores.database.path,
                 "INSERT INTO dailylog (date, \"start\", \"end\") VALUES ('2024-01-15', 'morning', 'evening')")
    with pytest.raises(StorageError):
        stores.daily_logs.get_for_date(day)


# =============================================================================
# Read-only mode
# =============================================================================

def test_read_only_project_writes_are_ignored(read_only_stores, writing):
    new = read_only_stores.projects.save(Project(name="Ignored"))
    assert new.id is None

    renamed = Project(id=writing.id, name="Renamed")
    read_only_stores.projects.save(renamed)
    assert read_only_stores.projects.delete(writing) is False

    (loaded,) = read_only_stores.projects.get_all()
    assert loaded.name == "Writing"


def test_read_only_history_and_log_writes_are_ignored(read_only_stores, writing, day):
    data = read_only_stores.history.save(HistoryData(project=writing, date=day, time=5))
    assert data.id is None
    assert read_only_stores.history.get_all() == []
    assert read_only_stores.history.delete_all_for_project(writing) is False

    log = read_only_stores.daily_logs.save(DailyLog.starting_now())
    assert log.id is None
    assert read_only_stores.daily_logs.get_for_date(log.date) is None
