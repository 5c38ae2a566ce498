"""Tests for HistoryDay aggregation and load_history_days."""

from datetime import date, datetime

import pytest

from history_day import HistoryDay, load_history_days
from models import DailyLog, HistoryData, Project


def test_totals(day, two_project_entries):
    history_day = HistoryDay(day, two_project_entries)
    assert history_day.total == 5400
    assert history_day.max_time == 3600


def test_empty_day_has_zero_totals(day):
    history_day = HistoryDay(day, {})
    assert history_day.total == 0
    assert history_day.max_time == 0


def test_time_for_missing_project_is_zero(day, two_project_entries):
    history_day = HistoryDay(day, two_project_entries)
    assert history_day.time_for(Project(id=99, name="Other")) == 0


def test_set_time_truncates_milliseconds(day, two_project_entries, project_a):
    history_day = HistoryDay(day, two_project_entries)
    history_day.set_time(project_a, 1999)
    assert history_day.time_for(project_a) == 1
    assert history_day.total == 1801
    assert history_day.max_time == 1800


def test_set_time_rejects_negative(day, two_project_entries, project_a):
    history_day = HistoryDay(day, two_project_entries)
    with pytest.raises(ValueError):
        history_day.set_time(project_a, -1)
    assert history_day.time_for(project_a) == 3600


def test_has_changed_tracks_original_values(day, two_project_entries, project_a):
    history_day = HistoryDay(day, two_project_entries)
    assert not history_day.has_changed()

    history_day.set_time(project_a, 60_000)
    assert history_day.has_changed()

    history_day.set_time(project_a, 3_600_000)
    assert not history_day.has_changed()


def test_set_time_for_new_project_creates_entry(day, two_project_entries):
    newcomer = Project(id=3, name="Admin")
    history_day = HistoryDay(day, two_project_entries)

    history_day.set_time(newcomer, 0)
    assert newcomer in history_day.entries
    # A zero entry for a project that had none is no change
    assert not history_day.has_changed()

    history_day.set_time(newcomer, 5000)
    assert history_day.has_changed()
    data = history_day.entries[newcomer]
    assert data.id is None
    assert data.date == day
    assert data.time == 5


def test_entries_is_a_copy(day, two_project_entries, project_a):
    history_day = HistoryDay(day, two_project_entries)
    history_day.entries.pop(project_a)
    assert history_day.time_for(project_a) == 3600


class _RecordingStore:
    def __init__(self):
        self.saved = []

    def save(self, data):
        self.saved.append(data)
        return data


def test_persist_saves_every_entry(day, two_project_entries, project_a):
    history_day = HistoryDay(day, two_project_entries)
    history_day.set_time(project_a, 0)
    store = _RecordingStore()

    history_day.persist(store)

    assert sorted(d.id for d in store.saved) == [10, 11]
    assert {d.time for d in store.saved} == {0, 1800}


# =============================================================================
# Loading from the database
# =============================================================================

def _add_history(stores, project, day, seconds):
    return stores.history.save(HistoryData(project=project, date=day, time=seconds))


def test_load_history_days_groups_by_date(stores):
    writing = stores.projects.save(Project(name="Writing"))
    reading = stores.projects.save(Project(name="Reading", position=1))
    _add_history(stores, writing, date(2024, 1, 16), 100)
    _add_history(stores, writing, date(2024, 1, 15), 200)
    _add_history(stores, reading, date(2024, 1, 15), 300)

    days = load_history_days(stores)

    assert [d.day for d in days] == [date(2024, 1, 15), date(2024, 1, 16)]
    assert days[0].total == 500
    assert days[0].time_for(reading) == 300
    assert days[1].time_for(reading) == 0


def test_load_history_days_excludes_today(stores):
    writing = stores.projects.save(Project(name="Writing"))
    _add_history(stores, writing, date(2024, 1, 15), 100)
    _add_history(stores, writing, date(2024, 1, 16), 100)

    days = load_history_days(stores, exclude=date(2024, 1, 16))

    assert [d.day for d in days] == [date(2024, 1, 15)]


def test_load_history_days_attaches_daily_log(stores):
    writing = stores.projects.save(Project(name="Writing"))
    _add_history(stores, writing, date(2024, 1, 15), 100)
    stores.daily_logs.save(DailyLog(
        date=date(2024, 1, 15),
        start=datetime(2024, 1, 15, 8, 30),
        end=datetime(2024, 1, 15, 17, 0),
    ))

    (loaded,) = load_history_days(stores)

    assert loaded.daily_log is not None
    assert loaded.daily_log.start == datetime(2024, 1, 15, 8, 30)


def test_load_history_days_empty_database(stores):
    assert load_history_days(stores) == []


def test_new_entry_still_found_after_save(stores, day):
    writing = stores.projects.save(Project(name="Writing"))
    history_day = HistoryDay(day, {})
    history_day.set_time(writing, 90_000)

    history_day.persist(stores.history)

    saved = history_day.entries[writing]
    assert saved.id is not None
    assert history_day.time_for(writing) == 90
    assert stores.history.get_all_for_date(day)[writing].time == 90
