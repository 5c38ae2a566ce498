"""
db.py - Database layer for Timekeeper

All SQLite access lives here so the GUI never sees SQL. The database is a
single local file with three tables:

    projects    (id, name, autostart, visibility, position)
    historydata (id, project_id, date, time)
    dailylog    (id, date, start, end)

Every store method opens a connection, runs its statement(s), commits and
closes again. There is no pooling and no transaction spanning more than
one call, so a loop of saves that dies halfway leaves the earlier rows
written.

Failures of any kind surface as errors.StorageError.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from errors import ParseError, StorageError
from models import DATE_FORMAT, DATE_TIME_FORMAT, DailyLog, HistoryData, Project

logger = logging.getLogger(__name__)

# Use a dedicated folder in the user's home directory
DATA_DIR = Path.home() / ".timekeeper"
DATABASE_PATH = DATA_DIR / "timekeeper.db"
# Older releases were called Timesheetinator
LEGACY_DATABASE_PATH = DATA_DIR / "timesheetinator.db"


SCHEMA = """
    CREATE TABLE IF NOT EXISTS projects (
        id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        autostart INTEGER NOT NULL DEFAULT 0,
        visibility INTEGER NOT NULL DEFAULT 1,
        position INTEGER NOT NULL DEFAULT 0
    );

    -- One logical row per (project_id, date); callers check before inserting
    CREATE TABLE IF NOT EXISTS historydata (
        id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT,
        project_id INTEGER NOT NULL,
        date DATETIME NOT NULL,
        time INTEGER NOT NULL
    );

    CREATE TABLE IF NOT EXISTS dailylog (
        id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT,
        date DATETIME NOT NULL,
        "start" DATETIME NOT NULL,
        "end" DATETIME NOT NULL
    );
"""


# =============================================================================
# PARSING HELPERS
# =============================================================================

def _parse_date(value: str) -> date:
    try:
        # date() in SQLite may hand back 'YYYY-MM-DD HH:MM:SS' for old rows
        return datetime.strptime(value[:10], DATE_FORMAT).date()
    except (TypeError, ValueError) as e:
        raise ParseError(f"Invalid stored date: {value!r}") from e


def _parse_datetime(value: str) -> datetime:
    try:
        return datetime.strptime(value, DATE_TIME_FORMAT)
    except (TypeError, ValueError) as e:
        raise ParseError(f"Invalid stored timestamp: {value!r}") from e


def _parse_seconds(value) -> int:
    if not isinstance(value, int) or value < 0:
        raise ParseError(f"Invalid stored time: {value!r}")
    return value


def _format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def _format_datetime(value: datetime) -> str:
    return value.strftime(DATE_TIME_FORMAT)


# =============================================================================
# CONNECTION MANAGEMENT
# =============================================================================

class Database:
    """
    Handle on the local database file.

    Args:
        path: The SQLite file
        read_only: When True every write becomes a no-op
        legacy_path: An older file name to rename to `path` on first use
    """

    def __init__(self, path: Path = DATABASE_PATH, read_only: bool = False,
                 legacy_path: Optional[Path] = None):
        self.path = Path(path)
        self.read_only = read_only
        self.legacy_path = Path(legacy_path) if legacy_path else None

    def ensure_schema(self) -> bool:
        """
        Prepare the database file for use.

        Renames a legacy file into place first, then creates the tables if
        (and only if) the file didn't exist yet.

        In read-only mode nothing on disk is touched: a legacy file is read
        where it lies, and a missing database is not created.

        Returns:
            True if a new database was created
        """
        if self.read_only:
            self._use_legacy_file_in_place()
            if not self.path.exists():
                logger.warning("No database at %s and read-only mode is on", self.path)
            return False

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._migrate_legacy_file()

        if self.path.exists():
            return False

        logger.info("Creating database at %s", self.path)
        with self.get_connection() as conn:
            conn.executescript(SCHEMA)
            conn.commit()
        return True

    def _use_legacy_file_in_place(self):
        if self.path.exists() or self.legacy_path is None or not self.legacy_path.exists():
            return
        logger.info("Reading %s without renaming it", self.legacy_path)
        self.path = self.legacy_path

    def _migrate_legacy_file(self):
        """Best-effort one-time rename; failures are logged and ignored."""
        if self.legacy_path is None or not self.legacy_path.exists():
            return
        if self.path.exists():
            logger.warning("Both %s and %s exist, leaving the old file alone",
                           self.legacy_path, self.path)
            return
        try:
            self.legacy_path.rename(self.path)
            logger.info("Renamed %s to %s", self.legacy_path, self.path)
        except OSError as e:
            logger.warning("Could not rename %s: %s", self.legacy_path, e)

    @contextmanager
    def get_connection(self):
        """
        Context manager for one logical operation.

        Any sqlite3 error raised inside the block, or while connecting, is
        re-raised as StorageError. The connection is always closed.

        Usage:
            with database.get_connection() as conn:
                conn.execute(...)
        """
        try:
            if self.read_only:
                # mode=ro never creates the file and rejects writes
                conn = sqlite3.connect(f"{self.path.resolve().as_uri()}?mode=ro", uri=True)
            else:
                conn = sqlite3.connect(self.path)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open {self.path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e
        finally:
            conn.close()


# =============================================================================
# PROJECT OPERATIONS
# =============================================================================

class ProjectStore:
    """Load and save Project rows."""

    def __init__(self, database: Database):
        self.database = database

    @staticmethod
    def _from_row(row: sqlite3.Row) -> Project:
        return Project(
            id=row["id"],
            name=row["name"],
            autostart=bool(row["autostart"]),
            visible=bool(row["visibility"]),
            position=row["position"],
        )

    def get_all(self) -> list[Project]:
        """All projects in id order (use models.sort_by_position for display)."""
        with self.database.get_connection() as conn:
            rows = conn.execute("SELECT * FROM projects ORDER BY id").fetchall()
        return [self._from_row(row) for row in rows]

    def get_by_id(self, project_id: int) -> Optional[Project]:
        with self.database.get_connection() as conn:
            row = conn.execute("SELECT * FROM projects WHERE id = ?", (project_id,)).fetchone()
        return self._from_row(row) if row else None

    def save(self, project: Project) -> Project:
        """
        Insert or update a project.

        Projects without an id, or with a negative placeholder id, are
        inserted and receive the generated id. Everything else is updated
        by id.

        Returns:
            The same Project object, with its id assigned
        """
        if self.database.read_only:
            return project

        values = (project.name, int(project.autostart), int(project.visible), project.position)
        with self.database.get_connection() as conn:
            if not project.is_persisted:
                cursor = conn.execute(
                    "INSERT INTO projects (name, autostart, visibility, position) VALUES (?, ?, ?, ?)",
                    values
                )
                if cursor.lastrowid is None:
                    raise StorageError("Creating project failed, no id obtained")
                project.id = cursor.lastrowid
            else:
                conn.execute(
                    "UPDATE projects SET name = ?, autostart = ?, visibility = ?, position = ? WHERE id = ?",
                    values + (project.id,)
                )
            conn.commit()
        return project

    def delete(self, project: Project) -> bool:
        """
        Delete the project row (not its history; see Stores.delete_project).

        Returns:
            True if a row was removed
        """
        if self.database.read_only or not project.is_persisted:
            return False
        with self.database.get_connection() as conn:
            cursor = conn.execute("DELETE FROM projects WHERE id = ?", (project.id,))
            conn.commit()
        return cursor.rowcount > 0


# =============================================================================
# HISTORY OPERATIONS
# =============================================================================

class HistoryStore:
    """Load and save HistoryData rows."""

    def __init__(self, database: Database, projects: ProjectStore):
        self.database = database
        self.projects = projects

    def _parse_rows(self, rows: list[sqlite3.Row]) -> list[HistoryData]:
        projects = {p.id: p for p in self.projects.get_all()}
        result = []
        for row in rows:
            project = projects.get(row["project_id"])
            if project is None:
                logger.warning("Skipping history row %s for missing project %s",
                               row["id"], row["project_id"])
                continue
            try:
                day = _parse_date(row["date"])
                seconds = _parse_seconds(row["time"])
            except ParseError as e:
                raise StorageError(str(e)) from e
            result.append(HistoryData(id=row["id"], project=project, date=day, time=seconds))
        return result

    def get_all(self) -> list[HistoryData]:
        with self.database.get_connection() as conn:
            rows = conn.execute("SELECT * FROM historydata ORDER BY date, id").fetchall()
        return self._parse_rows(rows)

    def get_all_for_date(self, day: date) -> dict[Project, HistoryData]:
        """
        History for one day keyed by project.

        If duplicates slipped in for the same project, the row with the
        highest id wins.
        """
        with self.database.get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM historydata WHERE date(date) = ? ORDER BY id",
                (_format_date(day),)
            ).fetchall()
        return {d.project: d for d in self._parse_rows(rows)}

    def save(self, data: HistoryData) -> HistoryData:
        """
        Insert or update a history row.

        Silently skipped if the project has been deleted in the meantime,
        so an autosave racing a settings change can't resurrect it.
        """
        if self.database.read_only:
            return data
        if data.project is None or not data.project.is_persisted:
            raise ValueError("History data needs a saved project")
        if data.time < 0:
            raise ValueError("time must not be negative")
        if self.projects.get_by_id(data.project.id) is None:
            logger.debug("Not saving history for deleted project %s", data.project.id)
            return data

        values = (data.project.id, _format_date(data.date), data.time)
        with self.database.get_connection() as conn:
            if data.id is None:
                cursor = conn.execute(
                    "INSERT INTO historydata (project_id, date, time) VALUES (?, date(?), ?)",
                    values
                )
                if cursor.lastrowid is None:
                    raise StorageError("Creating history data failed, no id obtained")
                data.id = cursor.lastrowid
            else:
                conn.execute(
                    "UPDATE historydata SET project_id = ?, date = date(?), time = ? WHERE id = ?",
                    values + (data.id,)
                )
            conn.commit()
        return data

    def delete_all_for_project(self, project: Project) -> bool:
        """
        Remove every history row of a project.

        Deleting zero rows is not an error. Returns False only when nothing
        was attempted (read-only mode or an unsaved project).
        """
        if self.database.read_only or not project.is_persisted:
            return False
        with self.database.get_connection() as conn:
            conn.execute("DELETE FROM historydata WHERE project_id = ?", (project.id,))
            conn.commit()
        return True


# =============================================================================
# DAILY LOG OPERATIONS
# =============================================================================

class DailyLogStore:
    """Load and save DailyLog rows."""

    def __init__(self, database: Database):
        self.database = database

    @staticmethod
    def _from_row(row: sqlite3.Row) -> DailyLog:
        try:
            return DailyLog(
                id=row["id"],
                date=_parse_date(row["date"]),
                start=_parse_datetime(row["start"]),
                end=_parse_datetime(row["end"]),
            )
        except ParseError as e:
            raise StorageError(str(e)) from e

    def get_for_date(self, day: date) -> Optional[DailyLog]:
        with self.database.get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM dailylog WHERE date(date) = ? ORDER BY id LIMIT 1",
                (_format_date(day),)
            ).fetchone()
        return self._from_row(row) if row else None

    def save(self, log: DailyLog) -> DailyLog:
        if self.database.read_only:
            return log

        values = (_format_date(log.date), _format_datetime(log.start), _format_datetime(log.end))
        with self.database.get_connection() as conn:
            if log.id is None:
                cursor = conn.execute(
                    "INSERT INTO dailylog (date, \"start\", \"end\") VALUES (date(?), datetime(?), datetime(?))",
                    values
                )
                if cursor.lastrowid is None:
                    raise StorageError("Creating daily log failed, no id obtained")
                log.id = cursor.lastrowid
            else:
                conn.execute(
                    "UPDATE dailylog SET date = date(?), \"start\" = datetime(?), \"end\" = datetime(?) WHERE id = ?",
                    values + (log.id,)
                )
            conn.commit()
        return log


# =============================================================================
# WIRING
# =============================================================================

class Stores:
    """The three stores over one database, built once at startup."""

    def __init__(self, database: Database):
        self.database = database
        self.projects = ProjectStore(database)
        self.history = HistoryStore(database, self.projects)
        self.daily_logs = DailyLogStore(database)

    @classmethod
    def open(cls, path: Path = DATABASE_PATH, read_only: bool = False,
             legacy_path: Optional[Path] = LEGACY_DATABASE_PATH) -> 'Stores':
        """Create the database if needed and return ready-to-use stores."""
        database = Database(path, read_only=read_only, legacy_path=legacy_path)
        database.ensure_schema()
        return cls(database)

    def delete_project(self, project: Project) -> bool:
        """Delete a project together with all of its history."""
        self.history.delete_all_for_project(project)
        return self.projects.delete(project)
