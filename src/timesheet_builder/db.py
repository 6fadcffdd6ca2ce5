"""SQLite database layer for activities and day markers."""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .models import DATE_FMT, Activity, DayMarkers


def open_database(path: Path, *, check_same_thread: bool = True) -> sqlite3.Connection:
    """Open (and initialize) the SQLite database."""
    conn = sqlite3.connect(
        path,
        isolation_level=None,
        check_same_thread=check_same_thread,
    )
    conn.row_factory = sqlite3.Row
    initialize_schema(conn)
    return conn


@contextmanager
def database_connection(
    path: Path, *, check_same_thread: bool = True
) -> Iterator[sqlite3.Connection]:
    conn = open_database(path, check_same_thread=check_same_thread)
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Group several statements so they are committed or rolled back together."""
    conn.execute("BEGIN")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    conn.execute("COMMIT")


def initialize_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS activities (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            id TEXT NOT NULL UNIQUE,
            date TEXT NOT NULL,
            start_time TEXT NOT NULL,
            duration TEXT NOT NULL,
            task TEXT NOT NULL,
            collaborator TEXT NOT NULL,
            validation_warnings TEXT NOT NULL DEFAULT '[]'
        );

        CREATE INDEX IF NOT EXISTS idx_activities_date
            ON activities(date);

        CREATE TABLE IF NOT EXISTS day_markers (
            date TEXT PRIMARY KEY,
            start_time TEXT,
            lunch_time TEXT,
            return_time TEXT,
            end_time TEXT
        );
        """
    )


def _activity_params(activity: Activity) -> tuple:
    return (
        activity.id,
        activity.date.strftime(DATE_FMT),
        activity.start_time,
        activity.duration,
        activity.task,
        activity.collaborator,
        json.dumps(activity.validation_warnings, ensure_ascii=False),
    )


def insert_activities(conn: sqlite3.Connection, activities: Iterable[Activity]) -> None:
    conn.executemany(
        """
        INSERT INTO activities (
            id,
            date,
            start_time,
            duration,
            task,
            collaborator,
            validation_warnings
        ) VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        [_activity_params(activity) for activity in activities],
    )


def row_to_activity(row: sqlite3.Row) -> Activity:
    return Activity(
        id=row["id"],
        date=row["date"],
        start_time=row["start_time"],
        duration=row["duration"],
        task=row["task"],
        collaborator=row["collaborator"],
        validation_warnings=json.loads(row["validation_warnings"] or "[]"),
    )


_SELECT_ACTIVITIES = """
    SELECT id, date, start_time, duration, task, collaborator, validation_warnings
    FROM activities
"""


def fetch_activities(conn: sqlite3.Connection) -> list[Activity]:
    """Fetch every stored activity, in the order it was saved."""
    rows = conn.execute(_SELECT_ACTIVITIES + " ORDER BY seq")
    return [row_to_activity(row) for row in rows]


def fetch_activity(conn: sqlite3.Connection, activity_id: str) -> Optional[Activity]:
    row = conn.execute(_SELECT_ACTIVITIES + " WHERE id = ?", (activity_id,)).fetchone()
    return row_to_activity(row) if row is not None else None


def update_activity(conn: sqlite3.Connection, activity: Activity) -> None:
    """Update a single activity record."""
    cur = conn.execute(
        """
        UPDATE activities
        SET date = ?, start_time = ?, duration = ?, task = ?, collaborator = ?,
            validation_warnings = ?
        WHERE id = ?
        """,
        (*_activity_params(activity)[1:], activity.id),
    )
    if cur.rowcount == 0:
        raise ValueError(f"No activity found for id={activity.id}")


def delete_activity(conn: sqlite3.Connection, activity_id: str) -> bool:
    cur = conn.execute("DELETE FROM activities WHERE id = ?", (activity_id,))
    return cur.rowcount > 0


def delete_all_activities(conn: sqlite3.Connection) -> int:
    cur = conn.execute("DELETE FROM activities")
    return cur.rowcount


def upsert_day_markers(conn: sqlite3.Connection, markers: Iterable[DayMarkers]) -> None:
    """Store day markers; a stored marker is never replaced by a missing one."""
    conn.executemany(
        """
        INSERT INTO day_markers (date, start_time, lunch_time, return_time, end_time)
        VALUES (?, ?, ?, ?, ?)
        ON CONFLICT(date) DO UPDATE SET
            start_time = COALESCE(excluded.start_time, day_markers.start_time),
            lunch_time = COALESCE(excluded.lunch_time, day_markers.lunch_time),
            return_time = COALESCE(excluded.return_time, day_markers.return_time),
            end_time = COALESCE(excluded.end_time, day_markers.end_time)
        """,
        [
            (item.date, item.start, item.lunch, item.lunch_return, item.end)
            for item in markers
        ],
    )


def fetch_day_markers(conn: sqlite3.Connection) -> dict[str, DayMarkers]:
    rows = conn.execute(
        """
        SELECT date, start_time, lunch_time, return_time, end_time
        FROM day_markers
        ORDER BY date
        """
    )
    return {
        row["date"]: DayMarkers(
            date=row["date"],
            start=row["start_time"],
            lunch=row["lunch_time"],
            lunch_return=row["return_time"],
            end=row["end_time"],
        )
        for row in rows
    }
