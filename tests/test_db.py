import pytest

from timesheet_builder.db import (
    database_connection,
    delete_activity,
    delete_all_activities,
    fetch_activities,
    fetch_activity,
    fetch_day_markers,
    insert_activities,
    transaction,
    update_activity,
    upsert_day_markers,
)
from timesheet_builder.models import Activity, DayMarkers


def make(day, start, task="Tarefa", warnings=None):
    return Activity.create(
        date=day,
        start_time=start,
        duration="1:00",
        task=task,
        collaborator="Ana",
        validation_warnings=warnings,
    )


def test_activities_round_trip_in_insertion_order(tmp_path):
    db_path = tmp_path / "activities.sqlite3"
    items = [
        make("2025-09-02", "8:00", "segunda"),
        make("2025-09-01", "9:00", "primeira", warnings=["Duração ajustada"]),
    ]
    with database_connection(db_path) as conn:
        insert_activities(conn, items)

    with database_connection(db_path) as conn:
        loaded = fetch_activities(conn)

    assert loaded == items
    assert loaded[1].has_validation_issues


def test_update_and_delete(tmp_path):
    db_path = tmp_path / "activities.sqlite3"
    activity = make("2025-09-01", "8:00")
    with database_connection(db_path) as conn:
        insert_activities(conn, [activity])
        activity.update_task("Editada")
        update_activity(conn, activity)
        assert fetch_activity(conn, activity.id).task == "Editada"

        assert delete_activity(conn, activity.id)
        assert not delete_activity(conn, activity.id)
        assert fetch_activity(conn, activity.id) is None

        with pytest.raises(ValueError):
            update_activity(conn, activity)


def test_delete_all(tmp_path):
    with database_connection(tmp_path / "db.sqlite3") as conn:
        insert_activities(conn, [make("2025-09-01", "8:00"), make("2025-09-01", "9:00")])
        assert delete_all_activities(conn) == 2
        assert fetch_activities(conn) == []


def test_transaction_rolls_back(tmp_path):
    db_path = tmp_path / "db.sqlite3"
    with database_connection(db_path) as conn:
        with pytest.raises(RuntimeError):
            with transaction(conn):
                insert_activities(conn, [make("2025-09-01", "8:00")])
                raise RuntimeError("boom")
        assert fetch_activities(conn) == []


def test_day_markers_are_merged_not_nulled(tmp_path):
    with database_connection(tmp_path / "db.sqlite3") as conn:
        upsert_day_markers(conn, [DayMarkers(date="2025-09-01", start="8:30", lunch="12:00")])
        upsert_day_markers(conn, [DayMarkers(date="2025-09-01", lunch="12:15", end="17:00")])
        stored = fetch_day_markers(conn)

    assert stored == {
        "2025-09-01": DayMarkers(
            date="2025-09-01", start="8:30", lunch="12:15", lunch_return=None, end="17:00"
        )
    }
