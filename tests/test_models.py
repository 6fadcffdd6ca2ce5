from datetime import date, datetime

import pytest

from timesheet_builder.errors import InvalidActivityError, InvalidDateError, MalformedTimeError
from timesheet_builder.models import Activity, DayMarkers, RawActivity, SourceFile, parse_iso_date


def make(**overrides):
    fields = dict(
        date="2025-09-01",
        start_time="8:00",
        duration="1:30",
        task="01 - 01 - Análise",
        collaborator="Ana",
    )
    fields.update(overrides)
    return Activity.create(**fields)


def test_parse_iso_date():
    assert parse_iso_date("2025-09-01") == date(2025, 9, 1)
    assert parse_iso_date(datetime(2025, 9, 1, 13, 0)) == date(2025, 9, 1)
    with pytest.raises(InvalidDateError):
        parse_iso_date("01/09/2025")
    with pytest.raises(InvalidDateError):
        parse_iso_date(20250901)


def test_activity_derived_values():
    activity = make()
    assert activity.date == date(2025, 9, 1)
    assert activity.end_time == "9:30"
    assert activity.duration_minutes == 90
    assert not activity.has_validation_issues


def test_activity_end_time_past_midnight():
    assert make(start_time="23:00", duration="2:00").end_time == "25:00"


@pytest.mark.parametrize("field", ["start_time", "duration"])
def test_activity_rejects_malformed_times(field):
    with pytest.raises(MalformedTimeError):
        make(**{field: "1.5"})


def test_activity_rejects_bad_date():
    with pytest.raises(InvalidDateError):
        make(date="2025-13-01")


def test_create_mints_unique_ids():
    assert make().id != make().id


def test_update_task_and_duration():
    activity = make()
    activity.update_task("  Nova descrição ")
    activity.update_duration("2:00")
    assert activity.task == "Nova descrição"
    assert activity.end_time == "10:00"

    with pytest.raises(InvalidActivityError):
        activity.update_task("   ")
    with pytest.raises(MalformedTimeError):
        activity.update_duration("2h")


def test_warnings_flag():
    activity = make()
    activity.add_warning("Duração ajustada")
    assert activity.has_validation_issues
    assert activity.to_dict()["validation_warnings"] == ["Duração ajustada"]


def test_from_raw_copies_warnings():
    raw = RawActivity(
        date="2025-09-01", start_time="11:00", duration="1:00", task="t", warnings=["w"]
    )
    activity = Activity.from_raw(raw, "Ana")
    raw.warnings.append("late")
    assert activity.validation_warnings == ["w"]
    assert activity.collaborator == "Ana"


def test_to_dict():
    payload = make().to_dict()
    assert payload["date"] == "2025-09-01"
    assert payload["end_time"] == "9:30"
    assert payload["duration_minutes"] == 90
    assert payload["has_validation_issues"] is False


def test_day_marker_durations():
    markers = DayMarkers(date="2025-09-01", start="8:00", lunch="12:00", lunch_return="13:00", end="17:30")
    assert markers.morning_duration == "4:00"
    assert markers.afternoon_duration == "4:30"
    assert markers.total_duration == "8:30"

    half = DayMarkers(date="2025-09-01", start="8:00", lunch="12:00")
    assert half.afternoon_duration is None
    assert half.total_duration == "4:00"
    assert DayMarkers(date="2025-09-01", start="8:00").total_duration is None


def test_source_file(tmp_path):
    path = tmp_path / "Semana.CSV"
    path.write_bytes(b"abc")
    source = SourceFile.from_path(path)
    assert source.name == "Semana.CSV"
    assert source.suffix == ".csv"
    assert source.content == b"abc"
