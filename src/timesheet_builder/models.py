"""Domain models for reconstructed timesheet activity."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

from .errors import InvalidActivityError, InvalidDateError, MalformedTimeError
from .timeutils import is_valid_time, minutes_to_time, time_to_minutes

DATE_FMT = "%Y-%m-%d"


def parse_iso_date(value: object) -> date:
    """Coerce ``value`` to a calendar date, dropping any time of day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip()[:10], DATE_FMT).date()
        except ValueError as exc:
            raise InvalidDateError(value) from exc
    raise InvalidDateError(value)


@dataclass(slots=True)
class Activity:
    """A single dated block of work with a start time and a duration."""

    id: str
    date: date
    start_time: str
    duration: str
    task: str
    collaborator: str
    validation_warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.date = parse_iso_date(self.date)
        if not is_valid_time(self.start_time):
            raise MalformedTimeError(self.start_time)
        if not is_valid_time(self.duration):
            raise MalformedTimeError(self.duration)
        self.start_time = self.start_time.strip()
        self.duration = self.duration.strip()
        self.validation_warnings = list(self.validation_warnings or [])

    @classmethod
    def create(
        cls,
        *,
        date: date | str,
        start_time: str,
        duration: str,
        task: str,
        collaborator: str,
        validation_warnings: Optional[list[str]] = None,
    ) -> "Activity":
        return cls(
            id=str(uuid.uuid4()),
            date=date,
            start_time=start_time,
            duration=duration,
            task=task,
            collaborator=collaborator,
            validation_warnings=list(validation_warnings or []),
        )

    @classmethod
    def from_raw(cls, raw: "RawActivity", collaborator: str) -> "Activity":
        return cls.create(
            date=raw.date,
            start_time=raw.start_time,
            duration=raw.duration,
            task=raw.task,
            collaborator=collaborator,
            validation_warnings=raw.warnings,
        )

    @property
    def date_key(self) -> str:
        return self.date.strftime(DATE_FMT)

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def duration_minutes(self) -> int:
        return time_to_minutes(self.duration)

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration_minutes

    @property
    def end_time(self) -> str:
        return minutes_to_time(self.end_minutes)

    @property
    def has_validation_issues(self) -> bool:
        return bool(self.validation_warnings)

    def update_task(self, new_task: str) -> None:
        if not new_task or not new_task.strip():
            raise InvalidActivityError("Task cannot be empty")
        self.task = new_task.strip()

    def update_duration(self, new_duration: str) -> None:
        if not is_valid_time(new_duration):
            raise MalformedTimeError(new_duration)
        self.duration = new_duration.strip()

    def add_warning(self, warning: str) -> None:
        self.validation_warnings.append(warning)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date_key,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
            "duration_minutes": self.duration_minutes,
            "task": self.task,
            "collaborator": self.collaborator,
            "validation_warnings": list(self.validation_warnings),
            "has_validation_issues": self.has_validation_issues,
        }


@dataclass(frozen=True, slots=True)
class DayMarkers:
    """Reference times of one working day, recovered from free-text labels."""

    date: str
    start: Optional[str] = None
    lunch: Optional[str] = None
    lunch_return: Optional[str] = None
    end: Optional[str] = None

    @property
    def morning_duration(self) -> Optional[str]:
        return _span(self.start, self.lunch)

    @property
    def afternoon_duration(self) -> Optional[str]:
        return _span(self.lunch_return, self.end)

    @property
    def total_duration(self) -> Optional[str]:
        morning = self.morning_duration
        afternoon = self.afternoon_duration
        if morning is None:
            return afternoon
        if afternoon is None:
            return morning
        return minutes_to_time(time_to_minutes(morning) + time_to_minutes(afternoon))

    def merged_with(self, newer: "DayMarkers") -> "DayMarkers":
        """Overlay the markers found in ``newer`` without erasing known ones."""
        return replace(
            self,
            start=newer.start or self.start,
            lunch=newer.lunch or self.lunch,
            lunch_return=newer.lunch_return or self.lunch_return,
            end=newer.end or self.end,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "start": self.start,
            "lunch": self.lunch,
            "lunch_return": self.lunch_return,
            "end": self.end,
            "morning_duration": self.morning_duration,
            "afternoon_duration": self.afternoon_duration,
            "total_duration": self.total_duration,
        }


def _span(start: Optional[str], end: Optional[str]) -> Optional[str]:
    if not start or not end:
        return None
    return minutes_to_time(time_to_minutes(end) - time_to_minutes(start))


@dataclass(slots=True)
class RawActivity:
    """An activity recovered by an extractor, before it gets an identity."""

    date: str
    start_time: str
    duration: str
    task: str
    warnings: list[str] = field(default_factory=list)

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)


@dataclass(slots=True)
class TimesheetRow:
    """One row of a tabular export: task text, labels and per-date durations."""

    task: str
    label: str
    durations: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class SourceFile:
    name: str
    content: bytes

    @property
    def suffix(self) -> str:
        return Path(self.name).suffix.lower()

    @classmethod
    def from_path(cls, path: Path | str) -> "SourceFile":
        p = Path(path)
        return cls(name=p.name, content=p.read_bytes())
