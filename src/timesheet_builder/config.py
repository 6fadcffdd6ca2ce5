"""Configuration models and helpers for the timesheet builder."""

from __future__ import annotations

from dataclasses import dataclass

from .timeutils import time_to_minutes


@dataclass(slots=True)
class TimesheetSettings:
    """Runtime configuration for parsing and exporting timesheets."""

    day_start: str = "8:00"
    lunch_break_minutes: int = 60
    return_window: tuple[int, int] = (45, 90)
    fallback_month: int = 9
    fallback_year: int = 2025
    default_collaborator: str = "Colaborador"

    def __post_init__(self) -> None:
        time_to_minutes(self.day_start)
        low, high = self.return_window
        if low > high:
            raise ValueError("return_window must be (minimum, maximum)")
        if not 1 <= self.fallback_month <= 12:
            raise ValueError(f"Invalid fallback month: {self.fallback_month}")

    @property
    def fallback_period(self) -> tuple[int, int]:
        return self.fallback_month, self.fallback_year

    @classmethod
    def from_options(
        cls,
        day_start: str | None = None,
        lunch_break_minutes: int | None = None,
        collaborator: str | None = None,
        fallback_period: str | None = None,
    ) -> "TimesheetSettings":
        """Build settings from CLI-style options; ``fallback_period`` is ``M/YYYY``."""
        settings = cls()
        if day_start:
            settings.day_start = day_start.strip()
        if lunch_break_minutes is not None:
            settings.lunch_break_minutes = lunch_break_minutes
        if collaborator:
            settings.default_collaborator = collaborator.strip()
        if fallback_period:
            month, _, year = fallback_period.partition("/")
            settings.fallback_month = int(month)
            settings.fallback_year = int(year)
        settings.__post_init__()
        return settings
