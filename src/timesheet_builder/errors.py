"""Exception types raised by the timesheet builder."""

from __future__ import annotations


class TimesheetError(Exception):
    """Base class for all timesheet builder errors."""


class MalformedTimeError(TimesheetError, ValueError):
    """A time or duration string does not follow the ``H:MM`` convention."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Invalid time format: {value!r}. Expected H:MM")
        self.value = value


class InvalidDateError(TimesheetError, ValueError):
    def __init__(self, value: object) -> None:
        super().__init__(f"Invalid date: {value!r}. Expected YYYY-MM-DD")
        self.value = value


class InvalidActivityError(TimesheetError, ValueError):
    pass


class TimesheetFormatError(TimesheetError):
    """An input file does not have the shape of a supported export."""


class ActivityNotFoundError(TimesheetError, LookupError):
    def __init__(self, activity_id: str) -> None:
        super().__init__(f"No activity found for id={activity_id}")
        self.activity_id = activity_id


class NothingToExportError(TimesheetError):
    def __init__(self) -> None:
        super().__init__("Não há atividades para exportar")
