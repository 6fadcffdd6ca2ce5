"""Rebuild per-activity start times from recorded durations and day markers.

Durations recorded in the export are reliable but carry no start time. Marker
labels (shift start, lunch, return from lunch, shift end) are sparse but
authoritative. The reconstructor walks the rows of one day in order with a
running clock, anchors activities to markers when a row carries one, splits
the activity that runs into lunch, and records a warning whenever reconciling
the two sources changed a recorded duration.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .markers import has_marker_keyword, scan_label
from .models import DayMarkers, RawActivity, TimesheetRow, parse_iso_date
from .normalization import parse_task_label
from .timeutils import minutes_to_time, normalize_duration, time_to_minutes

logger = logging.getLogger(__name__)

EMPTY_DURATIONS = {"", "-"}
UNTITLED_TASK = "Sem descrição"


class DayReconstructor:
    """Running-clock state machine for the rows of a single day."""

    def __init__(
        self,
        day: str,
        markers: DayMarkers,
        *,
        day_start: str = "8:00",
        lunch_break_minutes: int = 60,
        return_window: tuple[int, int] = (45, 90),
    ) -> None:
        self.day = day
        self.markers = markers
        self.lunch_break_minutes = lunch_break_minutes
        self.return_window = return_window
        self._day_of_month = parse_iso_date(day).day
        self.clock = time_to_minutes(markers.start or day_start)
        self.past_lunch = False
        self.activities: list[RawActivity] = []

    def run(self, rows: Iterable[TimesheetRow]) -> list[RawActivity]:
        for row in rows:
            self.process_row(row)
        return self.activities

    def process_row(self, row: TimesheetRow) -> None:
        raw_duration = (row.durations.get(self.day) or "").strip()
        if raw_duration in EMPTY_DURATIONS:
            return

        task_label = parse_task_label(row.task)
        follows_convention = task_label is not None and task_label.has_description
        if has_marker_keyword(row.label) and not follows_convention:
            logger.debug("Skipping marker-only row %r", row.task)
            return
        if task_label is not None and task_label.day != self._day_of_month:
            logger.debug("Skipping %r: not a task of %s", row.task, self.day)
            return

        duration = normalize_duration(raw_duration)
        duration_minutes = time_to_minutes(duration)
        warnings: list[str] = []
        found = scan_label(row.label)
        start = self.clock

        if found.start:
            start = time_to_minutes(found.start)
            self.clock = start
        elif found.lunch_return:
            start = time_to_minutes(found.lunch_return)
            self._check_return_window(found.lunch_return, warnings)
            self.clock = start
            self.past_lunch = True
        elif found.lunch:
            start, duration_minutes = self._end_at(
                found.lunch, duration_minutes, warnings, "horário de almoço"
            )
        elif found.end:
            start, duration_minutes = self._end_at(
                found.end, duration_minutes, warnings, "horário final"
            )

        task = row.task or UNTITLED_TASK
        end = start + duration_minutes

        if self.markers.lunch and not self.past_lunch:
            lunch = time_to_minutes(self.markers.lunch)
            if end >= lunch:
                self._split_at_lunch(task, start, duration_minutes, lunch, warnings)
                return

        self._emit(task, start, duration_minutes, warnings)
        self.clock = end

    def _check_return_window(self, lunch_return: str, warnings: list[str]) -> None:
        if not self.markers.lunch:
            return
        gap = time_to_minutes(lunch_return) - time_to_minutes(self.markers.lunch)
        low, high = self.return_window
        if gap < low or gap > high:
            warning = (
                f"Horário de retorno ({lunch_return}) está {gap} minutos após o "
                f"almoço ({self.markers.lunch}). Esperado: ~60 minutos"
            )
            logger.info("%s: %s", self.day, warning)
            warnings.append(warning)

    def _end_at(
        self,
        target: str,
        duration_minutes: int,
        warnings: list[str],
        target_name: str,
    ) -> tuple[int, int]:
        """Place an activity so that it ends exactly at ``target``.

        The start slides back into unclaimed time when possible; otherwise the
        duration shrinks to fit between the clock and the target.
        """
        target_minutes = time_to_minutes(target)
        sliding_start = target_minutes - duration_minutes
        if sliding_start >= self.clock:
            self.clock = sliding_start
            return sliding_start, duration_minutes

        fitted = target_minutes - self.clock
        if fitted > 0:
            warning = (
                f"Duração ajustada de {minutes_to_time(duration_minutes)} para "
                f"{minutes_to_time(fitted)} para terminar no {target_name} ({target})"
            )
            logger.info("%s: %s", self.day, warning)
            warnings.append(warning)
            return self.clock, fitted

        warning = (
            f"ERRO: Não é possível terminar às {target} - hora atual já passou "
            f"({minutes_to_time(self.clock)})"
        )
        logger.warning("%s: %s", self.day, warning)
        warnings.append(warning)
        return self.clock, duration_minutes

    def _split_at_lunch(
        self,
        task: str,
        start: int,
        duration_minutes: int,
        lunch: int,
        warnings: list[str],
    ) -> None:
        # The part of the activity after lunch is dropped.
        before_lunch = lunch - start
        if before_lunch > 0:
            adjusted = list(warnings)
            if before_lunch != duration_minutes:
                adjusted.append(
                    f"Duração ajustada de {minutes_to_time(duration_minutes)} para "
                    f"{minutes_to_time(before_lunch)} devido ao horário de almoço "
                    f"({self.markers.lunch})"
                )
            self._emit(task, start, before_lunch, adjusted)
        else:
            logger.debug("%s: %r starts at or after lunch, dropped", self.day, task)

        if self.markers.lunch_return:
            self.clock = time_to_minutes(self.markers.lunch_return)
        else:
            self.clock = lunch + self.lunch_break_minutes
        self.past_lunch = True

    def _emit(
        self, task: str, start: int, duration_minutes: int, warnings: list[str]
    ) -> None:
        activity = RawActivity(
            date=self.day,
            start_time=minutes_to_time(start),
            duration=minutes_to_time(duration_minutes),
            task=task,
            warnings=list(warnings),
        )
        logger.debug(
            "%s: %s +%s %s", self.day, activity.start_time, activity.duration, task
        )
        self.activities.append(activity)


def reconstruct_day(
    rows: Iterable[TimesheetRow],
    day: str,
    markers: Optional[DayMarkers] = None,
    **options,
) -> list[RawActivity]:
    """Reconstruct the activities recorded in column ``day`` of ``rows``."""
    reconstructor = DayReconstructor(day, markers or DayMarkers(date=day), **options)
    return reconstructor.run(rows)


def sort_raw_activities(activities: Iterable[RawActivity]) -> list[RawActivity]:
    return sorted(activities, key=lambda item: (item.date, item.start_minutes))
