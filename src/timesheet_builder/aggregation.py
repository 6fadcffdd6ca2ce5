"""Grouping, sorting, filtering and statistics over activity lists."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass
from typing import Any, Callable, Iterable, Optional

from .models import Activity
from .timeutils import minutes_to_time

_SORT_KEY_FUNCS: dict[str, Callable[[Activity], Any]] = {
    "date": lambda item: (item.date, item.start_minutes),
    "start_time": lambda item: item.start_time,
    "duration": lambda item: item.duration_minutes,
    "task": lambda item: item.task.casefold(),
}
SORT_KEYS = tuple(_SORT_KEY_FUNCS)
SORT_ORDERS = ("asc", "desc")


@dataclass(slots=True)
class ActivityStatistics:
    total_activities: int
    total_minutes: int
    total_hours: float
    total_hours_formatted: str
    unique_dates: int
    average_hours_per_day: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def group_by_date(activities: Iterable[Activity]) -> dict[str, list[Activity]]:
    grouped: defaultdict[str, list[Activity]] = defaultdict(list)
    for activity in activities:
        grouped[activity.date_key].append(activity)
    return dict(grouped)


def total_minutes(activities: Iterable[Activity]) -> int:
    return sum(activity.duration_minutes for activity in activities)


def sort_activities(
    activities: Iterable[Activity], sort_by: str = "date", order: str = "asc"
) -> list[Activity]:
    """Return a sorted copy.

    ``date`` breaks ties by numeric start minutes. ``start_time`` compares the
    ``H:MM`` text as-is, so ``"10:00"`` sorts before ``"9:00"``.
    """
    if sort_by not in SORT_KEYS:
        raise ValueError(f"Unknown sort key: {sort_by!r}")
    if order not in SORT_ORDERS:
        raise ValueError(f"Unknown sort order: {order!r}")

    return sorted(activities, key=_SORT_KEY_FUNCS[sort_by], reverse=order == "desc")


def filter_activities(
    activities: Iterable[Activity],
    *,
    date_filter: Optional[str] = None,
    task_filter: Optional[str] = None,
    collaborator_filter: Optional[str] = None,
) -> list[Activity]:
    task_needle = task_filter.lower() if task_filter else None
    result: list[Activity] = []
    for activity in activities:
        if date_filter and date_filter not in activity.date_key:
            continue
        if task_needle and task_needle not in activity.task.lower():
            continue
        if collaborator_filter and activity.collaborator != collaborator_filter:
            continue
        result.append(activity)
    return result


def compute_statistics(activities: Iterable[Activity]) -> ActivityStatistics:
    items = list(activities)
    minutes = total_minutes(items)
    unique_dates = len({activity.date_key for activity in items})
    return ActivityStatistics(
        total_activities=len(items),
        total_minutes=minutes,
        total_hours=minutes / 60,
        total_hours_formatted=minutes_to_time(minutes),
        unique_dates=unique_dates,
        average_hours_per_day=minutes / 60 / unique_dates if unique_dates else 0.0,
    )


def detect_overlaps(activities: Iterable[Activity]) -> list[tuple[Activity, Activity]]:
    """Pairs of consecutive same-day activities where one ends after the next starts.

    Both the ordering and the comparison use the ``H:MM`` text, matching how
    the times are displayed.
    """
    overlaps: list[tuple[Activity, Activity]] = []
    for day_activities in group_by_date(activities).values():
        ordered = sort_activities(day_activities, "start_time")
        for current, following in zip(ordered, ordered[1:]):
            if current.end_time > following.start_time:
                overlaps.append((current, following))
    return overlaps


def is_within_working_hours(activity: Activity) -> bool:
    """True when the activity lies between 6h and 22h."""
    start_hour = activity.start_minutes // 60
    end_hour = activity.end_minutes // 60
    return start_hour >= 6 and end_hour <= 22
