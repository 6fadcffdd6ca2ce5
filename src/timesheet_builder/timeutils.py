"""Minute-based helpers for ``H:MM`` times and durations.

Times are handled as integer minutes since midnight. The string form is always
``H:MM``: the hour is not zero-padded and the minute is. Values never wrap at
24 hours, so a shift that runs past midnight renders as ``24:30``.
"""

from __future__ import annotations

import math
import re

from .errors import MalformedTimeError

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")
_CLOCK_WITH_SECONDS = re.compile(r"^(\d{1,2}):(\d{2}):(\d{2})$")


def time_to_minutes(value: str) -> int:
    """Convert ``H:MM`` into minutes, raising :class:`MalformedTimeError`."""
    if not isinstance(value, str):
        raise MalformedTimeError(value)
    match = _TIME_PATTERN.match(value.strip())
    if not match:
        raise MalformedTimeError(value)
    hours, minutes = match.groups()
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    sign = "-" if minutes < 0 else ""
    hours, mins = divmod(abs(int(minutes)), 60)
    return f"{sign}{hours}:{mins:02d}"


def is_valid_time(value: str) -> bool:
    return isinstance(value, str) and bool(_TIME_PATTERN.match(value.strip()))


def parse_clock(hours: str, minutes: str) -> str:
    """Build a canonical ``H:MM`` from regex groups such as ``("08", "30")``."""
    return f"{int(hours)}:{minutes}"


def add_duration(start: str, duration: str) -> str:
    return minutes_to_time(time_to_minutes(start) + time_to_minutes(duration))


def normalize_duration(raw: str) -> str:
    """Normalize the duration dialects found in timesheet exports to ``H:MM``.

    Accepted shapes are ``HH:MM:SS`` (seconds dropped), decimal hours using
    ``.`` or ``,`` (``1.5`` -> ``1:30``), bare hours (``2`` -> ``2:00``) and
    ``H:MM`` which passes through. Anything else is returned unchanged.
    """
    value = raw.strip()

    match = _CLOCK_WITH_SECONDS.match(value)
    if match:
        hours, minutes, _seconds = match.groups()
        return f"{int(hours)}:{int(minutes):02d}"

    if "." in value or "," in value:
        return _hours_to_time(value.replace(",", "."), raw)

    if ":" not in value:
        return _hours_to_time(value, raw)

    return raw


def _hours_to_time(value: str, original: str) -> str:
    try:
        hours = float(value)
    except ValueError:
        return original
    if math.isnan(hours) or math.isinf(hours):
        return original
    whole = math.floor(hours)
    # Half-up rounding; round() would round 2.5 minutes down to 2.
    minutes = math.floor((hours - whole) * 60 + 0.5)
    if minutes == 60:
        whole, minutes = whole + 1, 0
    return f"{whole}:{minutes:02d}"
