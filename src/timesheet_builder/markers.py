"""Recover the reference times of a working day from free-text labels.

Labels such as ``"inicio 8:30"``, ``"almoço 12h00"``, ``"retorno do almoco
13:00"`` or ``"final de expediente: 18:00"`` mark the start of the shift, the
lunch break, the return from lunch and the end of the shift.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from datetime import date
from typing import Iterable, Mapping, MutableMapping, Optional

from .models import DayMarkers, TimesheetRow, parse_iso_date
from .normalization import normalize_label, parse_task_label
from .timeutils import parse_clock

logger = logging.getLogger(__name__)

DEFAULT_DAY_START = "8:00"

# Hour and minute may be separated by ":", spaces or "h" (8:30, 8 30, 8h30).
_CLOCK = r"(\d{1,2})[:\sh]*(\d{2})"

START_PATTERN = re.compile(rf"in[ií]cio[:\s]*{_CLOCK}", re.IGNORECASE)
# "almoco" inside "retorno do almoco" or "volta almoco" belongs to the return marker.
LUNCH_PATTERN = re.compile(
    rf"(?<!retorno do )(?<!volta do )(?<!retorno )(?<!volta )almo[cç]o[:\s]*{_CLOCK}",
    re.IGNORECASE,
)
RETURN_PATTERN = re.compile(
    rf"(?:retorno|volta)(?:\s+(?:do\s+)?almo[cç]o)?\s*[:\s]*{_CLOCK}", re.IGNORECASE
)
END_PATTERN = re.compile(
    rf"(?:final|fim|sa[ií]da)(?:\s+(?:de\s+)?expediente)?\s*[:\s]*{_CLOCK}",
    re.IGNORECASE,
)

MARKER_KEYWORDS: tuple[str, ...] = (
    "inicio",
    "início",
    "almoço",
    "almoco",
    "retorno",
    "volta",
    "final",
    "fim",
    "saida",
    "saída",
)


@dataclass(frozen=True, slots=True)
class LabelMarkers:
    """Marker times carried by a single label."""

    start: Optional[str] = None
    lunch: Optional[str] = None
    lunch_return: Optional[str] = None
    end: Optional[str] = None


def scan_label(label: Optional[str]) -> LabelMarkers:
    text = normalize_label(label)
    if not text:
        return LabelMarkers()
    return LabelMarkers(
        start=_search(START_PATTERN, text),
        lunch=_search(LUNCH_PATTERN, text),
        lunch_return=_search(RETURN_PATTERN, text),
        end=_search(END_PATTERN, text),
    )


def _search(pattern: re.Pattern[str], text: str) -> Optional[str]:
    match = pattern.search(text)
    if not match:
        return None
    return parse_clock(*match.groups())


def has_marker_keyword(label: Optional[str]) -> bool:
    text = normalize_label(label)
    return any(keyword in text for keyword in MARKER_KEYWORDS)


def row_belongs_to_day(row: TimesheetRow, day: date) -> bool:
    """Tasks titled ``DD - NN - ...`` only belong to day-of-month ``DD``."""
    task_label = parse_task_label(row.task)
    return task_label is None or task_label.day == day.day


def extract_day_markers(
    rows: Iterable[TimesheetRow],
    day: str,
    *,
    default_start: Optional[str] = DEFAULT_DAY_START,
) -> DayMarkers:
    """Resolve the four markers of ``day`` from the labels of every row.

    Rows are inspected whether or not they carry a duration for ``day``; the
    source tool lays labels out on whichever row of the week holds them. When
    several rows tag the same marker the last one wins.
    """
    target = parse_iso_date(day)
    start: Optional[str] = None
    lunch: Optional[str] = None
    lunch_return: Optional[str] = None
    end: Optional[str] = None

    for row in rows:
        if not normalize_label(row.label):
            continue
        if not row_belongs_to_day(row, target):
            logger.debug("Label %r belongs to another day than %s", row.label, day)
            continue
        found = scan_label(row.label)
        start = found.start or start
        lunch = found.lunch or lunch
        lunch_return = found.lunch_return or lunch_return
        end = found.end or end

    markers = DayMarkers(
        date=day,
        start=start or default_start,
        lunch=lunch,
        lunch_return=lunch_return,
        end=end,
    )
    logger.debug(
        "Markers for %s: start=%s lunch=%s return=%s end=%s",
        day,
        markers.start,
        markers.lunch or "-",
        markers.lunch_return or "-",
        markers.end or "-",
    )
    return markers


def merge_day_markers(
    store: MutableMapping[str, DayMarkers], markers: DayMarkers
) -> DayMarkers:
    """Accumulate ``markers`` into ``store`` in place and return the result.

    ``markers`` should hold only what was actually found (no default start),
    so a later import of the same day never replaces a recorded marker with a
    default or with nothing.
    """
    existing = store.get(markers.date)
    merged = existing.merged_with(markers) if existing else markers
    store[markers.date] = merged
    return merged


def resolve_day_markers(
    store: Mapping[str, DayMarkers], default_start: str = DEFAULT_DAY_START
) -> dict[str, DayMarkers]:
    """Copy ``store`` giving days without a start marker the default start."""
    return {
        day: markers if markers.start else replace(markers, start=default_start)
        for day, markers in sorted(store.items())
    }
