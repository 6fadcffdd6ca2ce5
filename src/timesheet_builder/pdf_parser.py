"""Parser for TMetric PDF timesheet reports.

PDF reports list activities as ``DD - NN - description Não|Sim project H:MM``
without any start times or labels, so each day simply starts at the default
start time and its activities are laid end to end.
"""

from __future__ import annotations

import logging
import re
import unicodedata

import fitz

from .models import Activity, RawActivity, SourceFile
from .normalization import format_task_label
from .reconstruction import sort_raw_activities
from .timeutils import minutes_to_time, normalize_duration, time_to_minutes

logger = logging.getLogger(__name__)

PERIOD_PATTERN = re.compile(r"Período:\s*(\d+)\s+(\w+)\.\s+(\d+)")
ACTIVITY_PATTERN = re.compile(
    r"(\d{2})\s*-\s*(\d{2})\s*-\s*(.+?)\s+(Não|Sim)\s+(.+?)\s+(\d{1,2}:\d{2})"
)
LINE_PATTERN = re.compile(r"^(\d{1,2})\s*-\s*(\d{1,2})\s*-\s*(.+)")
LINE_DURATION_PATTERN = re.compile(r"(\d{1,2}:\d{2})(?:\s|$)")
LINE_TAIL_PATTERN = re.compile(r"\s+(Não|Sim)\s+.+?\s+\d+:\d+.*$")

MONTHS = {
    "jan": 1,
    "fev": 2,
    "mar": 3,
    "abr": 4,
    "mai": 5,
    "jun": 6,
    "jul": 7,
    "ago": 8,
    "set": 9,
    "out": 10,
    "nov": 11,
    "dez": 12,
}


def extract_pdf_text(content: bytes) -> str:
    """Flatten each page into one line of space-separated text, in page order."""
    pages: list[str] = []
    with fitz.open(stream=content, filetype="pdf") as doc:
        for page in doc:
            text = unicodedata.normalize("NFC", page.get_text("text"))
            tokens = text.split()
            pages.append(" ".join(tokens))
    return "\n".join(pages) + "\n" if pages else ""


def resolve_period(text: str, fallback: tuple[int, int] = (9, 2025)) -> tuple[int, int]:
    """Return ``(month, year)`` from the report's ``Período:`` header."""
    match = PERIOD_PATTERN.search(text)
    if not match:
        logger.info("No period header found, using %02d/%d", *fallback)
        return fallback
    month = MONTHS.get(match.group(2).lower()[:3], fallback[0])
    return month, int(match.group(3))


class _DayClocks:
    """Per-day running clocks; every day starts at ``day_start``."""

    def __init__(self, day_start: str) -> None:
        self.day_start = time_to_minutes(day_start)
        self._clocks: dict[str, int] = {}

    def allocate(self, day: str, duration: str) -> str:
        start = self._clocks.get(day, self.day_start)
        self._clocks[day] = start + time_to_minutes(duration)
        return minutes_to_time(start)


def extract_activities_from_text(
    text: str,
    *,
    fallback_period: tuple[int, int] = (9, 2025),
    day_start: str = "8:00",
) -> list[RawActivity]:
    month, year = resolve_period(text, fallback_period)
    clocks = _DayClocks(day_start)
    activities: list[RawActivity] = []

    for match in ACTIVITY_PATTERN.finditer(text):
        day, sequence, description, _billable, _project, duration = match.groups()
        activities.append(
            _allocate(clocks, year, month, day, sequence, description, duration)
        )

    if not activities:
        logger.info("Primary pattern found nothing, scanning line by line")
        activities = _extract_line_by_line(text, year, month, clocks)

    logger.info("%d activities found in PDF text", len(activities))
    return sort_raw_activities(activities)


def _extract_line_by_line(
    text: str, year: int, month: int, clocks: _DayClocks
) -> list[RawActivity]:
    activities: list[RawActivity] = []
    for line in text.split("\n"):
        match = LINE_PATTERN.match(line)
        if not match:
            continue
        day, sequence, rest = match.groups()
        duration_match = LINE_DURATION_PATTERN.search(rest)
        if not duration_match:
            continue
        description = LINE_TAIL_PATTERN.sub("", rest)
        activities.append(
            _allocate(
                clocks, year, month, day, sequence, description, duration_match.group(1)
            )
        )
    return activities


def _allocate(
    clocks: _DayClocks,
    year: int,
    month: int,
    day: str,
    sequence: str,
    description: str,
    duration: str,
) -> RawActivity:
    day_key = f"{year}-{month:02d}-{int(day):02d}"
    duration = normalize_duration(duration.strip())
    return RawActivity(
        date=day_key,
        start_time=clocks.allocate(day_key, duration),
        duration=duration,
        task=format_task_label(day, sequence, description),
    )


class PdfTimesheetParser:
    def __init__(
        self,
        *,
        day_start: str = "8:00",
        fallback_period: tuple[int, int] = (9, 2025),
    ) -> None:
        self.day_start = day_start
        self.fallback_period = fallback_period

    def parse(self, source: SourceFile, collaborator: str) -> list[Activity]:
        logger.info("Parsing PDF report %s for %s", source.name, collaborator)
        text = extract_pdf_text(source.content)
        logger.debug("Extracted %d characters from %s", len(text), source.name)
        raw_activities = extract_activities_from_text(
            text, fallback_period=self.fallback_period, day_start=self.day_start
        )
        return [Activity.from_raw(raw, collaborator) for raw in raw_activities]

