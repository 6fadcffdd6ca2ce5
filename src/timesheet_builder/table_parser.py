"""Parser for TMetric CSV/Excel timesheet exports.

The export has one row per task and one column per calendar date
(``YYYY-MM-DD``) holding the time logged that day. Day markers live in the
``Etiquetas`` (labels) column.
"""

from __future__ import annotations

import io
import logging
import re
from datetime import date, datetime
from typing import Optional

import pandas as pd

from .errors import TimesheetFormatError
from .markers import (
    DEFAULT_DAY_START,
    extract_day_markers,
    merge_day_markers,
    resolve_day_markers,
)
from .models import Activity, DayMarkers, RawActivity, SourceFile, TimesheetRow
from .reconstruction import DayReconstructor, sort_raw_activities

logger = logging.getLogger(__name__)

TASK_COLUMN = "Entrada de tempo"
LABEL_COLUMN = "Etiquetas"
REQUIRED_COLUMNS = (TASK_COLUMN, LABEL_COLUMN)
DATE_COLUMN_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

CSV_SUFFIXES = {".csv", ".txt"}
EXCEL_SUFFIXES = {".xlsx", ".xlsm"}
SUPPORTED_SUFFIXES = CSV_SUFFIXES | EXCEL_SUFFIXES


class TableTimesheetParser:
    """Reconstruct activities from a tabular export.

    The parser keeps the day markers of every day it has seen. The map is only
    ever added to, so importing a week split across several files keeps the
    markers of all of them.
    """

    def __init__(
        self,
        *,
        day_start: str = DEFAULT_DAY_START,
        lunch_break_minutes: int = 60,
        return_window: tuple[int, int] = (45, 90),
    ) -> None:
        self.day_start = day_start
        self.lunch_break_minutes = lunch_break_minutes
        self.return_window = return_window
        self.day_markers: dict[str, DayMarkers] = {}

    def parse(self, source: SourceFile, collaborator: str) -> list[Activity]:
        logger.info("Parsing table export %s for %s", source.name, collaborator)
        frame = read_table(source)
        rows = frame_to_rows(frame)
        raw_activities = self.extract_activities(rows, date_columns(frame))
        activities = [Activity.from_raw(raw, collaborator) for raw in raw_activities]
        logger.info("%s: %d activities reconstructed", source.name, len(activities))
        return activities

    def extract_activities(
        self, rows: list[TimesheetRow], days: list[str]
    ) -> list[RawActivity]:
        activities: list[RawActivity] = []
        for day in days:
            found = extract_day_markers(rows, day, default_start=None)
            merge_day_markers(self.day_markers, found)
            markers = DayMarkers(
                date=day,
                start=found.start or self.day_start,
                lunch=found.lunch,
                lunch_return=found.lunch_return,
                end=found.end,
            )
            reconstructor = DayReconstructor(
                day,
                markers,
                day_start=self.day_start,
                lunch_break_minutes=self.lunch_break_minutes,
                return_window=self.return_window,
            )
            activities.extend(reconstructor.run(rows))
        return sort_raw_activities(activities)

    def resolved_day_markers(self) -> dict[str, DayMarkers]:
        return resolve_day_markers(self.day_markers, self.day_start)


def read_table(source: SourceFile) -> pd.DataFrame:
    """Load a CSV or Excel export as a frame of strings."""
    suffix = source.suffix
    if suffix not in SUPPORTED_SUFFIXES:
        raise TimesheetFormatError(f"Unsupported table file type: {source.name}")

    buffer = io.BytesIO(source.content)
    try:
        if suffix in EXCEL_SUFFIXES:
            frame = pd.read_excel(buffer, dtype=str, engine="openpyxl")
        else:
            frame = pd.read_csv(
                buffer,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                encoding="utf-8-sig",
            )
    except pd.errors.EmptyDataError:
        logger.warning("%s is empty", source.name)
        return pd.DataFrame(columns=list(REQUIRED_COLUMNS))

    frame = frame.rename(columns=_column_name).fillna("")
    missing = [name for name in REQUIRED_COLUMNS if name not in frame.columns]
    if missing:
        raise TimesheetFormatError(
            f"{source.name}: missing required column(s): {', '.join(missing)}"
        )
    return frame


def _column_name(column: object) -> str:
    if isinstance(column, (datetime, date)):
        return column.strftime("%Y-%m-%d")
    name = str(column).strip()
    # Excel date headers read as text come back as "2025-09-01 00:00:00".
    if len(name) > 10 and DATE_COLUMN_PATTERN.match(name[:10]) and name[10:] == " 00:00:00":
        return name[:10]
    return name


def date_columns(frame: pd.DataFrame) -> list[str]:
    return [str(col) for col in frame.columns if DATE_COLUMN_PATTERN.match(str(col))]


def frame_to_rows(frame: pd.DataFrame) -> list[TimesheetRow]:
    days = date_columns(frame)
    rows: list[TimesheetRow] = []
    for record in frame.to_dict(orient="records"):
        rows.append(
            TimesheetRow(
                task=_cell(record.get(TASK_COLUMN)),
                label=_cell(record.get(LABEL_COLUMN)),
                durations={day: _cell(record.get(day)) for day in days},
            )
        )
    return rows


def _cell(value: Optional[object]) -> str:
    if value is None:
        return ""
    return str(value).strip()
