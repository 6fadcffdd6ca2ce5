"""Use cases of the timesheet builder, wired through an explicit context.

``TimesheetServices`` owns the parsers and knows where the database lives.
Callers (the CLI, the web app, tests) create one and pass it around instead
of reaching for shared global state.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date
from pathlib import Path
from typing import BinaryIO, Optional, Protocol, Sequence, Union

from . import aggregation
from .config import TimesheetSettings
from .db import (
    database_connection,
    delete_activity,
    delete_all_activities,
    fetch_activities,
    fetch_activity,
    fetch_day_markers,
    insert_activities,
    transaction,
    update_activity,
    upsert_day_markers,
)
from .errors import (
    ActivityNotFoundError,
    InvalidActivityError,
    NothingToExportError,
    TimesheetFormatError,
)
from .exporter import export_workbook
from .markers import resolve_day_markers
from .models import Activity, DayMarkers, SourceFile
from .pdf_parser import PdfTimesheetParser
from .table_parser import SUPPORTED_SUFFIXES, TableTimesheetParser

logger = logging.getLogger(__name__)

NO_ACTIVITIES_MESSAGE = "Nenhuma atividade foi encontrada nos arquivos"
UNKNOWN_ERROR_MESSAGE = "Erro desconhecido ao processar arquivos"


class TimesheetParser(Protocol):
    def parse(self, source: SourceFile, collaborator: str) -> list[Activity]:
        ...


@dataclass(slots=True)
class ImportResult:
    success: bool
    activities_processed: int
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(slots=True)
class ActivityQuery:
    date_filter: Optional[str] = None
    task_filter: Optional[str] = None
    collaborator_filter: Optional[str] = None
    sort_by: str = "date"
    order: str = "asc"


class TimesheetServices:
    """Dependency context for every timesheet operation."""

    def __init__(
        self,
        db_path: Path,
        settings: Optional[TimesheetSettings] = None,
        *,
        table_parser: Optional[TableTimesheetParser] = None,
        pdf_parser: Optional[TimesheetParser] = None,
    ) -> None:
        self.db_path = Path(db_path)
        self.settings = settings or TimesheetSettings()
        self.table_parser = table_parser or TableTimesheetParser(
            day_start=self.settings.day_start,
            lunch_break_minutes=self.settings.lunch_break_minutes,
            return_window=self.settings.return_window,
        )
        self.pdf_parser = pdf_parser or PdfTimesheetParser(
            day_start=self.settings.day_start,
            fallback_period=self.settings.fallback_period,
        )

    # Import -----------------------------------------------------------------

    def parser_for(self, source: SourceFile) -> TimesheetParser:
        if source.suffix == ".pdf":
            return self.pdf_parser
        if source.suffix in SUPPORTED_SUFFIXES:
            return self.table_parser
        raise TimesheetFormatError(f"Unsupported file type: {source.name}")

    def import_files(
        self, files: Sequence[SourceFile], collaborator: Optional[str] = None
    ) -> ImportResult:
        """Import a batch, picking the parser from each file's extension."""
        return self._run_batch(files, collaborator, self.parser_for)

    def import_batch(
        self,
        parser: TimesheetParser,
        files: Sequence[SourceFile],
        collaborator: Optional[str] = None,
    ) -> ImportResult:
        """Import a batch of files that all go through ``parser``."""
        return self._run_batch(files, collaborator, lambda _source: parser)

    def _run_batch(self, files, collaborator, choose_parser) -> ImportResult:
        name = collaborator or self.settings.default_collaborator
        # Put back when the batch is not persisted.
        known_markers = dict(self.table_parser.day_markers)
        try:
            batch: list[Activity] = []
            for source in files:
                batch.extend(choose_parser(source).parse(source, name))

            if not batch:
                self._restore_markers(known_markers)
                return ImportResult(False, 0, NO_ACTIVITIES_MESSAGE)

            with database_connection(self.db_path) as conn:
                with transaction(conn):
                    insert_activities(conn, batch)
                    upsert_day_markers(conn, self.table_parser.day_markers.values())
        except Exception as exc:
            logger.exception("Import of %d file(s) failed", len(files))
            self._restore_markers(known_markers)
            return ImportResult(False, 0, str(exc) or UNKNOWN_ERROR_MESSAGE)

        logger.info("Imported %d activities for %s", len(batch), name)
        return ImportResult(True, len(batch), f"✓ {len(batch)} atividades extraídas com sucesso!")

    def _restore_markers(self, known: dict[str, DayMarkers]) -> None:
        self.table_parser.day_markers.clear()
        self.table_parser.day_markers.update(known)

    # Queries ----------------------------------------------------------------

    def all_activities(self) -> list[Activity]:
        with database_connection(self.db_path) as conn:
            return fetch_activities(conn)

    def list_activities(self, query: Optional[ActivityQuery] = None) -> list[Activity]:
        query = query or ActivityQuery()
        activities = aggregation.filter_activities(
            self.all_activities(),
            date_filter=query.date_filter,
            task_filter=query.task_filter,
            collaborator_filter=query.collaborator_filter,
        )
        return aggregation.sort_activities(activities, query.sort_by, query.order)

    def get_activity(self, activity_id: str) -> Activity:
        with database_connection(self.db_path) as conn:
            activity = fetch_activity(conn, activity_id)
        if activity is None:
            raise ActivityNotFoundError(activity_id)
        return activity

    def statistics(self) -> aggregation.ActivityStatistics:
        return aggregation.compute_statistics(self.all_activities())

    def overlaps(self) -> list[tuple[Activity, Activity]]:
        return aggregation.detect_overlaps(self.all_activities())

    def day_markers(self) -> dict[str, DayMarkers]:
        with database_connection(self.db_path) as conn:
            stored = fetch_day_markers(conn)
        return resolve_day_markers(stored, self.settings.day_start)

    # Changes ----------------------------------------------------------------

    def add_activity(
        self,
        *,
        day: Union[date, str],
        start_time: str,
        duration: str,
        task: str,
        collaborator: Optional[str] = None,
    ) -> Activity:
        if not task or not task.strip():
            raise InvalidActivityError("Task cannot be empty")
        activity = Activity.create(
            date=day,
            start_time=start_time,
            duration=duration,
            task=task.strip(),
            collaborator=collaborator or self.settings.default_collaborator,
        )
        with database_connection(self.db_path) as conn:
            insert_activities(conn, [activity])
        return activity

    def update_activity(
        self,
        activity_id: str,
        *,
        task: Optional[str] = None,
        duration: Optional[str] = None,
    ) -> Activity:
        with database_connection(self.db_path) as conn:
            activity = fetch_activity(conn, activity_id)
            if activity is None:
                raise ActivityNotFoundError(activity_id)
            if task is not None:
                activity.update_task(task)
            if duration is not None:
                activity.update_duration(duration)
            update_activity(conn, activity)
        return activity

    def delete_activity(self, activity_id: str) -> None:
        with database_connection(self.db_path) as conn:
            if not delete_activity(conn, activity_id):
                raise ActivityNotFoundError(activity_id)

    def clear_activities(self) -> int:
        with database_connection(self.db_path) as conn:
            return delete_all_activities(conn)

    # Export -----------------------------------------------------------------

    def export(
        self,
        destination: Union[str, Path, BinaryIO],
        activities: Optional[Sequence[Activity]] = None,
    ) -> int:
        """Write the workbook for ``activities`` (default: everything stored)."""
        to_export = list(activities) if activities is not None else self.all_activities()
        if not to_export:
            raise NothingToExportError()
        export_workbook(to_export, self.day_markers(), destination)
        return len(to_export)
