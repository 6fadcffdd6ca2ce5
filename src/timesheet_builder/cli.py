"""Command-line interface for the timesheet builder."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer

from .aggregation import SORT_KEYS, SORT_ORDERS
from .config import TimesheetSettings
from .errors import TimesheetError
from .exporter import default_export_filename
from .models import SourceFile
from .paths import get_db_path, get_export_dir
from .server_runner import run_dashboard
from .services import ActivityQuery, TimesheetServices

app = typer.Typer(help="Rebuild timesheets from time-tracking exports.")


def _services(
    db_path: Optional[Path], settings: Optional[TimesheetSettings] = None
) -> TimesheetServices:
    return TimesheetServices(db_path or get_db_path(), settings or TimesheetSettings())


def _fail(exc: Exception) -> None:
    typer.echo(f"Erro: {exc}", err=True)
    raise typer.Exit(code=1)


DbOption = typer.Option(
    None, "--db", path_type=Path, help="Location of the activity SQLite database."
)


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@app.command("import")
def import_files(
    files: List[Path] = typer.Argument(
        ..., exists=True, dir_okay=False, help="CSV, Excel or PDF exports."
    ),
    collaborator: Optional[str] = typer.Option(
        None, "--collaborator", "-c", help="Name recorded on every imported activity."
    ),
    day_start: Optional[str] = typer.Option(
        None, "--day-start", help="Start of the day when no marker is found (H:MM)."
    ),
    lunch_minutes: Optional[int] = typer.Option(
        None, "--lunch-minutes", min=0, help="Length of the lunch break in minutes."
    ),
    period: Optional[str] = typer.Option(
        None, "--period", help="Fallback month for PDFs without a period (M/YYYY)."
    ),
    db_path: Optional[Path] = DbOption,
) -> None:
    """Import one batch of files; nothing is stored if any file fails."""
    try:
        settings = TimesheetSettings.from_options(
            day_start=day_start,
            lunch_break_minutes=lunch_minutes,
            collaborator=collaborator,
            fallback_period=period,
        )
    except ValueError as exc:
        _fail(exc)
    services = _services(db_path, settings)
    result = services.import_files([SourceFile.from_path(path) for path in files], collaborator)
    typer.echo(result.message)
    if not result.success:
        raise typer.Exit(code=1)


@app.command("list")
def list_activities(
    date_filter: Optional[str] = typer.Option(None, "--date", help="Date or date prefix (YYYY-MM)."),
    task_filter: Optional[str] = typer.Option(None, "--task", help="Text contained in the task."),
    collaborator: Optional[str] = typer.Option(None, "--collaborator", help="Exact collaborator name."),
    sort_by: str = typer.Option("date", "--sort", help=f"One of: {', '.join(SORT_KEYS)}."),
    order: str = typer.Option("asc", "--order", help=f"One of: {', '.join(SORT_ORDERS)}."),
    hide_warnings: bool = typer.Option(False, "--hide-warnings", help="Do not print warnings."),
    db_path: Optional[Path] = DbOption,
) -> None:
    """List stored activities."""
    from .reporting import SummaryPrinter

    query = ActivityQuery(
        date_filter=date_filter,
        task_filter=task_filter,
        collaborator_filter=collaborator,
        sort_by=sort_by,
        order=order,
    )
    try:
        activities = _services(db_path).list_activities(query)
    except ValueError as exc:
        _fail(exc)
    SummaryPrinter(show_warnings=not hide_warnings).print_activities(activities)


@app.command()
def stats(
    overlaps: bool = typer.Option(False, "--overlaps", help="Also list overlapping activities."),
    db_path: Optional[Path] = DbOption,
) -> None:
    """Print totals and per-day hours."""
    from .reporting import SummaryPrinter

    services = _services(db_path)
    printer = SummaryPrinter()
    printer.print_statistics(services.statistics())
    printer.print_daily_totals(services.all_activities())
    if overlaps:
        print()
        printer.print_overlaps(services.overlaps())


@app.command()
def markers(db_path: Optional[Path] = DbOption) -> None:
    """Print the day markers recovered from imported labels."""
    from .reporting import SummaryPrinter

    SummaryPrinter().print_day_markers(_services(db_path).day_markers())


@app.command()
def add(
    date: str = typer.Argument(..., help="Date (YYYY-MM-DD)."),
    start_time: str = typer.Argument(..., help="Start time (H:MM)."),
    duration: str = typer.Argument(..., help="Duration (H:MM)."),
    task: str = typer.Argument(..., help="Task description."),
    collaborator: Optional[str] = typer.Option(None, "--collaborator", "-c"),
    db_path: Optional[Path] = DbOption,
) -> None:
    """Record an activity by hand."""
    try:
        activity = _services(db_path).add_activity(
            day=date,
            start_time=start_time,
            duration=duration,
            task=task,
            collaborator=collaborator,
        )
    except TimesheetError as exc:
        _fail(exc)
    typer.echo(f"Atividade criada: {activity.id}")


@app.command()
def edit(
    activity_id: str = typer.Argument(..., help="Id of the activity to change."),
    task: Optional[str] = typer.Option(None, "--task", help="New task description."),
    duration: Optional[str] = typer.Option(None, "--duration", help="New duration (H:MM)."),
    db_path: Optional[Path] = DbOption,
) -> None:
    """Change the task or the duration of an activity."""
    if task is None and duration is None:
        _fail(ValueError("Nothing to change: pass --task and/or --duration"))
    try:
        activity = _services(db_path).update_activity(activity_id, task=task, duration=duration)
    except TimesheetError as exc:
        _fail(exc)
    typer.echo(f"{activity.date_key} {activity.start_time}-{activity.end_time} {activity.task}")


@app.command()
def delete(
    activity_id: str = typer.Argument(..., help="Id of the activity to delete."),
    db_path: Optional[Path] = DbOption,
) -> None:
    """Delete one activity."""
    try:
        _services(db_path).delete_activity(activity_id)
    except TimesheetError as exc:
        _fail(exc)
    typer.echo("Atividade removida.")


@app.command()
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
    db_path: Optional[Path] = DbOption,
) -> None:
    """Delete every stored activity."""
    if not yes:
        typer.confirm("Remover todas as atividades?", abort=True)
    removed = _services(db_path).clear_activities()
    typer.echo(f"{removed} atividades removidas.")


@app.command()
def export(
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", path_type=Path, help="Destination .xlsx file."
    ),
    date_filter: Optional[str] = typer.Option(None, "--date", help="Only export matching dates."),
    db_path: Optional[Path] = DbOption,
) -> None:
    """Write the monthly timesheet workbook."""
    services = _services(db_path)
    activities = services.list_activities(ActivityQuery(date_filter=date_filter))
    destination = output or get_export_dir() / default_export_filename(activities)
    try:
        count = services.export(destination, activities)
    except TimesheetError as exc:
        _fail(exc)
    typer.echo(f"{count} atividades exportadas para {destination}")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the API."),
    port: int = typer.Option(
        8765, "--port", min=1, max=65535, help="TCP port for the API."
    ),
    db_path: Optional[Path] = DbOption,
    open_browser: bool = typer.Option(
        False,
        "--open-browser/--no-open-browser",
        help="Open the interactive API docs in your default browser.",
    ),
) -> None:
    """Serve the JSON API."""
    run_dashboard(
        host=host,
        port=port,
        db_path=db_path or get_db_path(),
        settings=TimesheetSettings(),
        open_browser=open_browser,
    )
