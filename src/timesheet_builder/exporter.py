"""Render reconstructed activities as the monthly timesheet workbook."""

from __future__ import annotations

import logging
from datetime import date, time
from pathlib import Path
from typing import BinaryIO, Mapping, Optional, Sequence, Union

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.worksheet.worksheet import Worksheet

from .aggregation import group_by_date, sort_activities
from .errors import NothingToExportError
from .models import Activity, DayMarkers
from .timeutils import time_to_minutes

logger = logging.getLogger(__name__)

ACTIVITIES_SHEET = "Atividades"
TIMESHEET_SHEET = "Lancto Horas"
SUMMARY_SHEET = "Resumo Financeiro"
TIMESHEET_FIRST_ROW = 8

DEFAULT_COLLABORATOR = "Colaborador"

PRIMARY = "FF3B505A"
STRIPE = "FFFEF9E7"
HIGHLIGHT = "FFF4B942"

TITLE_FONT = Font(bold=True, size=14, color=PRIMARY)
HEADER_FONT = Font(bold=True, color="FFFFFFFF")
HEADER_FILL = PatternFill(fill_type="solid", start_color=PRIMARY, end_color=PRIMARY)
STRIPE_FILL = PatternFill(fill_type="solid", start_color=STRIPE, end_color=STRIPE)
HIGHLIGHT_FILL = PatternFill(fill_type="solid", start_color=HIGHLIGHT, end_color=HIGHLIGHT)
BOLD = Font(bold=True)
_THIN = Side(style="thin")
_LIGHT = Side(style="thin", color="FFD3D3D3")
HEADER_BORDER = Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN)
CELL_BORDER = Border(left=_LIGHT, right=_LIGHT, top=_LIGHT, bottom=_LIGHT)

DATE_FORMAT = "dd/mm/yyyy"
DAY_FORMAT = "dd/mm/yy, ddd"
CLOCK_FORMAT = "h:mm"
CURRENCY_FORMAT = '"R$" #,##0.00'

MONTH_NAMES = (
    "janeiro",
    "fevereiro",
    "março",
    "abril",
    "maio",
    "junho",
    "julho",
    "agosto",
    "setembro",
    "outubro",
    "novembro",
    "dezembro",
)


def build_workbook(
    activities: Sequence[Activity],
    day_markers: Mapping[str, DayMarkers],
    *,
    collaborator: Optional[str] = None,
) -> Workbook:
    """Build the three-sheet workbook: activity list, timesheet grid, summary."""
    if not activities:
        raise NothingToExportError()

    ordered = sort_activities(activities, "date", "asc")
    name = collaborator or ordered[0].collaborator or DEFAULT_COLLABORATOR
    month, year = ordered[0].date.month, ordered[0].date.year

    workbook = Workbook()
    _write_activities_sheet(workbook.active, ordered)
    last_row = _write_timesheet_sheet(
        workbook.create_sheet(TIMESHEET_SHEET), ordered, day_markers, name, month, year
    )
    _write_summary_sheet(
        workbook.create_sheet(SUMMARY_SHEET), name, month, year, last_row
    )
    return workbook


def export_workbook(
    activities: Sequence[Activity],
    day_markers: Mapping[str, DayMarkers],
    destination: Union[str, Path, BinaryIO],
    *,
    collaborator: Optional[str] = None,
) -> None:
    workbook = build_workbook(activities, day_markers, collaborator=collaborator)
    workbook.save(destination)
    logger.info("Exported %d activities", len(activities))


def default_export_filename(activities: Sequence[Activity]) -> str:
    if activities:
        first = sort_activities(activities, "date", "asc")[0].date
    else:
        first = date.today()
    return f"lancamento-{MONTH_NAMES[first.month - 1]}-{first.year}.xlsx"


def _write_header_block(ws: Worksheet, title: str, name: str, month: int, year: int) -> None:
    ws["A1"] = title
    ws["A1"].font = TITLE_FONT
    for row, (label, value) in enumerate(
        (("Periodo:", f"{month}/{year}"), ("Profissional:", name), ("Empresa:", name)),
        start=2,
    ):
        ws.cell(row=row, column=1, value=label).font = BOLD
        ws.cell(row=row, column=2, value=value)


def _write_activities_sheet(ws: Worksheet, activities: Sequence[Activity]) -> None:
    ws.title = ACTIVITIES_SHEET
    ws["A1"] = "Lista de Atividades Completas"
    ws["A1"].font = TITLE_FONT
    ws.merge_cells("A1:F1")

    headers = ["Colaborador", "Data Início", "Hora inicio", "Hora fim", "Tempo", "Tarefa"]
    for col, header in enumerate(headers, start=1):
        cell = ws.cell(row=3, column=col, value=header)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.border = HEADER_BORDER
        cell.alignment = Alignment(vertical="center", horizontal="left")

    for index, activity in enumerate(activities):
        row = 4 + index
        values = [
            activity.collaborator,
            activity.date,
            activity.start_time,
            activity.end_time,
            activity.duration,
            activity.task,
        ]
        for col, value in enumerate(values, start=1):
            cell = ws.cell(row=row, column=col, value=value)
            cell.border = CELL_BORDER
            if index % 2 == 0:
                cell.fill = STRIPE_FILL
        ws.cell(row=row, column=2).number_format = DATE_FORMAT

    for column, width in zip("ABCDEF", (20, 15, 12, 12, 10, 60)):
        ws.column_dimensions[column].width = width


def _write_timesheet_sheet(
    ws: Worksheet,
    activities: Sequence[Activity],
    day_markers: Mapping[str, DayMarkers],
    name: str,
    month: int,
    year: int,
) -> int:
    """Write one row per half-day and return the last row used."""
    _write_header_block(ws, "Lançamento de Horas de Serviços", name, month, year)

    top = ["", "Data", "Inicio", "Fim", "Total Horas", "Local", "", "Descrição Atividades",
           "Abonar Reembolso", "Final de Semana", "Reembolso Km"]
    bottom = ["", "", "", "", "", "#ID", "Nome", "", "", "", ""]
    for row, values in ((6, top), (7, bottom)):
        for col, value in enumerate(values, start=1):
            cell = ws.cell(row=row, column=col, value=value or None)
            cell.font = HEADER_FONT
            cell.fill = HEADER_FILL
    for column in "BCDEHIJK":
        ws.merge_cells(f"{column}6:{column}7")
    ws.merge_cells("F6:G6")

    row = TIMESHEET_FIRST_ROW
    for day_key, day_activities in sorted(group_by_date(activities).items()):
        day = day_activities[0].date
        markers = day_markers.get(day_key)
        weekend = day.weekday() >= 5

        if weekend or markers is None:
            _write_day_row(ws, row, day, weekend=weekend)
            ws.cell(row=row, column=5, value="0:00")
            row += 1
            continue

        first_row = row
        starts = [activity.start_minutes // 60 for activity in day_activities]
        if any(6 <= hour < 12 for hour in starts):
            _write_day_row(ws, row, day)
            _write_span(ws, row, markers.start, markers.lunch)
            row += 1
        if any(12 <= hour < 18 for hour in starts):
            _write_day_row(ws, row, day)
            _write_span(ws, row, markers.lunch_return, markers.end)
            row += 1
        if row == first_row:
            # Nothing started inside the working day.
            _write_day_row(ws, row, day)
            ws.cell(row=row, column=5, value="0:00")
            row += 1

    for column, width in zip("BCDEFGHIJK", (18, 10, 10, 12, 8, 20, 30, 18, 16, 15)):
        ws.column_dimensions[column].width = width
    return row - 1


def _write_day_row(ws: Worksheet, row: int, day: date, *, weekend: bool = False) -> None:
    ws.cell(row=row, column=2, value=day).number_format = DAY_FORMAT
    ws.cell(row=row, column=9, value="Não")
    ws.cell(row=row, column=10, value="Sim" if weekend else "Não")
    ws.cell(row=row, column=11, value=0)


def _write_span(ws: Worksheet, row: int, start: Optional[str], end: Optional[str]) -> None:
    if start:
        ws.cell(row=row, column=3, value=_clock_value(start)).number_format = CLOCK_FORMAT
    if end:
        ws.cell(row=row, column=4, value=_clock_value(end)).number_format = CLOCK_FORMAT
    if start and end:
        ws.cell(row=row, column=5, value=f"=D{row}-C{row}").number_format = CLOCK_FORMAT


def _clock_value(value: str) -> Union[time, str]:
    minutes = time_to_minutes(value)
    if minutes >= 24 * 60:
        return value
    return time(hour=minutes // 60, minute=minutes % 60)


def _write_summary_sheet(
    ws: Worksheet, name: str, month: int, year: int, last_timesheet_row: int
) -> None:
    _write_header_block(ws, "Resumo Financeiro Pagamento Serviços", name, month, year)

    ws["B9"] = "Pagamento Horas Serviço"
    ws["B9"].font = Font(bold=True, size=12)

    ws["B10"] = "Valor/Hora do Contrato"
    ws["C10"] = 0
    ws["C10"].number_format = CURRENCY_FORMAT

    ws["B11"] = "Qtd Total Horas/Homem"
    ws["C11"] = (
        f"=ROUND(SUM('{TIMESHEET_SHEET}'!E{TIMESHEET_FIRST_ROW}:E{last_timesheet_row})*24,2)"
    )
    ws["C11"].number_format = "#,##0.00"

    ws["B12"] = "Vlr Total Horas/Homem"
    ws["C12"] = "=C11*C10"
    ws["C12"].number_format = CURRENCY_FORMAT

    for label in ("B10", "B11", "B12"):
        ws[label].font = BOLD
    ws["C10"].fill = STRIPE_FILL
    ws["C11"].fill = STRIPE_FILL
    ws["C12"].fill = HIGHLIGHT_FILL
    ws["C12"].font = BOLD

    ws.column_dimensions["B"].width = 30
    ws.column_dimensions["C"].width = 20
