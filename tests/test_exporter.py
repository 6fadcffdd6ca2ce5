import io
from datetime import datetime, time

import pytest
from openpyxl import load_workbook

from timesheet_builder.errors import NothingToExportError
from timesheet_builder.exporter import (
    build_workbook,
    default_export_filename,
    export_workbook,
)
from timesheet_builder.models import Activity, DayMarkers


def make(day, start, duration, task="Tarefa"):
    return Activity.create(
        date=day, start_time=start, duration=duration, task=task, collaborator="Ana Souza"
    )


@pytest.fixture
def activities():
    return [
        make("2025-09-06", "9:00", "1:00", "06 - 01 - Sábado"),
        make("2025-09-01", "13:00", "2:00", "01 - 03 - Tarde"),
        make("2025-09-01", "8:00", "3:00", "01 - 01 - Manhã"),
        make("2025-09-02", "8:00", "1:00", "02 - 01 - Sem marcadores"),
    ]


@pytest.fixture
def markers():
    return {
        "2025-09-01": DayMarkers(
            date="2025-09-01", start="8:00", lunch="12:00", lunch_return="13:00", end="17:30"
        ),
        "2025-09-06": DayMarkers(date="2025-09-06", start="9:00"),
    }


def reload(activities, markers):
    buffer = io.BytesIO()
    export_workbook(activities, markers, buffer)
    return load_workbook(io.BytesIO(buffer.getvalue()))


def test_sheet_names(activities, markers):
    assert reload(activities, markers).sheetnames == [
        "Atividades",
        "Lancto Horas",
        "Resumo Financeiro",
    ]


def test_activity_sheet_is_sorted(activities, markers):
    ws = reload(activities, markers)["Atividades"]
    assert [cell.value for cell in ws[3]] == [
        "Colaborador",
        "Data Início",
        "Hora inicio",
        "Hora fim",
        "Tempo",
        "Tarefa",
    ]
    assert [ws.cell(row=row, column=6).value for row in range(4, 8)] == [
        "01 - 01 - Manhã",
        "01 - 03 - Tarde",
        "02 - 01 - Sem marcadores",
        "06 - 01 - Sábado",
    ]
    assert ws["A4"].value == "Ana Souza"
    assert ws["B4"].value == datetime(2025, 9, 1)
    assert (ws["C4"].value, ws["D4"].value, ws["E4"].value) == ("8:00", "11:00", "3:00")


def test_timesheet_rows(activities, markers):
    ws = reload(activities, markers)["Lancto Horas"]

    assert ws["B2"].value == "9/2025"
    assert ws["B3"].value == "Ana Souza"

    # Monday: morning and afternoon rows from the markers
    assert ws["B8"].value == datetime(2025, 9, 1)
    assert (ws["C8"].value, ws["D8"].value, ws["E8"].value) == (time(8, 0), time(12, 0), "=D8-C8")
    assert (ws["C9"].value, ws["D9"].value, ws["E9"].value) == (time(13, 0), time(17, 30), "=D9-C9")

    # Weekday without markers
    assert ws["B10"].value == datetime(2025, 9, 2)
    assert ws["C10"].value is None
    assert ws["E10"].value == "0:00"
    assert ws["J10"].value == "Não"

    # Weekend, even with markers
    assert ws["B11"].value == datetime(2025, 9, 6)
    assert ws["E11"].value == "0:00"
    assert ws["J11"].value == "Sim"
    assert ws["B12"].value is None


def test_summary_formula_covers_timesheet_rows(activities, markers):
    ws = reload(activities, markers)["Resumo Financeiro"]
    assert ws["C10"].value == 0
    assert ws["C11"].value == "=ROUND(SUM('Lancto Horas'!E8:E11)*24,2)"
    assert ws["C12"].value == "=C11*C10"


def test_span_without_end_marker_has_no_total():
    activities = [make("2025-09-03", "14:00", "1:00")]
    markers = {"2025-09-03": DayMarkers(date="2025-09-03", start="8:00", lunch="12:00", lunch_return="13:00")}
    ws = build_workbook(activities, markers)["Lancto Horas"]
    assert ws["C8"].value == time(13, 0)
    assert ws["D8"].value is None
    assert ws["E8"].value is None


def test_weekday_outside_working_hours_gets_placeholder_row():
    activities = [make("2025-09-03", "19:00", "1:00"), make("2025-09-04", "9:00", "1:00")]
    markers = {
        "2025-09-03": DayMarkers(date="2025-09-03", start="8:00", end="17:00"),
        "2025-09-04": DayMarkers(date="2025-09-04", start="8:00", lunch="12:00"),
    }
    ws = build_workbook(activities, markers)["Lancto Horas"]

    assert ws["B8"].value == datetime(2025, 9, 3)
    assert ws["C8"].value is None
    assert ws["E8"].value == "0:00"
    assert ws["J8"].value == "Não"
    assert ws["B9"].value == datetime(2025, 9, 4)
    assert ws["E9"].value == "=D9-C9"


def test_export_to_file(tmp_path, activities, markers):
    destination = tmp_path / default_export_filename(activities)
    export_workbook(activities, markers, destination)
    assert destination.name == "lancamento-setembro-2025.xlsx"
    assert load_workbook(destination)["Atividades"]["A1"].value == "Lista de Atividades Completas"


def test_nothing_to_export():
    with pytest.raises(NothingToExportError, match="Não há atividades para exportar"):
        build_workbook([], {})
