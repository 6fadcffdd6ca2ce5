import fitz

from timesheet_builder.models import SourceFile
from timesheet_builder.pdf_parser import (
    PdfTimesheetParser,
    extract_activities_from_text,
    extract_pdf_text,
    resolve_period,
)

REPORT = (
    "Relatório de tempo Período: 1 set. 2025 - 30 set. 2025 "
    "02 - 01 - Revisão de código Não Projeto Alfa 1:00 "
    "01 - 01 - Reunião de kickoff Sim Projeto Alfa 1:30 "
    "01 - 02 - Especificação   técnica - Não Projeto Beta 2:15\n"
)


def test_resolve_period():
    assert resolve_period("Período: 1 out. 2024 - 31 out. 2024") == (10, 2024)
    assert resolve_period("sem cabeçalho") == (9, 2025)
    assert resolve_period("sem cabeçalho", (3, 2026)) == (3, 2026)


def test_primary_pattern_accumulates_per_day():
    activities = extract_activities_from_text(REPORT)

    assert [(a.date, a.start_time, a.duration, a.task) for a in activities] == [
        ("2025-09-01", "8:00", "1:30", "01 - 01 - Reunião de kickoff"),
        ("2025-09-01", "9:30", "2:15", "01 - 02 - Especificação técnica"),
        ("2025-09-02", "8:00", "1:00", "02 - 01 - Revisão de código"),
    ]
    assert all(a.warnings == [] for a in activities)


def test_line_fallback_strips_tail():
    text = "Período: 5 nov. 2025\n3 - 1 - Suporte ao cliente Sim Projeto Alfa 1:15\nrodapé\n"
    activities = extract_activities_from_text(text)

    assert [(a.date, a.start_time, a.duration, a.task) for a in activities] == [
        ("2025-11-03", "8:00", "1:15", "03 - 01 - Suporte ao cliente"),
    ]


def test_no_activities_in_text():
    assert extract_activities_from_text("nada aqui") == []


def test_custom_day_start():
    activities = extract_activities_from_text(REPORT, day_start="9:00")
    assert activities[0].start_time == "9:00"


def make_pdf(*lines):
    doc = fitz.open()
    page = doc.new_page()
    for index, line in enumerate(lines):
        page.insert_text((72, 72 + 20 * index), line)
    content = doc.tobytes()
    doc.close()
    return content


def test_extract_pdf_text_flattens_page():
    content = make_pdf("01 - 01 - Relatorio", "mensal")
    assert extract_pdf_text(content) == "01 - 01 - Relatorio mensal\n"


def test_pdf_parser_reads_generated_report():
    content = make_pdf(
        "01 - 01 - Relatorio mensal Sim Projeto X 2:00",
        "02 - 01 - Ajustes Sim Projeto X 1:30",
    )
    parser = PdfTimesheetParser(fallback_period=(10, 2025))
    activities = parser.parse(SourceFile(name="relatorio.pdf", content=content), "Ana")

    assert [(a.date_key, a.start_time, a.duration, a.task) for a in activities] == [
        ("2025-10-01", "8:00", "2:00", "01 - 01 - Relatorio mensal"),
        ("2025-10-02", "8:00", "1:30", "02 - 01 - Ajustes"),
    ]
    assert all(a.collaborator == "Ana" for a in activities)
