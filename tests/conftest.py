import pytest

from timesheet_builder.config import TimesheetSettings
from timesheet_builder.models import SourceFile
from timesheet_builder.services import TimesheetServices

WEEK_CSV = (
    "Entrada de tempo,Etiquetas,2025-09-01,2025-09-02\n"
    "Expediente,inicio 8:00 almoco 12:00 retorno 13:00 fim 18:00,,\n"
    "01 - 01 - Análise,,3:00,\n"
    "01 - 02 - Desenvolvimento,,2:00,\n"
    "01 - 03 - Testes,,3:00,\n"
    "02 - 01 - Revisão,,,1.5\n"
    "02 - 02 - Documentação,,,0:45\n"
)


@pytest.fixture
def week_csv():
    return SourceFile(name="semana.csv", content=WEEK_CSV.encode("utf-8"))


@pytest.fixture
def services(tmp_path):
    return TimesheetServices(tmp_path / "activities.sqlite3", TimesheetSettings())
