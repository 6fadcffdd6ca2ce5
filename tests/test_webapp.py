import inspect
import io

import pytest
from fastapi.testclient import TestClient
from openpyxl import load_workbook

from timesheet_builder.webapp import XLSX_MEDIA_TYPE, create_app


@pytest.fixture
def client(services):
    with TestClient(create_app(services=services)) as test_client:
        yield test_client


def upload(client, *files, collaborator="Maria"):
    return client.post(
        "/api/import",
        files=[("files", file) for file in files],
        data={"collaborator": collaborator},
    )


@pytest.fixture
def csv_file(week_csv):
    return (week_csv.name, week_csv.content, "text/csv")


def test_status(client, services):
    payload = client.get("/api/status").json()
    assert payload["database_path"] == str(services.db_path)
    assert payload["day_start"] == "8:00"
    assert payload["fallback_period"] == "9/2025"


def test_import_and_list(client, csv_file):
    response = upload(client, csv_file)
    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "activities_processed": 5,
        "message": "✓ 5 atividades extraídas com sucesso!",
    }

    listing = client.get("/api/activities", params={"date": "2025-09-01"}).json()
    assert listing["count"] == 3
    first = listing["activities"][0]
    assert (first["start_time"], first["end_time"], first["collaborator"]) == ("8:00", "11:00", "Maria")
    assert listing["activities"][1]["has_validation_issues"] is True


def test_failed_import_reports_and_persists_nothing(client, csv_file):
    response = upload(client, csv_file, ("relatorio.pdf", b"corrupt", "application/pdf"))
    assert response.status_code == 400
    assert response.json()["success"] is False
    assert client.get("/api/activities").json()["count"] == 0


def test_import_route_runs_off_the_event_loop(client):
    route = next(r for r in client.app.routes if getattr(r, "path", None) == "/api/import")
    assert not inspect.iscoroutinefunction(route.endpoint)


def test_list_rejects_unknown_sort(client):
    assert client.get("/api/activities", params={"sort_by": "color"}).status_code == 400


def test_create_update_delete(client):
    created = client.post(
        "/api/activities",
        json={"date": "2025-09-10", "start_time": "9:00", "duration": "1:00", "task": "Suporte"},
    )
    assert created.status_code == 201
    activity_id = created.json()["id"]

    patched = client.patch(f"/api/activities/{activity_id}", json={"duration": "2:15"})
    assert patched.status_code == 200
    assert patched.json()["end_time"] == "11:15"

    assert client.get(f"/api/activities/{activity_id}").json()["duration"] == "2:15"
    assert client.delete(f"/api/activities/{activity_id}").status_code == 204
    assert client.delete(f"/api/activities/{activity_id}").status_code == 404
    assert client.patch(f"/api/activities/{activity_id}", json={"task": "x"}).status_code == 404


def test_invalid_payloads(client):
    bad_time = client.post(
        "/api/activities",
        json={"date": "2025-09-10", "start_time": "9h", "duration": "1:00", "task": "Suporte"},
    )
    assert bad_time.status_code == 400

    extra = client.post(
        "/api/activities",
        json={
            "date": "2025-09-10",
            "start_time": "9:00",
            "duration": "1:00",
            "task": "Suporte",
            "billable": True,
        },
    )
    assert extra.status_code == 422

    created = client.post(
        "/api/activities",
        json={"date": "2025-09-10", "start_time": "9:00", "duration": "1:00", "task": "Suporte"},
    ).json()
    assert client.patch(f"/api/activities/{created['id']}", json={}).status_code == 400
    assert client.patch(f"/api/activities/{created['id']}", json={"task": " "}).status_code == 400


def test_statistics_markers_and_overlaps(client, csv_file):
    upload(client, csv_file)

    stats = client.get("/api/statistics").json()
    assert stats["total_activities"] == 5
    assert stats["unique_dates"] == 2

    markers = client.get("/api/day-markers").json()["day_markers"]
    assert markers[0] == {
        "date": "2025-09-01",
        "start": "8:00",
        "lunch": "12:00",
        "lunch_return": "13:00",
        "end": "18:00",
        "morning_duration": "4:00",
        "afternoon_duration": "5:00",
        "total_duration": "9:00",
    }
    assert client.get("/api/overlaps").json() == {"overlaps": []}


def test_export_download(client, csv_file):
    assert client.get("/api/export").status_code == 400

    upload(client, csv_file)
    response = client.get("/api/export")
    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX_MEDIA_TYPE
    assert "lancamento-setembro-2025.xlsx" in response.headers["content-disposition"]
    workbook = load_workbook(io.BytesIO(response.content))
    assert workbook.sheetnames[0] == "Atividades"


def test_clear(client, csv_file):
    upload(client, csv_file)
    assert client.delete("/api/activities").json() == {"deleted": 5}
