from __future__ import annotations

import io
import json

from timesheet_app.models import AdminLog, Person, TimeEntry, db
from timesheet_app.models.importer.schema import ImportRowError, ImportRun, ImportRunStatus

PERSON_CSV = (
    "Employee ID,Name,Email,Role,Position,Is Active\n"
    "E1,Alice,a@x.com,ARCHITECT,,true\n"
    "E2,Bob,bob@example.com,ASSOCIATE,Designer,\n"
    "E3,,not-an-email,ARCHITECT,,\n"
)


def _upload(body: str | bytes, *, filename: str = "people.csv", entity_kind: str = "PERSON", **form):
    data = body.encode("utf-8") if isinstance(body, str) else body
    payload = {"file": (io.BytesIO(data), filename), "entity_kind": entity_kind}
    payload.update(form)
    return payload


def test_validate_requires_authentication(importer_app, client):
    response = client.post("/importer/validate", data=_upload(PERSON_CSV), content_type="multipart/form-data")
    assert response.status_code == 401


def test_validate_reports_errors_and_duplicates(logged_in_admin, person_factory):
    person_factory("E1", email="e1@example.com")

    response = logged_in_admin.post(
        "/importer/validate", data=_upload(PERSON_CSV), content_type="multipart/form-data"
    )

    assert response.status_code == 200, response.get_json()
    payload = response.get_json()
    assert payload["totalRows"] == 3
    assert payload["validRows"] == 1
    assert payload["errorRows"] == 1
    assert payload["duplicateRows"] == 1
    assert payload["errors"][0]["rowNumber"] == 3
    assert payload["duplicates"][0]["conflictFields"] == ["employeeId"]
    assert payload["duplicates"][0]["existingData"]["email"] == "e1@example.com"
    assert payload["preview"][0] == {
        "rowNumber": 1,
        "employeeId": "E1",
        "name": "Alice",
        "email": "a@x.com",
        "role": "ARCHITECT",
        "position": None,
        "isActive": True,
    }
    # Validation never writes.
    assert Person.query.count() == 1
    assert ImportRun.query.count() == 0


def test_validate_accepts_lower_case_entity_kind(logged_in_admin):
    response = logged_in_admin.post(
        "/importer/validate",
        data=_upload("Project Code,Name,Start Date\nP1,Library,1/1/2024\n", filename="p.csv", entity_kind="project"),
        content_type="multipart/form-data",
    )
    assert response.status_code == 200
    assert response.get_json()["validRows"] == 1


def test_validate_rejects_missing_file(logged_in_admin):
    response = logged_in_admin.post(
        "/importer/validate", data={"entity_kind": "PERSON"}, content_type="multipart/form-data"
    )
    assert response.status_code == 400
    assert response.get_json()["error"] == "No file uploaded."


def test_validate_rejects_non_csv_extension(logged_in_admin):
    response = logged_in_admin.post(
        "/importer/validate", data=_upload(PERSON_CSV, filename="people.xlsx"), content_type="multipart/form-data"
    )
    assert response.status_code == 400
    assert "only CSV" in response.get_json()["error"]


def test_validate_rejects_unknown_entity_kind(logged_in_admin):
    response = logged_in_admin.post(
        "/importer/validate", data=_upload(PERSON_CSV, entity_kind="INVOICE"), content_type="multipart/form-data"
    )
    assert response.status_code == 400
    assert "INVOICE" in response.get_json()["error"]


def test_validate_rejects_unusable_header(logged_in_admin):
    response = logged_in_admin.post(
        "/importer/validate", data=_upload("Colour,Shape\nteal,square\n"), content_type="multipart/form-data"
    )
    assert response.status_code == 400
    assert "Missing required columns" in response.get_json()["error"]


def test_validate_rejects_oversized_upload(logged_in_admin, importer_app, monkeypatch):
    monkeypatch.setitem(importer_app.config, "IMPORTER_MAX_UPLOAD_MB", 1)
    body = b"Employee ID,Name,Email,Role\n" + b"x" * (1024 * 1024 + 10)

    response = logged_in_admin.post(
        "/importer/validate", data=_upload(body), content_type="multipart/form-data"
    )

    assert response.status_code == 413


def test_execute_imports_rows_and_records_audit(logged_in_admin, admin_user, person_factory, project_factory):
    person_factory("E1")
    project_factory("P1")
    body = (
        "Employee ID,Project Code,Stage ID,Date,Hours,Description\n"
        "E1,P1,,15/1/2024,7.5,Drawings\n"
        "E1,P1,,16/1/2024,8,Site visit\n"
        "E9,P1,,17/1/2024,8,Unknown person\n"
    )

    response = logged_in_admin.post(
        "/importer/execute",
        data=_upload(body, filename="week 3.csv", entity_kind="TIME_ENTRY"),
        content_type="multipart/form-data",
    )

    assert response.status_code == 200, response.get_json()
    payload = response.get_json()
    assert payload["status"] == "PARTIAL"
    assert payload["totalRows"] == 3
    assert payload["successRows"] == 2
    assert payload["errorRows"] == 1
    assert payload["message"] == "Import completed. 2 rows imported successfully, 1 rows failed."
    assert TimeEntry.query.count() == 2

    run = db.session.get(ImportRun, payload["importId"])
    assert run.actor_id == admin_user.id
    assert run.file_name == "week_3.csv"
    assert run.status is ImportRunStatus.PARTIAL
    assert ImportRowError.query.filter_by(run_id=run.id).count() == 1

    log = AdminLog.query.filter_by(action="IMPORT_RUN_EXECUTED").one()
    assert json.loads(log.details) == {"run_id": run.id, "entity_kind": "TIME_ENTRY"}


def test_execute_applies_decisions(logged_in_admin, person_factory):
    person_factory("E1", name="Stored", email="e1@example.com")
    body = "Employee ID,Name,Email,Role\nE1,Replaced,e1@example.com,DIRECTOR\n"

    response = logged_in_admin.post(
        "/importer/execute",
        data=_upload(body, decisions=json.dumps({"1": "replace"})),
        content_type="multipart/form-data",
    )

    assert response.status_code == 200
    assert response.get_json()["status"] == "SUCCESS"
    assert Person.query.one().name == "Replaced"


def test_execute_rejects_malformed_decisions(logged_in_admin):
    response = logged_in_admin.post(
        "/importer/execute",
        data=_upload(PERSON_CSV, decisions="{oops"),
        content_type="multipart/form-data",
    )

    assert response.status_code == 400
    assert "JSON" in response.get_json()["error"]
    assert ImportRun.query.count() == 0


def test_execute_disabled_importer_returns_404(logged_in_admin, importer_app):
    importer_app.config["IMPORTER_ENABLED"] = False
    response = logged_in_admin.post(
        "/importer/execute", data=_upload(PERSON_CSV), content_type="multipart/form-data"
    )
    assert response.status_code == 404
