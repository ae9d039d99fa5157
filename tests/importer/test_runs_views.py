from __future__ import annotations

from timesheet_app.models import AdminLog
from timesheet_app.models.importer.schema import EntityKind, ImportRunStatus


def test_runs_list_requires_authentication(importer_app, client):
    response = client.get("/importer/runs")
    assert response.status_code == 401


def test_runs_list_requires_permission(importer_app, client, test_user):
    client.post("/login", data={"username": "testuser", "password": "testpass123"})
    response = client.get("/importer/runs")
    assert response.status_code == 403


def test_runs_list_allows_role_with_manage_imports(importer_app, client, import_manager_user):
    client.post("/login", data={"username": "importer", "password": "importpass123"})
    response = client.get("/importer/runs")
    assert response.status_code == 200


def test_runs_list_disabled_importer_returns_404(importer_app, logged_in_admin):
    importer_app.config["IMPORTER_ENABLED"] = False
    response = logged_in_admin.get("/importer/runs")
    assert response.status_code == 404


def test_runs_list_success(importer_app, logged_in_admin, run_factory, admin_user):
    run_factory(entity_kind=EntityKind.PERSON, started_offset_minutes=10, actor_id=admin_user.id)
    run_factory(
        entity_kind=EntityKind.TIME_ENTRY,
        status=ImportRunStatus.PARTIAL,
        error_messages=((3, "Referenced records not found: project code 'P9'."),),
    )

    response = logged_in_admin.get("/importer/runs?page=1&limit=20")
    assert response.status_code == 200, response.get_json()
    payload = response.get_json()
    assert payload["pagination"] == {"page": 1, "limit": 20, "total": 2, "pages": 1}
    first, second = payload["runs"]
    assert first["entityKind"] == "TIME_ENTRY"
    assert first["errors"][0]["rowNumber"] == 3
    assert second["actor"]["username"] == "admin"

    assert AdminLog.query.filter_by(action="IMPORT_RUN_VIEW").count() == 1


def test_runs_list_rejects_bad_pagination(importer_app, logged_in_admin):
    response = logged_in_admin.get("/importer/runs?page=zero")
    assert response.status_code == 400
    assert "error" in response.get_json()


def test_run_detail(importer_app, logged_in_admin, run_factory):
    run = run_factory(
        entity_kind=EntityKind.PROJECT,
        status=ImportRunStatus.FAILED,
        success_rows=0,
        error_messages=((2, "second"), (1, "first")),
    )
    response = logged_in_admin.get(f"/importer/runs/{run.id}")
    assert response.status_code == 200
    detail = response.get_json()
    assert detail["id"] == run.id
    assert [error["message"] for error in detail["errors"]] == ["first", "second"]
    assert AdminLog.query.filter_by(action="IMPORT_RUN_DETAIL_VIEW").count() == 1


def test_run_detail_not_found(importer_app, logged_in_admin):
    response = logged_in_admin.get("/importer/runs/4242")
    assert response.status_code == 404


def test_run_stats(importer_app, logged_in_admin, run_factory):
    run_factory(entity_kind=EntityKind.PERSON, status=ImportRunStatus.SUCCESS)
    run_factory(entity_kind=EntityKind.PERSON, status=ImportRunStatus.FAILED, success_rows=0)
    response = logged_in_admin.get("/importer/runs/stats")
    assert response.status_code == 200
    stats = response.get_json()
    assert stats["total"] == 2
    assert stats["statuses"]["SUCCESS"] == 1
    assert stats["entityKinds"]["PERSON"] == 2


def test_health_reports_entity_kinds(importer_app, client):
    response = client.get("/importer/health")
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["enabled"] is True
    assert payload["entity_kinds"] == ["PERSON", "PROJECT", "TASK_CATEGORY", "TIME_ENTRY"]
