"""
Importer blueprint endpoints: health, validate/execute uploads, and the audit trail API.
"""

from __future__ import annotations

import time
from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user
from sqlalchemy.exc import NoResultFound

from config.monitoring import ImporterMonitoring
from timesheet_app.importer.contracts import CONTRACTS, coerce_entity_kind
from timesheet_app.importer.errors import ImporterError
from timesheet_app.importer.pipeline.decisions import parse_decisions
from timesheet_app.importer.pipeline.run_service import ImportRunService, RunFilters, serialize_run
from timesheet_app.importer.pipeline.workflow import execute_upload, validate_upload
from timesheet_app.utils.importer import is_importer_enabled
from timesheet_app.utils.permissions import has_permission

from .utils import (
    IMPORTER_EXTENSION_KEY,
    get_import_settings,
    get_rule_set,
    max_upload_bytes,
    read_upload,
    upload_display_name,
)

importer_blueprint = Blueprint("importer", __name__, url_prefix="/importer")

_run_service = ImportRunService()


@importer_blueprint.get("/health")
def importer_healthcheck():
    """
    Lightweight health endpoint proving the importer blueprint mounted correctly.
    """
    importer_state = current_app.extensions.get(IMPORTER_EXTENSION_KEY, {})
    return (
        jsonify(
            {
                "status": "ok",
                "enabled": importer_state.get("enabled", False),
                "entity_kinds": [kind.value for kind in CONTRACTS],
            }
        ),
        200,
    )


def _json_error(message: str, status: HTTPStatus):
    return jsonify({"error": message}), status


def _ensure_importer_enabled_api():
    if not is_importer_enabled(current_app):
        return _json_error("Importer is disabled.", HTTPStatus.NOT_FOUND)
    return None


def _ensure_authenticated_api():
    if not current_user.is_authenticated:
        return _json_error("Authentication required.", HTTPStatus.UNAUTHORIZED)
    return None


def _ensure_manage_imports_permission():
    if not has_permission(current_user, "manage_imports"):
        return _json_error("Missing manage_imports permission.", HTTPStatus.FORBIDDEN)
    return None


def _guard_request():
    return _ensure_importer_enabled_api() or _ensure_authenticated_api() or _ensure_manage_imports_permission()


def _parse_filters():
    raw = request.args
    return RunFilters.coerce(
        page=raw.get("page"),
        limit=raw.get("limit"),
        statuses=_split_csv(raw.get("status")),
        entity_kinds=_split_csv(raw.get("entity_kind")),
        default_limit=current_app.config.get("IMPORTER_LOGS_PAGE_SIZE", 20),
        max_limit=current_app.config.get("IMPORTER_LOGS_MAX_PAGE_SIZE", 100),
    )


def _split_csv(value: str | None):
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _read_request_upload():
    file_storage = request.files.get("file")
    data = read_upload(file_storage, max_bytes=max_upload_bytes(current_app))
    kind = coerce_entity_kind(request.form.get("entity_kind"))
    return file_storage, data, kind


@importer_blueprint.post("/validate")
def importer_validate():
    guard_response = _guard_request()
    if guard_response:
        return guard_response

    start_time = time.perf_counter()
    try:
        _, data, kind = _read_request_upload()
        report = validate_upload(
            data,
            kind,
            rule_set=get_rule_set(current_app, kind),
            settings=get_import_settings(current_app),
        )
    except OverflowError as exc:
        ImporterMonitoring.record_upload(
            action="validate", status="too_large", duration_seconds=time.perf_counter() - start_time
        )
        return _json_error(str(exc), HTTPStatus.REQUEST_ENTITY_TOO_LARGE)
    except (ValueError, ImporterError) as exc:
        ImporterMonitoring.record_upload(
            action="validate", status="invalid_request", duration_seconds=time.perf_counter() - start_time
        )
        return _json_error(str(exc), HTTPStatus.BAD_REQUEST)
    except Exception as exc:  # pragma: no cover - defensive logging
        current_app.logger.exception("Importer validation failed.", exc_info=exc)
        ImporterMonitoring.record_upload(
            action="validate", status="error", duration_seconds=time.perf_counter() - start_time
        )
        return _json_error("Failed to validate upload.", HTTPStatus.INTERNAL_SERVER_ERROR)

    duration = time.perf_counter() - start_time
    ImporterMonitoring.record_upload(action="validate", status="success", duration_seconds=duration)
    payload = report.to_dict()
    current_app.logger.info(
        "Importer upload validated",
        extra={
            "importer_entity_kind": kind.value,
            "importer_total_rows": payload["totalRows"],
            "importer_error_rows": payload["errorRows"],
            "importer_duplicate_rows": payload["duplicateRows"],
            "importer_response_time_ms": round(duration * 1000, 2),
            "user_id": current_user.id,
        },
    )
    return jsonify(payload), HTTPStatus.OK


@importer_blueprint.post("/execute")
def importer_execute():
    guard_response = _guard_request()
    if guard_response:
        return guard_response

    start_time = time.perf_counter()
    try:
        file_storage, data, kind = _read_request_upload()
        decisions = parse_decisions(request.form.get("decisions"))
        summary = execute_upload(
            data,
            kind,
            decisions,
            file_name=upload_display_name(file_storage.filename),
            actor_id=current_user.id,
            rule_set=get_rule_set(current_app, kind),
            settings=get_import_settings(current_app),
        )
    except OverflowError as exc:
        ImporterMonitoring.record_upload(
            action="execute", status="too_large", duration_seconds=time.perf_counter() - start_time
        )
        return _json_error(str(exc), HTTPStatus.REQUEST_ENTITY_TOO_LARGE)
    except (ValueError, ImporterError) as exc:
        ImporterMonitoring.record_upload(
            action="execute", status="invalid_request", duration_seconds=time.perf_counter() - start_time
        )
        return _json_error(str(exc), HTTPStatus.BAD_REQUEST)
    except Exception as exc:
        current_app.logger.exception("Importer execution failed.", exc_info=exc)
        ImporterMonitoring.record_upload(
            action="execute", status="error", duration_seconds=time.perf_counter() - start_time
        )
        return _json_error("Import failed due to an unexpected error.", HTTPStatus.INTERNAL_SERVER_ERROR)

    duration = time.perf_counter() - start_time
    ImporterMonitoring.record_upload(action="execute", status="success", duration_seconds=duration)
    _run_service.record_execution(
        current_user.id,
        summary.run_id,
        entity_kind=kind.value,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )
    current_app.logger.info(
        "Importer run executed",
        extra={
            "importer_run_id": summary.run_id,
            "importer_entity_kind": kind.value,
            "importer_status": summary.status.value,
            "importer_response_time_ms": round(duration * 1000, 2),
            "user_id": current_user.id,
        },
    )
    return jsonify(summary.to_dict()), HTTPStatus.OK


@importer_blueprint.get("/runs")
def importer_runs_list():
    guard_response = _guard_request()
    if guard_response:
        return guard_response

    try:
        filters = _parse_filters()
    except ValueError as exc:
        ImporterMonitoring.record_runs_list(duration_seconds=0.0, status="invalid_request")
        return _json_error(str(exc), HTTPStatus.BAD_REQUEST)

    start_time = time.perf_counter()
    try:
        result = _run_service.list_runs(filters)
    except Exception as exc:  # pragma: no cover - defensive logging
        current_app.logger.exception("Importer runs list failed.", exc_info=exc)
        ImporterMonitoring.record_runs_list(duration_seconds=time.perf_counter() - start_time, status="error")
        return _json_error("Failed to load runs.", HTTPStatus.INTERNAL_SERVER_ERROR)

    duration = time.perf_counter() - start_time
    ImporterMonitoring.record_runs_list(duration_seconds=duration, status="success")

    _run_service.record_audit_view(
        current_user.id,
        run_id=None,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )

    response_payload = {
        "runs": [serialize_run(run) for run in result.items],
        "pagination": result.pagination(),
    }
    current_app.logger.info(
        "Importer runs list retrieved",
        extra={
            "importer_run_count": len(result.items),
            "importer_total_runs": result.total,
            "importer_response_time_ms": round(duration * 1000, 2),
            "user_id": current_user.id,
        },
    )
    return jsonify(response_payload), HTTPStatus.OK


@importer_blueprint.get("/runs/<int:run_id>")
def importer_run_detail(run_id: int):
    guard_response = _guard_request()
    if guard_response:
        return guard_response

    start_time = time.perf_counter()
    try:
        run = _run_service.get_run(run_id)
    except NoResultFound:
        ImporterMonitoring.record_runs_detail(duration_seconds=time.perf_counter() - start_time, status="not_found")
        return _json_error(f"Import run {run_id} not found.", HTTPStatus.NOT_FOUND)

    duration = time.perf_counter() - start_time
    ImporterMonitoring.record_runs_detail(duration_seconds=duration, status="success")
    payload = serialize_run(run)

    _run_service.record_audit_view(
        current_user.id,
        run_id=run_id,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )
    current_app.logger.info(
        "Importer run detail accessed",
        extra={
            "importer_run_id": run_id,
            "importer_status": payload["status"],
            "importer_entity_kind": payload["entityKind"],
            "importer_response_time_ms": round(duration * 1000, 2),
            "user_id": current_user.id,
        },
    )
    return jsonify(payload), HTTPStatus.OK


@importer_blueprint.get("/runs/stats")
def importer_runs_stats():
    guard_response = _guard_request()
    if guard_response:
        return guard_response

    try:
        filters = _parse_filters()
    except ValueError as exc:
        ImporterMonitoring.record_runs_stats(duration_seconds=0.0, status="invalid_request")
        return _json_error(str(exc), HTTPStatus.BAD_REQUEST)

    start_time = time.perf_counter()
    stats = _run_service.get_stats(filters)
    ImporterMonitoring.record_runs_stats(duration_seconds=time.perf_counter() - start_time, status="success")
    return jsonify(stats.to_dict()), HTTPStatus.OK
