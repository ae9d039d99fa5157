"""
Service helpers for querying the import audit trail.

Runs are listed newest first with their row errors nested, so the audit
views and CLI share one pagination and serialization path.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from sqlalchemy import and_, func
from sqlalchemy.exc import NoResultFound
from sqlalchemy.orm import Session, selectinload

from timesheet_app.models import AdminLog, User, db
from timesheet_app.models.importer.schema import EntityKind, ImportRun, ImportRunStatus

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class RunFilters:
    """Canonical set of filter options applied to import run queries."""

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_SIZE
    statuses: tuple[ImportRunStatus, ...] = field(default_factory=tuple)
    entity_kinds: tuple[EntityKind, ...] = field(default_factory=tuple)

    @classmethod
    def coerce(
        cls,
        *,
        page: int | str | None = None,
        limit: int | str | None = None,
        statuses: Iterable[str] | None = None,
        entity_kinds: Iterable[str] | None = None,
        default_limit: int = DEFAULT_PAGE_SIZE,
        max_limit: int = MAX_PAGE_SIZE,
    ) -> "RunFilters":
        """
        Coerce mixed user input into a validated ``RunFilters`` instance.
        """

        resolved_page = _coerce_positive_int(page, fallback=DEFAULT_PAGE)
        resolved_limit = min(_coerce_positive_int(limit, fallback=default_limit), max_limit)
        resolved_statuses = tuple(
            _coerce_enum(ImportRunStatus, value, "status") for value in (statuses or ()) if value
        )
        resolved_kinds = tuple(
            _coerce_enum(EntityKind, value, "entity kind") for value in (entity_kinds or ()) if value
        )
        return cls(
            page=resolved_page,
            limit=resolved_limit,
            statuses=resolved_statuses,
            entity_kinds=resolved_kinds,
        )


@dataclass(slots=True)
class RunListResult:
    """Paginated result set for import runs."""

    items: list[ImportRun]
    total: int
    page: int
    limit: int
    pages: int

    def pagination(self) -> dict[str, int]:
        return {"page": self.page, "limit": self.limit, "total": self.total, "pages": self.pages}


@dataclass(slots=True)
class RunStats:
    """Aggregate counts across the audit trail."""

    total: int
    statuses: Mapping[str, int]
    entity_kinds: Mapping[str, int]
    rows: Mapping[str, int]

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "statuses": dict(self.statuses),
            "entityKinds": dict(self.entity_kinds),
            "rows": dict(self.rows),
        }


class ImportRunService:
    """Facade for querying import runs with consistent filtering semantics."""

    def __init__(self, session: Session | None = None) -> None:
        self.session: Session = session or db.session

    def list_runs(self, filters: RunFilters) -> RunListResult:
        query = self._apply_filters(self._base_query(), filters)

        total = query.count()
        if total == 0:
            return RunListResult(items=[], total=0, page=filters.page, limit=filters.limit, pages=0)

        items = (
            query.order_by(ImportRun.started_at.desc(), ImportRun.id.desc())
            .offset((filters.page - 1) * filters.limit)
            .limit(filters.limit)
            .all()
        )
        pages = (total + filters.limit - 1) // filters.limit
        return RunListResult(items=items, total=total, page=filters.page, limit=filters.limit, pages=pages)

    def get_run(self, run_id: int) -> ImportRun:
        run = self._base_query().filter(ImportRun.id == run_id).one_or_none()
        if run is None:
            raise NoResultFound(f"Import run {run_id} not found.")
        return run

    def get_stats(self, filters: RunFilters | None = None) -> RunStats:
        query = self._apply_filters(self.session.query(ImportRun), filters or RunFilters())

        status_counts = {status.value: 0 for status in ImportRunStatus}
        for status, count in query.with_entities(ImportRun.status, func.count()).group_by(ImportRun.status):
            status_counts[_enum_value(status)] = count

        kind_counts = {kind.value: 0 for kind in EntityKind}
        for kind, count in query.with_entities(ImportRun.entity_kind, func.count()).group_by(ImportRun.entity_kind):
            kind_counts[_enum_value(kind)] = count

        total_rows, success_rows, error_rows = query.with_entities(
            func.coalesce(func.sum(ImportRun.total_rows), 0),
            func.coalesce(func.sum(ImportRun.success_rows), 0),
            func.coalesce(func.sum(ImportRun.error_rows), 0),
        ).one()

        return RunStats(
            total=sum(status_counts.values()),
            statuses=status_counts,
            entity_kinds=kind_counts,
            rows={"total": int(total_rows), "success": int(success_rows), "error": int(error_rows)},
        )

    @staticmethod
    def record_audit_view(
        user_id: int, run_id: int | None, *, ip_address: str | None = None, user_agent: str | None = None
    ) -> None:
        """Persist an audit trail entry for audit-log reads."""

        AdminLog.log_action(
            admin_user_id=user_id,
            action="IMPORT_RUN_VIEW" if run_id is None else "IMPORT_RUN_DETAIL_VIEW",
            target_user_id=None,
            details=json.dumps({"run_id": run_id}),
            ip_address=ip_address,
            user_agent=user_agent,
        )

    @staticmethod
    def record_execution(
        user_id: int, run_id: int, *, entity_kind: str, ip_address: str | None = None, user_agent: str | None = None
    ) -> None:
        AdminLog.log_action(
            admin_user_id=user_id,
            action="IMPORT_RUN_EXECUTED",
            target_user_id=None,
            details=json.dumps({"run_id": run_id, "entity_kind": entity_kind}),
            ip_address=ip_address,
            user_agent=user_agent,
        )

    def _base_query(self):
        return self.session.query(ImportRun).options(selectinload(ImportRun.errors), selectinload(ImportRun.actor))

    def _apply_filters(self, query, filters: RunFilters):
        predicates = []
        if filters.statuses:
            predicates.append(ImportRun.status.in_(filters.statuses))
        if filters.entity_kinds:
            predicates.append(ImportRun.entity_kind.in_(filters.entity_kinds))
        if predicates:
            query = query.filter(and_(*predicates))
        return query


def _isoformat(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _enum_value(value) -> str:
    return value.value if hasattr(value, "value") else str(value)


def _serialize_actor(user: User | None) -> dict[str, Any] | None:
    if user is None:
        return None
    return {"id": user.id, "username": user.username, "email": user.email, "displayName": user.display_name}


def serialize_run(run: ImportRun, *, include_errors: bool = True) -> dict[str, Any]:
    """Render an ``ImportRun`` for JSON responses."""

    duration_seconds = None
    if run.started_at and run.ended_at:
        duration_seconds = (run.ended_at - run.started_at).total_seconds()

    payload: dict[str, Any] = {
        "id": run.id,
        "entityKind": _enum_value(run.entity_kind),
        "fileName": run.file_name,
        "status": _enum_value(run.status),
        "totalRows": run.total_rows,
        "successRows": run.success_rows,
        "errorRows": run.error_rows,
        "startedAt": _isoformat(run.started_at),
        "endedAt": _isoformat(run.ended_at),
        "durationSeconds": duration_seconds,
        "errorSummary": run.error_summary,
        "actor": _serialize_actor(run.actor),
    }
    if include_errors:
        payload["errors"] = [
            {"id": error.id, "rowNumber": error.row_number, "errorKind": error.error_kind, "message": error.message}
            for error in run.errors
        ]
    return payload


def _coerce_positive_int(candidate: int | str | None, *, fallback: int) -> int:
    if candidate in (None, ""):
        return fallback
    if isinstance(candidate, int):
        return max(1, candidate)
    if isinstance(candidate, str) and candidate.strip().isdigit():
        return max(1, int(candidate))
    raise ValueError(f"Expected positive integer for pagination, received '{candidate}'.")


def _coerce_enum(enum_cls, value, label: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        raise ValueError(f"Unsupported {label} filter '{value}'.") from None
