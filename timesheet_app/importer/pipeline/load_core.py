"""
Execute a resolved import plan against the directory tables.

Each row runs in its own short transaction. Staff, projects and task
categories are updated in place when their natural key already exists, so
time entries hanging off them survive a re-import. Time entries are deleted
by natural key and re-inserted, together with an approval record when they
are submitted or approved. A row that fails is rolled back and recorded as an
``ImportRowError``; earlier rows stay committed. Uniqueness violations and
rejected column data fail only their row. Any other store fault aborts the
run, which is then marked FAILED before the error propagates.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable, Sequence

from sqlalchemy import or_, select
from sqlalchemy.exc import DataError, IntegrityError

from timesheet_app.models import (
    ApprovalStatus,
    Person,
    PersonRole,
    Project,
    ProjectStatus,
    TaskCategory,
    TimeEntry,
    TimeEntryApproval,
    TimeEntryStatus,
    db,
)
from timesheet_app.models.importer.schema import EntityKind, ImportRowError, ImportRun, ImportRunStatus

from .decisions import Decision, PlanAction, PlanStep

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_APPROVER_ID = "PSEC-000"


class RowStatus(str, enum.Enum):
    LOADED = "LOADED"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


class RowErrorKind(str, enum.Enum):
    REFERENTIAL = "referential"
    UNIQUENESS = "uniqueness"
    DATA = "data"


@dataclass(frozen=True)
class RowOutcome:
    """Tagged result of executing one plan step."""

    row_number: int
    status: RowStatus
    error_kind: RowErrorKind | None = None
    message: str | None = None
    record_id: int | None = None


@dataclass(frozen=True)
class ExecutionSummary:
    """Final counts for one import run."""

    run_id: int
    total_rows: int
    success_rows: int
    error_rows: int
    status: ImportRunStatus
    outcomes: tuple[RowOutcome, ...] = ()

    @property
    def message(self) -> str:
        return (
            f"Import completed. {self.success_rows} rows imported successfully, "
            f"{self.error_rows} rows failed."
        )

    @property
    def skipped_rows(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is RowStatus.SKIPPED)

    def to_dict(self) -> dict[str, object]:
        return {
            "importId": self.run_id,
            "totalRows": self.total_rows,
            "successRows": self.success_rows,
            "errorRows": self.error_rows,
            "status": self.status.value,
            "message": self.message,
        }


@dataclass
class _RunContext:
    run_id: int
    kind: EntityKind
    fallback_approver_id: str
    created_ids: set[int] = field(default_factory=set)
    _approver_resolved: bool = False
    _approver_pk: int | None = None

    def approver_pk(self, session) -> int | None:
        if not self._approver_resolved:
            self._approver_pk = session.scalar(
                select(Person.id).where(Person.employee_id == self.fallback_approver_id)
            )
            self._approver_resolved = True
        return self._approver_pk


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _log_extra(context: _RunContext, row_number: int | None = None) -> dict[str, object]:
    extra: dict[str, object] = {
        "importer_run_id": context.run_id,
        "importer_entity_kind": context.kind.value,
    }
    if row_number is not None:
        extra["importer_row_number"] = row_number
    return extra


def _delete_matching(session, statement) -> int:
    """Delete through the ORM so relationship cascades run, then flush."""

    records = session.scalars(statement).all()
    for record in records:
        session.delete(record)
    if records:
        session.flush()
    return len(records)


def _as_date(value: object | None) -> date | None:
    if value is None:
        return None
    return date.fromisoformat(str(value))


def _as_datetime(value: object | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(str(value))


def _loaded(step: PlanStep, record) -> RowOutcome:
    return RowOutcome(row_number=step.row_number, status=RowStatus.LOADED, record_id=record.id)


def _supersede(session, statement, model, fields: dict[str, object], *, primary=None):
    """
    Update the first record matched by ``statement`` in place, or insert one.

    Extra matches are deleted first so the update cannot collide with them on
    a unique column. ``primary`` orders the matches when there can be several.
    """

    records = list(session.scalars(statement).all())
    if primary is not None:
        records.sort(key=lambda record: not primary(record))
    extras = records[1:]
    for record in extras:
        session.delete(record)
    if extras:
        session.flush()

    if records:
        target = records[0]
        for name, value in fields.items():
            setattr(target, name, value)
    else:
        target = model(**fields)
        session.add(target)
    session.flush()
    return target


def _load_person(step: PlanStep, session, context: _RunContext) -> RowOutcome:
    values = step.row.values
    employee_id = values["employeeId"]
    email = values["email"]
    if step.decision is Decision.REPLACE:
        match = or_(Person.employee_id == employee_id, Person.email == email)
    else:
        match = (Person.employee_id == employee_id) & (Person.email == email)

    person = _supersede(
        session,
        select(Person).where(match),
        Person,
        {
            "employee_id": employee_id,
            "name": values["name"],
            "email": email,
            "role": PersonRole(values["role"]),
            "position": values.get("position"),
            "is_active": bool(values.get("isActive")),
        },
        primary=lambda record: record.employee_id == employee_id,
    )
    return _loaded(step, person)


def _load_project(step: PlanStep, session, context: _RunContext) -> RowOutcome:
    values = step.row.values
    project = _supersede(
        session,
        select(Project).where(Project.project_code == values["projectCode"]),
        Project,
        {
            "project_code": values["projectCode"],
            "name": values["name"],
            "description": values.get("description"),
            "nickname": values.get("nickname"),
            "start_date": _as_date(values["startDate"]),
            "end_date": _as_date(values.get("endDate")),
            "status": ProjectStatus(values.get("status") or ProjectStatus.ACTIVE.value),
        },
    )
    return _loaded(step, project)


def _load_task_category(step: PlanStep, session, context: _RunContext) -> RowOutcome:
    values = step.row.values
    task = _supersede(
        session,
        select(TaskCategory).where(TaskCategory.task_id == values["taskId"]),
        TaskCategory,
        {
            "task_id": values["taskId"],
            "name": values["name"],
            "description": values.get("description"),
            "category": values["category"],
            "is_active": bool(values.get("isActive")),
        },
    )
    return _loaded(step, task)


@dataclass(frozen=True)
class _TimeEntryRefs:
    person: Person | None
    project: Project | None
    task_category: TaskCategory | None
    missing: tuple[str, ...]


def _resolve_time_entry_refs(values, session) -> _TimeEntryRefs:
    employee_id = values.get("employeeId")
    project_code = values.get("projectCode")
    task_id = values.get("taskId")

    person = session.scalar(select(Person).where(Person.employee_id == employee_id))
    project = session.scalar(select(Project).where(Project.project_code == project_code))
    task_category = None
    if task_id is not None:
        task_category = session.scalar(select(TaskCategory).where(TaskCategory.task_id == task_id))

    missing: list[str] = []
    if person is None:
        missing.append(f"employee ID '{employee_id}'")
    if project is None:
        missing.append(f"project code '{project_code}'")
    if task_id is not None and task_category is None:
        missing.append(f"task ID '{task_id}'")
    return _TimeEntryRefs(person, project, task_category, tuple(missing))


def _build_approval(entry: TimeEntry, person: Person, session, context: _RunContext) -> TimeEntryApproval | None:
    if entry.status not in (TimeEntryStatus.SUBMITTED, TimeEntryStatus.APPROVED):
        return None
    now = _utcnow()
    approved = entry.status is TimeEntryStatus.APPROVED
    return TimeEntryApproval(
        time_entry=entry,
        submitter_id=person.id,
        approver_id=context.approver_pk(session),
        status=ApprovalStatus.APPROVED if approved else ApprovalStatus.PENDING,
        submitted_at=now,
        approved_at=now if approved else None,
    )


def _load_time_entry(step: PlanStep, session, context: _RunContext) -> RowOutcome:
    values = step.row.values
    refs = _resolve_time_entry_refs(values, session)
    if refs.missing:
        return RowOutcome(
            row_number=step.row_number,
            status=RowStatus.FAILED,
            error_kind=RowErrorKind.REFERENTIAL,
            message=f"Referenced records not found: {', '.join(refs.missing)}.",
        )

    work_date = _as_date(values["date"])
    match = (
        (TimeEntry.person_id == refs.person.id)
        & (TimeEntry.project_id == refs.project.id)
        & (TimeEntry.date == work_date)
    )
    if step.decision is not Decision.REPLACE:
        if refs.task_category is None:
            match = match & TimeEntry.task_category_id.is_(None)
        else:
            match = match & (TimeEntry.task_category_id == refs.task_category.id)
    _delete_matching(session, select(TimeEntry).where(match))

    entry = TimeEntry(
        person_id=refs.person.id,
        project_id=refs.project.id,
        task_category_id=refs.task_category.id if refs.task_category else None,
        date=work_date,
        start_time=_as_datetime(values.get("startTime")),
        end_time=_as_datetime(values.get("endTime")),
        hours=float(values["hours"]),
        description=values.get("description"),
        status=TimeEntryStatus(values.get("status") or TimeEntryStatus.DRAFT.value),
    )
    session.add(entry)
    approval = _build_approval(entry, refs.person, session, context)
    if approval is not None:
        session.add(approval)
    session.flush()
    return _loaded(step, entry)


_LOADERS: dict[EntityKind, Callable[[PlanStep, object, _RunContext], RowOutcome]] = {
    EntityKind.PERSON: _load_person,
    EntityKind.PROJECT: _load_project,
    EntityKind.TASK_CATEGORY: _load_task_category,
    EntityKind.TIME_ENTRY: _load_time_entry,
}


def _coarse_key_matches(step: PlanStep, session, context: _RunContext) -> tuple[str, list[int]]:
    """Describe the row's coarse natural key and list stored ids sharing it."""

    values = step.row.values
    kind = context.kind
    if kind is EntityKind.PERSON:
        description = f"employee ID {values.get('employeeId')} / email {values.get('email')}"
        statement = select(Person.id).where(
            or_(Person.employee_id == values.get("employeeId"), Person.email == values.get("email"))
        )
    elif kind is EntityKind.PROJECT:
        description = f"project code {values.get('projectCode')}"
        statement = select(Project.id).where(Project.project_code == values.get("projectCode"))
    elif kind is EntityKind.TASK_CATEGORY:
        description = f"task ID {values.get('taskId')}"
        statement = select(TaskCategory.id).where(TaskCategory.task_id == values.get("taskId"))
    else:
        description = (
            f"employee ID {values.get('employeeId')}, project code {values.get('projectCode')}, "
            f"date {values.get('date')}"
        )
        statement = (
            select(TimeEntry.id)
            .join(Person, TimeEntry.person_id == Person.id)
            .join(Project, TimeEntry.project_id == Project.id)
            .where(Person.employee_id == values.get("employeeId"))
            .where(Project.project_code == values.get("projectCode"))
            .where(TimeEntry.date == _as_date(values.get("date")))
        )
    return description, list(session.scalars(statement))


def _uniqueness_outcome(step: PlanStep, session, context: _RunContext, exc: IntegrityError) -> RowOutcome:
    description, matches = _coarse_key_matches(step, session, context)
    stored = [record_id for record_id in matches if record_id not in context.created_ids]
    if stored:
        message = f"Row conflicts with existing stored data ({description}); the store rejected the insert."
    else:
        message = f"Row is likely a duplicate of another row in this file ({description})."
    logger.debug("Integrity error detail: %s", exc.orig, extra=_log_extra(context, step.row_number))
    return RowOutcome(
        row_number=step.row_number,
        status=RowStatus.FAILED,
        error_kind=RowErrorKind.UNIQUENESS,
        message=message,
    )


def _execute_step(step: PlanStep, session, context: _RunContext) -> RowOutcome:
    loader = _LOADERS[context.kind]
    try:
        outcome = loader(step, session, context)
        if outcome.status is RowStatus.FAILED:
            session.rollback()
            return outcome
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        return _uniqueness_outcome(step, session, context, exc)
    except DataError as exc:
        session.rollback()
        logger.debug("Data error detail: %s", exc.orig, extra=_log_extra(context, step.row_number))
        return RowOutcome(
            row_number=step.row_number,
            status=RowStatus.FAILED,
            error_kind=RowErrorKind.DATA,
            message=f"Store rejected row data: {exc.orig}",
        )
    if outcome.record_id is not None:
        context.created_ids.add(outcome.record_id)
    return outcome


def _final_status(success_rows: int, error_rows: int) -> ImportRunStatus:
    if error_rows == 0:
        return ImportRunStatus.SUCCESS
    if success_rows > 0:
        return ImportRunStatus.PARTIAL
    return ImportRunStatus.FAILED


def execute_plan(
    plan: Sequence[PlanStep],
    kind: EntityKind,
    *,
    file_name: str,
    actor_id: int | None = None,
    fallback_approver_id: str = DEFAULT_FALLBACK_APPROVER_ID,
    session=None,
) -> ExecutionSummary:
    """
    Apply ``plan`` row by row and persist the run's audit trail.

    Skipped steps touch neither the store nor the counters.
    """

    session = session or db.session
    run = ImportRun(
        entity_kind=kind,
        actor_id=actor_id,
        file_name=file_name,
        status=ImportRunStatus.PROCESSING,
        started_at=_utcnow(),
    )
    session.add(run)
    session.commit()
    context = _RunContext(run_id=run.id, kind=kind, fallback_approver_id=fallback_approver_id)
    logger.info("Import run %s started for %s (%s)", run.id, kind.value, file_name, extra=_log_extra(context))

    outcomes: list[RowOutcome] = []
    success_rows = 0
    error_rows = 0
    try:
        for step in plan:
            if step.action is PlanAction.SKIP:
                outcomes.append(RowOutcome(row_number=step.row_number, status=RowStatus.SKIPPED))
                continue

            outcome = _execute_step(step, session, context)
            outcomes.append(outcome)
            if outcome.status is RowStatus.LOADED:
                success_rows += 1
                continue

            error_rows += 1
            session.add(
                ImportRowError(
                    run_id=context.run_id,
                    row_number=outcome.row_number,
                    error_kind=outcome.error_kind.value if outcome.error_kind else None,
                    message=outcome.message or "Row failed.",
                )
            )
            session.commit()
            logger.warning(
                "Import run %s row %s failed: %s",
                context.run_id,
                outcome.row_number,
                outcome.message,
                extra=_log_extra(context, outcome.row_number),
            )
    except Exception as exc:
        session.rollback()
        _mark_failed(session, context, exc, success_rows=success_rows, error_rows=error_rows)
        logger.error("Import run %s aborted", context.run_id, exc_info=True, extra=_log_extra(context))
        raise

    total_rows = success_rows + error_rows
    status = _final_status(success_rows, error_rows)
    run = session.get(ImportRun, context.run_id)
    run.total_rows = total_rows
    run.success_rows = success_rows
    run.error_rows = error_rows
    run.status = status
    run.ended_at = _utcnow()
    session.commit()
    logger.info(
        "Import run %s finished with status %s (%s ok, %s failed)",
        context.run_id,
        status.value,
        success_rows,
        error_rows,
        extra=_log_extra(context),
    )
    return ExecutionSummary(
        run_id=context.run_id,
        total_rows=total_rows,
        success_rows=success_rows,
        error_rows=error_rows,
        status=status,
        outcomes=tuple(outcomes),
    )


def _mark_failed(session, context: _RunContext, exc: Exception, *, success_rows: int, error_rows: int) -> None:
    run = session.get(ImportRun, context.run_id)
    if run is None:
        return
    run.status = ImportRunStatus.FAILED
    run.success_rows = success_rows
    run.error_rows = error_rows
    run.total_rows = success_rows + error_rows
    run.ended_at = _utcnow()
    run.error_summary = f"{type(exc).__name__}: {exc}"[:2000]
    session.commit()
