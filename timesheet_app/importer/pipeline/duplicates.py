"""
Batch duplicate detection against the stored directory.

Natural-key values are gathered across the whole batch, each key type is
fetched with one query, and rows are checked against an in-memory index. Only
batch-versus-store collisions are reported; rows colliding with each other
inside one file surface at execution time instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable, Mapping, Sequence

from sqlalchemy import select
from sqlalchemy.orm import contains_eager

from timesheet_app.models import Person, Project, TaskCategory, TimeEntry, db
from timesheet_app.models.importer.schema import EntityKind

from .normalize import CanonicalRow, parse_iso_date


@dataclass(frozen=True)
class DuplicateRecord:
    """A batch row whose natural key already exists in the store."""

    row_number: int
    new_data: Mapping[str, object | None]
    existing_data: Mapping[str, object | None]
    conflict_fields: tuple[str, ...]

    def to_dict(self) -> dict[str, object]:
        return {
            "rowNumber": self.row_number,
            "newData": dict(self.new_data),
            "existingData": dict(self.existing_data),
            "conflictFields": list(self.conflict_fields),
        }


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _enum_value(value) -> str | None:
    return getattr(value, "value", value)


def snapshot_person(person: Person) -> dict[str, object | None]:
    return {
        "employeeId": person.employee_id,
        "name": person.name,
        "email": person.email,
        "role": _enum_value(person.role),
        "position": person.position,
        "isActive": person.is_active,
    }


def snapshot_project(project: Project) -> dict[str, object | None]:
    return {
        "projectCode": project.project_code,
        "name": project.name,
        "description": project.description,
        "nickname": project.nickname,
        "startDate": _iso(project.start_date),
        "endDate": _iso(project.end_date),
        "status": _enum_value(project.status),
    }


def snapshot_task_category(task: TaskCategory) -> dict[str, object | None]:
    return {
        "taskId": task.task_id,
        "name": task.name,
        "description": task.description,
        "category": task.category,
        "isActive": task.is_active,
    }


def snapshot_time_entry(entry: TimeEntry) -> dict[str, object | None]:
    return {
        "employeeId": entry.person.employee_id if entry.person else None,
        "projectCode": entry.project.project_code if entry.project else None,
        "taskId": entry.task_category.task_id if entry.task_category else None,
        "date": _iso(entry.date),
        "hours": entry.hours,
        "description": entry.description,
        "status": _enum_value(entry.status),
    }


def _distinct(rows: Sequence[CanonicalRow], field: str) -> set[str]:
    return {str(row.get(field)) for row in rows if row.get(field) is not None}


def _detect_people(rows: Sequence[CanonicalRow], session) -> list[DuplicateRecord]:
    employee_ids = _distinct(rows, "employeeId")
    emails = {email.lower() for email in _distinct(rows, "email")}

    by_employee_id: dict[str, Person] = {}
    by_email: dict[str, Person] = {}
    if employee_ids:
        for person in session.scalars(select(Person).where(Person.employee_id.in_(employee_ids))):
            by_employee_id[person.employee_id] = person
    if emails:
        for person in session.scalars(select(Person).where(Person.email.in_(emails))):
            by_email[person.email] = person

    duplicates: list[DuplicateRecord] = []
    for row in rows:
        id_match = by_employee_id.get(str(row.get("employeeId")))
        email_match = by_email.get(str(row.get("email") or "").lower())
        if id_match is None and email_match is None:
            continue
        conflict_fields = tuple(
            name for name, match in (("employeeId", id_match), ("email", email_match)) if match is not None
        )
        existing = id_match if id_match is not None else email_match
        duplicates.append(
            DuplicateRecord(
                row_number=row.row_number,
                new_data=row.as_dict(),
                existing_data=snapshot_person(existing),
                conflict_fields=conflict_fields,
            )
        )
    return duplicates


def _detect_single_key(
    rows: Sequence[CanonicalRow],
    session,
    *,
    field: str,
    column,
    snapshot: Callable[[object], dict[str, object | None]],
) -> list[DuplicateRecord]:
    keys = _distinct(rows, field)
    if not keys:
        return []
    model = column.class_
    index = {getattr(record, column.key): record for record in session.scalars(select(model).where(column.in_(keys)))}

    duplicates: list[DuplicateRecord] = []
    for row in rows:
        existing = index.get(str(row.get(field)))
        if existing is None:
            continue
        duplicates.append(
            DuplicateRecord(
                row_number=row.row_number,
                new_data=row.as_dict(),
                existing_data=snapshot(existing),
                conflict_fields=(field,),
            )
        )
    return duplicates


def _detect_time_entries(rows: Sequence[CanonicalRow], session) -> list[DuplicateRecord]:
    employee_ids = _distinct(rows, "employeeId")
    project_codes = _distinct(rows, "projectCode")
    dates = {parsed for parsed in (parse_iso_date(row.get("date")) for row in rows) if parsed is not None}
    if not employee_ids or not project_codes or not dates:
        return []

    statement = (
        select(TimeEntry)
        .join(Person, TimeEntry.person_id == Person.id)
        .join(Project, TimeEntry.project_id == Project.id)
        .where(Person.employee_id.in_(employee_ids))
        .where(Project.project_code.in_(project_codes))
        .where(TimeEntry.date.in_(dates))
        .options(contains_eager(TimeEntry.person), contains_eager(TimeEntry.project))
        .order_by(TimeEntry.id)
    )
    index: dict[tuple[str, str, date], TimeEntry] = {}
    for entry in session.scalars(statement):
        index.setdefault((entry.person.employee_id, entry.project.project_code, entry.date), entry)

    duplicates: list[DuplicateRecord] = []
    for row in rows:
        key = (str(row.get("employeeId")), str(row.get("projectCode")), parse_iso_date(row.get("date")))
        existing = index.get(key)
        if existing is None:
            continue
        duplicates.append(
            DuplicateRecord(
                row_number=row.row_number,
                new_data=row.as_dict(),
                existing_data=snapshot_time_entry(existing),
                conflict_fields=("employeeId", "projectCode", "date"),
            )
        )
    return duplicates


def detect_duplicates(
    rows: Sequence[CanonicalRow],
    kind: EntityKind,
    *,
    session=None,
) -> list[DuplicateRecord]:
    """Return one ``DuplicateRecord`` per row whose natural key is already stored."""

    session = session or db.session
    if not rows:
        return []
    if kind is EntityKind.PERSON:
        return _detect_people(rows, session)
    if kind is EntityKind.PROJECT:
        return _detect_single_key(
            rows, session, field="projectCode", column=Project.project_code, snapshot=snapshot_project
        )
    if kind is EntityKind.TASK_CATEGORY:
        return _detect_single_key(
            rows, session, field="taskId", column=TaskCategory.task_id, snapshot=snapshot_task_category
        )
    if kind is EntityKind.TIME_ENTRY:
        return _detect_time_entries(rows, session)
    raise ValueError(f"Unsupported entity kind: {kind}")
