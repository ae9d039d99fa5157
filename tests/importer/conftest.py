from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from timesheet_app.importer import init_importer
from timesheet_app.models import (
    Person,
    PersonRole,
    Project,
    ProjectStatus,
    TaskCategory,
    TimeEntry,
    TimeEntryStatus,
    db,
)
from timesheet_app.models.importer.schema import EntityKind, ImportRowError, ImportRun, ImportRunStatus


@pytest.fixture
def importer_app(app):
    app.config.update({"IMPORTER_ENABLED": True})
    init_importer(app)
    yield app


@pytest.fixture
def logged_in_admin(importer_app, client, admin_user):
    response = client.post("/login", data={"username": "admin", "password": "adminpass123"})
    assert response.status_code == 200, response.get_json()
    return client


@pytest.fixture
def person_factory(app):
    def _factory(
        employee_id: str = "E1",
        *,
        name: str | None = None,
        email: str | None = None,
        role: PersonRole = PersonRole.ARCHITECT,
        is_active: bool = True,
    ) -> Person:
        person = Person(
            employee_id=employee_id,
            name=name or f"Person {employee_id}",
            email=email or f"{employee_id.lower()}@example.com",
            role=role,
            is_active=is_active,
        )
        db.session.add(person)
        db.session.commit()
        return person

    return _factory


@pytest.fixture
def project_factory(app):
    def _factory(
        project_code: str = "P1",
        *,
        name: str | None = None,
        start_date: date = date(2024, 1, 1),
        status: ProjectStatus = ProjectStatus.ACTIVE,
    ) -> Project:
        project = Project(
            project_code=project_code,
            name=name or f"Project {project_code}",
            start_date=start_date,
            status=status,
        )
        db.session.add(project)
        db.session.commit()
        return project

    return _factory


@pytest.fixture
def task_category_factory(app):
    def _factory(task_id: str = "TD.01.00", *, name: str = "Tender drawings", category: str = "TENDER DOCUMENTS"):
        task = TaskCategory(task_id=task_id, name=name, category=category)
        db.session.add(task)
        db.session.commit()
        return task

    return _factory


@pytest.fixture
def time_entry_factory(app):
    def _factory(
        person: Person,
        project: Project,
        *,
        work_date: date = date(2024, 1, 15),
        hours: float = 8.0,
        task_category: TaskCategory | None = None,
        description: str | None = "Existing entry",
        status: TimeEntryStatus = TimeEntryStatus.DRAFT,
    ) -> TimeEntry:
        entry = TimeEntry(
            person_id=person.id,
            project_id=project.id,
            task_category_id=task_category.id if task_category else None,
            date=work_date,
            hours=hours,
            description=description,
            status=status,
        )
        db.session.add(entry)
        db.session.commit()
        return entry

    return _factory


@pytest.fixture
def run_factory(importer_app):
    created_runs: list[ImportRun] = []

    def _factory(
        *,
        entity_kind: EntityKind = EntityKind.PERSON,
        status: ImportRunStatus = ImportRunStatus.SUCCESS,
        started_offset_minutes: int = 0,
        success_rows: int = 5,
        error_messages: tuple[tuple[int, str], ...] = (),
        actor_id: int | None = None,
    ) -> ImportRun:
        now = datetime.now(timezone.utc).replace(microsecond=0)
        started_at = now - timedelta(minutes=started_offset_minutes)
        run = ImportRun(
            entity_kind=entity_kind,
            actor_id=actor_id,
            file_name=f"run_{len(created_runs)}.csv",
            total_rows=success_rows + len(error_messages),
            success_rows=success_rows,
            error_rows=len(error_messages),
            status=status,
            started_at=started_at,
            ended_at=started_at + timedelta(seconds=30),
        )
        db.session.add(run)
        db.session.flush()
        for row_number, message in error_messages:
            db.session.add(ImportRowError(run_id=run.id, row_number=row_number, message=message))
        db.session.commit()
        created_runs.append(run)
        return run

    yield _factory
