"""Canonical PROJECT import contract."""

from __future__ import annotations

from timesheet_app.models.directory.enums import ProjectStatus
from timesheet_app.models.importer.schema import EntityKind

from .base import EntityContract, FieldSpec

PROJECT_FIELDS = (
    FieldSpec(
        name="projectCode",
        label="Project Code",
        description="Unique project code.",
        required=True,
        max_length=50,
        aliases=("Project Id", "Code", "project_code"),
    ),
    FieldSpec(
        name="name",
        label="Name",
        description="Project name.",
        required=True,
        max_length=200,
        aliases=("Project Name",),
    ),
    FieldSpec(name="description", label="Description", description="Long description."),
    FieldSpec(
        name="nickname",
        label="Nickname",
        description="Short internal name.",
        max_length=100,
        aliases=("Alias",),
    ),
    FieldSpec(
        name="startDate",
        label="Start Date",
        description="Project start (D/M/YYYY or YYYY-MM-DD).",
        type="date",
        required=True,
        aliases=("start_date",),
    ),
    FieldSpec(
        name="endDate",
        label="End Date",
        description="Optional project end (D/M/YYYY or YYYY-MM-DD).",
        type="date",
        aliases=("end_date",),
    ),
    FieldSpec(
        name="status",
        label="Status",
        description="Lifecycle status; defaults to ACTIVE.",
        type="enum",
        choices=tuple(status.value for status in ProjectStatus),
        default=ProjectStatus.ACTIVE.value,
    ),
)

PROJECT_CONTRACT = EntityContract(
    kind=EntityKind.PROJECT,
    fields=PROJECT_FIELDS,
    natural_key=("projectCode",),
    conflict_fields=("projectCode",),
    snapshot_fields=("projectCode", "name", "description", "nickname", "startDate", "endDate", "status"),
)
