"""Canonical TASK_CATEGORY import contract."""

from __future__ import annotations

from timesheet_app.models.importer.schema import EntityKind

from .base import EntityContract, FieldSpec

TASK_CATEGORY_FIELDS = (
    FieldSpec(
        name="taskId",
        label="Task ID",
        description="Unique task code (e.g. TD.01.00).",
        required=True,
        max_length=50,
        aliases=("Task Id", "Stage ID", "task_id"),
    ),
    FieldSpec(name="name", label="Name", description="Task name.", required=True, max_length=200),
    FieldSpec(name="description", label="Description", description="Long description."),
    FieldSpec(
        name="category",
        label="Category",
        description="Grouping such as TENDER DOCUMENTS or CONSTRUCTION.",
        required=True,
        max_length=100,
    ),
    FieldSpec(
        name="isActive",
        label="Is Active",
        description="Whether the task accepts new time; defaults to active.",
        type="boolean",
        default=True,
        aliases=("Active", "is_active"),
    ),
)

TASK_CATEGORY_CONTRACT = EntityContract(
    kind=EntityKind.TASK_CATEGORY,
    fields=TASK_CATEGORY_FIELDS,
    natural_key=("taskId",),
    conflict_fields=("taskId",),
    snapshot_fields=("taskId", "name", "description", "category", "isActive"),
)
