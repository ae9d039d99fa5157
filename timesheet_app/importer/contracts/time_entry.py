"""Canonical TIME_ENTRY import contract.

``Hours`` is preferred; ``Duration`` is the legacy column older exports used
for the same value. ``Stage ID`` is the legacy label for ``Task ID``.
"""

from __future__ import annotations

from timesheet_app.models.directory.enums import TimeEntryStatus
from timesheet_app.models.importer.schema import EntityKind

from .base import EntityContract, FieldSpec

TIME_ENTRY_FIELDS = (
    FieldSpec(
        name="employeeId",
        label="Employee ID",
        description="Employee id of the person who worked.",
        required=True,
        aliases=("Employee Id", "employee_id"),
    ),
    FieldSpec(
        name="projectCode",
        label="Project Code",
        description="Project the time is booked against.",
        required=True,
        aliases=("project_code",),
    ),
    FieldSpec(
        name="taskId",
        label="Stage ID",
        description="Optional task code the time is booked against.",
        aliases=("Task ID", "Stage Id", "task_id"),
    ),
    FieldSpec(
        name="date",
        label="Date",
        description="Work date (D/M/YYYY or YYYY-MM-DD).",
        type="date",
        required=True,
    ),
    FieldSpec(name="startTime", label="Start Time", description="Optional start, H:MM.", type="time"),
    FieldSpec(name="endTime", label="End Time", description="Optional end, H:MM.", type="time"),
    FieldSpec(
        name="hours",
        label="Hours",
        description="Worked hours, quantized to 15 minutes.",
        type="number",
        minimum=0,
        maximum=24,
    ),
    FieldSpec(
        name="duration",
        label="Duration",
        description="Legacy worked hours; ignored when Hours is present.",
        type="number",
        minimum=0,
        maximum=24,
    ),
    FieldSpec(name="description", label="Description", description="Work notes."),
    FieldSpec(
        name="status",
        label="Status",
        description="Workflow status; defaults to DRAFT.",
        type="enum",
        choices=tuple(status.value for status in TimeEntryStatus),
        default=TimeEntryStatus.DRAFT.value,
    ),
)

# Duplicate detection deliberately ignores the task dimension.
TIME_ENTRY_CONTRACT = EntityContract(
    kind=EntityKind.TIME_ENTRY,
    fields=TIME_ENTRY_FIELDS,
    natural_key=("employeeId", "projectCode", "taskId", "date"),
    conflict_fields=("employeeId", "projectCode", "date"),
    snapshot_fields=("employeeId", "projectCode", "taskId", "date", "hours", "description", "status"),
)
