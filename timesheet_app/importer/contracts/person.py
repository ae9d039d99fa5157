"""Canonical PERSON import contract."""

from __future__ import annotations

from timesheet_app.models.directory.enums import PersonRole
from timesheet_app.models.importer.schema import EntityKind

from .base import EntityContract, FieldSpec

PERSON_FIELDS = (
    FieldSpec(
        name="employeeId",
        label="Employee ID",
        description="Stable staff identifier (e.g. PSEC-001).",
        required=True,
        max_length=50,
        aliases=("Employee Id", "EmployeeID", "employee_id"),
    ),
    FieldSpec(
        name="name",
        label="Name",
        description="Full display name.",
        required=True,
        max_length=200,
        aliases=("Full Name", "name"),
    ),
    FieldSpec(
        name="email",
        label="Email",
        description="Unique work email, stored lower-case.",
        type="email",
        required=True,
        max_length=255,
        aliases=("Email Address", "E-mail", "email"),
    ),
    FieldSpec(
        name="role",
        label="Role",
        description="Organizational role.",
        type="enum",
        required=True,
        choices=tuple(role.value for role in PersonRole),
        aliases=("role",),
    ),
    FieldSpec(
        name="position",
        label="Position",
        description="Free-text job title.",
        max_length=200,
        aliases=("Title", "position"),
    ),
    FieldSpec(
        name="isActive",
        label="Is Active",
        description="Whether the person can log time; defaults to inactive.",
        type="boolean",
        default=False,
        aliases=("Active", "is_active"),
    ),
)

PERSON_CONTRACT = EntityContract(
    kind=EntityKind.PERSON,
    fields=PERSON_FIELDS,
    natural_key=("employeeId", "email"),
    conflict_fields=("employeeId", "email"),
    snapshot_fields=("employeeId", "name", "email", "role", "position", "isActive"),
)
