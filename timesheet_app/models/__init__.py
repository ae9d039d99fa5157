# timesheet_app/models/__init__.py
"""
Database models package
"""

from .admin import AdminLog
from .base import BaseModel, db
from .directory import (
    ApprovalStatus,
    Person,
    PersonRole,
    Project,
    ProjectStatus,
    TaskCategory,
    TimeEntry,
    TimeEntryApproval,
    TimeEntryStatus,
)
from .importer import EntityKind, ImportRowError, ImportRun, ImportRunStatus
from .role import Permission, Role, RolePermission
from .user import User

__all__ = [
    "db",
    "BaseModel",
    "User",
    "AdminLog",
    "Role",
    "Permission",
    "RolePermission",
    # Directory models
    "Person",
    "Project",
    "TaskCategory",
    "TimeEntry",
    "TimeEntryApproval",
    "PersonRole",
    "ProjectStatus",
    "TimeEntryStatus",
    "ApprovalStatus",
    # Importer audit models
    "EntityKind",
    "ImportRun",
    "ImportRunStatus",
    "ImportRowError",
]
