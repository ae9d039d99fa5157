# timesheet_app/models/directory/__init__.py
"""
Staff directory and timesheet models.
Provides the four importable entity kinds plus time-entry approvals.
"""

from .enums import ApprovalStatus, PersonRole, ProjectStatus, TimeEntryStatus
from .person import Person
from .project import Project
from .task_category import TaskCategory
from .time_entry import TimeEntry, TimeEntryApproval

__all__ = [
    "ApprovalStatus",
    "PersonRole",
    "ProjectStatus",
    "TimeEntryStatus",
    "Person",
    "Project",
    "TaskCategory",
    "TimeEntry",
    "TimeEntryApproval",
]
