# timesheet_app/models/directory/enums.py
"""
Enums for the staff directory and timesheet models.

Values are the upper-case tokens operators type into CSV files, so the
enum value doubles as the wire representation.
"""

import enum


class PersonRole(str, enum.Enum):
    """Organizational role of a staff member"""

    DIRECTOR = "DIRECTOR"
    ASSOCIATE = "ASSOCIATE"
    OFFICE_ADMIN = "OFFICE_ADMIN"
    PROJECT_MANAGER = "PROJECT_MANAGER"
    ARCHITECT = "ARCHITECT"
    JUNIOR_ARCHITECT = "JUNIOR_ARCHITECT"


class ProjectStatus(str, enum.Enum):
    """Project lifecycle status"""

    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    SUSPENDED = "SUSPENDED"
    CANCELLED = "CANCELLED"


class TimeEntryStatus(str, enum.Enum):
    """Timesheet entry workflow status"""

    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"


class ApprovalStatus(str, enum.Enum):
    """Approval decision attached to a submitted time entry"""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
