# timesheet_app/models/directory/project.py

from __future__ import annotations

from datetime import date

from sqlalchemy import Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..base import BaseModel, db
from .enums import ProjectStatus


class Project(BaseModel):
    """Billable project keyed by its project code"""

    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(primary_key=True)
    project_code: Mapped[str] = mapped_column(db.String(50), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(db.String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(db.Text, nullable=True)
    nickname: Mapped[str | None] = mapped_column(db.String(100), nullable=True)
    start_date: Mapped[date] = mapped_column(db.Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(db.Date, nullable=True)
    status: Mapped[ProjectStatus] = mapped_column(
        Enum(ProjectStatus, name="project_status_enum"),
        nullable=False,
        default=ProjectStatus.ACTIVE,
    )

    time_entries = relationship(
        "TimeEntry",
        back_populates="project",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Project {self.project_code}>"
