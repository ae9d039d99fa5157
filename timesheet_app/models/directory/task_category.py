# timesheet_app/models/directory/task_category.py

from __future__ import annotations

from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..base import BaseModel, db


class TaskCategory(BaseModel):
    """Work stage / task code (e.g. ``TD.01.00``) that time entries book against"""

    __tablename__ = "task_categories"

    id: Mapped[int] = mapped_column(primary_key=True)
    task_id: Mapped[str] = mapped_column(db.String(50), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(db.String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(db.Text, nullable=True)
    category: Mapped[str] = mapped_column(db.String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(db.Boolean, nullable=False, default=True)

    time_entries = relationship("TimeEntry", back_populates="task_category")

    def __repr__(self):
        return f"<TaskCategory {self.task_id}>"
