# timesheet_app/models/directory/person.py

from __future__ import annotations

from sqlalchemy import Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from ..base import BaseModel, db
from .enums import PersonRole


class Person(BaseModel):
    """Staff member identified by an employee id and a unique email"""

    __tablename__ = "people"

    id: Mapped[int] = mapped_column(primary_key=True)
    employee_id: Mapped[str] = mapped_column(db.String(50), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(db.String(200), nullable=False)
    email: Mapped[str] = mapped_column(db.String(255), unique=True, nullable=False, index=True)
    role: Mapped[PersonRole] = mapped_column(Enum(PersonRole, name="person_role_enum"), nullable=False)
    position: Mapped[str | None] = mapped_column(db.String(200), nullable=True)
    is_active: Mapped[bool] = mapped_column(db.Boolean, nullable=False, default=False)

    time_entries = relationship(
        "TimeEntry",
        back_populates="person",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Person {self.employee_id}>"

    @validates("email")
    def normalize_email(self, key, value):
        """Store emails trimmed and lower-cased so lookups stay case-insensitive"""
        if value:
            return value.strip().lower()
        return value
