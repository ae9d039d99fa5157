# timesheet_app/models/directory/time_entry.py

from __future__ import annotations

import datetime as dt

from sqlalchemy import Enum, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..base import BaseModel, db
from .enums import ApprovalStatus, TimeEntryStatus


class TimeEntry(BaseModel):
    """Hours one person booked against a project (and optional task) on one day"""

    __tablename__ = "time_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    person_id: Mapped[int] = mapped_column(ForeignKey("people.id", ondelete="CASCADE"), nullable=False)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    task_category_id: Mapped[int | None] = mapped_column(
        ForeignKey("task_categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    date: Mapped[dt.date] = mapped_column(db.Date, nullable=False)
    start_time: Mapped[dt.datetime | None] = mapped_column(db.DateTime, nullable=True)
    end_time: Mapped[dt.datetime | None] = mapped_column(db.DateTime, nullable=True)
    hours: Mapped[float] = mapped_column(db.Float, nullable=False)
    description: Mapped[str | None] = mapped_column(db.Text, nullable=True)
    status: Mapped[TimeEntryStatus] = mapped_column(
        Enum(TimeEntryStatus, name="time_entry_status_enum"),
        nullable=False,
        default=TimeEntryStatus.DRAFT,
    )

    person = relationship("Person", back_populates="time_entries")
    project = relationship("Project", back_populates="time_entries")
    task_category = relationship("TaskCategory", back_populates="time_entries")
    approval = relationship(
        "TimeEntryApproval",
        back_populates="time_entry",
        uselist=False,
        cascade="all, delete-orphan",
        foreign_keys="TimeEntryApproval.time_entry_id",
    )

    __table_args__ = (
        UniqueConstraint(
            "person_id",
            "project_id",
            "task_category_id",
            "date",
            name="uq_time_entries_person_project_task_date",
        ),
        Index("ix_time_entries_person_project_date", "person_id", "project_id", "date"),
    )

    def __repr__(self):
        return f"<TimeEntry person={self.person_id} project={self.project_id} date={self.date}>"


class TimeEntryApproval(BaseModel):
    """Approval record materialized for submitted or approved time entries"""

    __tablename__ = "time_entry_approvals"

    id: Mapped[int] = mapped_column(primary_key=True)
    time_entry_id: Mapped[int] = mapped_column(
        ForeignKey("time_entries.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    submitter_id: Mapped[int] = mapped_column(ForeignKey("people.id", ondelete="CASCADE"), nullable=False)
    approver_id: Mapped[int | None] = mapped_column(ForeignKey("people.id", ondelete="SET NULL"), nullable=True)
    status: Mapped[ApprovalStatus] = mapped_column(
        Enum(ApprovalStatus, name="approval_status_enum"),
        nullable=False,
        default=ApprovalStatus.PENDING,
    )
    submitted_at: Mapped[dt.datetime] = mapped_column(db.DateTime(timezone=True), nullable=False)
    approved_at: Mapped[dt.datetime | None] = mapped_column(db.DateTime(timezone=True), nullable=True)
    comments: Mapped[str | None] = mapped_column(db.Text, nullable=True)

    time_entry = relationship("TimeEntry", back_populates="approval", foreign_keys=[time_entry_id])
    submitter = relationship("Person", foreign_keys=[submitter_id])
    approver = relationship("Person", foreign_keys=[approver_id])

    def __repr__(self):
        return f"<TimeEntryApproval entry={self.time_entry_id} status={self.status}>"
