"""
SQLAlchemy models for the importer audit trail.

One ``ImportRun`` is written per executed file and owns the
``ImportRowError`` rows recorded for execution-time failures. Validation
findings are returned to the caller and never land in these tables.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Enum, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..base import BaseModel, db


class EntityKind(str, enum.Enum):
    """Record families the importer can load."""

    PERSON = "PERSON"
    PROJECT = "PROJECT"
    TASK_CATEGORY = "TASK_CATEGORY"
    TIME_ENTRY = "TIME_ENTRY"


class ImportRunStatus(str, enum.Enum):
    """Lifecycle states for an import run."""

    PROCESSING = "PROCESSING"
    SUCCESS = "SUCCESS"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"


class ImportRun(BaseModel):
    """Summary audit record describing a single importer execution."""

    __tablename__ = "import_runs"

    id: Mapped[int] = mapped_column(primary_key=True)
    entity_kind: Mapped[EntityKind] = mapped_column(
        Enum(EntityKind, name="import_entity_kind_enum"),
        nullable=False,
        index=True,
    )
    actor_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    file_name: Mapped[str] = mapped_column(db.String(255), nullable=False)
    total_rows: Mapped[int] = mapped_column(db.Integer, nullable=False, default=0)
    success_rows: Mapped[int] = mapped_column(db.Integer, nullable=False, default=0)
    error_rows: Mapped[int] = mapped_column(db.Integer, nullable=False, default=0)
    status: Mapped[ImportRunStatus] = mapped_column(
        Enum(ImportRunStatus, name="import_run_status_enum"),
        nullable=False,
        default=ImportRunStatus.PROCESSING,
        index=True,
    )
    started_at: Mapped[datetime] = mapped_column(db.DateTime(timezone=True), nullable=False)
    ended_at: Mapped[datetime | None] = mapped_column(db.DateTime(timezone=True), nullable=True)
    error_summary: Mapped[str | None] = mapped_column(
        db.Text,
        nullable=True,
        comment="Fatal fault that aborted the run, if any.",
    )

    actor = relationship("User", foreign_keys=[actor_id])
    errors = relationship(
        "ImportRowError",
        back_populates="import_run",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ImportRowError.row_number",
    )

    __table_args__ = (Index("ix_import_runs_started_at", "started_at"),)

    def __repr__(self) -> str:
        return f"<ImportRun id={self.id} kind={self.entity_kind} status={self.status}>"


class ImportRowError(BaseModel):
    """Execution-time failure for one source row of an import run."""

    __tablename__ = "import_row_errors"

    id: Mapped[int] = mapped_column(primary_key=True)
    run_id: Mapped[int] = mapped_column(
        ForeignKey("import_runs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    row_number: Mapped[int] = mapped_column(db.Integer, nullable=False)
    error_kind: Mapped[str | None] = mapped_column(db.String(32), nullable=True)
    message: Mapped[str] = mapped_column(db.Text, nullable=False)

    import_run = relationship("ImportRun", back_populates="errors")

    def __repr__(self) -> str:
        return f"<ImportRowError run={self.run_id} row={self.row_number}>"
