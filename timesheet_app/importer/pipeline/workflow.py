"""
End-to-end validate and execute entry points shared by the HTTP views and CLI.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import IO, Mapping

from timesheet_app.importer.adapters import CSVRowReader, decode_upload
from timesheet_app.importer.contracts import coerce_entity_kind, get_contract
from timesheet_app.importer.metrics import record_run, record_validation
from timesheet_app.models import db
from timesheet_app.models.importer.schema import EntityKind

from .decisions import Decision, parse_decisions, resolve_plan
from .dq import FieldError, RuleSet, build_rule_set, validate_row
from .duplicates import DuplicateRecord, detect_duplicates
from .load_core import DEFAULT_FALLBACK_APPROVER_ID, ExecutionSummary, execute_plan
from .normalize import DEFAULT_ENTRY_HOURS, CanonicalRow, NormalizedRow, normalize_row

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportSettings:
    """Tunables read from the Flask config."""

    preview_rows: int = 5
    default_hours: float = DEFAULT_ENTRY_HOURS
    fallback_approver_id: str = DEFAULT_FALLBACK_APPROVER_ID

    @classmethod
    def from_config(cls, config: Mapping[str, object]) -> "ImportSettings":
        return cls(
            preview_rows=int(config.get("IMPORTER_PREVIEW_ROWS", 5)),
            default_hours=float(config.get("IMPORTER_DEFAULT_ENTRY_HOURS", DEFAULT_ENTRY_HOURS)),
            fallback_approver_id=str(config.get("IMPORTER_FALLBACK_APPROVER_ID") or DEFAULT_FALLBACK_APPROVER_ID),
        )


@dataclass(frozen=True)
class PreparedBatch:
    """Parsed, normalized and validated rows for one file."""

    kind: EntityKind
    rows: tuple[NormalizedRow, ...]
    errors: Mapping[int, tuple[FieldError, ...]]

    @property
    def valid_rows(self) -> tuple[CanonicalRow, ...]:
        return tuple(item.row for item in self.rows if item.row_number not in self.errors)


@dataclass(frozen=True)
class ValidationReport:
    total_rows: int
    errors: Mapping[int, tuple[FieldError, ...]]
    duplicates: tuple[DuplicateRecord, ...]
    preview: tuple[dict[str, object | None], ...]

    @property
    def error_rows(self) -> int:
        return len(self.errors)

    @property
    def duplicate_rows(self) -> int:
        return len(self.duplicates)

    @property
    def valid_rows(self) -> int:
        return self.total_rows - self.error_rows - self.duplicate_rows

    def to_dict(self) -> dict[str, object]:
        return {
            "totalRows": self.total_rows,
            "validRows": self.valid_rows,
            "errorRows": self.error_rows,
            "duplicateRows": self.duplicate_rows,
            "errors": [
                {"rowNumber": row_number, "errors": [error.to_dict() for error in errors]}
                for row_number, errors in sorted(self.errors.items())
            ],
            "duplicates": [duplicate.to_dict() for duplicate in self.duplicates],
            "preview": list(self.preview),
        }


def _as_text_stream(upload: IO[str] | bytes) -> IO[str]:
    if isinstance(upload, (bytes, bytearray)):
        return decode_upload(bytes(upload))
    return upload


def prepare_batch(
    upload: IO[str] | bytes,
    kind: str | EntityKind,
    *,
    rule_set: RuleSet | None = None,
    settings: ImportSettings | None = None,
) -> PreparedBatch:
    """Parse, normalize and validate every row in ``upload``."""

    kind = coerce_entity_kind(kind)
    contract = get_contract(kind)
    settings = settings or ImportSettings()
    rule_set = rule_set or build_rule_set(contract)

    reader = CSVRowReader(_as_text_stream(upload), contract)
    sources = reader.read_all()

    normalized: list[NormalizedRow] = []
    errors: dict[int, tuple[FieldError, ...]] = {}
    for source in sources:
        item = normalize_row(source, contract, default_hours=settings.default_hours)
        normalized.append(item)
        if item.failure is not None:
            failure = item.failure
            errors[item.row_number] = (
                FieldError(failure.row_number, failure.field, failure.message, failure.value),
            )
            continue
        row_errors = validate_row(item.row, rule_set)
        if row_errors:
            errors[item.row_number] = row_errors

    return PreparedBatch(kind=kind, rows=tuple(normalized), errors=errors)


def validate_upload(
    upload: IO[str] | bytes,
    kind: str | EntityKind,
    *,
    rule_set: RuleSet | None = None,
    settings: ImportSettings | None = None,
    session=None,
) -> ValidationReport:
    """Run mapping, validation and duplicate detection without writing anything."""

    settings = settings or ImportSettings()
    batch = prepare_batch(upload, kind, rule_set=rule_set, settings=settings)
    duplicates = detect_duplicates(batch.valid_rows, batch.kind, session=session or db.session)
    report = ValidationReport(
        total_rows=len(batch.rows),
        errors=batch.errors,
        duplicates=tuple(duplicates),
        preview=tuple(
            {"rowNumber": item.row_number, **item.row.as_dict()} for item in batch.rows[: settings.preview_rows]
        ),
    )
    record_validation(
        entity_kind=batch.kind.value,
        valid_rows=report.valid_rows,
        error_rows=report.error_rows,
        duplicate_rows=report.duplicate_rows,
    )
    logger.info(
        "Validated %s rows for %s: %s invalid, %s duplicates",
        report.total_rows,
        batch.kind.value,
        report.error_rows,
        report.duplicate_rows,
        extra={"importer_entity_kind": batch.kind.value},
    )
    return report


def execute_upload(
    upload: IO[str] | bytes,
    kind: str | EntityKind,
    decisions: Mapping[object, object] | str | bytes | None = None,
    *,
    file_name: str,
    actor_id: int | None = None,
    rule_set: RuleSet | None = None,
    settings: ImportSettings | None = None,
    session=None,
) -> ExecutionSummary:
    """
    Validate ``upload`` again and execute its valid rows.

    Rows failing conversion or schema rules never reach the plan and are not
    counted in the run; the caller saw them in the validation report.
    """

    settings = settings or ImportSettings()
    session = session or db.session
    decisions = parse_decisions(decisions)

    batch = prepare_batch(upload, kind, rule_set=rule_set, settings=settings)
    valid_rows = batch.valid_rows
    duplicates = detect_duplicates(valid_rows, batch.kind, session=session)
    plan = resolve_plan(valid_rows, duplicates, decisions)
    if batch.errors:
        logger.info(
            "Dropping %s invalid rows before executing %s import",
            len(batch.errors),
            batch.kind.value,
            extra={"importer_entity_kind": batch.kind.value},
        )

    started = time.perf_counter()
    summary = execute_plan(
        plan,
        batch.kind,
        file_name=file_name,
        actor_id=actor_id,
        fallback_approver_id=settings.fallback_approver_id,
        session=session,
    )
    record_run(
        entity_kind=batch.kind.value,
        status=summary.status.value,
        duration_seconds=time.perf_counter() - started,
        loaded=summary.success_rows,
        skipped=summary.skipped_rows,
        failed=summary.error_rows,
    )
    return summary
