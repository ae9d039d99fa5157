"""Import reconciliation pipeline: normalize, validate, detect, resolve, execute."""

from .decisions import Decision, PlanAction, PlanStep, parse_decisions, resolve_plan
from .dq import FieldError, RuleSet, build_rule_set, build_rule_sets, validate_row
from .duplicates import DuplicateRecord, detect_duplicates
from .load_core import ExecutionSummary, RowErrorKind, RowOutcome, RowStatus, execute_plan
from .normalize import CanonicalRow, ConversionFailure, NormalizedRow, normalize_row, quantize_hours
from .run_service import ImportRunService, RunFilters, RunListResult, RunStats, serialize_run
from .workflow import ImportSettings, ValidationReport, execute_upload, prepare_batch, validate_upload

__all__ = [
    "CanonicalRow",
    "ConversionFailure",
    "Decision",
    "DuplicateRecord",
    "ExecutionSummary",
    "FieldError",
    "ImportRunService",
    "ImportSettings",
    "NormalizedRow",
    "PlanAction",
    "PlanStep",
    "RowErrorKind",
    "RowOutcome",
    "RowStatus",
    "RuleSet",
    "RunFilters",
    "RunListResult",
    "RunStats",
    "ValidationReport",
    "build_rule_set",
    "build_rule_sets",
    "detect_duplicates",
    "execute_plan",
    "execute_upload",
    "normalize_row",
    "parse_decisions",
    "prepare_batch",
    "quantize_hours",
    "resolve_plan",
    "serialize_run",
    "validate_row",
    "validate_upload",
]
