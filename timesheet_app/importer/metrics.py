"""Prometheus metrics helpers for the importer."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

_validation_counter = Counter(
    "importer_validations_total",
    "Validation passes performed by entity kind.",
    ["entity_kind"],
)
_validation_rows = Counter(
    "importer_validation_rows_total",
    "Rows seen during validation by entity kind and outcome (valid, invalid, duplicate).",
    ["entity_kind", "outcome"],
)
_run_counter = Counter(
    "importer_runs_total",
    "Executed import runs by entity kind and final status.",
    ["entity_kind", "status"],
)
_row_counter = Counter(
    "importer_rows_total",
    "Executed import rows by entity kind and outcome (loaded, skipped, failed).",
    ["entity_kind", "outcome"],
)
_run_duration = Histogram(
    "importer_run_duration_seconds",
    "Wall time spent executing an import run.",
    ["entity_kind"],
    buckets=(0.1, 0.5, 1, 2, 5, 10, 30, 60, 120, 300),
)


def record_validation(*, entity_kind: str, valid_rows: int, error_rows: int, duplicate_rows: int) -> None:
    """Capture counts from one validation pass."""

    _validation_counter.labels(entity_kind=entity_kind).inc()
    for outcome, count in (("valid", valid_rows), ("invalid", error_rows), ("duplicate", duplicate_rows)):
        if count:
            _validation_rows.labels(entity_kind=entity_kind, outcome=outcome).inc(count)


def record_run(
    *,
    entity_kind: str,
    status: str,
    duration_seconds: float,
    loaded: int,
    skipped: int,
    failed: int,
) -> None:
    """Capture metrics for a finished import run."""

    _run_counter.labels(entity_kind=entity_kind, status=status).inc()
    _run_duration.labels(entity_kind=entity_kind).observe(duration_seconds)
    for outcome, count in (("loaded", loaded), ("skipped", skipped), ("failed", failed)):
        if count:
            _row_counter.labels(entity_kind=entity_kind, outcome=outcome).inc(count)
