"""
Field normalization for parsed CSV rows.

Turns a ``SourceRow`` into an immutable ``CanonicalRow``: blank cells become
absent values, dates are rewritten to ISO form, booleans are coerced, and
time-entry hours are resolved and quantized to the 15 minute grid. Problems
the validator can describe stay in the row as raw values; only time-entry
conversions that cannot produce a usable hour value fail the row outright.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from types import MappingProxyType
from typing import Mapping

from timesheet_app.importer.adapters import SourceRow
from timesheet_app.importer.contracts import EntityContract, FieldSpec
from timesheet_app.models.importer.schema import EntityKind

DEFAULT_ENTRY_HOURS = 8.0
DEFAULT_START_TIME = time(9, 0)
MAX_ENTRY_HOURS = 24.0

CONVERSION_FAILED_FIELD = "date/time"
CONVERSION_FAILED_VALUE = "conversion_failed"

_DMY_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_OF_DAY = re.compile(r"^(\d{1,2}):(\d{2})$")
_TRUTHY = frozenset({"true", "1", "yes", "active", "on"})


@dataclass(frozen=True)
class CanonicalRow:
    """Row keyed by canonical field name, tagged with its source position."""

    row_number: int
    kind: EntityKind
    values: Mapping[str, object | None]

    def get(self, name: str, default: object | None = None) -> object | None:
        return self.values.get(name, default)

    def as_dict(self) -> dict[str, object | None]:
        return dict(self.values)


@dataclass(frozen=True)
class ConversionFailure:
    """A row whose values could not be converted into a usable record."""

    row_number: int
    message: str
    field: str = CONVERSION_FAILED_FIELD
    value: str = CONVERSION_FAILED_VALUE


@dataclass(frozen=True)
class NormalizedRow:
    """Tagged normalization result: a canonical row, possibly with a failure."""

    row: CanonicalRow
    failure: ConversionFailure | None = None

    @property
    def row_number(self) -> int:
        return self.row.row_number

    @property
    def ok(self) -> bool:
        return self.failure is None


class _ConversionError(Exception):
    pass


def _clean(value: object | None) -> str | None:
    if value is None:
        return None
    token = str(value).strip()
    return token or None


def quantize_hours(value: float) -> float:
    """Round an hour count to the nearest quarter hour, halves rounding up."""

    return math.floor(value * 4 + 0.5) / 4


def normalize_date(value: object | None) -> str | None:
    """Rewrite ``D/M/YYYY`` as ``YYYY-MM-DD``; other shapes are returned unchanged."""

    token = _clean(value)
    if token is None:
        return None
    match = _DMY_DATE.match(token)
    if match:
        day, month, year = match.groups()
        return f"{year}-{int(month):02d}-{int(day):02d}"
    return token


def parse_iso_date(value: object | None) -> date | None:
    """Return a calendar date for a canonical ``YYYY-MM-DD`` value, else ``None``."""

    if isinstance(value, date):
        return value
    token = _clean(value)
    if token is None or not _ISO_DATE.match(token):
        return None
    try:
        return date.fromisoformat(token)
    except ValueError:
        return None


def normalize_boolean(value: object | None, *, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    token = _clean(value)
    if token is None:
        return default
    return token.lower() in _TRUTHY


def _normalize_number(value: object | None) -> float | str | None:
    token = _clean(value)
    if token is None:
        return None
    try:
        number = float(token)
    except ValueError:
        return token
    if math.isnan(number) or math.isinf(number):
        return token
    return number


def _normalize_field(spec: FieldSpec, raw: str | None) -> object | None:
    if spec.type == "boolean":
        return normalize_boolean(raw, default=bool(spec.default))
    token = _clean(raw)
    if token is None:
        return spec.default
    if spec.type == "email":
        return token.lower()
    if spec.type == "enum":
        return token.upper()
    if spec.type == "date":
        return normalize_date(token)
    if spec.type == "number":
        return _normalize_number(token)
    return token


def _parse_time_of_day(raw: str, label: str) -> time:
    match = _TIME_OF_DAY.match(raw)
    if not match:
        raise _ConversionError(f"{label} '{raw}' is not a valid H:MM time.")
    hour, minute = (int(part) for part in match.groups())
    if hour > 23 or minute > 59:
        raise _ConversionError(f"{label} '{raw}' is not a valid H:MM time.")
    return time(hour, minute)


def _resolve_hours(values: dict[str, object | None], default_hours: float) -> float:
    raw_hours = values.pop("hours", None)
    raw_duration = values.pop("duration", None)
    if raw_hours is not None:
        source, label = raw_hours, "Hours"
    elif raw_duration is not None:
        source, label = raw_duration, "Duration"
    else:
        source, label = default_hours, "Default hours"

    if isinstance(source, str):
        raise _ConversionError(f"{label} '{source}' is not a number.")
    return quantize_hours(float(source))


def _check_hours(hours: float) -> float:
    if not 0 < hours <= MAX_ENTRY_HOURS:
        raise _ConversionError(f"Hours must be greater than 0 and at most 24 after rounding (got {hours:g}).")
    return hours


def _derive_time_entry(values: dict[str, object | None], default_hours: float) -> None:
    hours = _check_hours(_resolve_hours(values, default_hours))

    raw_start = values.get("startTime")
    raw_end = values.get("endTime")
    start = _parse_time_of_day(str(raw_start), "Start Time") if raw_start is not None else None
    end = _parse_time_of_day(str(raw_end), "End Time") if raw_end is not None else None

    work_date = parse_iso_date(values.get("date"))
    if work_date is None:
        # The validator reports the date; times cannot be anchored without it.
        values["hours"] = hours
        values["startTime"] = None
        values["endTime"] = None
        return

    if start is not None and end is not None:
        start_at = datetime.combine(work_date, start)
        end_at = datetime.combine(work_date, end)
        if end_at <= start_at:
            raise _ConversionError("End Time must be after Start Time.")
        hours = _check_hours(quantize_hours((end_at - start_at).total_seconds() / 3600))
    elif start is None and end is None:
        start_at = datetime.combine(work_date, DEFAULT_START_TIME)
        end_at = start_at + timedelta(minutes=round(hours * 60))
    else:
        start_at = datetime.combine(work_date, start) if start is not None else None
        end_at = datetime.combine(work_date, end) if end is not None else None

    values["hours"] = hours
    values["startTime"] = start_at.isoformat() if start_at is not None else None
    values["endTime"] = end_at.isoformat() if end_at is not None else None


def normalize_row(
    source: SourceRow,
    contract: EntityContract,
    *,
    default_hours: float = DEFAULT_ENTRY_HOURS,
) -> NormalizedRow:
    """Normalize one parsed row against ``contract``."""

    values: dict[str, object | None] = {}
    for spec in contract.fields:
        if spec.type == "time":
            values[spec.name] = _clean(source.values.get(spec.name))
        else:
            values[spec.name] = _normalize_field(spec, source.values.get(spec.name))

    failure = None
    if contract.kind is EntityKind.TIME_ENTRY:
        try:
            _derive_time_entry(values, default_hours)
        except _ConversionError as exc:
            failure = ConversionFailure(row_number=source.row_number, message=str(exc))

    row = CanonicalRow(row_number=source.row_number, kind=contract.kind, values=MappingProxyType(values))
    return NormalizedRow(row=row, failure=failure)
