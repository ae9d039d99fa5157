"""
Operator decisions for detected duplicates and the execution plan built from them.
"""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

from timesheet_app.importer.errors import DecisionParseError

from .duplicates import DuplicateRecord
from .normalize import CanonicalRow


class Decision(str, enum.Enum):
    """Caller choice for a row: leave the stored record alone, or overwrite it."""

    SKIP = "skip"
    REPLACE = "replace"


class PlanAction(str, enum.Enum):
    SKIP = "SKIP"
    UPSERT = "UPSERT"


@dataclass(frozen=True)
class PlanStep:
    """One row of the execution plan."""

    row: CanonicalRow
    action: PlanAction
    decision: Decision | None = None
    flagged_duplicate: bool = False

    @property
    def row_number(self) -> int:
        return self.row.row_number


def _coerce_row_number(key: object) -> int:
    if isinstance(key, bool):
        raise DecisionParseError(f"Decision row number must be an integer, got {key!r}.")
    if isinstance(key, int):
        return key
    try:
        return int(str(key).strip())
    except ValueError:
        raise DecisionParseError(f"Decision row number must be an integer, got {key!r}.") from None


def parse_decisions(payload: str | bytes | Mapping[object, object] | None) -> Mapping[int, Decision]:
    """
    Parse the caller's ``{rowNumber: "skip"|"replace"}`` payload.

    Accepts a JSON document or an already-decoded mapping. Empty input means
    no decisions. Values are matched case-insensitively.
    """

    if payload is None:
        return MappingProxyType({})
    if isinstance(payload, (str, bytes)):
        text = payload.decode("utf-8") if isinstance(payload, bytes) else payload
        if not text.strip():
            return MappingProxyType({})
        try:
            payload = json.loads(text)
        except ValueError as exc:
            raise DecisionParseError(f"Decisions must be a JSON object: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise DecisionParseError("Decisions must be an object mapping row numbers to 'skip' or 'replace'.")

    decisions: dict[int, Decision] = {}
    for key, value in payload.items():
        row_number = _coerce_row_number(key)
        if isinstance(value, Decision):
            decisions[row_number] = value
            continue
        token = value.strip().lower() if isinstance(value, str) else None
        try:
            decisions[row_number] = Decision(token)
        except ValueError:
            raise DecisionParseError(
                f"Decision for row {row_number} must be 'skip' or 'replace', got {value!r}."
            ) from None
    return MappingProxyType(decisions)


def resolve_plan(
    rows: Sequence[CanonicalRow],
    duplicates: Iterable[DuplicateRecord],
    decisions: Mapping[int, Decision],
) -> tuple[PlanStep, ...]:
    """
    Build the ordered execution plan.

    A ``skip`` decision always wins, whether or not the row was flagged.
    Every other row proceeds; the executor decides between insert and replace.
    """

    flagged = {duplicate.row_number for duplicate in duplicates}
    plan: list[PlanStep] = []
    for row in rows:
        decision = decisions.get(row.row_number)
        action = PlanAction.SKIP if decision is Decision.SKIP else PlanAction.UPSERT
        plan.append(
            PlanStep(
                row=row,
                action=action,
                decision=decision,
                flagged_duplicate=row.row_number in flagged,
            )
        )
    return tuple(plan)
