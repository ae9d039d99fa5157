"""
Declarative schema validation for canonical import rows.

Each entity kind gets one immutable ``RuleSet`` built from its contract at
application start. ``validate_row`` evaluates every rule and returns all
violations for the row, never just the first.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

from email_validator import EmailNotValidError, validate_email

from timesheet_app.importer.contracts import CONTRACTS, EntityContract, FieldSpec
from timesheet_app.models.importer.schema import EntityKind

from .normalize import CanonicalRow, parse_iso_date


@dataclass(frozen=True)
class FieldError:
    """Single field-level violation reported back to the operator."""

    row_number: int
    field: str
    message: str
    raw_value: object | None = None

    def to_dict(self) -> dict[str, object | None]:
        return {"field": self.field, "message": self.message, "value": self.raw_value}


@dataclass(frozen=True)
class DQRule:
    """Declarative rule definition evaluated against one canonical row."""

    code: str
    description: str

    def evaluate(self, row: CanonicalRow) -> Iterable[FieldError]:
        """Return violations for the provided row."""
        raise NotImplementedError


def _is_blank(value: object | None) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


@dataclass(frozen=True)
class RequiredRule(DQRule):
    field: str
    label: str

    def evaluate(self, row: CanonicalRow) -> Iterable[FieldError]:
        if not _is_blank(row.get(self.field)):
            return []
        return [FieldError(row.row_number, self.field, f"{self.label} is required.", row.get(self.field))]


@dataclass(frozen=True)
class NumberRule(DQRule):
    field: str
    label: str

    def evaluate(self, row: CanonicalRow) -> Iterable[FieldError]:
        value = row.get(self.field)
        if _is_blank(value) or (isinstance(value, (int, float)) and not isinstance(value, bool)):
            return []
        return [FieldError(row.row_number, self.field, f"{self.label} must be a number.", value)]


@dataclass(frozen=True)
class RangeRule(DQRule):
    field: str
    label: str
    minimum: float | None
    maximum: float | None

    def evaluate(self, row: CanonicalRow) -> Iterable[FieldError]:
        value = row.get(self.field)
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            return []
        if self.minimum is not None and value < self.minimum:
            return [FieldError(row.row_number, self.field, f"{self.label} must be at least {self.minimum:g}.", value)]
        if self.maximum is not None and value > self.maximum:
            return [FieldError(row.row_number, self.field, f"{self.label} must be at most {self.maximum:g}.", value)]
        return []


@dataclass(frozen=True)
class DateRule(DQRule):
    field: str
    label: str

    def evaluate(self, row: CanonicalRow) -> Iterable[FieldError]:
        value = row.get(self.field)
        if _is_blank(value) or parse_iso_date(value) is not None:
            return []
        return [
            FieldError(
                row.row_number,
                self.field,
                f"{self.label} must be a valid date in D/M/YYYY or YYYY-MM-DD format.",
                value,
            )
        ]


@dataclass(frozen=True)
class EnumRule(DQRule):
    field: str
    label: str
    choices: tuple[str, ...]

    def evaluate(self, row: CanonicalRow) -> Iterable[FieldError]:
        value = row.get(self.field)
        if _is_blank(value) or value in self.choices:
            return []
        return [
            FieldError(
                row.row_number,
                self.field,
                f"{self.label} must be one of: {', '.join(self.choices)}.",
                value,
            )
        ]


@dataclass(frozen=True)
class EmailRule(DQRule):
    field: str
    label: str
    check_deliverability: bool = False

    def evaluate(self, row: CanonicalRow) -> Iterable[FieldError]:
        value = row.get(self.field)
        if _is_blank(value):
            return []
        try:
            validate_email(str(value), check_deliverability=self.check_deliverability)
        except EmailNotValidError as exc:
            return [FieldError(row.row_number, self.field, f"{self.label} is not valid: {exc}", value)]
        return []


@dataclass(frozen=True)
class LengthRule(DQRule):
    field: str
    label: str
    max_length: int

    def evaluate(self, row: CanonicalRow) -> Iterable[FieldError]:
        value = row.get(self.field)
        if not isinstance(value, str) or len(value) <= self.max_length:
            return []
        return [
            FieldError(
                row.row_number,
                self.field,
                f"{self.label} must be at most {self.max_length} characters.",
                value,
            )
        ]


@dataclass(frozen=True)
class DateOrderRule(DQRule):
    start_field: str
    end_field: str
    message: str

    def evaluate(self, row: CanonicalRow) -> Iterable[FieldError]:
        start = parse_iso_date(row.get(self.start_field))
        end = parse_iso_date(row.get(self.end_field))
        if start is None or end is None or end >= start:
            return []
        return [FieldError(row.row_number, self.end_field, self.message, row.get(self.end_field))]


@dataclass(frozen=True)
class RuleSet:
    """Immutable, ordered rules for one entity kind."""

    kind: EntityKind
    rules: tuple[DQRule, ...]


def _field_rules(spec: FieldSpec, *, check_deliverability: bool) -> list[DQRule]:
    rules: list[DQRule] = []
    if spec.required:
        rules.append(RequiredRule(f"{spec.name.upper()}_REQUIRED", f"{spec.label} must be present.", spec.name, spec.label))
    if spec.type == "number":
        rules.append(NumberRule(f"{spec.name.upper()}_NUMBER", f"{spec.label} must be numeric.", spec.name, spec.label))
        if spec.minimum is not None or spec.maximum is not None:
            rules.append(
                RangeRule(
                    f"{spec.name.upper()}_RANGE",
                    f"{spec.label} must fall within bounds.",
                    spec.name,
                    spec.label,
                    spec.minimum,
                    spec.maximum,
                )
            )
    elif spec.type == "date":
        rules.append(DateRule(f"{spec.name.upper()}_DATE", f"{spec.label} must be a date.", spec.name, spec.label))
    elif spec.type == "enum":
        rules.append(
            EnumRule(f"{spec.name.upper()}_ENUM", f"{spec.label} must be a known value.", spec.name, spec.label, spec.choices)
        )
    elif spec.type == "email":
        rules.append(
            EmailRule(
                f"{spec.name.upper()}_EMAIL",
                f"{spec.label} must be a well-formed address.",
                spec.name,
                spec.label,
                check_deliverability,
            )
        )
    if spec.max_length is not None:
        rules.append(
            LengthRule(
                f"{spec.name.upper()}_LENGTH",
                f"{spec.label} must fit the stored column.",
                spec.name,
                spec.label,
                spec.max_length,
            )
        )
    return rules


def build_rule_set(contract: EntityContract, *, check_deliverability: bool = False) -> RuleSet:
    """Compile the rule set for one contract."""

    rules: list[DQRule] = []
    for spec in contract.fields:
        if spec.name == "duration":
            # Folded into ``hours`` during normalization.
            continue
        rules.extend(_field_rules(spec, check_deliverability=check_deliverability))
    if contract.kind is EntityKind.PROJECT:
        rules.append(
            DateOrderRule(
                "PROJECT_DATE_ORDER",
                "Project end date must not precede its start date.",
                "startDate",
                "endDate",
                "End Date must not be before Start Date.",
            )
        )
    return RuleSet(kind=contract.kind, rules=tuple(rules))


def build_rule_sets(*, check_deliverability: bool = False) -> Mapping[EntityKind, RuleSet]:
    """Compile rule sets for every supported entity kind."""

    return MappingProxyType(
        {
            kind: build_rule_set(contract, check_deliverability=check_deliverability)
            for kind, contract in CONTRACTS.items()
        }
    )


def validate_row(row: CanonicalRow, rule_set: RuleSet) -> tuple[FieldError, ...]:
    """Evaluate every rule against ``row`` and collect all violations."""

    if row.kind is not rule_set.kind:
        raise ValueError(f"Rule set for {rule_set.kind.value} cannot validate {row.kind.value} rows.")
    errors: list[FieldError] = []
    for rule in rule_set.rules:
        errors.extend(rule.evaluate(row))
    return tuple(errors)


def evaluate_rows(rows: Sequence[CanonicalRow], rule_set: RuleSet) -> dict[int, tuple[FieldError, ...]]:
    """Validate a batch, returning violations keyed by row number (clean rows omitted)."""

    results: dict[int, tuple[FieldError, ...]] = {}
    for row in rows:
        errors = validate_row(row, rule_set)
        if errors:
            results[row.row_number] = errors
    return results
