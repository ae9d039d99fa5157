from types import MappingProxyType

import pytest

from timesheet_app.importer.contracts import PERSON_CONTRACT, PROJECT_CONTRACT, TIME_ENTRY_CONTRACT
from timesheet_app.importer.pipeline.dq import build_rule_set, build_rule_sets, evaluate_rows, validate_row
from timesheet_app.importer.pipeline.normalize import CanonicalRow
from timesheet_app.models.importer.schema import EntityKind

PERSON_RULES = build_rule_set(PERSON_CONTRACT)
PROJECT_RULES = build_rule_set(PROJECT_CONTRACT)
TIME_ENTRY_RULES = build_rule_set(TIME_ENTRY_CONTRACT)


def _row(kind: EntityKind, row_number: int = 1, **values) -> CanonicalRow:
    return CanonicalRow(row_number=row_number, kind=kind, values=MappingProxyType(values))


def _person(**overrides) -> CanonicalRow:
    values = {"employeeId": "E1", "name": "Alice", "email": "alice@example.com", "role": "ARCHITECT", "isActive": True}
    values.update(overrides)
    return _row(EntityKind.PERSON, **values)


def test_valid_person_has_no_errors():
    assert validate_row(_person(), PERSON_RULES) == ()


def test_all_violations_are_reported_not_just_the_first():
    errors = validate_row(_person(employeeId=None, name="  ", email="nope", role="WIZARD"), PERSON_RULES)

    assert [error.field for error in errors] == ["employeeId", "name", "email", "role"]
    assert errors[0].message == "Employee ID is required."
    assert errors[3].message.startswith("Role must be one of: ")
    assert errors[3].to_dict() == {"field": "role", "message": errors[3].message, "value": "WIZARD"}


def test_email_errors_carry_validator_detail():
    (error,) = validate_row(_person(email="alice@@example.com"), PERSON_RULES)

    assert error.field == "email"
    assert error.message.startswith("Email is not valid:")
    assert error.raw_value == "alice@@example.com"


def test_values_longer_than_their_column_are_rejected():
    errors = validate_row(_person(employeeId="E" * 51, position="p" * 200), PERSON_RULES)

    assert [error.field for error in errors] == ["employeeId"]
    assert errors[0].message == "Employee ID must be at most 50 characters."

    (nickname,) = validate_row(
        _row(EntityKind.PROJECT, projectCode="P1", name="Library", startDate="2024-01-01", nickname="n" * 101),
        PROJECT_RULES,
    )
    assert nickname.field == "nickname"


def test_project_dates_must_parse_and_be_ordered():
    base = {"projectCode": "P1", "name": "Library", "status": "ACTIVE"}

    bad_date = validate_row(_row(EntityKind.PROJECT, startDate="2024-02-30", **base), PROJECT_RULES)
    reversed_dates = validate_row(
        _row(EntityKind.PROJECT, startDate="2024-05-01", endDate="2024-04-01", **base), PROJECT_RULES
    )
    same_day = validate_row(_row(EntityKind.PROJECT, startDate="2024-05-01", endDate="2024-05-01", **base), PROJECT_RULES)

    assert [error.field for error in bad_date] == ["startDate"]
    assert "D/M/YYYY or YYYY-MM-DD" in bad_date[0].message
    assert [error.message for error in reversed_dates] == ["End Date must not be before Start Date."]
    assert same_day == ()


def test_time_entry_hours_range_and_references_required():
    row = _row(EntityKind.TIME_ENTRY, employeeId="E1", projectCode=None, date="2024-01-15", hours=25.0, status="DRAFT")

    errors = validate_row(row, TIME_ENTRY_RULES)

    assert {error.field for error in errors} == {"projectCode", "hours"}
    assert any("at most 24" in error.message for error in errors)


def test_time_entry_status_must_be_known():
    row = _row(EntityKind.TIME_ENTRY, employeeId="E1", projectCode="P1", date="2024-01-15", hours=8.0, status="DONE")

    (error,) = validate_row(row, TIME_ENTRY_RULES)

    assert error.field == "status"


def test_rule_sets_are_immutable_and_keyed_by_kind():
    rule_sets = build_rule_sets()

    assert set(rule_sets) == set(EntityKind)
    with pytest.raises(TypeError):
        rule_sets[EntityKind.PERSON] = PERSON_RULES
    assert isinstance(rule_sets[EntityKind.PERSON].rules, tuple)


def test_duration_has_no_rules_of_its_own():
    assert not any("DURATION" in rule.code for rule in TIME_ENTRY_RULES.rules)


def test_rule_set_kind_mismatch_is_rejected():
    with pytest.raises(ValueError):
        validate_row(_person(), PROJECT_RULES)


def test_evaluate_rows_omits_clean_rows():
    rows = [_person(), _row(EntityKind.PERSON, row_number=2, employeeId="E2")]

    results = evaluate_rows(rows, PERSON_RULES)

    assert list(results) == [2]
    assert {error.field for error in results[2]} == {"name", "email", "role"}
