from __future__ import annotations

import json

import pytest

from timesheet_app.models import Person
from timesheet_app.models.importer.schema import ImportRun, ImportRunStatus

PEOPLE = "Employee ID,Name,Email,Role\nE1,Alice,alice@example.com,ARCHITECT\nE2,Bob,bob@example.com,ASSOCIATE\n"


@pytest.fixture
def people_csv(tmp_path):
    path = tmp_path / "people.csv"
    path.write_text(PEOPLE, encoding="utf-8")
    return path


def test_group_lists_entity_kinds(importer_app, runner):
    result = runner.invoke(args=["importer"])

    assert result.exit_code == 0, result.output
    assert "Supported entity kinds:" in result.output
    assert "- TASK_CATEGORY" in result.output


def test_template_prints_canonical_header(importer_app, runner):
    result = runner.invoke(args=["importer", "template", "--kind", "time_entry"])

    assert result.exit_code == 0, result.output
    assert result.output == (
        "Employee ID,Project Code,Stage ID,Date,Start Time,End Time,Hours,Duration,Description,Status\n"
    )


def test_validate_prints_report(importer_app, runner, people_csv, person_factory):
    person_factory("E1")

    result = runner.invoke(args=["importer", "validate", "--kind", "PERSON", "--file", str(people_csv)])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["totalRows"] == 2
    assert payload["duplicateRows"] == 1
    assert ImportRun.query.count() == 0


def test_validate_reports_header_errors(importer_app, runner, tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("Colour\nteal\n", encoding="utf-8")

    result = runner.invoke(args=["importer", "validate", "--kind", "PERSON", "--file", str(path)])

    assert result.exit_code != 0
    assert "Missing required columns" in result.output


def test_execute_with_decision_file(importer_app, runner, people_csv, tmp_path, person_factory, admin_user):
    person_factory("E1", name="Stored")
    decisions = tmp_path / "decisions.json"
    decisions.write_text(json.dumps({"1": "skip"}), encoding="utf-8")

    result = runner.invoke(
        args=[
            "importer",
            "execute",
            "--kind",
            "PERSON",
            "--file",
            str(people_csv),
            "--decisions",
            f"@{decisions}",
            "--actor-id",
            str(admin_user.id),
        ]
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["status"] == "SUCCESS"
    assert payload["totalRows"] == 1
    assert Person.query.filter_by(employee_id="E1").one().name == "Stored"
    run = ImportRun.query.one()
    assert run.actor_id == admin_user.id
    assert run.file_name == "people.csv"
    assert run.status is ImportRunStatus.SUCCESS


def test_execute_rejects_bad_decisions(importer_app, runner, people_csv):
    result = runner.invoke(
        args=["importer", "execute", "--kind", "PERSON", "--file", str(people_csv), "--decisions", '{"1": "merge"}']
    )

    assert result.exit_code != 0
    assert "must be 'skip' or 'replace'" in result.output
    assert ImportRun.query.count() == 0


def test_runs_lists_recent_runs(importer_app, runner, run_factory):
    run_factory(started_offset_minutes=5)
    latest = run_factory(error_messages=((2, "Row failed."),), status=ImportRunStatus.PARTIAL)

    result = runner.invoke(args=["importer", "runs", "--limit", "1"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["pagination"]["total"] == 2
    assert [run["id"] for run in payload["runs"]] == [latest.id]
    assert payload["runs"][0]["errors"][0]["message"] == "Row failed."


def test_disabled_flag_blocks_commands(importer_app, runner):
    importer_app.config["IMPORTER_ENABLED"] = False

    result = runner.invoke(args=["importer", "runs"])

    assert result.exit_code != 0
    assert "Importer is disabled" in result.output
