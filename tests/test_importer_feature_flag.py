import json

from flask import Flask

from timesheet_app.importer import IMPORTER_EXTENSION_KEY, init_importer
from timesheet_app.models.importer.schema import EntityKind


def build_app(enabled=False):
    app = Flask(__name__)
    app.config.update(
        SECRET_KEY="test-secret",
        TESTING=True,
        IMPORTER_ENABLED=enabled,
    )

    init_importer(app)
    return app


def test_importer_disabled_registers_stub_cli():
    app = build_app(enabled=False)

    assert "importer" not in app.blueprints

    runner = app.test_cli_runner()
    result = runner.invoke(args=["importer"])
    assert result.exit_code != 0
    assert "Importer commands are unavailable" in result.output

    importer_state = app.extensions[IMPORTER_EXTENSION_KEY]
    assert importer_state["enabled"] is False


def test_importer_enabled_registers_blueprint_and_cli():
    app = build_app(enabled=True)

    assert "importer" in app.blueprints
    assert "importer.importer_healthcheck" in app.view_functions

    client = app.test_client()
    response = client.get("/importer/health")
    assert response.status_code == 200
    payload = json.loads(response.data)
    assert payload["enabled"] is True
    assert payload["entity_kinds"] == ["PERSON", "PROJECT", "TASK_CATEGORY", "TIME_ENTRY"]

    runner = app.test_cli_runner()
    result = runner.invoke(args=["importer"])
    assert result.exit_code == 0
    assert "- TIME_ENTRY" in result.output


def test_init_importer_records_rule_sets_and_is_repeatable():
    app = build_app(enabled=True)

    importer_state = app.extensions[IMPORTER_EXTENSION_KEY]
    rule_sets = importer_state["rule_sets"]
    assert set(rule_sets) == set(EntityKind)
    assert importer_state["settings"].preview_rows == 5

    init_importer(app)
    assert list(app.cli.commands).count("importer") == 1
