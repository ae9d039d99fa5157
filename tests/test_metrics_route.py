from flask import Flask

from timesheet_app.importer.metrics import record_run
from timesheet_app.routes.metrics import register_metrics_routes


def _metrics_app(**config):
    app = Flask(__name__)
    app.config.update({"TESTING": True, "APP_NAME": "Timesheet Importer", "APP_VERSION": "9.9.9", **config})
    register_metrics_routes(app)
    return app


def test_metrics_endpoint_serves_importer_series():
    client = _metrics_app(MONITORING_ENABLED=True, METRICS_ENDPOINT="/metrics").test_client()
    record_run(entity_kind="PERSON", status="SUCCESS", duration_seconds=0.2, loaded=1, skipped=0, failed=0)

    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.mimetype == "text/plain"
    body = response.get_data(as_text=True)
    assert "importer_runs_total" in body
    assert 'version="9.9.9"' in body


def test_metrics_endpoint_follows_configured_path():
    client = _metrics_app(MONITORING_ENABLED=True, METRICS_ENDPOINT="/internal/metrics").test_client()

    assert client.get("/internal/metrics").status_code == 200
    assert client.get("/metrics").status_code == 404


def test_metrics_endpoint_absent_when_monitoring_disabled():
    client = _metrics_app(MONITORING_ENABLED=False).test_client()

    assert client.get("/metrics").status_code == 404


def test_testing_app_does_not_expose_metrics(client):
    assert client.get("/metrics").status_code == 404
