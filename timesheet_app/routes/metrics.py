# timesheet_app/routes/metrics.py

"""
Prometheus scrape endpoint
"""

from flask import Response
from prometheus_client import CONTENT_TYPE_LATEST, Info, generate_latest

_build_info = Info("importer_build", "Application name and version serving the importer")


def register_metrics_routes(app):
    """Expose collected metrics when monitoring is enabled"""

    if not app.config.get("MONITORING_ENABLED", False):
        return

    _build_info.info(
        {
            "app_name": str(app.config.get("APP_NAME", "")),
            "version": str(app.config.get("APP_VERSION", "")),
        }
    )

    endpoint = app.config.get("METRICS_ENDPOINT") or "/metrics"

    @app.route(endpoint, methods=["GET"], endpoint="metrics")
    def metrics():
        return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)

    app.logger.info(f"Metrics exposed at {endpoint}")
