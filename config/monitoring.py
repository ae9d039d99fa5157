# config/monitoring.py

import os

from prometheus_client import Counter, Histogram


class MonitoringConfig:
    """Monitoring and logging configuration"""

    MONITORING_ENABLED = os.environ.get("MONITORING_ENABLED", "false").lower() == "true"
    METRICS_ENDPOINT = os.environ.get("METRICS_ENDPOINT", "/metrics")

    # Logging Configuration
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json")  # 'json' or 'text'
    LOG_DIR = os.environ.get("LOG_DIR", "logs")
    LOG_FILE_MAX_BYTES = int(os.environ.get("LOG_FILE_MAX_BYTES", 10485760))  # 10MB
    LOG_FILE_BACKUP_COUNT = int(os.environ.get("LOG_FILE_BACKUP_COUNT", 10))

    ENABLE_FILE_LOGGING = os.environ.get("ENABLE_FILE_LOGGING", "true").lower() == "true"
    ENABLE_CONSOLE_LOGGING = os.environ.get("ENABLE_CONSOLE_LOGGING", "true").lower() == "true"

    APP_NAME = os.environ.get("APP_NAME", "Timesheet Importer")
    APP_VERSION = os.environ.get("APP_VERSION", "1.0.0")


class DevelopmentMonitoringConfig(MonitoringConfig):
    """Development-specific monitoring configuration"""

    LOG_LEVEL = "DEBUG"
    LOG_FORMAT = "text"
    ENABLE_FILE_LOGGING = True
    ENABLE_CONSOLE_LOGGING = True


class ProductionMonitoringConfig(MonitoringConfig):
    """Production-specific monitoring configuration"""

    LOG_LEVEL = "INFO"
    LOG_FORMAT = "json"
    ENABLE_FILE_LOGGING = True
    ENABLE_CONSOLE_LOGGING = False  # Usually handled by container orchestration


class TestingMonitoringConfig(MonitoringConfig):
    """Testing-specific monitoring configuration"""

    MONITORING_ENABLED = False
    LOG_LEVEL = "WARNING"
    LOG_FORMAT = "text"
    ENABLE_FILE_LOGGING = False
    ENABLE_CONSOLE_LOGGING = False


class ImporterMonitoring:
    """Prometheus metric helpers for importer API endpoints."""

    RUNS_LIST_COUNTER = Counter(
        "importer_runs_list_requests_total",
        "Total importer runs list API requests.",
        labelnames=("status",),
    )
    RUNS_LIST_LATENCY = Histogram(
        "importer_runs_list_request_seconds",
        "Latency histogram for importer runs list API.",
        labelnames=("status",),
        buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5),
    )
    RUNS_DETAIL_COUNTER = Counter(
        "importer_runs_detail_requests_total",
        "Total importer run detail API requests.",
        labelnames=("status",),
    )
    RUNS_DETAIL_LATENCY = Histogram(
        "importer_runs_detail_request_seconds",
        "Latency histogram for importer run detail API.",
        labelnames=("status",),
        buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5),
    )
    RUNS_STATS_COUNTER = Counter(
        "importer_runs_stats_requests_total",
        "Total importer run statistics API requests.",
        labelnames=("status",),
    )
    RUNS_STATS_LATENCY = Histogram(
        "importer_runs_stats_request_seconds",
        "Latency histogram for importer run statistics API.",
        labelnames=("status",),
        buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5),
    )
    UPLOAD_COUNTER = Counter(
        "importer_upload_requests_total",
        "Importer validate/execute upload requests by action and status.",
        labelnames=("action", "status"),
    )
    UPLOAD_LATENCY = Histogram(
        "importer_upload_request_seconds",
        "Latency histogram for importer validate/execute requests.",
        labelnames=("action",),
        buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30, 60),
    )

    @classmethod
    def record_runs_list(cls, *, duration_seconds: float, status: str):
        cls.RUNS_LIST_COUNTER.labels(status=status).inc()
        cls.RUNS_LIST_LATENCY.labels(status=status).observe(max(duration_seconds, 0.0))

    @classmethod
    def record_runs_detail(cls, *, duration_seconds: float, status: str):
        cls.RUNS_DETAIL_COUNTER.labels(status=status).inc()
        cls.RUNS_DETAIL_LATENCY.labels(status=status).observe(max(duration_seconds, 0.0))

    @classmethod
    def record_runs_stats(cls, *, duration_seconds: float, status: str):
        cls.RUNS_STATS_COUNTER.labels(status=status).inc()
        cls.RUNS_STATS_LATENCY.labels(status=status).observe(max(duration_seconds, 0.0))

    @classmethod
    def record_upload(cls, *, action: str, status: str, duration_seconds: float):
        cls.UPLOAD_COUNTER.labels(action=action, status=status).inc()
        cls.UPLOAD_LATENCY.labels(action=action).observe(max(duration_seconds, 0.0))
