"""
Importer-specific helpers for uploaded files and per-app importer state.
"""

from __future__ import annotations

from typing import Iterable

from flask import Flask
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from timesheet_app.models.importer.schema import EntityKind

from .pipeline.dq import RuleSet, build_rule_sets
from .pipeline.workflow import ImportSettings

IMPORTER_EXTENSION_KEY = "importer"
CSV_EXTENSIONS: tuple[str, ...] = ("csv",)
DEFAULT_MAX_UPLOAD_MB = 10


def allowed_file(filename: str, allowed_extensions: Iterable[str] = CSV_EXTENSIONS) -> bool:
    """
    Validate the uploaded filename extension against the allowed set.
    """

    if not filename or "." not in filename:
        return False
    extension = filename.rsplit(".", 1)[1].lower()
    return extension in {ext.lower() for ext in allowed_extensions}


def max_upload_bytes(app: Flask) -> int:
    mb_limit = app.config.get("IMPORTER_MAX_UPLOAD_MB", DEFAULT_MAX_UPLOAD_MB)
    try:
        return int(mb_limit) * 1024 * 1024
    except (TypeError, ValueError):
        return DEFAULT_MAX_UPLOAD_MB * 1024 * 1024


def read_upload(file_storage: FileStorage | None, *, max_bytes: int) -> bytes:
    """
    Return the uploaded bytes after checking presence, extension and size.

    Raises ``ValueError`` for a missing or unsupported file and
    ``OverflowError`` when the payload exceeds ``max_bytes``.
    """

    if file_storage is None or not file_storage.filename:
        raise ValueError("No file uploaded.")
    if not allowed_file(file_storage.filename):
        raise ValueError("Unsupported file type; only CSV is allowed.")

    content_length = file_storage.content_length
    if content_length and content_length > max_bytes:
        raise OverflowError("Upload exceeds maximum size limit.")

    data = file_storage.stream.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise OverflowError("Upload exceeds maximum size limit.")
    return data


def upload_display_name(filename: str | None) -> str:
    """Sanitized file name recorded on the import run."""

    return secure_filename(filename or "") or "upload.csv"


def ensure_importer_state(app: Flask) -> dict:
    return app.extensions.setdefault(
        IMPORTER_EXTENSION_KEY,
        {
            "enabled": False,
            "entity_kinds": (),
            "rule_sets": None,
            "settings": None,
        },
    )


def get_rule_sets(app: Flask):
    state = ensure_importer_state(app)
    if state.get("rule_sets") is None:
        state["rule_sets"] = build_rule_sets(
            check_deliverability=bool(app.config.get("EMAIL_VALIDATION_CHECK_DELIVERABILITY", False))
        )
    return state["rule_sets"]


def get_rule_set(app: Flask, kind: EntityKind) -> RuleSet:
    return get_rule_sets(app)[kind]


def get_import_settings(app: Flask) -> ImportSettings:
    state = ensure_importer_state(app)
    if state.get("settings") is None:
        state["settings"] = ImportSettings.from_config(app.config)
    return state["settings"]
