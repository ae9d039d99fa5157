"""
Importer feature package.

Provides conditional blueprint and CLI registration, and builds the per-kind
validation rule sets once per application.
"""

from __future__ import annotations

from flask import Flask

from timesheet_app.utils.importer import is_importer_enabled

from .cli import get_disabled_importer_group, importer_cli
from .contracts import CONTRACTS
from .pipeline.dq import build_rule_sets
from .pipeline.run_service import ImportRunService, RunFilters
from .pipeline.workflow import ImportSettings
from .utils import IMPORTER_EXTENSION_KEY, ensure_importer_state
from .views import importer_blueprint

__all__ = [
    "init_importer",
    "IMPORTER_EXTENSION_KEY",
    "ImportRunService",
    "RunFilters",
]


def _set_cli(app: Flask, enabled: bool) -> None:
    """Register the appropriate CLI group based on flag state."""
    # Avoid duplicate registrations when running tests
    command_name = importer_cli.name
    if command_name in app.cli.commands:
        app.cli.commands.pop(command_name)

    if enabled:
        app.cli.add_command(importer_cli)
    else:
        app.cli.add_command(get_disabled_importer_group())


def init_importer(app: Flask) -> None:
    """
    Conditionally mount importer blueprint and CLI based on configuration.

    Records importer state, including the immutable rule set for each entity
    kind, inside ``app.extensions['importer']``.
    """
    enabled = is_importer_enabled(app)
    state = ensure_importer_state(app)
    state.update(
        {
            "enabled": enabled,
            "entity_kinds": tuple(kind.value for kind in CONTRACTS),
            "rule_sets": build_rule_sets(
                check_deliverability=bool(app.config.get("EMAIL_VALIDATION_CHECK_DELIVERABILITY", False))
            ),
            "settings": ImportSettings.from_config(app.config),
        }
    )

    if not enabled:
        _set_cli(app, enabled=False)
        app.logger.info("Importer disabled via IMPORTER_ENABLED flag; skipping registration.")
        return

    if importer_blueprint.name not in app.blueprints and not getattr(app, "_got_first_request", False):
        app.register_blueprint(importer_blueprint)
    elif importer_blueprint.name not in app.blueprints:
        app.logger.warning(
            "Importer blueprint registration skipped because the app has already handled its first request."
        )
    _set_cli(app, enabled=True)
    app.logger.info("Importer enabled for entity kinds: %s", ", ".join(state["entity_kinds"]))
