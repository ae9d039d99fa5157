"""
CLI commands for running imports and inspecting the audit trail.
"""

from __future__ import annotations

import csv
import io
import json
from pathlib import Path
from typing import Optional

import click
from flask.cli import ScriptInfo

from timesheet_app.importer.contracts import CONTRACTS, get_contract
from timesheet_app.importer.errors import ImporterError
from timesheet_app.importer.pipeline.decisions import parse_decisions
from timesheet_app.importer.pipeline.run_service import ImportRunService, RunFilters, serialize_run
from timesheet_app.importer.pipeline.workflow import execute_upload, validate_upload
from timesheet_app.utils.importer import is_importer_enabled

from .utils import get_import_settings, get_rule_set, upload_display_name

_KIND_CHOICE = click.Choice([kind.value for kind in CONTRACTS], case_sensitive=False)


@click.group(name="importer", invoke_without_command=True)
@click.pass_context
def importer_cli(ctx):
    """
    Importer commands: validate and execute CSV files, inspect past runs.

    Lists the supported entity kinds when invoked without a subcommand.
    """
    info = ctx.ensure_object(ScriptInfo)
    app = info.load_app()
    if not is_importer_enabled(app):
        raise click.ClickException(
            "Importer is disabled via IMPORTER_ENABLED=false. Enable it to run importer CLI commands."
        )
    if ctx.invoked_subcommand is None:
        click.echo("Supported entity kinds:")
        for kind in CONTRACTS:
            click.echo(f"  - {kind.value}")


def get_disabled_importer_group() -> click.Group:
    """
    Return a minimal command group that informs the operator the importer is disabled.
    """

    @click.group(name="importer", invoke_without_command=True)
    def disabled_group():
        raise click.ClickException("Importer commands are unavailable because IMPORTER_ENABLED=false.")

    return disabled_group


def _load_app():
    return click.get_current_context().ensure_object(ScriptInfo).load_app()


def _read_file(file_path: Path) -> bytes:
    try:
        return file_path.read_bytes()
    except OSError as exc:
        raise click.ClickException(f"Unable to read {file_path}: {exc}") from exc


def _load_decisions(raw: Optional[str]):
    """Accept inline JSON or ``@path/to/decisions.json``."""

    if raw and raw.startswith("@"):
        raw = _read_file(Path(raw[1:])).decode("utf-8")
    try:
        return parse_decisions(raw)
    except ImporterError as exc:
        raise click.ClickException(str(exc)) from exc


@importer_cli.command("validate")
@click.option("--kind", "entity_kind", type=_KIND_CHOICE, required=True, help="Entity kind contained in the file.")
@click.option(
    "--file",
    "file_path",
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    required=True,
    help="CSV file to validate.",
)
def validate_command(entity_kind: str, file_path: Path):
    """Print the validation report for a CSV file without writing anything."""
    app = _load_app()
    kind = get_contract(entity_kind).kind
    with app.app_context():
        try:
            report = validate_upload(
                _read_file(file_path),
                kind,
                rule_set=get_rule_set(app, kind),
                settings=get_import_settings(app),
            )
        except ImporterError as exc:
            raise click.ClickException(str(exc)) from exc
    click.echo(json.dumps(report.to_dict(), indent=2, default=str))


@importer_cli.command("execute")
@click.option("--kind", "entity_kind", type=_KIND_CHOICE, required=True, help="Entity kind contained in the file.")
@click.option(
    "--file",
    "file_path",
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    required=True,
    help="CSV file to import.",
)
@click.option("--decisions", "raw_decisions", default=None, help="JSON decisions or @file with them.")
@click.option("--actor-id", type=int, default=None, help="User id recorded as the run's actor.")
def execute_command(entity_kind: str, file_path: Path, raw_decisions: Optional[str], actor_id: Optional[int]):
    """Execute a CSV import and print the run summary."""
    app = _load_app()
    kind = get_contract(entity_kind).kind
    decisions = _load_decisions(raw_decisions)
    with app.app_context():
        try:
            summary = execute_upload(
                _read_file(file_path),
                kind,
                decisions,
                file_name=upload_display_name(file_path.name),
                actor_id=actor_id,
                rule_set=get_rule_set(app, kind),
                settings=get_import_settings(app),
            )
        except ImporterError as exc:
            raise click.ClickException(str(exc)) from exc
        except Exception as exc:
            raise click.ClickException(f"Import failed: {exc}") from exc
    click.echo(json.dumps(summary.to_dict(), indent=2))


@importer_cli.command("runs")
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--limit", type=int, default=None, help="Runs per page (defaults to IMPORTER_LOGS_PAGE_SIZE).")
def runs_command(page: int, limit: Optional[int]):
    """Print import runs newest first, with their row errors."""
    app = _load_app()
    with app.app_context():
        try:
            filters = RunFilters.coerce(
                page=page,
                limit=limit,
                default_limit=app.config.get("IMPORTER_LOGS_PAGE_SIZE", 20),
                max_limit=app.config.get("IMPORTER_LOGS_MAX_PAGE_SIZE", 100),
            )
        except ValueError as exc:
            raise click.ClickException(str(exc)) from exc
        result = ImportRunService().list_runs(filters)
        payload = {"runs": [serialize_run(run) for run in result.items], "pagination": result.pagination()}
    click.echo(json.dumps(payload, indent=2))


@importer_cli.command("template")
@click.option("--kind", "entity_kind", type=_KIND_CHOICE, required=True)
def template_command(entity_kind: str):
    """Print the canonical CSV header row for an entity kind."""
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(get_contract(entity_kind).labels())
    click.echo(buffer.getvalue(), nl=False)
