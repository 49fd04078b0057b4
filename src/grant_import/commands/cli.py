"""Command line entry points for grant workbook imports."""

from __future__ import annotations

import sys
from pathlib import Path

import click

try:
    import frappe
except ImportError:
    frappe = None  # type: ignore

from grant_import.config import ImportConfig
from grant_import.errors import MalformedWorkbookError
from grant_import.importer import (
    FrappeNotificationEmitter,
    import_sheets,
    import_workbook,
    summary_message,
)
from grant_import.models import ImportResult
from grant_import.store import FrappePersistenceStore, InMemoryPersistenceStore
from grant_import.workbook import read_workbook


def _print_issues(result: ImportResult) -> None:
    for issue in result.errors:
        click.secho(f"  error: {issue}", fg="red")
    for issue in result.warnings:
        click.secho(f"  warning: {issue}", fg="yellow")
    for code in result.skipped_grants:
        click.echo(f"  skipped: {code}")


@click.group("grant-import")
def grant_import_group():
    """Grant workbook import commands."""
    pass


@grant_import_group.command("check")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def check_cli(path: Path) -> None:
    """Validate a grant workbook without writing anything.

    Sheets are committed to a throwaway in-memory store, so codes repeated
    across sheets are reported as skipped exactly as in a real import.
    """
    cfg = ImportConfig.load()

    try:
        with path.open("rb") as fp:
            workbook = read_workbook(fp, config=cfg.workbook_config, file_name=path.name)
    except MalformedWorkbookError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(2)

    result = import_sheets(workbook, store=InMemoryPersistenceStore(), config=cfg)
    click.echo(summary_message(result))
    _print_issues(result)

    if result.errors:
        sys.exit(1)


@grant_import_group.command("run")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--site", required=True, help="Frappe site to import into")
@click.option("--user", default=None, help="User that receives the completion notification")
def run_cli(path: Path, site: str, user: str | None) -> None:
    """Import a grant workbook into a Frappe site.

    Examples:\n
        grant-import run grants.xlsx --site erp.local\n
        grant-import run grants.xlsx --site erp.local --user finance@example.com\n
    """
    if frappe is None:
        click.secho("Error: Frappe is required for this command", fg="red")
        sys.exit(1)

    frappe.init(site=site)
    frappe.connect()

    try:
        cfg = ImportConfig.load()
        user = user or cfg.cli_user
        frappe.set_user(user)

        with path.open("rb") as fp:
            response = import_workbook(
                fp,
                store=FrappePersistenceStore(cfg),
                emitter=FrappeNotificationEmitter(user=user, config=cfg),
                config=cfg,
                file_name=path.name,
            )
    finally:
        frappe.destroy()

    click.echo(response.message)
    _print_issues(response.result)

    if not response.success:
        sys.exit(2)
    if response.result.errors:
        sys.exit(1)
