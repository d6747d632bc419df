"""Backfill and status commands."""

from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import OperationalError

from env_backfill import db
from env_backfill.backfill import (
    BackfillError,
    BackfillResult,
    CurrentEnvironmentBackfill,
    NoDefaultEnvironmentError,
    resolve_default_environment,
)
from env_backfill.cli.app import app
from env_backfill.cli.commands.command_utils import run_with_cleanup
from env_backfill.config import BackfillConfig, BackfillScope, get_config
from env_backfill.repository import AppVersionRepository, OrganizationRepository

console = Console()


async def _backfill(
    app_config: BackfillConfig, migration: CurrentEnvironmentBackfill, dry_run: bool
) -> BackfillResult:
    _, session_maker = db.get_or_create_db(app_config)

    if dry_run:
        async with session_maker() as session:
            try:
                return await migration.up(session)
            finally:
                await session.rollback()

    async with db.scoped_session(session_maker) as session:
        return await migration.up(session)


@app.command()
def backfill(
    scope: Optional[BackfillScope] = typer.Option(
        None,
        "--scope",
        "-s",
        help="organization: write only each organization's own apps. "
        "global: write every app on every pass (last organization wins).",
        case_sensitive=False,
    ),
    batch: Optional[bool] = typer.Option(
        None, "--batch/--no-batch", help="One UPDATE per organization instead of per version"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Report what would change, then roll back"
    ),
) -> None:
    """Point every app version at its organization's default environment."""
    app_config = get_config()
    migration = CurrentEnvironmentBackfill(
        scope=scope or app_config.scope,
        batch_writes=app_config.batch_writes if batch is None else batch,
    )

    if migration.scope == BackfillScope.GLOBAL:
        console.print(
            "[yellow]Warning:[/yellow] global scope writes every app on every pass; "
            "all versions end up on the last organization's default environment."
        )

    try:
        result = run_with_cleanup(_backfill(app_config, migration, dry_run))
    except BackfillError as e:
        console.print(f"[red]Backfill failed:[/red] {e}")
        console.print("No changes were applied.")
        raise typer.Exit(1)
    except OperationalError as e:
        logger.error(f"Database error during backfill: {e}")
        console.print(f"[red]Database error:[/red] {e.orig}")
        raise typer.Exit(1)

    table = Table(title="Dry run (rolled back)" if dry_run else "Backfill")
    table.add_column("Organization", justify="right")
    table.add_column("Default environment", justify="right")
    table.add_column("Versions", justify="right")
    for organization_pass in result.passes:
        table.add_row(
            str(organization_pass.organization_id),
            str(organization_pass.environment_id),
            str(len(organization_pass.version_ids)),
        )
    console.print(table)

    verb = "would be updated" if dry_run else "updated"
    console.print(
        f"[green]{result.versions_updated} version(s) {verb} "
        f"across {result.organizations} organization(s)[/green]"
    )


async def _status(app_config: BackfillConfig) -> Table:
    _, session_maker = db.get_or_create_db(app_config)

    table = Table(title="Current environment backfill status")
    table.add_column("Organization", justify="right")
    table.add_column("Name")
    table.add_column("Default environment")
    table.add_column("Versions missing environment", justify="right")

    async with db.scoped_session(session_maker) as session:
        organizations = await OrganizationRepository(session).find_all_with_environments()
        version_repository = AppVersionRepository(session)

        for organization in organizations:
            try:
                environment = resolve_default_environment(
                    organization.id, organization.app_environments
                )
                default = f"{environment.name} ({environment.id})"
            except NoDefaultEnvironmentError:
                default = "[red]none[/red]"

            missing = await version_repository.count_missing_environment(organization.id)
            table.add_row(str(organization.id), organization.name, default, str(missing))

    return table


@app.command()
def status() -> None:
    """Show each organization's default environment and versions still to backfill."""
    app_config = get_config()

    try:
        table = run_with_cleanup(_status(app_config))
    except OperationalError as e:
        console.print(f"[red]Database error:[/red] {e.orig}")
        raise typer.Exit(1)

    console.print(table)
