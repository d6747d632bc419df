"""Database management commands."""

import typer
from loguru import logger
from rich.console import Console
from sqlalchemy.exc import OperationalError

from env_backfill import db
from env_backfill.backfill import BackfillError
from env_backfill.cli.app import app
from env_backfill.cli.commands.command_utils import run_with_cleanup
from env_backfill.config import get_config

console = Console()


@app.command()
def migrate() -> None:
    """Upgrade the database to the latest schema, running the backfill if it is pending."""
    app_config = get_config()
    logger.info(f"Migrating database: {app_config.sqlalchemy_url}")

    try:
        run_with_cleanup(db.run_migrations(app_config))
    except BackfillError as e:
        console.print(f"[red]Backfill failed:[/red] {e}")
        console.print("No changes were applied. Fix the data and run the migration again.")
        raise typer.Exit(1)
    except OperationalError as e:
        if "database is locked" in str(e):
            console.print(
                "[red]Error:[/red] Cannot access database. "
                "It may be in use by another process."
            )
            raise typer.Exit(1)
        raise

    console.print("[green]Database is up to date[/green]")
