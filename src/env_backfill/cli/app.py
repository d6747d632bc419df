from typing import Optional

import typer

from env_backfill.config import get_config
from env_backfill.utils import setup_logging


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:  # pragma: no cover
        import env_backfill

        typer.echo(f"env-backfill version: {env_backfill.__version__}")
        raise typer.Exit()


app = typer.Typer(name="env-backfill")


@app.callback()
def app_callback(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """env-backfill - point app versions at their organization's default environment."""

    if not version and ctx.invoked_subcommand is not None:
        app_config = get_config()
        setup_logging(log_level=app_config.log_level, log_file=app_config.log_file)
