"""Main CLI entry point for env-backfill."""  # pragma: no cover

from env_backfill.cli.app import app  # pragma: no cover

# Register commands
from env_backfill.cli.commands import backfill, db  # noqa: F401  # pragma: no cover

if __name__ == "__main__":  # pragma: no cover
    app()
