"""CLI commands for env-backfill."""

from . import backfill, db

__all__ = [
    "backfill",
    "db",
]
