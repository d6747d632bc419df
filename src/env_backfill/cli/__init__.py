"""CLI tools for env-backfill."""
