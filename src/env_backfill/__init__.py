"""env-backfill - populate explicit current-environment references on app versions."""

__version__ = "0.1.0"
