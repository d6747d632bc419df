"""Backfill of explicit current-environment references on app versions."""

from env_backfill.backfill.driver import BackfillResult, OrganizationPass, VersionBackfillDriver
from env_backfill.backfill.errors import (
    BackfillError,
    BackfillWriteError,
    NoDefaultEnvironmentError,
)
from env_backfill.backfill.migration import CurrentEnvironmentBackfill
from env_backfill.backfill.resolver import resolve_default_environment

__all__ = [
    "BackfillError",
    "BackfillResult",
    "BackfillWriteError",
    "CurrentEnvironmentBackfill",
    "NoDefaultEnvironmentError",
    "OrganizationPass",
    "VersionBackfillDriver",
    "resolve_default_environment",
]
