"""Models package for env-backfill."""

from env_backfill.models.base import Base
from env_backfill.models.tenancy import App, AppEnvironment, AppVersion, Organization

__all__ = [
    "Base",
    "Organization",
    "AppEnvironment",
    "App",
    "AppVersion",
]
