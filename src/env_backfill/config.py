"""Configuration management for env-backfill."""

from enum import Enum
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DATA_DIR_NAME = ".env-backfill"
DATABASE_NAME = "backfill.db"

Environment = Literal["test", "dev", "user"]


class BackfillScope(str, Enum):
    """Which apps an organization's pass writes to.

    ORGANIZATION only touches apps owned by the organization being processed.
    GLOBAL touches every app on every pass, so the last organization processed
    wins. GLOBAL exists for parity with deployments that expect a single
    environment across all tenants.
    """

    ORGANIZATION = "organization"
    GLOBAL = "global"


class BackfillConfig(BaseSettings):
    """Settings for the backfill runner.

    Values are read from ENV_BACKFILL_* environment variables.
    """

    env: Environment = Field(default="dev", description="Environment name")

    database_url: Optional[str] = Field(
        default=None,
        description="SQLAlchemy URL. When unset, a SQLite database under database_path is used.",
    )

    database_path: Path = Field(
        default_factory=lambda: Path.home() / DATA_DIR_NAME / DATABASE_NAME,
        description="Path of the SQLite database used when database_url is not set",
    )

    scope: BackfillScope = Field(
        default=BackfillScope.ORGANIZATION,
        description="Restrict each organization's pass to its own apps, or write every app",
    )

    batch_writes: bool = Field(
        default=False,
        description="Issue one UPDATE per organization instead of one per version",
    )

    log_level: str = "INFO"

    log_file: Optional[Path] = Field(
        default=None,
        description="Optional log file; rotated at 10 MB",
    )

    model_config = SettingsConfigDict(
        env_prefix="ENV_BACKFILL_",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @property
    def sqlalchemy_url(self) -> str:
        """URL handed to the async engine and to alembic."""
        if self.database_url:
            return self.database_url
        return f"sqlite+aiosqlite:///{self.database_path}"


def get_config() -> BackfillConfig:
    """Load configuration from the environment."""
    return BackfillConfig()
