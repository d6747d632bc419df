"""Forward and backward entry points invoked by the migration runner."""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from env_backfill.backfill.driver import BackfillResult, VersionBackfillDriver
from env_backfill.config import BackfillConfig, BackfillScope


class CurrentEnvironmentBackfill:
    """Backfill current_environment_id to each organization's default environment.

    The runner opens a transaction, calls up() with its session and commits or
    rolls back as a unit. down() is intentionally empty: before this migration
    versions carried no explicit reference, so there is nothing to restore.
    """

    def __init__(
        self,
        scope: BackfillScope = BackfillScope.ORGANIZATION,
        batch_writes: bool = False,
    ):
        self.scope = scope
        self.batch_writes = batch_writes

    @classmethod
    def from_config(cls, app_config: BackfillConfig) -> "CurrentEnvironmentBackfill":
        return cls(scope=app_config.scope, batch_writes=app_config.batch_writes)

    async def up(self, session: AsyncSession) -> BackfillResult:
        try:
            return await VersionBackfillDriver(
                session, scope=self.scope, batch_writes=self.batch_writes
            ).run()
        except Exception as e:
            logger.error(f"current_environment_id backfill failed: {e}")
            raise

    async def down(self, session: AsyncSession) -> None:
        logger.info("current_environment_id backfill has no inverse, nothing to do")
