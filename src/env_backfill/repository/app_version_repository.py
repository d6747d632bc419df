"""Repository for app versions."""

from typing import Optional, Sequence

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession

from env_backfill.models import App, AppVersion
from env_backfill.repository.repository import Repository


class AppVersionRepository(Repository[AppVersion]):
    """Repository for AppVersion model.

    Writes go straight to the database with UPDATE statements rather than
    through the identity map, so each call returns the number of rows the
    database reports as matched.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(session, AppVersion)

    async def set_current_environment(self, version_id: int, environment_id: int) -> int:
        """Point one version at an environment.

        Returns:
            Number of rows matched (1 when the version exists)
        """
        stmt = (
            update(AppVersion)
            .where(AppVersion.id == version_id)
            .values(current_environment_id=environment_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.execute_query(stmt)
        return result.rowcount  # pyright: ignore [reportAttributeAccessIssue]

    async def set_current_environment_bulk(
        self, version_ids: Sequence[int], environment_id: int
    ) -> int:
        """Point many versions at one environment in a single statement.

        Returns:
            Number of rows matched
        """
        if not version_ids:
            return 0
        stmt = (
            update(AppVersion)
            .where(AppVersion.id.in_(version_ids))
            .values(current_environment_id=environment_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.execute_query(stmt)
        return result.rowcount  # pyright: ignore [reportAttributeAccessIssue]

    async def count_missing_environment(self, organization_id: Optional[int] = None) -> int:
        """Count versions that have no current environment yet."""
        query = (
            self.select(func.count(AppVersion.id))
            .join(App, App.id == AppVersion.app_id)
            .where(AppVersion.current_environment_id.is_(None))
        )
        if organization_id is not None:
            query = query.where(App.organization_id == organization_id)
        result = await self.execute_query(query)
        return result.scalar_one()
