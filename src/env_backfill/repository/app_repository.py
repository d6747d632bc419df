"""Repository for apps and their versions."""

from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.interfaces import LoaderOption

from env_backfill.models import App
from env_backfill.repository.repository import Repository


class AppRepository(Repository[App]):
    """Repository for App model."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, App)

    def get_load_options(self) -> List[LoaderOption]:
        return [selectinload(App.app_versions)]

    async def find_with_versions(self, organization_id: Optional[int] = None) -> Sequence[App]:
        """Load apps with their versions, ascending by id.

        Args:
            organization_id: Only return apps owned by this organization.
                None returns every app in the system.
        """
        query = self.select().options(*self.get_load_options()).order_by(App.id)
        if organization_id is not None:
            query = query.where(App.organization_id == organization_id)
        result = await self.execute_query(query)
        return result.scalars().unique().all()
