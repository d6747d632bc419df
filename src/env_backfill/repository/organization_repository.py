"""Repository for organizations and their environments."""

from typing import List, Sequence

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.interfaces import LoaderOption

from env_backfill.models import Organization
from env_backfill.repository.repository import Repository


class OrganizationRepository(Repository[Organization]):
    """Repository for Organization model."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Organization)

    def get_load_options(self) -> List[LoaderOption]:
        return [selectinload(Organization.app_environments)]

    async def find_all_with_environments(self) -> Sequence[Organization]:
        """Load every organization with its environments, ascending by id."""
        return await self.find_all()
