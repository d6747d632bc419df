"""Base repository implementation."""

from typing import Any, Generic, List, Optional, Sequence, Type, TypeVar

from loguru import logger
from sqlalchemy import Executable, Result, Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.interfaces import LoaderOption

from env_backfill.models.base import Base

T = TypeVar("T", bound=Base)


class Repository(Generic[T]):
    """Base class for repositories bound to a single session.

    All repositories built on the same session share its transaction. Nothing
    here commits; the owner of the session decides when the unit of work ends.
    """

    def __init__(self, session: AsyncSession, model: Type[T]):
        self.session = session
        self.Model = model

    def select(self, *entities: Any) -> Select:
        """Create a new SELECT statement for the model (or the given entities)."""
        if not entities:
            entities = (self.Model,)
        return select(*entities)

    def get_load_options(self) -> List[LoaderOption]:
        """Get list of loader options for eager loading relationships.
        Override in subclasses to specify what to load."""
        return []

    async def execute_query(self, query: Executable) -> Result[Any]:
        """Execute a query within the bound session."""
        logger.trace(f"Executing query: {query}")
        return await self.session.execute(query)

    async def find_one(self, query: Select[tuple[T]]) -> Optional[T]:
        """Execute a query and return at most one model instance."""
        result = await self.execute_query(query)
        return result.scalars().one_or_none()

    async def find_by_id(self, entity_id: int) -> Optional[T]:
        """Fetch an entity by its primary key with relationships loaded."""
        query = (
            self.select()
            .where(self.Model.id == entity_id)  # pyright: ignore [reportAttributeAccessIssue]
            .options(*self.get_load_options())
        )
        return await self.find_one(query)

    async def find_all(self) -> Sequence[T]:
        """Fetch all rows ordered by primary key, with relationships loaded."""
        query = (
            self.select()
            .options(*self.get_load_options())
            .order_by(self.Model.id)  # pyright: ignore [reportAttributeAccessIssue]
        )
        result = await self.execute_query(query)
        return result.scalars().unique().all()

    async def count(self, *where: Any) -> int:
        """Count rows matching the given criteria."""
        query = select(func.count()).select_from(self.Model).where(*where)
        result = await self.execute_query(query)
        return result.scalar_one()
