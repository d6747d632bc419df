"""Common test fixtures."""

from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from env_backfill import db
from env_backfill.config import BackfillConfig
from env_backfill.db import DatabaseType, engine_session_factory
from env_backfill.models import App, AppEnvironment, AppVersion, Base, Organization

CreateOrganization = Callable[..., Awaitable[Organization]]


@pytest.fixture
def app_config(tmp_path, monkeypatch) -> BackfillConfig:
    """Config pointing at a SQLite file inside the test's tmp dir."""
    for name in ("DATABASE_URL", "SCOPE", "BATCH_WRITES", "LOG_FILE"):
        monkeypatch.delenv(f"ENV_BACKFILL_{name}", raising=False)
    return BackfillConfig(env="test", database_path=tmp_path / "backfill.db")


@pytest_asyncio.fixture(scope="function")
async def engine_factory(
    tmp_path,
) -> Tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Fresh in-memory database with all tables created."""
    async with engine_session_factory(tmp_path / "test.db", DatabaseType.MEMORY) as (
        engine,
        session_maker,
    ):
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        yield engine, session_maker


@pytest_asyncio.fixture
async def session_maker(engine_factory) -> async_sessionmaker[AsyncSession]:
    _, session_maker = engine_factory
    return session_maker


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def create_organization(session_maker) -> CreateOrganization:
    """Factory that commits an organization with environments, apps and versions.

    environments is a list of (name, is_default) pairs, apps maps an app name
    to the names of its versions.
    """

    async def _create(
        name: str,
        environments: Sequence[Tuple[str, bool]],
        apps: Optional[Dict[str, List[str]]] = None,
    ) -> Organization:
        async with db.scoped_session(session_maker) as session:
            organization = Organization(name=name)
            organization.app_environments = [
                AppEnvironment(name=env_name, is_default=is_default)
                for env_name, is_default in environments
            ]
            organization.apps = [
                App(name=app_name, app_versions=[AppVersion(name=v) for v in versions])
                for app_name, versions in (apps or {}).items()
            ]
            session.add(organization)
            await session.flush()
            return organization

    return _create


@pytest_asyncio.fixture
async def current_environments(session_maker) -> Callable[[], Awaitable[Dict[int, Optional[int]]]]:
    """Read current_environment_id for every version straight from the database."""

    async def _read() -> Dict[int, Optional[int]]:
        async with session_maker() as session:
            result = await session.execute(
                select(AppVersion.id, AppVersion.current_environment_id).order_by(AppVersion.id)
            )
            return {version_id: environment_id for version_id, environment_id in result.all()}

    return _read


@pytest_asyncio.fixture
async def tenants(create_organization):
    """Two organizations, each with a default environment and one app.

    O1: environments E1 (default), E2; app A1 with versions V1, V2
    O2: environment E3 (default); app A2 with version V3
    """
    o1 = await create_organization(
        "O1", [("E1", True), ("E2", False)], apps={"A1": ["V1", "V2"]}
    )
    o2 = await create_organization("O2", [("E3", True)], apps={"A2": ["V3"]})
    return o1, o2
