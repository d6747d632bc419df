import asyncio
from contextlib import asynccontextmanager
from enum import Enum, auto
from pathlib import Path
from typing import AsyncGenerator, Optional

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_scoped_session,
    async_sessionmaker,
    create_async_engine,
)

from env_backfill.config import BackfillConfig

# Revision that carries no schema change; reaching it runs the backfill.
BACKFILL_REVISION = "c3d4e5f6a7b8"

# Module level state, keyed by database URL
_engines: dict[str, AsyncEngine] = {}
_session_makers: dict[str, async_sessionmaker[AsyncSession]] = {}


class DatabaseType(Enum):
    """Types of supported databases."""

    MEMORY = auto()
    FILESYSTEM = auto()

    @classmethod
    def get_db_url(cls, db_path: Path, db_type: "DatabaseType") -> str:
        """Get SQLAlchemy URL for database path."""
        if db_type == cls.MEMORY:
            logger.info("Using in-memory SQLite database")
            return "sqlite+aiosqlite://"

        return f"sqlite+aiosqlite:///{db_path}"


def get_scoped_session_factory(
    session_maker: async_sessionmaker[AsyncSession],
) -> async_scoped_session:
    """Create a scoped session factory scoped to current task."""
    return async_scoped_session(session_maker, scopefunc=asyncio.current_task)


@asynccontextmanager
async def scoped_session(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Get a scoped session with proper lifecycle management.

    Everything done through the yielded session is committed as one unit when
    the block exits normally, and rolled back if it raises.

    Args:
        session_maker: Session maker to create scoped sessions from
    """
    factory = get_scoped_session_factory(session_maker)
    session = factory()
    try:
        if session.bind is not None and session.bind.dialect.name == "sqlite":
            await session.execute(text("PRAGMA foreign_keys=ON"))
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()
        await factory.remove()


def _create_engine_and_session(
    db_url: str,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Internal helper to create engine and session maker."""
    logger.debug(f"Creating engine for db_url: {db_url}")
    connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}
    engine = create_async_engine(db_url, connect_args=connect_args)
    session_maker = async_sessionmaker(engine, expire_on_commit=False)
    return engine, session_maker


def get_or_create_db(
    app_config: BackfillConfig,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Get or create the engine and session maker for the configured database."""
    db_url = app_config.sqlalchemy_url

    if db_url not in _engines:
        if app_config.database_url is None:
            app_config.database_path.parent.mkdir(parents=True, exist_ok=True)
        engine, session_maker = _create_engine_and_session(db_url)
        _engines[db_url] = engine
        _session_makers[db_url] = session_maker

    return _engines[db_url], _session_makers[db_url]


async def shutdown_db() -> None:
    """Clean up all database connections."""
    for db_url, engine in _engines.items():
        await engine.dispose()
        logger.debug(f"Disposed engine for: {db_url}")

    _engines.clear()
    _session_makers.clear()


@asynccontextmanager
async def engine_session_factory(
    db_path: Path,
    db_type: DatabaseType = DatabaseType.MEMORY,
) -> AsyncGenerator[tuple[AsyncEngine, async_sessionmaker[AsyncSession]], None]:
    """Create engine and session factory.

    Note: This is primarily used for testing where we want a fresh database
    for each test. For production use, use get_or_create_db() instead.
    """
    db_url = DatabaseType.get_db_url(db_path, db_type)
    engine, session_maker = _create_engine_and_session(db_url)
    try:
        yield engine, session_maker
    finally:
        await engine.dispose()


def get_alembic_config(db_url: str) -> Config:
    """Build an alembic Config pointing at the bundled migration scripts."""
    alembic_dir = Path(__file__).parent / "alembic"
    config = Config()

    # Set required Alembic config options programmatically
    config.set_main_option("script_location", str(alembic_dir))
    config.set_main_option(
        "file_template",
        "%%(year)d_%%(month).2d_%%(day).2d_%%(hour).2d%%(minute).2d-%%(rev)s_%%(slug)s",
    )
    config.set_main_option("timezone", "UTC")
    config.set_main_option("revision_environment", "false")
    config.set_main_option("sqlalchemy.url", db_url)
    return config


async def get_current_revision(engine: AsyncEngine) -> Optional[str]:
    """Return the revision the database is stamped with, or None for a fresh database."""
    async with engine.connect() as conn:
        return await conn.run_sync(
            lambda sync_conn: MigrationContext.configure(sync_conn).get_current_revision()
        )


def backfill_pending(config: Config, current_revision: Optional[str]) -> bool:
    """Whether upgrading from current_revision to head crosses the backfill revision."""
    if current_revision is None:
        return True
    script = ScriptDirectory.from_config(config)
    applied = {rev.revision for rev in script.iterate_revisions(current_revision, "base")}
    return BACKFILL_REVISION not in applied


async def run_migrations(app_config: BackfillConfig) -> None:
    """Run any pending alembic migrations for the configured database.

    When the backfill revision is pending, the schema is first upgraded to the
    revision before it, the backfill runs in its own transaction, and only then
    is the database upgraded to head. A failed backfill leaves the backfill
    revision unapplied so the next run retries it.
    """
    from env_backfill.backfill.migration import CurrentEnvironmentBackfill

    logger.info("Running database migrations...")
    engine, session_maker = get_or_create_db(app_config)
    config = get_alembic_config(app_config.sqlalchemy_url)

    try:
        current_revision = await get_current_revision(engine)
        logger.debug(f"Current database revision: {current_revision}")

        if backfill_pending(config, current_revision):
            script = ScriptDirectory.from_config(config)
            before_backfill = script.get_revision(BACKFILL_REVISION).down_revision

            # alembic's env.py drives its own event loop, so run it off this one
            await asyncio.to_thread(command.upgrade, config, before_backfill)

            async with scoped_session(session_maker) as session:
                await CurrentEnvironmentBackfill.from_config(app_config).up(session)

        await asyncio.to_thread(command.upgrade, config, "head")
        logger.info("Migrations completed successfully")
    except Exception as e:
        logger.error(f"Error running migrations: {e}")
        raise
