"""utility functions for commands"""

import asyncio
from typing import Awaitable, TypeVar

from env_backfill import db

T = TypeVar("T")


def run_with_cleanup(coro: Awaitable[T]) -> T:
    """Run a coroutine to completion, disposing database engines before the loop closes."""

    async def _run() -> T:
        try:
            return await coro
        finally:
            await db.shutdown_db()

    return asyncio.run(_run())
