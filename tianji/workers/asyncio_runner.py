from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tianji.db.session import dispose_engine

T = TypeVar("T")


async def _run_with_fresh_db_pool(job: Callable[[], Awaitable[T]]) -> T:
    # Each asyncio.run gets a new loop; pooled asyncpg connections are bound to the old one.
    await dispose_engine()
    try:
        return await job()
    finally:
        await dispose_engine()


def run_async_job(job: Callable[[], Awaitable[T]]) -> T:
    return asyncio.run(_run_with_fresh_db_pool(job))
