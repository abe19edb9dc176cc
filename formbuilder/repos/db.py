"""asyncpg pool for the form builder.

Single statements (every read, and the one-statement writes in the repos)
go through :class:`_RetryingPool`, which replays a statement on a fresh
connection when the old one was dropped underneath it.  Multi-statement
writes go through :func:`transaction` and are never replayed.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import asyncpg

from formbuilder.config import settings

logger = logging.getLogger(__name__)

# Errors that leave the statement unapplied because the socket went away.
_DROPPED_CONNECTION = (
    asyncpg.ConnectionDoesNotExistError,
    asyncpg.InterfaceError,
    ConnectionResetError,
    OSError,
)

# One replay per entry, waiting that many seconds first.
_BACKOFF_SECONDS = (0.25, 0.5, 1.0)

_POOL_CONNECT_TIMEOUT = 20


class _RetryingPool:
    """Pool facade whose ``fetch``/``fetchrow``/``fetchval``/``execute`` survive dropped connections.

    ``acquire()`` and everything else is passed straight through.
    """

    __slots__ = ("_pool",)

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def fetch(self, query: str, *args: Any) -> list:
        return await self._run("fetch", query, args)

    async def fetchrow(self, query: str, *args: Any):
        return await self._run("fetchrow", query, args)

    async def fetchval(self, query: str, *args: Any):
        return await self._run("fetchval", query, args)

    async def execute(self, query: str, *args: Any) -> str:
        return await self._run("execute", query, args)

    async def _run(self, method: str, query: str, args: tuple):
        call = getattr(self._pool, method)
        for delay in _BACKOFF_SECONDS:
            try:
                return await call(query, *args)
            except _DROPPED_CONNECTION as exc:
                logger.warning("%s lost its connection (%s); replaying in %.2fs", method, exc, delay)
                await asyncio.sleep(delay)
        try:
            return await call(query, *args)
        except _DROPPED_CONNECTION:
            _discard_pool()
            raise

    def __getattr__(self, name: str):
        return getattr(self._pool, name)


_pool: asyncpg.Pool | None = None
_pool_loop: asyncio.AbstractEventLoop | None = None
_facade: _RetryingPool | None = None


def _discard_pool() -> None:
    """Forget the pool so the next :func:`get_pool` builds a new one."""
    global _pool, _pool_loop, _facade
    _pool = None
    _pool_loop = None
    _facade = None


async def _create_pool() -> asyncpg.Pool:
    return await asyncio.wait_for(
        asyncpg.create_pool(
            dsn=settings.DATABASE_URL,
            min_size=settings.DB_POOL_MIN_SIZE,
            max_size=settings.DB_POOL_MAX_SIZE,
            command_timeout=30,
            max_inactive_connection_lifetime=300.0,
            server_settings={
                "statement_timeout": "15000",
                "idle_in_transaction_session_timeout": "30000",
            },
        ),
        timeout=_POOL_CONNECT_TIMEOUT,
    )


async def get_pool() -> _RetryingPool:
    """Return the shared pool, creating it on first use.

    A pool bound to a different event loop (a previous test, say) is
    terminated and replaced.
    """
    global _pool, _pool_loop, _facade
    loop = asyncio.get_running_loop()
    if _pool is not None and _pool_loop is not loop:
        _pool.terminate()
        _discard_pool()
    if _pool is None:
        _pool = await _create_pool()
        _pool_loop = loop
        _facade = _RetryingPool(_pool)
    return _facade  # type: ignore[return-value]


@asynccontextmanager
async def transaction() -> AsyncIterator[asyncpg.Connection]:
    """Acquire one connection and run the block inside a transaction.

    Commits when the block exits normally; any exception rolls back every
    statement issued on the yielded connection and propagates.
    """
    pool = await get_pool()
    async with pool.acquire() as conn:
        async with conn.transaction():
            yield conn


async def close_pool() -> None:
    if _pool is not None:
        await _pool.close()
    _discard_pool()
