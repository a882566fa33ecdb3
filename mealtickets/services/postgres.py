from __future__ import annotations

import asyncio
from dataclasses import dataclass

import asyncpg

_ASYNC_PREFIX = "postgresql+asyncpg://"
_PLAIN_PREFIX = "postgresql://"


def to_sqlalchemy_url(dsn: str) -> str:
    """Ensure a PostgreSQL DSN selects the asyncpg driver for SQLAlchemy."""

    if dsn.startswith(_PLAIN_PREFIX):
        return _ASYNC_PREFIX + dsn[len(_PLAIN_PREFIX) :]
    return dsn


def to_asyncpg_dsn(dsn: str) -> str:
    """Strip the SQLAlchemy driver marker so asyncpg accepts the DSN."""

    if dsn.startswith(_ASYNC_PREFIX):
        return _PLAIN_PREFIX + dsn[len(_ASYNC_PREFIX) :]
    return dsn


@dataclass(slots=True)
class PostgresConnectionTester:
    """Readiness probe issuing ``SELECT 1`` over a dedicated one-connection pool."""

    dsn: str
    _pool: asyncpg.Pool | None = None

    async def _ensure_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            self._pool = await asyncpg.create_pool(dsn=to_asyncpg_dsn(self.dsn), min_size=1, max_size=1)
        return self._pool

    async def test_connection(self, timeout: float = 5.0) -> bool:
        pool = await self._ensure_pool()
        async with pool.acquire() as connection:
            await asyncio.wait_for(connection.execute("SELECT 1"), timeout=timeout)
        return True

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
