from unittest.mock import AsyncMock, MagicMock

import pytest

from mealtickets.services.postgres import PostgresConnectionTester, to_asyncpg_dsn, to_sqlalchemy_url


def test_dsn_helpers_switch_driver_prefix():
    plain = "postgresql://user:pw@db:5432/tickets"
    driver = "postgresql+asyncpg://user:pw@db:5432/tickets"

    assert to_sqlalchemy_url(plain) == driver
    assert to_sqlalchemy_url(driver) == driver
    assert to_asyncpg_dsn(driver) == plain
    assert to_asyncpg_dsn(plain) == plain
    assert to_sqlalchemy_url("sqlite+aiosqlite:///tickets.db") == "sqlite+aiosqlite:///tickets.db"


@pytest.mark.asyncio
async def test_postgres_connection_tester(monkeypatch):
    connection_mock = AsyncMock()

    class DummyAcquire:
        async def __aenter__(self):
            return connection_mock

        async def __aexit__(self, exc_type, exc, tb):
            return False

    pool_mock = MagicMock()
    pool_mock.acquire.return_value = DummyAcquire()
    pool_mock.close = AsyncMock()
    captured: dict[str, object] = {}

    async def create_pool(**kwargs):
        captured.update(kwargs)
        return pool_mock

    monkeypatch.setattr("mealtickets.services.postgres.asyncpg.create_pool", create_pool)

    tester = PostgresConnectionTester("postgresql+asyncpg://test")
    assert await tester.test_connection() is True
    connection_mock.execute.assert_awaited_with("SELECT 1")
    assert captured["dsn"] == "postgresql://test"

    await tester.close()
    pool_mock.close.assert_awaited()
