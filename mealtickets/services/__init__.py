"""Infrastructure services."""

from .postgres import PostgresConnectionTester, to_asyncpg_dsn, to_sqlalchemy_url

__all__ = ["PostgresConnectionTester", "to_asyncpg_dsn", "to_sqlalchemy_url"]
