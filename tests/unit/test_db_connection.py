"""Unit tests for the connection pool manager"""
import pytest
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch
from psycopg.rows import dict_row

from challenge_bot.db.connection import SCHEMA_PATH, Database


@pytest.fixture
def pool():
    conn = MagicMock()
    conn.execute = AsyncMock()
    conn.commit = AsyncMock()

    mock_pool = MagicMock()
    mock_pool.open = AsyncMock()
    mock_pool.close = AsyncMock()

    @asynccontextmanager
    async def connection():
        yield conn

    mock_pool.connection = connection
    mock_pool.conn = conn
    return mock_pool


@pytest.mark.asyncio
async def test_connection_requires_pool():
    with pytest.raises(RuntimeError, match="not initialized"):
        async with Database("postgresql://x").connection():
            pass


@pytest.mark.asyncio
async def test_pool_lifecycle_and_dict_rows(pool):
    with patch("challenge_bot.db.connection.AsyncConnectionPool", return_value=pool) as factory:
        database = Database("postgresql://localhost/test")
        await database.init_pool()

        factory.assert_called_once_with("postgresql://localhost/test", min_size=2, max_size=10, open=False)
        pool.open.assert_awaited_once()

        async with database.connection() as conn:
            assert conn.row_factory is dict_row

        await database.close_pool()
        pool.close.assert_awaited_once()
        await database.close_pool()
        pool.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_apply_schema_runs_schema_file(pool):
    with patch("challenge_bot.db.connection.AsyncConnectionPool", return_value=pool):
        database = Database("postgresql://localhost/test")
        await database.init_pool()
        await database.apply_schema()

    sql = pool.conn.execute.call_args.args[0]
    assert sql == SCHEMA_PATH.read_text()
    assert "CREATE TABLE IF NOT EXISTS day_logs" in sql
    pool.conn.commit.assert_awaited_once()
