from collections.abc import AsyncIterator

from fastapi import HTTPException, Request
from psycopg import AsyncConnection
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from .config import Settings
from .logging_setup import get_logger

logger = get_logger(__name__)


async def open_db_pool(settings: Settings) -> AsyncConnectionPool | None:
    # Keep app booting in non-DB contexts; endpoints will fail explicitly if used.
    if not settings.database_url:
        logger.warning("DATABASE_URL is not set; data endpoints will return 500")
        return None

    pool = AsyncConnectionPool(
        conninfo=settings.database_url,
        open=False,
        min_size=1,
        max_size=10,
        kwargs={"autocommit": True, "row_factory": dict_row},
    )
    await pool.open()
    return pool


async def close_db_pool(pool: AsyncConnectionPool | None) -> None:
    if pool is None:
        return

    await pool.close()


async def get_db_connection(request: Request) -> AsyncIterator[AsyncConnection]:
    pool: AsyncConnectionPool | None = getattr(request.app.state, "db_pool", None)
    # Centralized guard to avoid obscure None-type errors in route handlers.
    if pool is None:
        raise HTTPException(status_code=500, detail="DATABASE_URL is not configured")

    async with pool.connection() as connection:
        yield connection
