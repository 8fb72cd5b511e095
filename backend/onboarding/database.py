from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from .config import settings

# Shared async pool used by the Postgres profile repository.
pool: AsyncConnectionPool | None = None


async def init_db_pool() -> AsyncConnectionPool | None:
    global pool

    # Keep app booting in non-DB contexts; the in-process repository is used instead.
    if not settings.database_url:
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


async def close_db_pool() -> None:
    global pool

    if pool is None:
        return

    await pool.close()
    pool = None
