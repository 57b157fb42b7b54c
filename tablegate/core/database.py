import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Optional, Type

from fastapi import Request
from sqlalchemy.engine import make_url
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from tablegate.core.config import Settings, settings
from tablegate.core.errors import QueryRejected, StorageUnavailable, TableGateError

logger = logging.getLogger(__name__)


def build_engine(config: Settings = settings) -> AsyncEngine:
    """
    Create the async engine whose pool is shared by every component.

    The pool is bounded (no overflow): callers beyond DB_POOL_SIZE wait up
    to DB_POOL_TIMEOUT seconds for a connection, then fail.
    """
    url = make_url(config.DATABASE_URL)
    options: dict = {"echo": config.SQL_ECHO, "pool_pre_ping": True}

    # aiosqlite manages its own pool class
    if url.get_backend_name() != "sqlite":
        options.update(
            pool_size=config.DB_POOL_SIZE,
            max_overflow=0,
            pool_timeout=config.DB_POOL_TIMEOUT,
        )

    return create_async_engine(url, **options)


# The engine lives on app.state for the lifetime of the process
def get_engine(request: Request) -> AsyncEngine:
    return request.app.state.engine


@asynccontextmanager
async def connect(engine: AsyncEngine) -> AsyncIterator[AsyncConnection]:
    """Check a connection out of the pool and always give it back."""
    try:
        conn = await engine.connect()
    except (SQLAlchemyError, OSError) as error:
        logger.error(f"Could not obtain a database connection: {error}")
        raise StorageUnavailable(
            f"Could not obtain a database connection: {error}"
        ) from error

    try:
        yield conn
    finally:
        await conn.close()


async def execute(
    conn: AsyncConnection,
    statement,
    *,
    rejected: Type[TableGateError] = QueryRejected,
    commit: bool = False,
    timeout: Optional[float] = None,
):
    """
    Run one statement and translate driver failures into engine errors.

    Statement refusals become `rejected` with the database message as-is;
    lost connections and timeouts become StorageUnavailable.
    """
    timeout = timeout or settings.QUERY_TIMEOUT

    async def run():
        result = await conn.execute(statement)
        if commit:
            await conn.commit()
        return result

    try:
        return await asyncio.wait_for(run(), timeout)
    except asyncio.TimeoutError as error:
        raise StorageUnavailable(f"Query timed out after {timeout}s") from error
    except DBAPIError as error:
        if error.connection_invalidated:
            raise StorageUnavailable(f"Database connection lost: {error.orig}") from error
        raise rejected(str(error.orig)) from error
    except SQLAlchemyError as error:
        raise rejected(str(error)) from error


async def run_catalog(
    conn: AsyncConnection,
    fn: Callable[..., Any],
    *args: Any,
    timeout: Optional[float] = None,
):
    """Run a synchronous Inspector function against the catalog."""
    timeout = timeout or settings.QUERY_TIMEOUT

    try:
        return await asyncio.wait_for(conn.run_sync(fn, *args), timeout)
    except asyncio.TimeoutError as error:
        raise StorageUnavailable(
            f"Catalog query timed out after {timeout}s"
        ) from error
    except SQLAlchemyError as error:
        logger.error(f"Catalog query failed: {error}")
        raise StorageUnavailable(f"Catalog query failed: {error}") from error
