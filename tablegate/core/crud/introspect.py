import logging
from typing import List, Optional

from sqlalchemy import inspect
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine

from tablegate.core import database
from tablegate.core.errors import UnknownTable
from tablegate.core.schemas import TableInfo

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# SCHEMA INTROSPECTION
# Purpose: ask the database catalog which tables, columns and keys exist.
# Nothing here is cached: every call reads the live catalog.
# -----------------------------------------------------------------------------


def table_names(sync_conn: Connection) -> List[str]:
    """Names of every table and view in the connected database, in catalog order."""
    inspector = inspect(sync_conn)

    # Views follow the base tables
    return list(inspector.get_table_names()) + list(inspector.get_view_names())


def describe(sync_conn: Connection, table_name: str) -> TableInfo:
    """
    Read one table's columns and primary key from the catalog.

    Meant for `AsyncConnection.run_sync`, so a caller that already holds a
    connection can describe and then mutate without a second checkout.

    Raises:
        UnknownTable: the table is not in the catalog.
    """
    inspector = inspect(sync_conn)
    if not inspector.has_table(table_name):
        raise UnknownTable(table_name)

    columns = [col["name"] for col in inspector.get_columns(table_name)]
    key_columns = inspector.get_pk_constraint(table_name).get("constrained_columns") or []

    # Composite keys are addressed by their first column
    return TableInfo(
        name=table_name,
        columns=columns,
        primary_key=key_columns[0] if key_columns else None,
    )


class SchemaIntrospector:
    def __init__(self, engine: AsyncEngine, timeout: Optional[float] = None):
        self.engine = engine
        self.timeout = timeout

    async def list_tables(self) -> List[str]:
        async with database.connect(self.engine) as conn:
            tables = await database.run_catalog(
                conn, table_names, timeout=self.timeout
            )

        logger.info(f"Discovered {len(tables)} tables")
        return tables

    async def describe_table(self, table_name: str) -> TableInfo:
        async with database.connect(self.engine) as conn:
            return await database.run_catalog(
                conn, describe, table_name, timeout=self.timeout
            )
