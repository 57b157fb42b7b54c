import logging
from typing import Any, Dict, Iterable, Optional, Union

from sqlalchemy import column, delete, insert, table, update
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from tablegate.core import database
from tablegate.core.crud.introspect import describe
from tablegate.core.errors import ColumnMismatch, NoPrimaryKey, StorageRejected
from tablegate.core.schemas import MutationResult, TableInfo

logger = logging.getLogger(__name__)

Identifier = Union[int, str]


# -----------------------------------------------------------------------------
# MUTATION ENGINE
# Purpose: generic insert/update/delete against any table in the catalog.
# Values only ever travel as bound parameters. Table and column names are
# checked against the catalog first, then quoted by the SQL compiler.
# -----------------------------------------------------------------------------


def _table(info: TableInfo, columns: Iterable[str]):
    return table(info.name, *(column(name) for name in columns))


def _primary_key(info: TableInfo) -> str:
    if not info.primary_key:
        raise NoPrimaryKey(info.name)
    return info.primary_key


def check_create_columns(info: TableInfo, payload: Dict[str, Any]) -> None:
    """
    The payload must name exactly the table's columns, no more, no less.

    Raises:
        ColumnMismatch: listing missing and unexpected columns.
    """
    missing = [name for name in info.columns if name not in payload]
    unexpected = [key for key in payload if key not in info.columns]

    if missing or unexpected:
        raise ColumnMismatch(missing=missing, unexpected=unexpected)


def check_update_columns(info: TableInfo, payload: Dict[str, Any]) -> None:
    """Every payload key has to be a column of the table; subsets are fine."""
    unexpected = [key for key in payload if key not in info.columns]

    if unexpected or not payload:
        raise ColumnMismatch(unexpected=unexpected)


def build_insert(info: TableInfo, payload: Dict[str, Any]):
    tbl = _table(info, payload.keys())
    return insert(tbl).values(payload)


def build_update(info: TableInfo, identifier: Identifier, payload: Dict[str, Any]):
    key = _primary_key(info)
    tbl = _table(info, [key, *(name for name in payload if name != key)])
    return update(tbl).where(tbl.c[key] == identifier).values(payload)


def build_delete(info: TableInfo, identifier: Identifier):
    key = _primary_key(info)
    tbl = _table(info, [key])
    return delete(tbl).where(tbl.c[key] == identifier)


class MutationEngine:
    def __init__(self, engine: AsyncEngine, timeout: Optional[float] = None):
        self.engine = engine
        self.timeout = timeout

    async def _describe(self, conn: AsyncConnection, table_name: str) -> TableInfo:
        return await database.run_catalog(
            conn, describe, table_name, timeout=self.timeout
        )

    async def _apply(
        self, conn: AsyncConnection, info: TableInfo, operation: str, statement
    ) -> MutationResult:
        result = await database.execute(
            conn,
            statement,
            rejected=StorageRejected,
            commit=True,
            timeout=self.timeout,
        )
        outcome = MutationResult(
            table_name=info.name, operation=operation, affected_rows=result.rowcount
        )
        logger.info(
            f"{operation} on {info.name} affected {outcome.affected_rows} row(s)"
        )
        return outcome

    async def create(self, table_name: str, payload: Dict[str, Any]) -> MutationResult:
        async with database.connect(self.engine) as conn:
            info = await self._describe(conn, table_name)
            check_create_columns(info, payload)
            return await self._apply(conn, info, "insert", build_insert(info, payload))

    async def update(
        self, table_name: str, identifier: Identifier, payload: Dict[str, Any]
    ) -> MutationResult:
        """
        Update the row whose primary key equals `identifier`.

        The key column is looked up in the catalog on the same connection
        that runs the UPDATE. A table without a key fails before anything
        is written. An identifier that matches nothing still succeeds with
        affected_rows == 0.
        """
        async with database.connect(self.engine) as conn:
            info = await self._describe(conn, table_name)
            _primary_key(info)
            check_update_columns(info, payload)
            return await self._apply(
                conn, info, "update", build_update(info, identifier, payload)
            )

    async def delete(self, table_name: str, identifier: Identifier) -> MutationResult:
        async with database.connect(self.engine) as conn:
            info = await self._describe(conn, table_name)
            return await self._apply(
                conn, info, "delete", build_delete(info, identifier)
            )
