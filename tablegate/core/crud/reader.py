import logging
from typing import List, Optional

from sqlalchemy import literal_column, select, table
from sqlalchemy.ext.asyncio import AsyncEngine

from tablegate.core import database
from tablegate.core.schemas import Row

logger = logging.getLogger(__name__)


def select_all(table_name: str):
    # Identifier is quoted by the compiler; existence is left to the database
    return select(literal_column("*")).select_from(table(table_name))


class TableReader:
    def __init__(self, engine: AsyncEngine, timeout: Optional[float] = None):
        self.engine = engine
        self.timeout = timeout

    async def read_table(self, table_name: str) -> List[Row]:
        """
        Every row and every column of `table_name`.

        An empty table gives an empty list. A table the database does not
        know raises QueryRejected with the database's own message.
        """
        async with database.connect(self.engine) as conn:
            result = await database.execute(
                conn, select_all(table_name), timeout=self.timeout
            )
            rows = [dict(row) for row in result.mappings().all()]

        logger.debug(f"Read {len(rows)} rows from {table_name}")
        return rows
