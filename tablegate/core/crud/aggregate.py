import asyncio
import logging
from typing import List

from tablegate.core.crud.introspect import SchemaIntrospector
from tablegate.core.crud.reader import TableReader
from tablegate.core.schemas import TableSnapshot

logger = logging.getLogger(__name__)


class AggregateFetcher:
    """
    Snapshot of the whole database: every table with all of its rows.

    Tables are read concurrently, each on its own pooled connection, so the
    pool size caps how many reads are in flight at once.
    """

    def __init__(self, introspector: SchemaIntrospector, reader: TableReader):
        self.introspector = introspector
        self.reader = reader

    async def snapshot(self, table_name: str) -> TableSnapshot:
        rows = await self.reader.read_table(table_name)
        return TableSnapshot(table_name=table_name, rows=rows)

    async def fetch_all(self) -> List[TableSnapshot]:
        """
        Snapshots for all tables, in the order the catalog lists them.

        All or nothing: the first failing table read fails the whole call
        with that table's error, no partial result is returned.
        """
        table_names = await self.introspector.list_tables()

        reads = [asyncio.ensure_future(self.snapshot(name)) for name in table_names]
        try:
            snapshots = await asyncio.gather(*reads)
        except Exception as error:
            # Stop the reads still running so their connections go back to the pool
            for read in reads:
                read.cancel()
            await asyncio.gather(*reads, return_exceptions=True)
            logger.error(f"Aggregate fetch failed: {error}")
            raise

        logger.info(f"Fetched {len(snapshots)} tables")
        return list(snapshots)
