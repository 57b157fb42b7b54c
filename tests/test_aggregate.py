import asyncio

import pytest

from tablegate.core.crud.aggregate import AggregateFetcher
from tablegate.core.crud.introspect import SchemaIntrospector
from tablegate.core.crud.reader import TableReader
from tablegate.core.errors import QueryRejected


class StubIntrospector:
    def __init__(self, tables):
        self.tables = tables

    async def list_tables(self):
        return list(self.tables)


class SlowReader:
    """Reader whose first tables take longest, tracking overlapping reads"""

    def __init__(self, delays):
        self.delays = delays
        self.in_flight = 0
        self.max_in_flight = 0

    async def read_table(self, table_name):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(self.delays[table_name])
        self.in_flight -= 1
        return [{"name": table_name}]


@pytest.mark.asyncio
async def test_fetch_all_in_discovery_order(engine):
    fetcher = AggregateFetcher(SchemaIntrospector(engine), TableReader(engine))
    snapshots = await fetcher.fetch_all()

    assert [s.table_name for s in snapshots] == ["branch", "employee", "trigger_test"]
    assert [len(s.rows) for s in snapshots] == [2, 1, 0]
    assert snapshots[2].rows == []


@pytest.mark.asyncio
async def test_fetch_all_fails_when_one_table_fails(engine, monkeypatch):
    """No partial result: one broken table fails the whole fetch"""
    read_table = TableReader.read_table

    async def failing_read(self, table_name):
        if table_name == "trigger_test":
            raise QueryRejected("trigger_test is broken")
        return await read_table(self, table_name)

    monkeypatch.setattr(TableReader, "read_table", failing_read)
    fetcher = AggregateFetcher(SchemaIntrospector(engine), TableReader(engine))

    with pytest.raises(QueryRejected, match="trigger_test is broken"):
        await fetcher.fetch_all()


@pytest.mark.asyncio
async def test_fetch_all_reads_tables_concurrently():
    reader = SlowReader({"a": 0.05, "b": 0.02, "c": 0.0})
    fetcher = AggregateFetcher(StubIntrospector(["a", "b", "c"]), reader)

    snapshots = await fetcher.fetch_all()

    assert reader.max_in_flight == 3
    # Finishing order does not leak into the result
    assert [s.table_name for s in snapshots] == ["a", "b", "c"]
    assert snapshots[0].rows == [{"name": "a"}]


@pytest.mark.asyncio
async def test_fetch_all_empty_database():
    fetcher = AggregateFetcher(StubIntrospector([]), SlowReader({}))
    assert await fetcher.fetch_all() == []


@pytest.mark.asyncio
async def test_fetch_all_includes_views(engine):
    async with engine.begin() as conn:
        await conn.exec_driver_sql(
            "CREATE VIEW branch_names AS SELECT branch_name FROM branch"
        )

    fetcher = AggregateFetcher(SchemaIntrospector(engine), TableReader(engine))
    snapshots = await fetcher.fetch_all()

    assert snapshots[-1].table_name == "branch_names"
    assert snapshots[-1].rows == [
        {"branch_name": "Corporate"},
        {"branch_name": "Scranton"},
    ]


class FailingReader:
    """Two tables fail, the third would run long"""

    def __init__(self):
        self.slow_read_cancelled = False

    async def read_table(self, table_name):
        if table_name == "a":
            raise QueryRejected("a is broken")
        if table_name == "b":
            await asyncio.sleep(0)
            raise QueryRejected("b is broken")
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            self.slow_read_cancelled = True
            raise
        return []


@pytest.mark.asyncio
async def test_failed_fetch_waits_for_cancelled_reads():
    """Remaining reads are finished off before the error is raised"""
    reader = FailingReader()
    fetcher = AggregateFetcher(StubIntrospector(["a", "b", "c"]), reader)

    with pytest.raises(QueryRejected, match="a is broken"):
        await fetcher.fetch_all()

    assert reader.slow_read_cancelled
