from datetime import date

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import Column, Date, Integer, MetaData, String, Table, Text
from sqlalchemy.ext.asyncio import create_async_engine

from tablegate.main import app
from tablegate.core.database import get_engine

# Tables every test starts from (the catalog lists them alphabetically on SQLite)
metadata = MetaData()

branch = Table(
    "branch",
    metadata,
    Column("branch_id", Integer, primary_key=True),
    Column("branch_name", String(40)),
    Column("mgr_id", Integer),
)

employee = Table(
    "employee",
    metadata,
    Column("emp_id", Integer, primary_key=True),
    Column("first_name", String(40)),
    Column("last_name", String(40)),
    Column("birth_day", Date),
    Column("sex", String(1)),
    Column("salary", Integer),
    Column("super_id", Integer),
    Column("branch_id", Integer),
)

# No primary key on purpose
trigger_test = Table("trigger_test", metadata, Column("message", Text))


# Fresh database file for every test
@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")

    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
        await conn.execute(
            branch.insert(),
            [
                {"branch_id": 1, "branch_name": "Corporate", "mgr_id": 100},
                {"branch_id": 2, "branch_name": "Scranton", "mgr_id": 102},
            ],
        )
        await conn.execute(
            employee.insert(),
            {
                "emp_id": 100,
                "first_name": "David",
                "last_name": "Wallace",
                "birth_day": date(1967, 11, 17),
                "sex": "M",
                "salary": 250000,
                "super_id": None,
                "branch_id": 1,
            },
        )

    yield test_engine
    await test_engine.dispose()


# Client talking to the app with the test engine in place of the real pool
@pytest_asyncio.fixture(scope="function")
async def client(engine):
    app.dependency_overrides[get_engine] = lambda: engine

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# A complete employee row that is not in the database yet
@pytest.fixture
def new_employee():
    return {
        "emp_id": 111,
        "first_name": "Brendan",
        "last_name": "Baia",
        "birth_day": "1997-08-23",
        "sex": "M",
        "salary": 0,
        "super_id": 100,
        "branch_id": 2,
    }
