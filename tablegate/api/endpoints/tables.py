import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncEngine

from tablegate.core import schemas
from tablegate.core.crud.aggregate import AggregateFetcher
from tablegate.core.crud.introspect import SchemaIntrospector
from tablegate.core.crud.reader import TableReader
from tablegate.core.config import settings
from tablegate.core.database import get_engine
from tablegate.core.errors import TableGateError

router = APIRouter(tags=["Tables"])

engine_dep = Annotated[AsyncEngine, Depends(get_engine)]


def get_introspector(engine: engine_dep) -> SchemaIntrospector:
    return SchemaIntrospector(engine, settings.QUERY_TIMEOUT)


def get_fetcher(engine: engine_dep) -> AggregateFetcher:
    return AggregateFetcher(
        SchemaIntrospector(engine, settings.QUERY_TIMEOUT),
        TableReader(engine, settings.QUERY_TIMEOUT),
    )


introspector_dep = Annotated[SchemaIntrospector, Depends(get_introspector)]
fetcher_dep = Annotated[AggregateFetcher, Depends(get_fetcher)]


def read_failed(error: TableGateError, what: str) -> HTTPException:
    logging.error(f"{what}: {error}")
    return HTTPException(status_code=error.status_code, detail=f"{what}: {error}")


# Every table with all of its rows
@router.get(
    "/all-data",
    response_model=List[schemas.TableSnapshot],
    status_code=status.HTTP_200_OK,
)
async def get_all_data(fetcher: fetcher_dep):
    try:
        return await fetcher.fetch_all()
    except TableGateError as error:
        raise read_failed(error, "Error fetching data")


@router.get("/table-names", response_model=List[str])
async def get_table_names(introspector: introspector_dep):
    try:
        return await introspector.list_tables()
    except TableGateError as error:
        raise read_failed(error, "Error fetching table names")


# One table's rows; the name goes straight to the database
@router.get("/table-data/{table_name}", response_model=schemas.TableSnapshot)
async def get_table_data(table_name: str, fetcher: fetcher_dep):
    try:
        return await fetcher.snapshot(table_name)
    except TableGateError as error:
        raise read_failed(error, f"Error fetching table {table_name}")
