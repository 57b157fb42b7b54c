import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncEngine

from tablegate.core import schemas
from tablegate.core.crud.mutations import MutationEngine
from tablegate.core.config import settings
from tablegate.core.database import get_engine
from tablegate.core.errors import TableGateError

router = APIRouter(tags=["Data"])


def get_mutations(engine: Annotated[AsyncEngine, Depends(get_engine)]) -> MutationEngine:
    return MutationEngine(engine, settings.QUERY_TIMEOUT)


mutations_dep = Annotated[MutationEngine, Depends(get_mutations)]


def mutation_failed(error: TableGateError, what: str) -> HTTPException:
    # Client mistakes (400) keep their own message, storage failures get context
    if error.status_code < 500:
        return HTTPException(status_code=error.status_code, detail=str(error))

    logging.error(f"{what}: {error}")
    return HTTPException(status_code=error.status_code, detail=f"{what}: {error}")


# Add a row
@router.post(
    "/create-data",
    response_model=schemas.MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_data(payload: schemas.CreateDataRequest, mutations: mutations_dep):
    try:
        await mutations.create(payload.table_name, payload.data)
    except TableGateError as error:
        raise mutation_failed(error, "Error creating data")

    return {"message": "Data created successfully"}


# Update a row by primary key
@router.put("/update-data", response_model=schemas.MessageResponse)
async def update_data(payload: schemas.UpdateDataRequest, mutations: mutations_dep):
    try:
        await mutations.update(payload.table_name, payload.id, payload.data)
    except TableGateError as error:
        raise mutation_failed(error, "Error updating data")

    # Same answer whether the key matched a row or not
    return {"message": "Data updated successfully"}


# Delete a row by primary key
@router.delete("/delete-data", response_model=schemas.MessageResponse)
async def delete_data(payload: schemas.DeleteDataRequest, mutations: mutations_dep):
    try:
        await mutations.delete(payload.table_name, payload.id)
    except TableGateError as error:
        raise mutation_failed(error, "Error deleting data")

    return {"message": "Data deleted successfully"}
