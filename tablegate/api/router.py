from fastapi import APIRouter
from tablegate.api.endpoints import data, tables

api_router = APIRouter()

# Combine all sub-routers into one
api_router.include_router(tables.router)
api_router.include_router(data.router)
