import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from tablegate.core.config import settings
from tablegate.core.database import build_engine
from tablegate.api.router import api_router

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


# One engine (and so one connection pool) for the whole process
@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.engine = build_engine(settings)
    logger.info("Database engine created")

    yield
    await app.state.engine.dispose()
    logger.info("Database connections closed")


app = FastAPI(title="Tablegate API", lifespan=lifespan)

# Include the master router containing all our endpoints
app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Welcome to the Tablegate API"}
