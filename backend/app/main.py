from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.health import router as health_router
from app.config import settings
from app.db import init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup: bring the schema to the newest migration
    if settings.AUTO_MIGRATE:
        init_db()
    yield


app = FastAPI(title="Products Schema - Backend", version="0.1.0", lifespan=lifespan)

app.include_router(health_router, prefix="/api", tags=["health"])
