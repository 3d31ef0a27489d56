# vantera_ingest/entrypoints/fastapi_app.py
from __future__ import annotations

from fastapi import FastAPI

from ..db import engine
from ..models import Base
from .api.routers import health, ingest_attom, ingest_cities, ingest_realtor, ops


def create_app() -> FastAPI:
    app = FastAPI(title="Vantera - Listing Ingest")

    @app.on_event("startup")
    async def _startup() -> None:
        # Single place where DB tables are created in dev.
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    # Routers
    app.include_router(health.router)
    app.include_router(ingest_attom.router)
    app.include_router(ingest_realtor.router)
    app.include_router(ingest_cities.router)
    app.include_router(ops.router)

    return app
