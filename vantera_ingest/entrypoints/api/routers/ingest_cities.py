# vantera_ingest/entrypoints/api/routers/ingest_cities.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import parse_flag, require_api_key
from ....db import get_session
from ....service_layer.use_cases.cities import seed_cities

router = APIRouter(tags=["ingest"])


@router.get("/ingest/cities", dependencies=[Depends(require_api_key)])
async def ingest_cities(
    dry_run: str | None = Query(None, alias="dryRun"),
    session: AsyncSession = Depends(get_session),
) -> JSONResponse:
    outcome = await seed_cities(session, dry_run=parse_flag(dry_run))
    return JSONResponse(status_code=outcome.status_code, content=outcome.body)
