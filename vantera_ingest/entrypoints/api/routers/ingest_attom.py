# vantera_ingest/entrypoints/api/routers/ingest_attom.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_attom_client, parse_flag, require_api_key
from ....adapters.clients.attom import AttomClient
from ....db import get_session
from ....domain.classify import parse_csv_upper
from ....service_layer.use_cases.attom_properties import AttomIngestParams, ingest_attom_properties

router = APIRouter(tags=["ingest"])


@router.get("/ingest/attom/properties", dependencies=[Depends(require_api_key)])
async def ingest_attom(
    city: str = Query("miami"),
    radius: float = Query(0.5, gt=0, description="Miles around the city centroid"),
    limit: int = Query(25),
    dry_run: str | None = Query(None, alias="dryRun"),
    min_beds: float | None = Query(None, alias="minBeds"),
    min_avm: float | None = Query(None, alias="minAvm"),
    types: str | None = Query(None, description="Comma-separated type whitelist"),
    min_value: float | None = Query(None, alias="minValue"),
    client: AttomClient | None = Depends(get_attom_client),
    session: AsyncSession = Depends(get_session),
) -> JSONResponse:
    if client is None:
        return JSONResponse(
            status_code=500,
            content={"ok": False, "runId": None, "message": "Missing ATTOM_API_KEY"},
        )

    params = AttomIngestParams(
        city=city,
        radius=radius,
        limit=limit,
        dry_run=parse_flag(dry_run),
        min_beds=min_beds,
        min_avm=min_avm,
        types=parse_csv_upper(types),
        min_value=min_value,
    )
    outcome = await ingest_attom_properties(session, client, params)
    return JSONResponse(status_code=outcome.status_code, content=outcome.body)
