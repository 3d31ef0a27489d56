# vantera_ingest/entrypoints/api/routers/ingest_realtor.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_apify_client, parse_flag, require_api_key
from ....adapters.clients.apify import ApifyClient
from ....config import settings
from ....db import get_session
from ....domain.classify import parse_csv
from ....schemas import ProviderHealth
from ....service_layer.use_cases.realtor_properties import RealtorIngestParams, ingest_realtor_properties

router = APIRouter(tags=["ingest"])


@router.get("/ingest/realtor", dependencies=[Depends(require_api_key)])
def realtor_health() -> dict[str, Any]:
    health = ProviderHealth(
        provider="realtor",
        has_token=bool(settings.APIFY_TOKEN),
        actor_id=settings.APIFY_REALTOR_ACTOR_ID,
    )
    return health.model_dump(by_alias=True)


@router.get("/ingest/realtor/properties", dependencies=[Depends(require_api_key)])
async def ingest_realtor(
    search_location: str | None = Query(None, alias="searchLocation"),
    dry_run: str | None = Query(None, alias="dryRun"),
    limit: int = Query(200),
    price_min: float | None = Query(None, alias="priceMin"),
    beds_min: float | None = Query(None, alias="bedsMin"),
    baths_min: float | None = Query(None, alias="bathsMin"),
    listing_type: str | None = Query(None, alias="listingType", description="CSV, default for_sale"),
    property_type: str | None = Query(None, alias="propertyType", description="CSV"),
    city_slug: str | None = Query(None, alias="citySlug"),
    client: ApifyClient | None = Depends(get_apify_client),
    session: AsyncSession = Depends(get_session),
) -> JSONResponse:
    if not (search_location or "").strip():
        return JSONResponse(
            status_code=400,
            content={
                "ok": False,
                "runId": None,
                "message": "Missing required query param: searchLocation (e.g. Miami, FL)",
            },
        )
    if client is None:
        return JSONResponse(
            status_code=500,
            content={"ok": False, "runId": None, "message": "Missing APIFY_TOKEN"},
        )

    params = RealtorIngestParams(
        search_location=search_location or "",
        dry_run=parse_flag(dry_run),
        limit=limit,
        price_min=price_min,
        beds_min=beds_min,
        baths_min=baths_min,
        listing_type=parse_csv(listing_type) or ["for_sale"],
        property_type=parse_csv(property_type) or None,
        city_slug=city_slug,
    )
    outcome = await ingest_realtor_properties(session, client, params)
    return JSONResponse(status_code=outcome.status_code, content=outcome.body)
