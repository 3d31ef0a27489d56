# vantera_ingest/entrypoints/api/routers/health.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ..deps import require_api_key
from ....config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/debug/config", dependencies=[Depends(require_api_key)])
def debug_config() -> dict[str, Any]:
    return {
        "ENV": settings.ENV,
        "VANTERA_DB_URL": settings.VANTERA_DB_URL,
        "ATTOM_BASE_URL": settings.ATTOM_BASE_URL,
        "ATTOM_API_KEY_SET": bool(settings.ATTOM_API_KEY),
        "APIFY_API_BASE": settings.APIFY_API_BASE,
        "APIFY_REALTOR_ACTOR_ID": settings.APIFY_REALTOR_ACTOR_ID,
        "APIFY_TOKEN_SET": bool(settings.APIFY_TOKEN),
        "DEFAULT_MIN_VALUE_USD": settings.DEFAULT_MIN_VALUE_USD,
    }
