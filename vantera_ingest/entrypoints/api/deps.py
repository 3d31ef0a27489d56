# vantera_ingest/entrypoints/api/deps.py
from __future__ import annotations

from fastapi import Header, HTTPException

from ...adapters.clients.apify import ApifyClient
from ...adapters.clients.attom import AttomClient
from ...config import settings


def require_api_key(x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> None:
    if settings.API_KEY:
        if not x_api_key or x_api_key != settings.API_KEY:
            raise HTTPException(status_code=401, detail="Invalid API key")


def get_attom_client() -> AttomClient | None:
    # None when ATTOM_API_KEY is not configured; the route reports it.
    return AttomClient.from_settings()


def get_apify_client() -> ApifyClient | None:
    return ApifyClient.from_settings()


def parse_flag(value: str | None) -> bool:
    """Query flags arrive as strings: ?dryRun=1 or ?dryRun=true."""
    return (value or "").strip().lower() in {"1", "true", "yes"}
