# scripts/run_ingest.py
from __future__ import annotations

import asyncio
import json
import logging
import os
import sys

from vantera_ingest.adapters.clients.apify import ApifyClient
from vantera_ingest.adapters.clients.attom import AttomClient
from vantera_ingest.db import async_session, engine
from vantera_ingest.domain.classify import parse_csv, parse_csv_upper
from vantera_ingest.models import Base
from vantera_ingest.service_layer.use_cases.attom_properties import AttomIngestParams, ingest_attom_properties
from vantera_ingest.service_layer.use_cases.cities import seed_cities
from vantera_ingest.service_layer.use_cases.outcome import IngestOutcome
from vantera_ingest.service_layer.use_cases.realtor_properties import RealtorIngestParams, ingest_realtor_properties

log = logging.getLogger("run_ingest")


def _quiet_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(levelname)s:%(name)s:%(message)s",
    )

    # Quiet the usual offenders
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.WARNING)


def _env_float(name: str) -> float | None:
    v = os.environ.get(name)
    return float(v) if v else None


def _dry_run() -> bool:
    return os.environ.get("DRY_RUN", "").strip().lower() in {"1", "true", "yes"}


async def _run_attom(session) -> IngestOutcome:
    client = AttomClient.from_settings()
    if client is None:
        raise SystemExit("ATTOM_API_KEY is not set")
    params = AttomIngestParams(
        city=os.environ.get("CITY", "miami"),
        radius=float(os.environ.get("RADIUS", "0.5")),
        limit=int(os.environ.get("LIMIT", "25")),
        dry_run=_dry_run(),
        min_beds=_env_float("MIN_BEDS"),
        min_avm=_env_float("MIN_AVM"),
        types=parse_csv_upper(os.environ.get("TYPES")),
        min_value=_env_float("MIN_VALUE"),
    )
    return await ingest_attom_properties(session, client, params)


async def _run_realtor(session) -> IngestOutcome:
    client = ApifyClient.from_settings()
    if client is None:
        raise SystemExit("APIFY_TOKEN is not set")
    params = RealtorIngestParams(
        search_location=os.environ.get("SEARCH_LOCATION", "Miami, FL"),
        dry_run=_dry_run(),
        limit=int(os.environ.get("LIMIT", "200")),
        price_min=_env_float("PRICE_MIN"),
        beds_min=_env_float("BEDS_MIN"),
        baths_min=_env_float("BATHS_MIN"),
        listing_type=parse_csv(os.environ.get("LISTING_TYPE")) or ["for_sale"],
        property_type=parse_csv(os.environ.get("PROPERTY_TYPE")) or None,
        city_slug=os.environ.get("CITY_SLUG"),
    )
    return await ingest_realtor_properties(session, client, params)


async def main() -> int:
    """
    SOURCE=attom|realtor|cities python scripts/run_ingest.py

    Same use cases as the HTTP routes; parameters come from env vars.
    """
    _quiet_logging()
    source = os.environ.get("SOURCE", "attom").strip().lower()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        if source == "attom":
            outcome = await _run_attom(session)
        elif source == "realtor":
            outcome = await _run_realtor(session)
        elif source == "cities":
            outcome = await seed_cities(session, dry_run=_dry_run())
        else:
            raise SystemExit(f"Unknown SOURCE {source!r}: expected attom | realtor | cities")

    log.info("run finished status=%s", outcome.status_code)
    print(json.dumps(outcome.body, indent=2, default=str))
    return 0 if outcome.ok else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
