# vantera_ingest/service_layer/use_cases/realtor_properties.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ...adapters.clients.apify import ApifyClient
from ...adapters.clients.errors import ProviderError, summarize_error
from ...adapters.media.realtor_media import ingest_realtor_media_for_listing
from ...adapters.repos.listings import CityRepository, ListingRepository
from ...config import settings
from ...domain.classify import SkipReason, check_criteria, check_value, looks_residential
from ...domain.parsing import first_non_finite
from ...domain.realtor_fields import normalize_photos, normalize_realtor_item
from ...domain.scoring import PriceConfidence, compute_data_completeness, slug_with_suffix, sqft_to_m2
from ...models import Listing, ListingStatus, Verification, Visibility
from ..run_reporter import RunAccumulator, RunReporter
from .outcome import IngestOutcome, error_outcome

log = logging.getLogger(__name__)

SOURCE = "realtor"
DEFAULT_LIMIT = 200
MAX_LIMIT = 2000
DEFAULT_CITY_SLUG = "miami"

STEP_ACTOR = "apify:run-sync-get-dataset-items"
STEP_LOOP = "loop"
STEP_ROUTE = "route"


@dataclass(frozen=True)
class RealtorIngestParams:
    search_location: str
    dry_run: bool = False
    limit: int = DEFAULT_LIMIT
    price_min: float | None = None
    beds_min: float | None = None
    baths_min: float | None = None
    listing_type: list[str] = field(default_factory=lambda: ["for_sale"])
    property_type: list[str] | None = None
    city_slug: str | None = None


@dataclass
class _RunContext:
    session: AsyncSession
    acc: RunAccumulator
    city_id: int
    city_slug: str
    price_min: float
    params: RealtorIngestParams
    seen: set[tuple[str, str]] = field(default_factory=set)


def build_actor_input(p: RealtorIngestParams, *, limit: int, price_min: float) -> dict[str, Any]:
    actor_input: dict[str, Any] = {
        "searchLocation": p.search_location,
        "listingType": p.listing_type or ["for_sale"],
        "limit": limit,
        "priceMin": price_min,
        "extraPropertyData": True,
        "includeContactInfo": False,
        "excludePending": True,
        "parallel": True,
    }
    if p.property_type:
        actor_input["propertyType"] = p.property_type
    if p.beds_min is not None:
        actor_input["bedsMin"] = p.beds_min
    if p.baths_min is not None:
        actor_input["bathsMin"] = p.baths_min
    return actor_input


async def ingest_realtor_properties(
    session: AsyncSession,
    client: ApifyClient,
    params: RealtorIngestParams,
) -> IngestOutcome:
    """
    One Realtor.com ingest run: a single synchronous actor call, then
    normalize -> gates -> dedup -> score -> persist listing + photos per item.
    """
    search_location = (params.search_location or "").strip()
    if not search_location:
        return error_outcome(400, "Missing required query param: searchLocation (e.g. Miami, FL)")

    bad = first_non_finite(priceMin=params.price_min, bedsMin=params.beds_min, bathsMin=params.baths_min)
    if bad:
        return error_outcome(400, f"Query param {bad} must be a finite number")

    limit = max(1, min(int(params.limit), MAX_LIMIT))
    price_min = params.price_min if params.price_min is not None else settings.DEFAULT_MIN_VALUE_USD
    city_slug = (params.city_slug or "").strip().lower() or DEFAULT_CITY_SLUG

    run_params = {
        "actorId": client.actor_id,
        "searchLocation": search_location,
        "limit": limit,
        "priceMin": price_min,
        "listingType": params.listing_type,
        "propertyType": params.property_type,
        "bedsMin": params.beds_min,
        "bathsMin": params.baths_min,
        "citySlug": city_slug,
        "dryRun": params.dry_run,
    }

    reporter = await RunReporter.start(
        session,
        source=SOURCE,
        scope="properties",
        region="US",
        market=search_location,
        params=run_params,
        message="Starting Realtor ingest (Apify)",
        error_cap=settings.ERROR_SAMPLE_CAP_REALTOR,
    )
    acc = reporter.acc

    try:
        try:
            items = await client.run_sync_get_dataset_items(
                build_actor_input(params, limit=limit, price_min=price_min)
            )
        except ProviderError as e:
            info = summarize_error(e)
            log.warning("Apify actor failed run=%s status=%s", reporter.run_id, info["status"])
            await reporter.fail("Apify call failed", step=STEP_ACTOR, detail=info["message"])
            return IngestOutcome(
                502,
                {
                    "ok": False,
                    "runId": reporter.run_id,
                    "step": STEP_ACTOR,
                    "message": info["message"],
                    "errorSamples": acc.error_samples,
                },
            )

        acc.scanned = len(items)

        # US-first: everything attaches to one City unless citySlug says otherwise.
        city = await CityRepository(session).ensure(
            city_slug,
            name="Miami" if city_slug == DEFAULT_CITY_SLUG else city_slug,
            country="United States",
            tz="America/New_York",
        )
        city_id = city.id
        await session.commit()

        ctx = _RunContext(
            session=session,
            acc=acc,
            city_id=city_id,
            city_slug=city_slug,
            price_min=price_min,
            params=params,
        )

        for item in items:
            try:
                await _process_item(ctx, item)
            except Exception as e:
                log.exception("Realtor item failed run=%s", reporter.run_id)
                await session.rollback()
                acc.record_error(STEP_LOOP, str(e) or type(e).__name__)

        await reporter.succeed("Realtor ingest")
    except Exception as e:
        log.exception("Realtor ingest route failed run=%s", reporter.run_id)
        await session.rollback()
        if not reporter.finished:
            await reporter.fail("Route failed", step=STEP_ROUTE, detail=str(e) or type(e).__name__)
        return error_outcome(500, str(e) or type(e).__name__, run_id=reporter.run_id, errorSamples=acc.error_samples)

    return IngestOutcome(
        200,
        {
            "ok": acc.errors == 0,
            "runId": reporter.run_id,
            "params": run_params,
            **acc.snapshot(),
        },
    )


async def _process_item(ctx: _RunContext, item: dict[str, Any]) -> None:
    acc = ctx.acc
    params = ctx.params
    f = normalize_realtor_item(item)

    # Hard gates
    reason = check_value(f.price, ctx.price_min) or check_criteria(
        beds=f.beds,
        baths=f.baths,
        min_beds=params.beds_min,
        min_baths=params.baths_min,
    )
    if reason:
        acc.skip(reason)
        return
    if not looks_residential(f.property_type):
        acc.skip(SkipReason.not_residential)
        return

    # Dedup
    if f.source_id:
        identity = ("id", f.source_id)
    elif f.address:
        identity = ("address", f.address)
    else:
        acc.skip(SkipReason.missing_address)
        return

    repo = ListingRepository(ctx.session)
    if identity in ctx.seen or await repo.exists(
        source=SOURCE, source_id=f.source_id, address=f.address, city_id=ctx.city_id
    ):
        acc.skip(SkipReason.existing)
        return

    data_completeness = compute_data_completeness(
        address=f.address,
        lat=f.lat,
        lng=f.lng,
        property_type=f.property_type,
        beds=f.beds,
        baths=f.baths,
        built_sqft=f.built_sqft,
        price=f.price,
    )
    photos = normalize_photos(item, cap=settings.REALTOR_PHOTO_CAP)

    if params.dry_run:
        ctx.seen.add(identity)
        acc.record_created()
        return

    data = {
        "slug": slug_with_suffix(ctx.city_slug, f.source_id or f.address or "x"),
        "source": SOURCE,
        "source_id": f.source_id,
        "source_url": f.source_url,
        "city_id": ctx.city_id,
        "status": ListingStatus.LIVE,
        "visibility": Visibility.PUBLIC,
        "verification": Verification.SELF_REPORTED,
        "title": f.title,
        "headline": "Imported from Realtor.com (via Apify). Verification and normalization layers come next.",
        "description": "\n".join(
            line
            for line in (
                "Realtor ingest (Apify)",
                f"Realtor ID: {f.source_id}" if f.source_id else None,
                f"URL: {f.source_url}" if f.source_url else None,
                f"Address: {f.address}" if f.address else None,
            )
            if line
        ),
        "address": f.address,
        "address_hidden": True,
        "lat": f.lat,
        "lng": f.lng,
        "property_type": f.property_type,
        "bedrooms": f.beds,
        "bathrooms": f.baths,
        "built_sqft": f.built_sqft,
        "built_m2": sqft_to_m2(f.built_sqft),
        "price": f.price,
        "currency": "USD",
        "price_confidence": int(PriceConfidence.LISTING),
        "data_completeness": data_completeness,
    }

    async def _attach_media(listing: Listing) -> int:
        return await ingest_realtor_media_for_listing(ctx.session, listing, photos)

    listing = await repo.create(data, attach_media=_attach_media)
    if listing is None:
        acc.skip(SkipReason.existing)
        return

    await ctx.session.commit()
    ctx.seen.add(identity)
    acc.record_created()
    log.debug("Realtor created listing %s slug=%s photos=%s", listing.id, listing.slug, len(photos))
