# vantera_ingest/service_layer/use_cases/attom_properties.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ...adapters.clients.attom import AttomClient
from ...adapters.clients.errors import ProviderError, summarize_error
from ...adapters.media.attom_media import ingest_attom_media_for_listing
from ...adapters.repos.listings import CityRepository, ListingRepository
from ...config import settings
from ...domain import attom_fields as af
from ...domain.cities import CITY_PRESETS, CityPreset, CityResolution, resolve_city
from ...domain.classify import SkipReason, check_criteria, check_value, is_residential_strict
from ...domain.parsing import first_non_finite
from ...domain.scoring import PriceConfidence, compute_data_completeness, slug_with_suffix, sqft_to_m2
from ...models import Listing, ListingStatus, Verification, Visibility
from ..run_reporter import RunAccumulator, RunReporter
from .outcome import IngestOutcome, error_outcome

log = logging.getLogger(__name__)

SOURCE = "attom"
MAX_LIMIT = 100

STEP_SNAPSHOT = "attom:/property/snapshot"
STEP_DETAIL = "attom:/property/detail"
STEP_LOOP = "loop"
STEP_ROUTE = "route"


@dataclass(frozen=True)
class AttomIngestParams:
    city: str | None = "miami"
    radius: float = 0.5  # miles
    limit: int = 25
    dry_run: bool = False
    min_beds: float | None = None
    # optional floor applied to a direct AVM hit only
    min_avm: float | None = None
    types: list[str] | None = None
    # floor applied to whatever price resolved (AVM or assessment)
    min_value: float | None = None


@dataclass
class _RunContext:
    session: AsyncSession
    client: AttomClient
    acc: RunAccumulator
    resolution: CityResolution
    query_preset: CityPreset
    attach_preset: CityPreset
    city_id: int
    min_value: float
    params: AttomIngestParams
    fetch_media: bool
    seen: set[tuple[str, str]] = field(default_factory=set)


def _run_params(p: AttomIngestParams, res: CityResolution, query: CityPreset, attach: CityPreset, limit: int, min_value: float) -> dict[str, Any]:
    return {
        "requestedCity": res.requested_key,
        "queryCity": query.slug,
        "attachCity": attach.slug,
        "radius": p.radius,
        "limit": limit,
        "dryRun": p.dry_run,
        "minBeds": p.min_beds,
        "minAvm": p.min_avm,
        "minValue": min_value,
        "types": p.types,
        "costaDelSolLocked": res.locked,
        "neighborhoodOverride": res.neighborhood_override,
    }


async def ingest_attom_properties(
    session: AsyncSession,
    client: AttomClient,
    params: AttomIngestParams,
    *,
    fetch_media: bool = True,
) -> IngestOutcome:
    """
    One ATTOM ingest run:

      1) radius snapshot around the query centroid (fatal on failure)
      2) per item: snapshot gates -> dedup -> detail -> residential gate
         -> AVM / assessment price -> value gate -> score -> persist
      3) finalize the ImportRun row
    """
    bad = first_non_finite(
        radius=params.radius, minBeds=params.min_beds, minAvm=params.min_avm, minValue=params.min_value
    )
    if bad:
        return error_outcome(400, f"Query param {bad} must be a finite number")

    resolution = resolve_city(params.city)
    query_preset = CITY_PRESETS.get(resolution.query_key)
    if query_preset is None:
        return error_outcome(
            400,
            f'Unknown city preset "{resolution.query_key}". Try: miami | marbella | benahavis | estepona.',
        )
    attach_preset = CITY_PRESETS[resolution.attach_slug]

    limit = max(1, min(int(params.limit), MAX_LIMIT))
    min_value = params.min_value if params.min_value is not None else settings.DEFAULT_MIN_VALUE_USD
    run_params = _run_params(params, resolution, query_preset, attach_preset, limit, min_value)

    reporter = await RunReporter.start(
        session,
        source=SOURCE,
        scope="properties",
        region=attach_preset.run_region,
        market=attach_preset.name,
        params=run_params,
        message="Starting property ingest",
        error_cap=settings.ERROR_SAMPLE_CAP_ATTOM,
    )
    acc = reporter.acc

    try:
        city = await CityRepository(session).upsert_preset(attach_preset)
        city_id = city.id
        await session.commit()

        try:
            snapshot = await client.property_snapshot(
                latitude=query_preset.lat,
                longitude=query_preset.lng,
                radius=params.radius,
                pagesize=limit,
            )
        except ProviderError as e:
            info = summarize_error(e)
            log.warning("ATTOM snapshot failed run=%s status=%s", reporter.run_id, info["status"])
            await reporter.fail("Snapshot call failed", step=STEP_SNAPSHOT, detail=info["message"])
            return IngestOutcome(
                502,
                {"ok": False, "runId": reporter.run_id, "step": STEP_SNAPSHOT, **info},
            )

        items = af.property_rows(snapshot)[:limit]
        acc.scanned = len(items)

        ctx = _RunContext(
            session=session,
            client=client,
            acc=acc,
            resolution=resolution,
            query_preset=query_preset,
            attach_preset=attach_preset,
            city_id=city_id,
            min_value=min_value,
            params=params,
            fetch_media=fetch_media,
        )

        for p in items:
            try:
                await _process_item(ctx, p)
            except Exception as e:
                log.exception("ATTOM item failed run=%s", reporter.run_id)
                await session.rollback()
                acc.record_error(STEP_LOOP, str(e) or type(e).__name__)

        await reporter.succeed("Property ingest")
    except Exception as e:
        log.exception("ATTOM ingest route failed run=%s", reporter.run_id)
        await session.rollback()
        if not reporter.finished:
            await reporter.fail("Route failed", step=STEP_ROUTE, detail=str(e) or type(e).__name__)
        return error_outcome(500, str(e) or type(e).__name__, run_id=reporter.run_id, errorSamples=acc.error_samples)

    return IngestOutcome(
        200,
        {
            "ok": acc.errors == 0,
            "runId": reporter.run_id,
            "requestedCity": resolution.requested_key,
            "queryCity": query_preset.slug,
            "attachCity": attach_preset.slug,
            "params": run_params,
            **acc.snapshot(),
        },
    )


async def _process_item(ctx: _RunContext, p: dict[str, Any]) -> None:
    acc = ctx.acc
    params = ctx.params
    repo = ListingRepository(ctx.session)

    addr = af.read_address(p)
    address = addr.full
    if not address:
        acc.skip(SkipReason.missing_address)
        return

    ob_prop_id, attom_id = af.read_identifiers(p)
    best_id = ob_prop_id or attom_id

    beds_snap = af.read_beds(p)
    type_snap = af.read_property_type(p)
    class_snap = af.read_class_code(p)

    reason = check_criteria(
        beds=beds_snap,
        type_str=type_snap or class_snap,
        min_beds=params.min_beds,
        type_whitelist=params.types,
    )
    if reason:
        acc.skip(reason)
        return

    identity = ("id", best_id) if best_id else ("address", address)
    if identity in ctx.seen or await repo.exists(
        source=SOURCE, source_id=best_id, address=address, city_id=ctx.city_id
    ):
        acc.skip(SkipReason.existing)
        return

    # Detail is load-bearing for the gates below: a failure counts as an error.
    detail: dict[str, Any] | None = None
    if ob_prop_id:
        try:
            detail = af.first_property(await ctx.client.property_detail(ob_prop_id))
        except ProviderError as e:
            acc.record_error(STEP_DETAIL, summarize_error(e)["message"])
            acc.skip(SkipReason.detail_error)
            return

    src = detail or {}
    property_type = af.read_property_type(src) or type_snap
    class_code = af.read_class_code(src) or class_snap

    if not is_residential_strict(property_type, class_code):
        acc.skip(SkipReason.not_residential)
        return

    beds = af.read_beds(src)
    beds = beds if beds is not None else beds_snap
    baths = af.read_baths(src)
    baths = baths if baths is not None else af.read_baths(p)
    built_sqft = af.read_built_sqft(src)
    built_sqft = built_sqft if built_sqft is not None else af.read_built_sqft(p)
    lot_sqft = af.read_lot_sqft(src)
    lot_sqft = lot_sqft if lot_sqft is not None else af.read_lot_sqft(p)

    # AVM is a nice-to-have: failures fall back silently.
    price: float | None = None
    confidence: PriceConfidence | None = None
    if addr.address1 and addr.address2:
        try:
            avm_value = af.read_avm_value(await ctx.client.avm_detail(addr.address1, addr.address2))
        except ProviderError as e:
            log.debug("ATTOM AVM unavailable for %s: %s", best_id or address, e)
            avm_value = None
        if avm_value is not None:
            if params.min_avm is not None and avm_value < params.min_avm:
                acc.skip(SkipReason.min_avm)
                return
            price, confidence = avm_value, PriceConfidence.AVM

    if price is None:
        assessed = af.read_assessment_value(src)
        if assessed is not None:
            price, confidence = assessed, PriceConfidence.ASSESSMENT

    reason = check_value(price, ctx.min_value)
    if reason:
        acc.skip(reason)
        return

    lat = addr.lat if addr.lat is not None else af.read_address(src).lat
    lng = addr.lng if addr.lng is not None else af.read_address(src).lng

    data_completeness = compute_data_completeness(
        address=address,
        lat=lat,
        lng=lng,
        property_type=property_type,
        beds=beds,
        baths=baths,
        built_sqft=built_sqft,
        price=price,
    )

    if params.dry_run:
        ctx.seen.add(identity)
        acc.record_created()
        return

    neighborhood = ctx.resolution.neighborhood_override or af.read_neighborhood(src)
    attach = ctx.attach_preset
    data = {
        "slug": slug_with_suffix(f"{attach.slug}-{address}", best_id or "x"),
        "source": SOURCE,
        "source_id": best_id,
        "city_id": ctx.city_id,
        "status": ListingStatus.LIVE,
        "visibility": Visibility.PUBLIC,
        "verification": Verification.SELF_REPORTED,
        "title": f"{attach.name} · {property_type or 'Property'}",
        "headline": "Imported from ATTOM - verification and media layers come next.",
        "description": "\n".join(
            line
            for line in (
                "ATTOM import",
                f"Query: {ctx.query_preset.name}",
                f"Attach: {attach.name}",
                f"Sub-area: {neighborhood}" if neighborhood else None,
                f"ATTOM ID: {best_id}" if best_id else None,
                address,
                f"Min gate: {ctx.min_value:,.0f} (AVM currency assumed USD from source)",
            )
            if line
        ),
        "neighborhood": neighborhood,
        "address": address,
        "address_hidden": True,
        "lat": lat,
        "lng": lng,
        "property_type": property_type,
        "bedrooms": beds,
        "bathrooms": baths,
        "built_sqft": built_sqft,
        "plot_sqft": lot_sqft,
        "built_m2": sqft_to_m2(built_sqft),
        "plot_m2": sqft_to_m2(lot_sqft),
        "price": price,
        "currency": "USD",
        "price_confidence": int(confidence) if confidence is not None else None,
        "data_completeness": data_completeness,
    }

    media_id = attom_id or best_id

    async def _attach_media(listing: Listing) -> int:
        if not ctx.fetch_media:
            return 0
        try:
            return await ingest_attom_media_for_listing(ctx.session, ctx.client, listing, media_id)
        except ProviderError as e:
            log.warning("ATTOM media failed listing=%s: %s", listing.id, e)
            return 0

    listing = await repo.create(data, attach_media=_attach_media)
    if listing is None:
        acc.skip(SkipReason.existing)
        return

    await ctx.session.commit()
    ctx.seen.add(identity)
    acc.record_created()
    log.debug("ATTOM created listing %s slug=%s", listing.id, listing.slug)
