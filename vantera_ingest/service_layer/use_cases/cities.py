# vantera_ingest/service_layer/use_cases/cities.py
from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ...adapters.repos.listings import CityRepository
from ...config import settings
from ...domain.cities import seedable_presets
from ..run_reporter import RunReporter
from .outcome import IngestOutcome, error_outcome

log = logging.getLogger(__name__)

STEP_UPSERT = "upsert:city"
STEP_ROUTE = "route"


async def seed_cities(session: AsyncSession, *, dry_run: bool = False) -> IngestOutcome:
    """Upsert the preset cities. Sub-area presets are skipped (they live under Marbella)."""
    presets = seedable_presets()
    reporter = await RunReporter.start(
        session,
        source="vantera",
        scope="cities",
        region="GLOBAL",
        market="Cities",
        params={"dryRun": dry_run, "count": len(presets)},
        message="Starting city seed",
        error_cap=settings.ERROR_SAMPLE_CAP_REALTOR,
    )
    acc = reporter.acc
    acc.scanned = len(presets)
    repo = CityRepository(session)

    try:
        for preset in presets:
            if dry_run:
                acc.record_created()
                continue
            try:
                await repo.upsert_preset(preset)
                await session.commit()
                acc.record_created()
            except Exception as e:
                log.exception("city upsert failed slug=%s", preset.slug)
                await session.rollback()
                acc.record_error(STEP_UPSERT, f"{preset.slug}: {e}")

        await reporter.succeed("City seed")
    except Exception as e:
        log.exception("city seed failed run=%s", reporter.run_id)
        await session.rollback()
        if not reporter.finished:
            await reporter.fail("Route failed", step=STEP_ROUTE, detail=str(e) or type(e).__name__)
        return error_outcome(500, str(e) or type(e).__name__, run_id=reporter.run_id)

    return IngestOutcome(
        200,
        {
            "ok": acc.errors == 0,
            "runId": reporter.run_id,
            "dryRun": dry_run,
            "preview": [{"slug": p.slug, "name": p.name, "country": p.country} for p in presets],
            **acc.snapshot(),
        },
    )
