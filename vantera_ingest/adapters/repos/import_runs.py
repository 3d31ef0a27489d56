# vantera_ingest/adapters/repos/import_runs.py
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ...models import ImportRun, ImportRunStatus


class ImportRunRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        *,
        source: str,
        scope: str,
        region: str | None,
        market: str | None,
        params: dict[str, Any],
        message: str,
    ) -> ImportRun:
        run = ImportRun(
            source=source,
            scope=scope,
            region=region,
            market=market,
            params=params,
            status=ImportRunStatus.RUNNING,
            message=message,
            started_at=datetime.utcnow(),
            error_samples=[],
            breakdown={},
        )
        self.session.add(run)
        await self.session.flush()
        return run

    async def get(self, run_id: int) -> ImportRun | None:
        return await self.session.get(ImportRun, run_id)

    async def finalize(
        self,
        run_id: int,
        *,
        status: ImportRunStatus,
        scanned: int,
        created: int,
        skipped: int,
        errors: int,
        error_samples: list[dict[str, str]],
        breakdown: dict[str, int],
        message: str,
    ) -> ImportRun:
        run = await self.get(run_id)
        if run is None:
            raise LookupError(f"ImportRun {run_id} not found")

        run.status = status
        run.finished_at = datetime.utcnow()
        run.scanned = scanned
        run.created = created
        run.skipped = skipped
        run.errors = errors
        # new list/dict objects so the JSON columns are flagged dirty
        run.error_samples = list(error_samples)
        run.breakdown = dict(breakdown)
        run.message = message

        await self.session.flush()
        return run

    async def list_recent(self, limit: int = 50) -> list[ImportRun]:
        q = select(ImportRun).order_by(ImportRun.id.desc()).limit(limit)
        return list((await self.session.execute(q)).scalars().all())
