# vantera_ingest/service_layer/run_reporter.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..adapters.repos.import_runs import ImportRunRepository
from ..domain.classify import SkipReason
from ..models import ImportRun, ImportRunStatus

log = logging.getLogger(__name__)


def _empty_breakdown() -> dict[str, int]:
    return {r.breakdown_key: 0 for r in SkipReason}


@dataclass
class RunAccumulator:
    """
    Per-invocation counters. One instance per request, threaded through item
    processing and written to the ImportRun row once at the end.
    """
    error_cap: int = 5
    scanned: int = 0
    created: int = 0
    skipped: int = 0
    errors: int = 0
    breakdown: dict[str, int] = field(default_factory=_empty_breakdown)
    error_samples: list[dict[str, str]] = field(default_factory=list)

    def skip(self, reason: SkipReason) -> None:
        self.skipped += 1
        self.breakdown[reason.breakdown_key] = self.breakdown.get(reason.breakdown_key, 0) + 1

    def record_created(self) -> None:
        self.created += 1

    def record_error(self, step: str, message: str) -> None:
        self.errors += 1
        self.add_sample(step, message)

    def add_sample(self, step: str, message: str) -> None:
        if len(self.error_samples) < self.error_cap:
            self.error_samples.append({"step": step, "message": message[:1000]})

    def skip_summary(self) -> str:
        parts = [f"{k[len('skipped'):]}={v}" for k, v in self.breakdown.items() if v]
        return ", ".join(parts)

    def snapshot(self) -> dict[str, Any]:
        return {
            "scanned": self.scanned,
            "created": self.created,
            "skipped": self.skipped,
            "errors": self.errors,
            "errorSamples": list(self.error_samples),
            "breakdown": dict(self.breakdown),
        }


class RunReporter:
    """
    Owns exactly one ImportRun row: RUNNING on start, one terminal update on finish.
    """

    def __init__(self, session: AsyncSession, run: ImportRun, acc: RunAccumulator) -> None:
        self.session = session
        self.run_id: int = run.id
        self.acc = acc
        self._repo = ImportRunRepository(session)
        self._finished = False

    @classmethod
    async def start(
        cls,
        session: AsyncSession,
        *,
        source: str,
        scope: str,
        region: str | None,
        market: str | None,
        params: dict[str, Any],
        message: str,
        error_cap: int,
    ) -> "RunReporter":
        run = await ImportRunRepository(session).create(
            source=source,
            scope=scope,
            region=region,
            market=market,
            params=params,
            message=message,
        )
        await session.commit()
        log.info("import run %s started source=%s scope=%s market=%s", run.id, source, scope, market)
        return cls(session, run, RunAccumulator(error_cap=error_cap))

    @property
    def finished(self) -> bool:
        return self._finished

    async def finish(self, status: ImportRunStatus, message: str) -> ImportRun:
        if self._finished:
            raise RuntimeError(f"ImportRun {self.run_id} already finalized")

        acc = self.acc
        run = await self._repo.finalize(
            self.run_id,
            status=status,
            scanned=acc.scanned,
            created=acc.created,
            skipped=acc.skipped,
            errors=acc.errors,
            error_samples=acc.error_samples,
            breakdown=acc.breakdown,
            message=message,
        )
        await self.session.commit()
        self._finished = True
        log.info(
            "import run %s %s scanned=%s created=%s skipped=%s errors=%s",
            self.run_id,
            status.value,
            acc.scanned,
            acc.created,
            acc.skipped,
            acc.errors,
        )
        return run

    async def succeed(self, label: str) -> ImportRun:
        """Normal loop completion; per-item errors are reported, not fatal."""
        acc = self.acc
        msg = f"{label} complete" if acc.errors == 0 else f"{label} finished with {acc.errors} errors"
        msg += f": created {acc.created}, skipped {acc.skipped}"
        summary = acc.skip_summary()
        if summary:
            msg += f" ({summary})"
        return await self.finish(ImportRunStatus.SUCCEEDED, msg)

    async def fail(self, message: str, *, step: str, detail: str, count_error: bool = True) -> ImportRun:
        if count_error:
            self.acc.record_error(step, detail)
        else:
            self.acc.add_sample(step, detail)
        return await self.finish(ImportRunStatus.FAILED, message)
