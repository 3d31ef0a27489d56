# vantera_ingest/entrypoints/api/routers/ops.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import require_api_key
from ....adapters.repos.import_runs import ImportRunRepository
from ....db import get_session
from ....schemas import ImportRunOut

router = APIRouter(tags=["ops"])


@router.get("/ops/imports", dependencies=[Depends(require_api_key)])
async def list_imports(
    limit: int = Query(50, ge=1, le=200),
    session: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Most recent import runs, newest first."""
    runs = await ImportRunRepository(session).list_recent(limit=limit)
    return {
        "ok": True,
        "count": len(runs),
        "runs": [ImportRunOut.model_validate(r).model_dump(mode="json", by_alias=True) for r in runs],
    }
