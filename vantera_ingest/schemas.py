from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .models import ImportRunStatus


class ImportRunOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    source: str
    scope: str
    region: str | None = None
    market: str | None = None
    status: ImportRunStatus
    scanned: int
    created: int
    skipped: int
    errors: int
    error_samples: list[dict[str, Any]] = Field(default_factory=list, alias="errorSamples")
    breakdown: dict[str, int] = Field(default_factory=dict)
    params: dict[str, Any] = Field(default_factory=dict)
    message: str | None = None
    started_at: datetime = Field(alias="startedAt")
    finished_at: datetime | None = Field(default=None, alias="finishedAt")


class ProviderHealth(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    provider: str
    has_token: bool = Field(alias="hasToken")
    actor_id: str = Field(alias="actorId")
