# vantera_ingest/domain/types.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Photo:
    url: str
    caption: str | None = None
    width: int | None = None
    height: int | None = None
