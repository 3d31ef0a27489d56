# vantera_ingest/service_layer/use_cases/outcome.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class IngestOutcome:
    """HTTP-agnostic result of a use case: status code + JSON body."""
    status_code: int
    body: dict[str, Any]

    @property
    def ok(self) -> bool:
        return bool(self.body.get("ok"))


def error_outcome(status_code: int, message: str, *, run_id: int | None = None, **extra: Any) -> IngestOutcome:
    return IngestOutcome(status_code, {"ok": False, "runId": run_id, "message": message, **extra})
