# vantera_ingest/adapters/clients/errors.py
from __future__ import annotations

from typing import Any


class ProviderError(Exception):
    """Upstream data provider call failed (HTTP status or transport)."""

    def __init__(self, message: str, *, status: int | None = None, code: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.code = code


class AttomError(ProviderError):
    def __init__(self, *, status: int | None, url: str, body_text: str = "", code: str | None = None) -> None:
        super().__init__(f"ATTOM {status or 'error'} for {url}\n{body_text[:400]}", status=status, code=code)
        self.url = url
        self.body_text = body_text


class ApifyError(ProviderError):
    def __init__(self, *, status: int | None, body_text: str = "", code: str | None = None) -> None:
        super().__init__(f"Apify {status or 'error'}\n{body_text[:600]}", status=status, code=code)
        self.body_text = body_text


def summarize_error(e: BaseException) -> dict[str, Any]:
    """Short, trace-free description safe to return to callers."""
    return {
        "message": str(e) or type(e).__name__,
        "status": getattr(e, "status", None),
        "code": getattr(e, "code", None),
    }
