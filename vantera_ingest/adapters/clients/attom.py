# vantera_ingest/adapters/clients/attom.py
from __future__ import annotations

import logging
from typing import Any

import httpx

from ...config import settings
from .errors import AttomError

log = logging.getLogger(__name__)

# ATTOM answers 460 + "SuccessWithNoResult" when a search simply has no rows.
NO_RESULT_STATUS = 460


def _looks_like_success_with_no_result(body_text: str) -> bool:
    return "successwithnoresult" in (body_text or "").lower()


def _clean_query(query: dict[str, Any] | None) -> dict[str, str]:
    if not query:
        return {}
    return {k: str(v) for k, v in query.items() if v is not None}


class AttomClient:
    """
    Low-level HTTP client for the ATTOM property API.
    Returns parsed JSON dicts; shape interpretation lives in domain.attom_fields.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str | None = None,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = (base_url or settings.ATTOM_BASE_URL).rstrip("/")
        self._timeout = httpx.Timeout(timeout_s or settings.ATTOM_HTTP_TIMEOUT_S)
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "AttomClient | None":
        if not settings.ATTOM_API_KEY:
            return None
        return cls(settings.ATTOM_API_KEY)

    def _headers(self) -> dict[str, str]:
        return {"accept": "application/json", "apikey": self._api_key}

    async def fetch_json(self, path: str, query: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self._base_url}/{path.lstrip('/')}"
        params = _clean_query(query)
        log.debug("ATTOM GET %s params=%s", path, params)

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                r = await client.get(url, headers=self._headers(), params=params)
        except httpx.HTTPError as e:
            raise AttomError(status=None, url=url, body_text=repr(e), code=type(e).__name__) from e

        if r.status_code >= 400:
            body = r.text
            if r.status_code == NO_RESULT_STATUS and _looks_like_success_with_no_result(body):
                try:
                    data = r.json()
                except ValueError:
                    data = None
                if isinstance(data, dict):
                    return data
                return {"property": [], "status": {"msg": "SuccessWithNoResult", "code": NO_RESULT_STATUS}}
            raise AttomError(status=r.status_code, url=url, body_text=body)

        try:
            data = r.json()
        except ValueError as e:
            raise AttomError(status=r.status_code, url=url, body_text=r.text, code="invalid_json") from e
        return data if isinstance(data, dict) else {"property": data}

    # ---- endpoints ----

    async def property_snapshot(self, *, latitude: float, longitude: float, radius: float, pagesize: int) -> dict[str, Any]:
        return await self.fetch_json(
            "/property/snapshot",
            {"latitude": latitude, "longitude": longitude, "radius": radius, "pagesize": pagesize},
        )

    async def property_detail(self, ob_prop_id: str) -> dict[str, Any]:
        return await self.fetch_json("/property/detail", {"ID": ob_prop_id})

    async def avm_detail(self, address1: str, address2: str) -> dict[str, Any]:
        return await self.fetch_json("/avm/detail", {"address1": address1, "address2": address2})

    async def property_media(self, attom_id: str) -> dict[str, Any]:
        return await self.fetch_json("/property/detail/media", {"attomId": attom_id})
