# vantera_ingest/adapters/clients/apify.py
from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from ...config import settings
from .errors import ApifyError

log = logging.getLogger(__name__)


class ApifyClient:
    """
    Runs an Apify actor synchronously and returns its dataset items
    (run-sync-get-dataset-items).
    """

    def __init__(
        self,
        token: str,
        *,
        actor_id: str | None = None,
        base_url: str | None = None,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token = token
        self.actor_id = actor_id or settings.APIFY_REALTOR_ACTOR_ID
        self._base_url = (base_url or settings.APIFY_API_BASE).rstrip("/")
        self._timeout = httpx.Timeout(timeout_s or settings.APIFY_HTTP_TIMEOUT_S)
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "ApifyClient | None":
        if not settings.APIFY_TOKEN:
            return None
        return cls(settings.APIFY_TOKEN)

    def _headers(self) -> dict[str, str]:
        return {"content-type": "application/json", "Authorization": f"Bearer {self._token}"}

    async def run_sync_get_dataset_items(self, actor_input: dict[str, Any]) -> list[dict[str, Any]]:
        url = f"{self._base_url}/acts/{quote(self.actor_id, safe='~')}/run-sync-get-dataset-items"
        log.debug("Apify POST %s", url)

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                r = await client.post(url, headers=self._headers(), params={"format": "json"}, json=actor_input)
        except httpx.HTTPError as e:
            raise ApifyError(status=None, body_text=repr(e), code=type(e).__name__) from e

        if r.status_code >= 400:
            raise ApifyError(status=r.status_code, body_text=r.text)

        try:
            data = r.json()
        except ValueError as e:
            raise ApifyError(status=r.status_code, body_text=r.text, code="invalid_json") from e

        if not isinstance(data, list):
            return []
        return [x for x in data if isinstance(x, dict)]
