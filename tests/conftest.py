# tests/conftest.py
from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from vantera_ingest.adapters.clients.apify import ApifyClient
from vantera_ingest.adapters.clients.attom import AttomClient
from vantera_ingest.db import enable_sqlite_savepoints
from vantera_ingest.models import Base


@pytest.fixture
async def engine():
    """
    Fresh in-memory DB per test. StaticPool makes all connections share the same
    in-memory database for the lifetime of this engine fixture.
    """
    engine = enable_sqlite_savepoints(
        create_async_engine(
            "sqlite+aiosqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def async_session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=True)


@pytest.fixture
async def session(async_session_maker):
    async with async_session_maker() as s:
        yield s


# -----------------------------
# ATTOM fakes
# -----------------------------
def attom_row(
    ob_prop_id: int | None,
    line1: str | None,
    *,
    attom_id: int | None = None,
    line2: str | None = "MIAMI, FL 33139",
    proptype: str | None = "SFR",
    beds: int | None = 5,
    baths: float | None = 4.0,
    sqft: int | None = 4000,
    lat: float | None = 25.78,
    lng: float | None = -80.13,
) -> dict[str, Any]:
    """Shape shared by /property/snapshot rows and /property/detail rows."""
    identifier: dict[str, Any] = {}
    if ob_prop_id is not None:
        identifier["obPropId"] = ob_prop_id
    if attom_id is not None:
        identifier["attomId"] = attom_id
    return {
        "identifier": identifier,
        "address": {"line1": line1, "line2": line2, "locality": "Miami Beach"},
        "location": {"latitude": str(lat) if lat is not None else None, "longitude": str(lng) if lng is not None else None},
        "summary": {"proptype": proptype},
        "building": {"rooms": {"beds": beds, "bathstotal": baths}, "size": {"universalsize": sqft}},
        "lot": {"lotsize1": 0.5},
    }


class AttomFake:
    """
    Routes ATTOM paths to canned responses. A value that is an int is
    answered as that HTTP error status.
    """

    def __init__(self) -> None:
        self.snapshot: Any = {"property": []}
        self.details: dict[str, Any] = {}
        self.avm: dict[str, Any] = {}
        self.media: dict[str, Any] = {}
        self.calls: list[tuple[str, dict[str, str]]] = []

    def _answer(self, value: Any) -> httpx.Response:
        if value is None:
            return httpx.Response(404, text="not found")
        if isinstance(value, int):
            return httpx.Response(value, text=f"upstream {value}")
        if isinstance(value, httpx.Response):
            return value
        return httpx.Response(200, json=value)

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        q = dict(request.url.params)
        self.calls.append((path, q))

        if path.endswith("/property/detail/media"):
            return self._answer(self.media.get(q.get("attomId", "")))
        if path.endswith("/property/detail"):
            return self._answer(self.details.get(q.get("ID", "")))
        if path.endswith("/avm/detail"):
            value = self.avm.get(q.get("address1", ""))
            if isinstance(value, float):
                return httpx.Response(200, json={"property": [{"avm": {"amount": {"value": value}}}]})
            return self._answer(value)
        if path.endswith("/property/snapshot"):
            return self._answer(self.snapshot)
        return httpx.Response(404, text="unknown path")

    def client(self) -> AttomClient:
        return AttomClient("test-key", transport=httpx.MockTransport(self.handler))

    def paths(self) -> list[str]:
        return [p for p, _ in self.calls]


@pytest.fixture
def attom_fake() -> AttomFake:
    return AttomFake()


@pytest.fixture
def make_attom_row() -> Callable[..., dict[str, Any]]:
    return attom_row


# -----------------------------
# Apify fakes
# -----------------------------
class ApifyFake:
    def __init__(self) -> None:
        self.items: Any = []
        self.status = 201
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status >= 400:
            return httpx.Response(self.status, text='{"error":{"type":"run-failed"}}')
        return httpx.Response(self.status, json=self.items)

    def client(self) -> ApifyClient:
        return ApifyClient("apify-token", transport=httpx.MockTransport(self.handler))

    def last_input(self) -> dict[str, Any]:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def apify_fake() -> ApifyFake:
    return ApifyFake()
