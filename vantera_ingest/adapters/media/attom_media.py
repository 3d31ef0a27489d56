# vantera_ingest/adapters/media/attom_media.py
from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ...domain.parsing import get_path, pick_number, pick_string, to_int
from ...domain.types import Photo
from ...models import Listing
from ..clients.attom import AttomClient
from ..repos.listings import MediaRepository


def parse_attom_photos(res: Any) -> list[Photo]:
    """ATTOM media responses come back as property.media.photos or property[0].media.photos."""
    photos = get_path(res, "property.media.photos") or get_path(res, "property.0.media.photos")
    if not isinstance(photos, list):
        return []

    rows = [p for p in photos if isinstance(p, dict)]
    rows.sort(key=lambda p: pick_number(p.get("sequenceNumber")) or 0)

    out: list[Photo] = []
    for p in rows:
        url = pick_string(p.get("url"))
        if not url:
            continue
        out.append(
            Photo(
                url=url,
                caption=pick_string(p.get("caption")),
                width=to_int(pick_number(p.get("width"))),
                height=to_int(pick_number(p.get("height"))),
            )
        )
    return out


async def ingest_attom_media_for_listing(
    session: AsyncSession,
    client: AttomClient,
    listing: Listing,
    attom_id: str | None,
) -> int:
    """Fetch ATTOM photos for a listing and persist the ones it doesn't have yet."""
    if not attom_id:
        return 0
    res = await client.property_media(attom_id)
    return await MediaRepository(session).add_photos(listing, parse_attom_photos(res), source="ATTOM")
