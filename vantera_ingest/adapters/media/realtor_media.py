# vantera_ingest/adapters/media/realtor_media.py
from __future__ import annotations

from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from ...domain.types import Photo
from ...models import Listing
from ..repos.listings import MediaRepository


async def ingest_realtor_media_for_listing(
    session: AsyncSession,
    listing: Listing,
    photos: Sequence[Photo],
) -> int:
    """Photos are already normalized by the actor mapping; just persist them."""
    if not photos:
        return 0
    return await MediaRepository(session).add_photos(listing, photos, source="REALTOR")
