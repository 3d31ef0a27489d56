# vantera_ingest/adapters/repos/listings.py
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Iterable

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ...domain.cities import CityPreset
from ...domain.types import Photo
from ...models import City, Listing, ListingMedia

log = logging.getLogger(__name__)

MediaAttacher = Callable[[Listing], Awaitable[int]]


class CityRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_slug(self, slug: str) -> City | None:
        q = select(City).where(City.slug == slug)
        return (await self.session.execute(q)).scalars().first()

    async def upsert_preset(self, preset: CityPreset) -> City:
        """Create or refresh a City from a preset, keyed on slug."""
        city = await self.get_by_slug(preset.slug)
        if city is None:
            city = City(slug=preset.slug)
            self.session.add(city)

        city.name = preset.name
        city.country = preset.country
        city.region = preset.region
        city.tz = preset.tz
        city.lat = preset.lat
        city.lng = preset.lng

        await self.session.flush()
        return city

    async def ensure(self, slug: str, *, name: str, country: str | None, tz: str | None) -> City:
        """Create if missing; an existing row is left untouched."""
        city = await self.get_by_slug(slug)
        if city is not None:
            return city
        city = City(slug=slug, name=name, country=country, tz=tz)
        self.session.add(city)
        await self.session.flush()
        return city


class ListingRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def exists(
        self,
        *,
        source: str,
        source_id: str | None,
        address: str | None,
        city_id: int,
    ) -> bool:
        """
        Identity lookup:
          1) (source, source_id) if the provider gave us a stable id
          2) (address, city_id) raw string equality otherwise
        """
        if source_id:
            q = select(Listing.id).where(Listing.source == source, Listing.source_id == source_id)
        elif address:
            q = select(Listing.id).where(Listing.address == address, Listing.city_id == city_id)
        else:
            return False
        return (await self.session.execute(q.limit(1))).first() is not None

    async def count(self) -> int:
        return int((await self.session.execute(select(func.count()).select_from(Listing))).scalar_one())

    async def create(self, data: dict[str, Any], *, attach_media: MediaAttacher | None = None) -> Listing | None:
        """
        Insert a Listing and run its media step inside one savepoint, so a
        failure leaves neither behind.
        Returns None when the listing's identity is already taken; any other
        constraint failure (a slug clash, say) is re-raised.
        """
        try:
            async with self.session.begin_nested():
                listing = Listing(**data)
                self.session.add(listing)
                await self.session.flush()
                if attach_media is not None:
                    await attach_media(listing)
        except IntegrityError:
            if not await self.identity_taken(
                source=data.get("source"),
                source_id=data.get("source_id"),
                address=data.get("address"),
                city_id=data.get("city_id"),
            ):
                raise
            log.info("listing conflict source=%s source_id=%s", data.get("source"), data.get("source_id"))
            return None
        return listing

    async def identity_taken(
        self,
        *,
        source: str | None,
        source_id: str | None,
        address: str | None,
        city_id: int | None,
    ) -> bool:
        """True if either unique identity, (source, source_id) or (address, city_id), has a row."""
        conds = []
        if source and source_id:
            conds.append(and_(Listing.source == source, Listing.source_id == source_id))
        if address and city_id is not None:
            conds.append(and_(Listing.address == address, Listing.city_id == city_id))
        if not conds:
            return False
        q = select(Listing.id).where(or_(*conds)).limit(1)
        return (await self.session.execute(q)).first() is not None


class MediaRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def existing_urls(self, listing_id: int) -> set[str]:
        q = select(ListingMedia.url).where(ListingMedia.listing_id == listing_id)
        return set((await self.session.execute(q)).scalars().all())

    async def add_photos(self, listing: Listing, photos: Iterable[Photo], *, source: str | None = None) -> int:
        """
        Persist photos not already attached to the listing; sets the cover
        to the lowest sort order if the listing has none. Returns rows inserted.
        """
        seen = await self.existing_urls(listing.id)
        next_order = len(seen)
        inserted: list[ListingMedia] = []

        for photo in photos:
            url = (photo.url or "").strip()
            if not url or url in seen:
                continue
            seen.add(url)
            m = ListingMedia(
                listing_id=listing.id,
                url=url,
                alt=(photo.caption or "Property image").strip(),
                width=photo.width,
                height=photo.height,
                sort_order=next_order,
                kind="image",
                source=source,
            )
            self.session.add(m)
            inserted.append(m)
            next_order += 1

        if not inserted:
            return 0

        await self.session.flush()
        if listing.cover_media_id is None:
            listing.cover_media_id = inserted[0].id
            await self.session.flush()
        return len(inserted)
