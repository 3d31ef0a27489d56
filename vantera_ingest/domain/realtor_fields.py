# vantera_ingest/domain/realtor_fields.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .parsing import first_id, first_number, first_string, get_path, pick_number, pick_string, safe_join, to_int
from .types import Photo


@dataclass(frozen=True)
class RealtorFields:
    source_id: str | None
    price: float | None
    beds: int | None
    baths: float | None
    built_sqft: int | None
    address: str | None
    lat: float | None
    lng: float | None
    property_type: str | None
    source_url: str | None
    title: str
    city: str | None
    state: str | None


def normalize_realtor_item(item: Any) -> RealtorFields:
    """
    Actor output varies by scraper version, so every field is tried across
    the aliases seen so far.
    """
    address_line = first_string(
        item,
        "address.line",
        "address.street_address",
        "location.address",
        "address",
    )
    city = first_string(item, "address.city", "location.city")
    state = first_string(item, "address.state", "location.state")
    postal = first_string(item, "address.postal_code", "location.postal_code")

    title = (
        first_string(item, "title", "description.name")
        or safe_join([city, state], " ")
        or "Realtor Listing"
    )

    return RealtorFields(
        source_id=first_id(item, "property_id", "listing_id", "mls_id", "id", "permalink"),
        price=first_number(item, "list_price", "price", "listPrice"),
        beds=to_int(first_number(item, "beds", "bedrooms")),
        baths=first_number(item, "baths", "bathrooms"),
        built_sqft=to_int(first_number(item, "sqft", "building_size", "living_area")),
        address=safe_join([address_line, city, state, postal]) or address_line,
        lat=first_number(item, "address.lat", "location.lat", "lat"),
        lng=first_number(item, "address.lon", "location.lon", "lng", "lon"),
        property_type=first_string(item, "prop_type", "property_type", "type", "description.type"),
        source_url=first_string(item, "permalink", "url", "listing_url"),
        title=title,
        city=city,
        state=state,
    )


def normalize_photos(item: Any, cap: int | None = None) -> list[Photo]:
    """De-duplicated by URL, payload order kept."""
    photos = None
    for path in ("photos", "media.photos", "property.photos", "property.media.photos"):
        photos = get_path(item, path)
        if photos:
            break
    if not isinstance(photos, list):
        return []

    out: list[Photo] = []
    seen: set[str] = set()
    for p in photos:
        if not isinstance(p, dict):
            continue
        url = pick_string(p.get("url")) or pick_string(p.get("href")) or pick_string(p.get("src"))
        if not url or url in seen:
            continue
        seen.add(url)
        out.append(
            Photo(
                url=url,
                caption=pick_string(p.get("caption")) or pick_string(p.get("description")),
                width=to_int(pick_number(p.get("width"))),
                height=to_int(pick_number(p.get("height"))),
            )
        )
        if cap is not None and len(out) >= cap:
            break
    return out
