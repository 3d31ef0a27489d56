# vantera_ingest/domain/scoring.py
from __future__ import annotations

import enum
import re

SQFT_TO_M2 = 0.092903
SLUG_MAX_LEN = 90

# Sums to 100.
COMPLETENESS_WEIGHTS: dict[str, int] = {
    "address": 20,
    "geo": 15,
    "type": 15,
    "beds": 10,
    "baths": 10,
    "size": 15,
    "price": 15,
}


class PriceConfidence(int, enum.Enum):
    """Coarse tiers keyed on which source resolved the price."""
    AVM = 85
    LISTING = 70
    ASSESSMENT = 55


def clamp_int(n: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, n))


def compute_data_completeness(
    *,
    address: str | None,
    lat: float | None,
    lng: float | None,
    property_type: str | None,
    beds: float | None,
    baths: float | None,
    built_sqft: float | None,
    price: float | None,
) -> int:
    w = COMPLETENESS_WEIGHTS
    score = 0
    if address:
        score += w["address"]
    if lat is not None and lng is not None:
        score += w["geo"]
    if property_type:
        score += w["type"]
    if beds is not None:
        score += w["beds"]
    if baths is not None:
        score += w["baths"]
    if built_sqft is not None:
        score += w["size"]
    if price is not None:
        score += w["price"]
    return clamp_int(score, 0, 100)


def sqft_to_m2(sqft: float | None) -> int | None:
    if sqft is None:
        return None
    return round(sqft * SQFT_TO_M2)


def slugify(text: str) -> str:
    s = text.strip().lower()
    s = re.sub(r"['\"]", "", s)
    s = re.sub(r"[^a-z0-9]+", "-", s)
    s = s.strip("-")
    return s[:SLUG_MAX_LEN]


def slug_with_suffix(prefix: str, suffix: str) -> str:
    """
    Slugify `prefix-suffix` so the suffix survives SLUG_MAX_LEN; the prefix
    is what gets cut when the whole thing is too long.
    """
    tail = slugify(suffix)
    if not tail:
        return slugify(prefix)
    room = SLUG_MAX_LEN - len(tail) - 1
    if room <= 0:
        return tail[-SLUG_MAX_LEN:].strip("-")
    head = slugify(prefix)[:room].strip("-")
    return f"{head}-{tail}" if head else tail
