# vantera_ingest/domain/cities.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CityPreset:
    slug: str
    name: str
    country: str
    region: str
    tz: str
    lat: float
    lng: float

    @property
    def run_region(self) -> str:
        return "ES-AN" if self.country == "Spain" else "US-FL"


CITY_PRESETS: dict[str, CityPreset] = {
    "miami": CityPreset(
        slug="miami",
        name="Miami",
        country="United States",
        region="Florida",
        tz="America/New_York",
        lat=25.7617,
        lng=-80.1918,
    ),
    "marbella": CityPreset(
        slug="marbella",
        name="Marbella (Costa del Sol)",
        country="Spain",
        region="Andalucia",
        tz="Europe/Madrid",
        lat=36.5101,
        lng=-4.8824,
    ),
    # Costa del Sol sub-areas: queryable centroids only
    "benahavis": CityPreset(
        slug="benahavis",
        name="Benahavís",
        country="Spain",
        region="Andalucia",
        tz="Europe/Madrid",
        lat=36.5235,
        lng=-5.0465,
    ),
    "estepona": CityPreset(
        slug="estepona",
        name="Estepona",
        country="Spain",
        region="Andalucia",
        tz="Europe/Madrid",
        lat=36.4276,
        lng=-5.1459,
    ),
}

# Anything queried here is stored under City "marbella".
COSTA_DEL_SOL_LOCK: frozenset[str] = frozenset({"marbella", "benahavis", "estepona", "costa-del-sol"})
COSTA_DEL_SOL_ATTACH = "marbella"

_NEIGHBORHOOD_OVERRIDES: dict[str, str] = {
    "benahavis": "Benahavís",
    "estepona": "Estepona",
}


@dataclass(frozen=True)
class CityResolution:
    requested_key: str
    query_key: str
    attach_slug: str
    neighborhood_override: str | None

    @property
    def locked(self) -> bool:
        return self.requested_key in COSTA_DEL_SOL_LOCK


def normalize_city_key(value: str | None) -> str:
    return (value or "").strip().lower()


def resolve_city(requested: str | None) -> CityResolution:
    """
    Split a requested city into the centroid we search around and the City
    row listings are attached to.
    """
    key = normalize_city_key(requested) or "miami"
    query_key = COSTA_DEL_SOL_ATTACH if key == "costa-del-sol" else key
    attach_slug = COSTA_DEL_SOL_ATTACH if key in COSTA_DEL_SOL_LOCK else query_key
    return CityResolution(
        requested_key=key,
        query_key=query_key,
        attach_slug=attach_slug,
        neighborhood_override=_NEIGHBORHOOD_OVERRIDES.get(key),
    )


def seedable_presets() -> list[CityPreset]:
    """Every preset except the Costa del Sol sub-areas, which collapse into Marbella."""
    return [p for slug, p in CITY_PRESETS.items() if slug not in _NEIGHBORHOOD_OVERRIDES]
