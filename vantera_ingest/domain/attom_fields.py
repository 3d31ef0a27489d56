# vantera_ingest/domain/attom_fields.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .parsing import first_id, first_number, first_string, get_path, pick_number, safe_join, to_int

# Below this, ATTOM lotsize1 is taken to be acres.
LOT_ACRES_THRESHOLD = 200
SQFT_PER_ACRE = 43560


@dataclass(frozen=True)
class AttomAddress:
    address1: str | None
    address2: str | None
    lat: float | None
    lng: float | None

    @property
    def full(self) -> str:
        return safe_join([self.address1, self.address2])


def read_identifiers(p: Any) -> tuple[str | None, str | None]:
    """Returns (obPropId, attomId)."""
    ob_prop_id = first_id(p, "identifier.obPropId", "identifier.ObPropId")
    attom_id = first_id(p, "identifier.attomId", "identifier.AttomId")
    return ob_prop_id, attom_id


def read_address(p: Any) -> AttomAddress:
    return AttomAddress(
        address1=first_string(p, "address.line1", "address.oneLine", "address1"),
        address2=first_string(p, "address.line2", "address2"),
        lat=first_number(p, "location.latitude"),
        lng=first_number(p, "location.longitude"),
    )


def read_beds(p: Any) -> int | None:
    return to_int(first_number(p, "building.rooms.beds", "building.rooms.Beds"))


def read_baths(p: Any) -> float | None:
    return first_number(p, "building.rooms.bathstotal", "building.rooms.bathsTotal")


def read_built_sqft(p: Any) -> int | None:
    return to_int(
        first_number(p, "building.size.universalsize", "building.size.livingSize", "building.size.livingsize")
    )


def read_property_type(p: Any) -> str | None:
    return first_string(p, "summary.proptype", "summary.propsubtype", "summary.propertyType")


def read_class_code(p: Any) -> str | None:
    return first_string(p, "summary.propclass", "summary.propClass")


def read_lot_sqft(p: Any) -> int | None:
    """
    lotsize2 is square feet. lotsize1 is ambiguous across plan tiers:
    values under LOT_ACRES_THRESHOLD are acres, anything else is square feet.
    """
    lotsize2 = pick_number(get_path(p, "lot.lotsize2"))
    if lotsize2 is not None and lotsize2 > 0:
        return round(lotsize2)

    lotsize1 = pick_number(get_path(p, "lot.lotsize1"))
    if lotsize1 is None or lotsize1 <= 0:
        return None
    if lotsize1 < LOT_ACRES_THRESHOLD:
        return round(lotsize1 * SQFT_PER_ACRE)
    return round(lotsize1)


def read_avm_value(avm_response: Any) -> float | None:
    return first_number(
        avm_response,
        "property.0.avm.amount.value",
        "property.avm.amount.value",
        "avm.amount.value",
    )


def read_assessment_value(detail: Any) -> float | None:
    return first_number(detail, "assessment.market.mktTtlValue")


def read_neighborhood(detail: Any) -> str | None:
    return first_string(detail, "address.locality", "location.neighborhood")


def first_property(response: Any) -> dict[str, Any] | None:
    """ATTOM wraps results as {"property": [...]}."""
    rows = get_path(response, "property")
    if isinstance(rows, list) and rows and isinstance(rows[0], dict):
        return rows[0]
    return None


def property_rows(response: Any) -> list[dict[str, Any]]:
    rows = get_path(response, "property")
    if not isinstance(rows, list):
        return []
    return [r for r in rows if isinstance(r, dict)]
