# vantera_ingest/domain/classify.py
from __future__ import annotations

import enum


class SkipReason(str, enum.Enum):
    missing_address = "missingAddress"
    min_beds = "minBeds"
    min_baths = "minBaths"
    type_whitelist = "typeWhitelist"
    existing = "existing"
    detail_error = "detailError"
    min_avm = "minAvm"
    not_residential = "notResidential"
    missing_value = "missingValue"
    below_min_value = "belowMinValue"

    @property
    def breakdown_key(self) -> str:
        # "belowMinValue" -> "skippedBelowMinValue"
        return "skipped" + self.value[0].upper() + self.value[1:]


# Any hit rejects, checked before anything else.
NON_RESIDENTIAL_KEYWORDS: tuple[str, ...] = (
    "commercial",
    "office",
    "retail",
    "industrial",
    "warehouse",
    "hotel",
    "motel",
    "land",
    "vacant",
    "lot",
    "farm",
    "agric",
    "ranch",
    "mobile home",
    "mobile-home",
    "manufactured",
    "timeshare",
    "parking",
    "church",
    "utility",
)

RESIDENTIAL_KEYWORDS: tuple[str, ...] = (
    "single family",
    "single-family",
    "sfr",
    "residential",
    "residence",
    "condo",
    "townhouse",
    "town house",
    "townhome",
    "rowhouse",
    "villa",
    "house",
    "duplex",
    "triplex",
    "quadruplex",
    "multi-family",
    "multi family",
    "multifamily",
    "apartment",
    "cooperative",
    "penthouse",
)

# Realtor actor payloads are upper-case type codes (LAND, COMMERCIAL, ...).
REALTOR_BAD_TYPE_HINTS: tuple[str, ...] = ("LAND", "LOT", "COMM", "IND", "OFFICE", "RETAIL", "COMMERCIAL")


def _norm(s: str | None) -> str:
    return " ".join((s or "").lower().replace("_", " ").split())


def has_non_residential_keyword(type_str: str | None) -> bool:
    s = _norm(type_str)
    return any(k in s for k in NON_RESIDENTIAL_KEYWORDS)


def is_residential_class_code(class_code: str | None) -> bool:
    c = (class_code or "").strip().upper()
    return c == "R" or c.startswith("RES")


def is_residential_strict(type_str: str | None, class_code: str | None = None) -> bool:
    """
    ATTOM gate. Deny-list first, then the class code, then the allow-list.
    Empty or unrecognized types are NOT residential.
    """
    if has_non_residential_keyword(type_str):
        return False
    if is_residential_class_code(class_code):
        return True
    s = _norm(type_str)
    if not s:
        return False
    return any(k in s for k in RESIDENTIAL_KEYWORDS)


def looks_residential(type_str: str | None) -> bool:
    """
    Realtor gate. Empty type is accepted: the actor's own propertyType
    filter already did most of the narrowing.
    """
    t = (type_str or "").strip().upper()
    if not t:
        return True
    if any(x in t for x in REALTOR_BAD_TYPE_HINTS):
        return False
    return not has_non_residential_keyword(type_str)


def parse_csv_upper(v: str | None) -> list[str] | None:
    if not v:
        return None
    items = [s.strip().upper() for s in v.split(",") if s.strip()]
    return items or None


def parse_csv(v: str | None) -> list[str]:
    if not v:
        return []
    return [s.strip() for s in v.split(",") if s.strip()]


def check_criteria(
    *,
    beds: float | None,
    baths: float | None = None,
    type_str: str | None = None,
    min_beds: float | None = None,
    min_baths: float | None = None,
    type_whitelist: list[str] | None = None,
) -> SkipReason | None:
    """Caller-supplied narrowing filters. None means the record passes."""
    if min_beds is not None and (beds is None or beds < min_beds):
        return SkipReason.min_beds
    if min_baths is not None and (baths is None or baths < min_baths):
        return SkipReason.min_baths
    if type_whitelist:
        t = (type_str or "").upper()
        if not any(allowed in t for allowed in type_whitelist):
            return SkipReason.type_whitelist
    return None


def check_value(price: float | None, min_value: float | None) -> SkipReason | None:
    if price is None or price < 0:
        return SkipReason.missing_value
    if min_value is not None and price < min_value:
        return SkipReason.below_min_value
    return None
