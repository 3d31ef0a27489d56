# vantera_ingest/domain/parsing.py
from __future__ import annotations

import math
from typing import Any, Iterable


def pick_string(v: Any) -> str | None:
    """Non-empty trimmed string, else None."""
    if isinstance(v, str):
        s = v.strip()
        return s or None
    return None


def pick_number(v: Any) -> float | None:
    """Finite number (numeric strings accepted), else None. Bools are not numbers here."""
    if isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        return float(v) if math.isfinite(v) else None
    if isinstance(v, str) and v.strip():
        try:
            n = float(v.strip())
        except ValueError:
            return None
        return n if math.isfinite(n) else None
    return None


def pick_id(v: Any) -> str | None:
    """Provider identifiers arrive as numbers or strings; normalize to str."""
    if isinstance(v, bool):
        return None
    if isinstance(v, int):
        return str(v)
    if isinstance(v, float) and math.isfinite(v):
        return str(int(v)) if v.is_integer() else str(v)
    return pick_string(v)


def get_path(payload: Any, path: str) -> Any:
    """Tiny dot-path getter: 'address.line1' or 'property.0.avm'."""
    cur: Any = payload
    for part in path.split("."):
        if isinstance(cur, dict):
            cur = cur.get(part)
        elif isinstance(cur, list) and part.isdigit():
            idx = int(part)
            cur = cur[idx] if idx < len(cur) else None
        else:
            return None
        if cur is None:
            return None
    return cur


def _first(payload: Any, paths: Iterable[str], pick) -> Any:
    for path in paths:
        v = pick(get_path(payload, path))
        if v is not None:
            return v
    return None


def first_string(payload: Any, *paths: str) -> str | None:
    return _first(payload, paths, pick_string)


def first_number(payload: Any, *paths: str) -> float | None:
    return _first(payload, paths, pick_number)


def first_id(payload: Any, *paths: str) -> str | None:
    return _first(payload, paths, pick_id)


def safe_join(parts: Iterable[str | None], sep: str = ", ") -> str:
    return sep.join(p.strip() for p in parts if isinstance(p, str) and p.strip())


def to_int(x: float | None) -> int | None:
    if x is None:
        return None
    return int(round(x))


def first_non_finite(**values: float | None) -> str | None:
    """Name of the first supplied value that is NaN or infinite, else None."""
    for name, v in values.items():
        if v is not None and not math.isfinite(v):
            return name
    return None
