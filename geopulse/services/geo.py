# geopulse/services/geo.py
# -----------------------------------------------------------------------------
# Coordinate validation + ordered field-alias resolution
# - every normalizer resolves raw fields through `resolve` only
# - `validate_coordinates` never raises; rejected records are logged
# -----------------------------------------------------------------------------
from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Optional, Tuple

from loguru import logger

_MISSING = object()


def _walk(raw: Any, path: str) -> Any:
    node = raw
    for key in path.split("."):
        if not isinstance(node, Mapping):
            return _MISSING
        node = node.get(key, _MISSING)
        if node is _MISSING or node is None:
            return _MISSING
    return node


def resolve(raw: Any, *paths: str, default: Any = None) -> Any:
    """
    Return the first defined value among dotted `paths`.
    ex) resolve(item, "lat", "latitude", "location.latitude")
    """
    for path in paths:
        value = _walk(raw, path)
        if value is not _MISSING:
            return value
    return default


def to_float(value: Any) -> Optional[float]:
    """Finite float or None. bool is not a number here."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        out = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return out if math.isfinite(out) else None


def resolve_float(raw: Any, *paths: str) -> Optional[float]:
    return to_float(resolve(raw, *paths))


def clamp_unit(value: float) -> float:
    return min(1.0, max(0.0, value))


def validate_coordinates(
    lat: Any, lng: Any, *, source: str = "unknown", index: int | None = None
) -> Optional[Tuple[float, float]]:
    lat_f = to_float(lat)
    lng_f = to_float(lng)
    if lat_f is None or lng_f is None:
        logger.warning(
            f"[{source}] record {index}: invalid coordinates lat={lat!r} lng={lng!r}"
        )
        return None
    if not (-90.0 <= lat_f <= 90.0) or not (-180.0 <= lng_f <= 180.0):
        logger.warning(
            f"[{source}] record {index}: coordinates out of range lat={lat_f} lng={lng_f}"
        )
        return None
    return lat_f, lng_f
