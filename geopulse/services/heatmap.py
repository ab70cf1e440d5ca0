# geopulse/services/heatmap.py
# -----------------------------------------------------------------------------
# Heatmap sample normalization (raw heatmap points -> HeatPoint)
# - intensity / demographic score computed when the payload omits them
# - scores that had to be filled in are listed in metadata.confidence
# -----------------------------------------------------------------------------
from __future__ import annotations

from datetime import datetime
from typing import Any

from geopulse.schemas.analytics import HeatMetrics, HeatPoint, HeatPointLocation
from geopulse.services.categories import canonical_label
from geopulse.services.geo import clamp_unit, resolve, resolve_float, to_float
from geopulse.services.normalize import (
    PLACEHOLDER_SCORE,
    NormalizedBatch,
    build_batch,
    build_metadata,
    require_coordinates,
    require_mapping,
    text_or,
)

HEATMAP_SOURCE = "heatmap"

INTENSITY_WEIGHTS = {"affinity": 0.4, "affinity_rank": 0.3, "popularity": 0.3}

HEAT_LAT = ("location.latitude", "location.lat", "latitude", "lat")
HEAT_LNG = (
    "location.longitude",
    "location.lng",
    "location.lon",
    "longitude",
    "lng",
)

# metric name -> aliases inside the `query` / `metrics` sub-object
METRIC_ALIASES = {
    "affinity": ("affinity",),
    "affinity_rank": ("affinity_rank", "affinityRank"),
    "popularity": ("popularity",),
    "intensity": ("intensity",),
    "demographic_score": ("demographicScore", "demographic_score"),
    "traffic_score": ("trafficScore", "traffic_score"),
    "proximity_score": ("proximityScore", "proximity_score"),
}
METRIC_CONTAINERS = ("query", "metrics")


def compute_intensity(affinity: float, affinity_rank: float, popularity: float) -> float:
    w = INTENSITY_WEIGHTS
    return (
        affinity * w["affinity"]
        + affinity_rank * w["affinity_rank"]
        + popularity * w["popularity"]
    )


def _metric(point: dict, name: str) -> float | None:
    paths = [
        f"{container}.{alias}"
        for container in METRIC_CONTAINERS
        for alias in METRIC_ALIASES[name]
    ]
    return resolve_float(point, *paths)


def build_metrics(point: dict, placeholders: list[str], derived: list[str]) -> HeatMetrics:
    raw = {name: _metric(point, name) for name in METRIC_ALIASES}

    def base(name: str) -> float:
        if raw[name] is None:
            placeholders.append(name)
            return PLACEHOLDER_SCORE
        return clamp_unit(raw[name])

    affinity = base("affinity")
    affinity_rank = base("affinity_rank")
    popularity = base("popularity")

    intensity = raw["intensity"]
    if intensity is None:
        derived.append("intensity")
        intensity = compute_intensity(affinity, affinity_rank, popularity)

    demographic_score = raw["demographic_score"]
    if demographic_score is None:
        derived.append("demographic_score")
        demographic_score = affinity * popularity

    return HeatMetrics(
        intensity=clamp_unit(intensity),
        affinity=affinity,
        affinity_rank=affinity_rank,
        popularity=popularity,
        demographic_score=clamp_unit(demographic_score),
        traffic_score=base("traffic_score"),
        proximity_score=base("proximity_score"),
    )


def build_location(point: dict, index: int) -> HeatPointLocation:
    loc = point.get("location") if isinstance(point.get("location"), dict) else {}
    amenities = loc.get("amenities")
    category = canonical_label(resolve(loc, "category", "type")) or "general"
    rating = to_float(resolve(loc, "businessRating", "business_rating"))
    return HeatPointLocation(
        name=text_or(loc.get("name"), f"Heat Point {index + 1}"),
        type=text_or(loc.get("type"), "unknown"),
        address=text_or(loc.get("address"), ""),
        category=category,
        amenities=tuple(str(a) for a in amenities if a) if isinstance(amenities, list) else (),
        business_rating=rating if rating and rating > 0 else None,
    )


def parse_heat_point(point: Any, index: int, fetched_at: datetime) -> HeatPoint:
    point = require_mapping(point, HEATMAP_SOURCE, index)
    coordinates = require_coordinates(point, HEAT_LAT, HEAT_LNG, HEATMAP_SOURCE, index)

    placeholders: list[str] = []
    derived: list[str] = []
    metrics = build_metrics(point, placeholders, derived)

    upstream_meta = point.get("metadata") if isinstance(point.get("metadata"), dict) else {}
    confidence = to_float(upstream_meta.get("confidence"))
    if confidence is None:
        confidence = metrics.affinity_rank

    return HeatPoint(
        id=text_or(point.get("id"), f"heatmap_{index}"),
        coordinates=coordinates,
        location=build_location(point, index),
        metrics=metrics,
        metadata=build_metadata(
            text_or(upstream_meta.get("dataSource"), HEATMAP_SOURCE),
            fetched_at,
            confidence,
            placeholders,
            derived,
        ),
    )


def heatmap_items(payload: Any) -> Any:
    if isinstance(payload, list):
        return payload
    return resolve(payload, "data.heatmap", "heatmap", "results.heatmap", default=[])


def normalize_heatmap(payload: Any, *, fetched_at: datetime) -> NormalizedBatch[HeatPoint]:
    """Heatmap JSON `{heatmap: [...]}` -> HeatPoint records (bad samples dropped)."""
    return build_batch(heatmap_items(payload), HEATMAP_SOURCE, parse_heat_point, fetched_at)
