# geopulse/services/aggregate.py
# -----------------------------------------------------------------------------
# Category frequency table over merged-combined records + heatmap points
# -----------------------------------------------------------------------------
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from geopulse.core.config import settings
from geopulse.schemas.analytics import HeatmapCategoryStats, HeatPoint, Location

RESERVED_KEYS = settings.RESERVED_CATEGORY_KEYS


@dataclass(frozen=True)
class CategoryTable:
    counts: dict[str, int] = field(default_factory=dict)
    top_category: str | None = None
    heatmap_breakdown: dict[str, HeatmapCategoryStats] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.counts.values())


def _count(counts: dict[str, int], categories: Iterable[str]) -> None:
    for category in categories:
        counts[category] = counts.get(category, 0) + 1


def is_reserved(category: str, reserved: Iterable[str] = RESERVED_KEYS) -> bool:
    return category.lower() in {r.lower() for r in reserved}


def top_of(counts: dict[str, int]) -> str | None:
    best, best_count = None, 0
    for category, n in counts.items():  # insertion order breaks ties
        if n > best_count:
            best, best_count = category, n
    return best


def heatmap_breakdown(heat_points: Sequence[HeatPoint]) -> dict[str, HeatmapCategoryStats]:
    """Per-category count and average intensity/popularity/rating of heatmap points."""
    groups: dict[str, list[HeatPoint]] = {}
    for point in heat_points:
        groups.setdefault(point.location.category, []).append(point)

    out = {}
    for category, points in groups.items():
        ratings = [p.location.business_rating for p in points if p.location.business_rating]
        out[category] = HeatmapCategoryStats(
            count=len(points),
            average_intensity=sum(p.metrics.intensity for p in points) / len(points),
            average_popularity=sum(p.metrics.popularity for p in points) / len(points),
            average_rating=sum(ratings) / len(ratings) if ratings else 0.0,
        )
    return out


def aggregate_categories(
    locations: Sequence[Location],
    heat_points: Sequence[HeatPoint],
    reserved: Iterable[str] = RESERVED_KEYS,
) -> CategoryTable:
    reserved = frozenset(r.lower() for r in reserved)
    merged: dict[str, int] = {}
    _count(merged, (loc.category for loc in locations))
    _count(merged, (p.location.category for p in heat_points))

    counts = {k: v for k, v in merged.items() if not is_reserved(k, reserved)}
    return CategoryTable(
        counts=counts,
        top_category=top_of(counts),
        heatmap_breakdown=heatmap_breakdown(heat_points),
    )
