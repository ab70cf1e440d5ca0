# geopulse/services/summary.py
from __future__ import annotations

from typing import Sequence

from geopulse.schemas.analytics import (
    AnalyticsSummary,
    CategoryRow,
    GeographicSpread,
    HeatPoint,
    Location,
    ValueRange,
)
from geopulse.services.aggregate import CategoryTable
from geopulse.services.categories import display_label

# (upper bound exclusive, label); the last label takes everything above
INTENSITY_BINS = ((0.2, "Very Low"), (0.4, "Low"), (0.6, "Medium"), (0.8, "High"))
INTENSITY_TOP = "Very High"
POPULARITY_BINS = ((0.5, "Low"), (0.8, "Medium"))
POPULARITY_TOP = "High"
RATING_BINS = ((3.0, "Below 3.0"), (3.5, "3.0-3.5"), (4.0, "3.5-4.0"), (4.5, "4.0-4.5"))
RATING_TOP = "4.5-5.0"


def bin_label(value: float, bins, top: str) -> str:
    for upper, label in bins:
        if value < upper:
            return label
    return top


def distribution(values, bins, top: str) -> dict[str, int]:
    out = {label: 0 for _, label in bins}
    out[top] = 0
    for v in values:
        out[bin_label(v, bins, top)] += 1
    return out


def geographic_spread(
    locations: Sequence[Location], heat_points: Sequence[HeatPoint]
) -> GeographicSpread | None:
    coords = [loc.coordinates for loc in locations] + [p.coordinates for p in heat_points]
    if not coords:
        return None
    lats = [c.lat for c in coords]
    lngs = [c.lng for c in coords]
    return GeographicSpread(
        lat_range=ValueRange(min=min(lats), max=max(lats)),
        lng_range=ValueRange(min=min(lngs), max=max(lngs)),
    )


def build_summary(
    locations: Sequence[Location],
    heat_points: Sequence[HeatPoint],
    table: CategoryTable,
) -> AnalyticsSummary:
    intensities = [p.metrics.intensity for p in heat_points]
    ratings = [loc.rating for loc in locations if loc.rating is not None and loc.rating > 0]
    return AnalyticsSummary(
        total_locations=len(locations),
        heatmap_points=len(heat_points),
        categories=dict(table.counts),
        heatmap_category_breakdown=dict(table.heatmap_breakdown),
        intensity_distribution=distribution(intensities, INTENSITY_BINS, INTENSITY_TOP),
        popularity_distribution=distribution(
            (loc.popularity for loc in locations), POPULARITY_BINS, POPULARITY_TOP
        ),
        geographic_spread=geographic_spread(locations, heat_points),
        average_intensity=sum(intensities) / len(intensities) if intensities else 0.0,
        top_category=table.top_category,
        ratings=distribution(ratings, RATING_BINS, RATING_TOP),
    )


def category_breakdown(summary: AnalyticsSummary, limit: int | None = None) -> list[CategoryRow]:
    """Category counts sorted for charts, with display labels and percentages."""
    total = sum(summary.categories.values())
    rows = sorted(summary.categories.items(), key=lambda kv: kv[1], reverse=True)
    if limit is not None:
        rows = rows[:limit]
    return [
        CategoryRow(
            category=category,
            label=display_label(category),
            count=count,
            percentage=round(count / total * 100, 1) if total else 0.0,
        )
        for category, count in rows
    ]
