# geopulse/services/demographics.py
# -----------------------------------------------------------------------------
# Demographic buckets (age / gender / income / density)
#  1) upstream pre-aggregated scores, verbatim
#  2) income/density bucketed from raw sample intensity
#  3) still empty -> bounded pseudo-random counts, flagged as "synthesized"
# -----------------------------------------------------------------------------
from __future__ import annotations

from typing import Any, Iterable

import numpy as np
from loguru import logger

from geopulse.schemas.analytics import DemographicsBundle, SearchDemographics
from geopulse.services.geo import resolve, to_float

DIMENSIONS = ("age", "gender", "income", "density")

UPSTREAM_KEYS = {
    "age": "aggregatedAgeScores",
    "gender": "aggregatedGenderScores",
    "income": "aggregatedIncomeScores",
    "density": "aggregatedDensityScores",
}

# label -> [low, high) bounds for the synthetic fallback
SYNTHETIC_RANGES: dict[str, dict[str, tuple[int, int]]] = {
    "age": {
        "18_to_24": (20, 70),
        "25_to_29": (40, 120),
        "30_to_34": (35, 105),
        "35_to_44": (50, 140),
        "45_to_54": (30, 90),
        "55_to_64": (20, 60),
        "65_plus": (15, 45),
    },
    "gender": {
        "male": (80, 180),
        "female": (85, 185),
        "other": (2, 12),
    },
    "income": {
        "low": (30, 90),
        "medium": (50, 130),
        "high": (20, 80),
    },
    "density": {
        "low": (20, 80),
        "medium": (40, 110),
        "high": (30, 90),
    },
}


def intensity_bucket(intensity: float) -> str:
    if intensity >= 0.7:
        return "high"
    if intensity >= 0.4:
        return "medium"
    return "low"


def clean_scores(raw: Any, name: str) -> dict[str, float]:
    if not isinstance(raw, dict):
        if raw is not None:
            logger.warning(f"[demographics] {name}: expected an object, got {type(raw).__name__}")
        return {}
    out = {}
    for key, value in raw.items():
        num = to_float(value)
        if num is None or num < 0:
            logger.warning(f"[demographics] {name}.{key} dropped: {value!r}")
            continue
        out[str(key)] = num
    return out


def bucket_samples(samples: Any) -> dict[str, int]:
    if not isinstance(samples, list):
        return {}
    counts = {"low": 0, "medium": 0, "high": 0}
    used = 0
    for sample in samples:
        intensity = to_float(sample.get("intensity")) if isinstance(sample, dict) else None
        if intensity is None:
            continue
        counts[intensity_bucket(intensity)] += 1
        used += 1
    return counts if used else {}


def synthesize(dimension: str, rng: np.random.Generator) -> dict[str, float]:
    return {
        label: int(rng.integers(low, high))
        for label, (low, high) in SYNTHETIC_RANGES[dimension].items()
    }


def build_demographics(
    combined: Any,
    *,
    seed: int | None = None,
    synthesize_missing: bool = True,
) -> DemographicsBundle:
    payload = combined if isinstance(combined, dict) else {}
    buckets: dict[str, dict[str, float]] = {}
    sources: dict[str, str] = {}

    for dim in DIMENSIONS:
        scores = clean_scores(payload.get(UPSTREAM_KEYS[dim]), UPSTREAM_KEYS[dim])
        if scores:
            buckets[dim], sources[dim] = scores, "upstream"

    sampled = bucket_samples(payload.get("demographics"))
    if sampled:
        for dim in ("income", "density"):
            if dim not in buckets:
                buckets[dim], sources[dim] = dict(sampled), "samples"

    missing = [dim for dim in DIMENSIONS if dim not in buckets]
    if missing and synthesize_missing:
        rng = np.random.default_rng(seed)
        for dim in missing:
            buckets[dim], sources[dim] = synthesize(dim, rng), "synthesized"
        logger.info(f"[demographics] synthesized placeholder buckets: {', '.join(missing)}")
    else:
        for dim in missing:
            buckets[dim], sources[dim] = {}, "empty"

    return DemographicsBundle(**buckets, sources=sources)


def aggregate_search_demographics(items: Iterable[Any]) -> SearchDemographics | None:
    """Sum `demographics.query.age/gender` across raw search items."""
    age: dict[str, float] = {}
    gender: dict[str, float] = {}
    total = 0
    for item in items or []:
        demo = resolve(item, "demographics")
        if not isinstance(demo, dict):
            continue
        total += 1
        for target, path in ((age, "query.age"), (gender, "query.gender")):
            for key, value in clean_scores(resolve(demo, path), path).items():
                target[key] = target.get(key, 0.0) + value
    if total == 0:
        return None
    return SearchDemographics(age=age, gender=gender, total_items=total)
