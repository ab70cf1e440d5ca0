# geopulse/services/combined.py
# -----------------------------------------------------------------------------
# Combined payload merge: named upstream buckets -> one Location list
# - every record is tagged with the bucket it came from (sourceCategory)
# - absent buckets are empty, not errors
# -----------------------------------------------------------------------------
from __future__ import annotations

from datetime import datetime
from typing import Any

from loguru import logger

from geopulse.core.errors import ParseError
from geopulse.schemas.analytics import Location
from geopulse.services.categories import (
    canonical_label,
    category_tag_names,
    classify_names,
    display_label,
)
from geopulse.services.geo import resolve, resolve_float
from geopulse.services.normalize import (
    NormalizedBatch,
    build_batch,
    build_metadata,
    require_coordinates,
    require_mapping,
    resolve_popularity,
    resolve_rating,
    text_or,
)

COMBINED_BUCKETS = (
    "popularity",
    "userLocation",
    "demographics",
    "restaurants",
    "cafes",
    "hotels",
    "shopping",
)

ENTRY_LAT = ("lat", "latitude", "location.lat", "location.latitude")
ENTRY_LNG = ("lng", "longitude", "lon", "location.lng", "location.longitude")
ENTRY_POPULARITY = ("popularity",)
ENTRY_RATING = ("rating", "business_rating", "properties.business_rating")
ENTRY_ADDRESS = ("address", "properties.address", "location.address")
ENTRY_CONFIDENCE = ("confidence", "score")


def resolve_entry_category(entry: dict, bucket: str) -> str:
    names = category_tag_names(entry.get("tags"))
    if names:
        return classify_names(names)
    return canonical_label(resolve(entry, "category", "type")) or bucket


def parse_entry(entry: Any, index: int, bucket: str, fetched_at: datetime) -> Location:
    entry = require_mapping(entry, bucket, index)
    coordinates = require_coordinates(entry, ENTRY_LAT, ENTRY_LNG, bucket, index)

    placeholders: list[str] = []
    popularity = resolve_popularity(entry, ENTRY_POPULARITY, placeholders)

    return Location(
        id=text_or(entry.get("id"), f"{bucket}_{index}"),
        name=text_or(entry.get("name"), f"{display_label(bucket)} {index + 1}"),
        coordinates=coordinates,
        category=resolve_entry_category(entry, bucket),
        source_category=bucket,
        popularity=popularity,
        rating=resolve_rating(entry, ENTRY_RATING),
        address=text_or(resolve(entry, *ENTRY_ADDRESS), ""),
        metadata=build_metadata(
            bucket, fetched_at, resolve_float(entry, *ENTRY_CONFIDENCE), placeholders
        ),
    )


def merge_combined(
    payload: Any, *, fetched_at: datetime, buckets: tuple[str, ...] = COMBINED_BUCKETS
) -> NormalizedBatch[Location]:
    if payload is None:
        return NormalizedBatch()
    if not isinstance(payload, dict):
        logger.warning(f"[combined] expected an object, got {type(payload).__name__}")
        return NormalizedBatch(errors=(ParseError("combined", -1, "payload is not an object"),))

    records: list[Location] = []
    errors: list[ParseError] = []
    for bucket in buckets:
        entries = payload.get(bucket)
        if entries is None:
            continue
        batch = build_batch(entries, bucket, parse_entry, bucket, fetched_at)
        records.extend(batch.records)
        errors.extend(batch.errors)

    logger.debug(f"[combined] merged {len(records)} records from {len(buckets)} buckets")
    return NormalizedBatch(tuple(records), tuple(errors))
