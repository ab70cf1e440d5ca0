# geopulse/services/normalize.py
# -----------------------------------------------------------------------------
# Search-result normalization (raw upstream items -> Location)
# - explicit alias tables per field, resolved through geo.resolve
# - each raw item becomes either a Location or a ParseError
# - missing popularity gets a neutral placeholder that is flagged in metadata
# -----------------------------------------------------------------------------
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar

from loguru import logger
from pydantic import ValidationError

from geopulse.core.errors import MalformedRecord, ParseError
from geopulse.schemas.analytics import (
    Confidence,
    Coordinates,
    Location,
    RecordMetadata,
)
from geopulse.services.categories import classify_tags
from geopulse.services.geo import (
    clamp_unit,
    resolve,
    resolve_float,
    validate_coordinates,
)

T = TypeVar("T")

SEARCH_SOURCE = "search"
PLACEHOLDER_SCORE = 0.5
DEFAULT_CONFIDENCE = 0.5

# ── alias tables ──────────────────────────────────────────────────────────────
SEARCH_ID = ("entity_id", "id")
SEARCH_NAME = ("name",)
SEARCH_LAT = ("location.lat", "location.latitude", "lat", "latitude")
SEARCH_LNG = (
    "location.lon",
    "location.longitude",
    "location.lng",
    "lon",
    "lng",
    "longitude",
)
SEARCH_POPULARITY = ("popularity",)
SEARCH_RATING = ("properties.business_rating", "rating")
SEARCH_ADDRESS = ("properties.address", "location.address", "address")
SEARCH_CONFIDENCE = ("score",)


@dataclass(frozen=True)
class NormalizedBatch(Generic[T]):
    records: tuple[T, ...] = ()
    errors: tuple[ParseError, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.records)


def build_batch(
    items: Any, source: str, parse_one, *args, **kwargs
) -> NormalizedBatch:
    """
    Run `parse_one(item, index, *args, **kwargs)` over a raw list.
    A failing record is dropped and kept as a ParseError; the batch goes on.
    """
    if items is None:
        return NormalizedBatch()
    if not isinstance(items, list):
        logger.warning(f"[{source}] expected a list, got {type(items).__name__}")
        return NormalizedBatch(errors=(ParseError(source, -1, "payload is not a list"),))

    records, errors = [], []
    for index, item in enumerate(items):
        try:
            records.append(parse_one(item, index, *args, **kwargs))
        except MalformedRecord as e:
            errors.append(ParseError(source, index, e.reason))
        except (TypeError, ValueError, ArithmeticError, ValidationError) as e:
            logger.warning(f"[{source}] record {index} dropped: {e}")
            errors.append(ParseError(source, index, f"invalid record: {e}"))
    if errors:
        logger.info(f"[{source}] kept {len(records)}/{len(items)} records")
    return NormalizedBatch(tuple(records), tuple(errors))


def require_mapping(item: Any, source: str, index: int) -> dict:
    if not isinstance(item, dict):
        logger.warning(f"[{source}] record {index}: not an object")
        raise MalformedRecord("record is not an object")
    return item


def require_coordinates(item: dict, lat_paths, lng_paths, source: str, index: int):
    coords = validate_coordinates(
        resolve(item, *lat_paths), resolve(item, *lng_paths), source=source, index=index
    )
    if coords is None:
        raise MalformedRecord("invalid coordinates")
    return Coordinates(lat=coords[0], lng=coords[1])


def resolve_popularity(item: dict, paths, placeholders: list[str]) -> float:
    value = resolve_float(item, *paths)
    if value is None:
        placeholders.append("popularity")
        return PLACEHOLDER_SCORE
    return clamp_unit(value)


def resolve_rating(item: dict, paths) -> float | None:
    rating = resolve_float(item, *paths)
    if rating is None or rating <= 0:
        return None
    return rating


def build_metadata(
    source: str,
    fetched_at: datetime,
    score: float | None,
    placeholders: list[str],
    derived: list[str] | None = None,
) -> RecordMetadata:
    return RecordMetadata(
        source=source,
        timestamp=fetched_at,
        confidence=Confidence(
            score=clamp_unit(score) if score is not None else DEFAULT_CONFIDENCE,
            authoritative=not placeholders,
            placeholders=tuple(placeholders),
            derived=tuple(derived or ()),
        ),
    )


def text_or(value: Any, default: str) -> str:
    if value is None:
        return default
    value = str(value).strip()
    return value or default


# ── search results ────────────────────────────────────────────────────────────
def parse_search_item(item: Any, index: int, fetched_at: datetime) -> Location:
    item = require_mapping(item, SEARCH_SOURCE, index)
    coordinates = require_coordinates(item, SEARCH_LAT, SEARCH_LNG, SEARCH_SOURCE, index)

    placeholders: list[str] = []
    popularity = resolve_popularity(item, SEARCH_POPULARITY, placeholders)

    return Location(
        id=text_or(resolve(item, *SEARCH_ID), f"search_{index}"),
        name=text_or(resolve(item, *SEARCH_NAME), "Unknown Location"),
        coordinates=coordinates,
        category=classify_tags(item.get("tags")),
        source_category=SEARCH_SOURCE,
        popularity=popularity,
        rating=resolve_rating(item, SEARCH_RATING),
        address=text_or(resolve(item, *SEARCH_ADDRESS), ""),
        metadata=build_metadata(
            SEARCH_SOURCE,
            fetched_at,
            resolve_float(item, *SEARCH_CONFIDENCE),
            placeholders,
        ),
    )


def search_items(payload: Any) -> Any:
    if isinstance(payload, list):
        return payload
    return resolve(payload, "items", "data.items", "results.items", default=[])


def normalize_search_results(
    payload: Any, *, fetched_at: datetime
) -> NormalizedBatch[Location]:
    """Search JSON `{items: [...]}` -> Location records (bad items dropped)."""
    return build_batch(search_items(payload), SEARCH_SOURCE, parse_search_item, fetched_at)
