# geopulse/services/pipeline.py
# -----------------------------------------------------------------------------
# Analytics request pipeline
#   fetch heatmap + combined concurrently (each may degrade to empty)
#   -> normalize -> aggregate categories / demographics -> summary
#   -> commit to the latest-result slot unless a newer request already did
# -----------------------------------------------------------------------------
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from loguru import logger

from geopulse.core.config import settings
from geopulse.core.errors import ParseError
from geopulse.schemas.analytics import (
    AnalyticsModel,
    AnalyticsRequest,
    DemographicsBundle,
    ParseIssue,
)
from geopulse.services.aggregate import RESERVED_KEYS, CategoryTable, aggregate_categories
from geopulse.services.combined import COMBINED_BUCKETS, merge_combined
from geopulse.services.demographics import DIMENSIONS, build_demographics
from geopulse.services.heatmap import heatmap_items, normalize_heatmap
from geopulse.services.normalize import NormalizedBatch
from geopulse.services.qloo import QlooClient, or_empty
from geopulse.services.summary import build_summary


def _stage(name: str, fn: Callable, *args, fallback, **kwargs):
    try:
        return fn(*args, **kwargs)
    except Exception:
        logger.exception(f"[pipeline] stage '{name}' failed, continuing without it")
        return fallback() if callable(fallback) else fallback


def _failed_batch(source: str) -> Callable[[], NormalizedBatch]:
    return lambda: NormalizedBatch(errors=(ParseError(source, -1, "stage failed"),))


def build_analytics(
    heatmap_payload: Any,
    combined_payload: Any,
    *,
    fetched_at: Optional[datetime] = None,
    generation: int = 0,
    location: Optional[str] = None,
    reserved: Iterable[str] = RESERVED_KEYS,
    seed: Optional[int] = None,
    synthesize: bool = True,
) -> AnalyticsModel:
    """
    Pure transformation of the two raw upstream payloads into one
    AnalyticsModel. Never raises; bad records and bad stages are dropped.
    """
    fetched_at = fetched_at or datetime.now(timezone.utc)

    heat = _stage(
        "heatmap", normalize_heatmap, heatmap_payload,
        fetched_at=fetched_at, fallback=_failed_batch("heatmap"),
    )
    combined = _stage(
        "combined", merge_combined, combined_payload,
        fetched_at=fetched_at, fallback=_failed_batch("combined"),
    )
    table = _stage(
        "categories", aggregate_categories, combined.records, heat.records,
        reserved=reserved, fallback=CategoryTable,
    )
    demographics = _stage(
        "demographics", build_demographics, combined_payload,
        seed=seed, synthesize_missing=synthesize,
        fallback=lambda: DemographicsBundle(sources={d: "empty" for d in DIMENSIONS}),
    )
    summary = _stage(
        "summary", build_summary, combined.records, heat.records, table,
        fallback=lambda: build_summary((), (), CategoryTable()),
    )

    issues = tuple(ParseIssue(**e.as_dict()) for e in (*heat.errors, *combined.errors))
    status = "ok" if heat.records or combined.records else "empty"
    if status == "empty":
        logger.info("[pipeline] no usable records from either source")

    return AnalyticsModel(
        status=status,
        generation=generation,
        location=location,
        fetched_at=fetched_at,
        locations=combined.records,
        heat_points=heat.records,
        summary=summary,
        demographics=demographics,
        issues=issues,
    )


class LatestResultSlot:
    """
    Holds the result the presentation layer reads. Each request takes a
    generation from `begin()`; a result is stored only if no newer
    generation has been committed.
    """

    def __init__(self) -> None:
        self._issued = 0
        self._committed = 0
        self._latest: Optional[AnalyticsModel] = None

    def begin(self) -> int:
        self._issued += 1
        return self._issued

    def commit(self, generation: int, model: AnalyticsModel) -> bool:
        if generation <= self._committed:
            logger.info(
                f"[pipeline] discarding stale result gen={generation} "
                f"(committed gen={self._committed})"
            )
            return False
        self._committed = generation
        self._latest = model
        return True

    @property
    def latest(self) -> Optional[AnalyticsModel]:
        return self._latest

    @property
    def committed_generation(self) -> int:
        return self._committed


@dataclass(frozen=True)
class FetchOutcome:
    source: str
    status: str  # ok | empty | error:<detail>
    items: int


def _outcome(source: str, error: Optional[str], count: int) -> FetchOutcome:
    if error is not None:
        return FetchOutcome(source, f"error:{error}", 0)
    return FetchOutcome(source, "ok" if count else "empty", count)


def _combined_count(payload: Any) -> int:
    if not isinstance(payload, dict):
        return 0
    return sum(len(v) for k, v in payload.items() if k in COMBINED_BUCKETS and isinstance(v, list))


def _heatmap_count(payload: Any) -> int:
    items = heatmap_items(payload)
    return len(items) if isinstance(items, list) else 0


class AnalyticsService:
    def __init__(
        self,
        client: QlooClient,
        slot: LatestResultSlot,
        *,
        reserved: Iterable[str] | None = None,
        synthesize: bool | None = None,
        seed: Optional[int] = None,
    ) -> None:
        self.client = client
        self.slot = slot
        self.reserved = frozenset(reserved if reserved is not None else settings.RESERVED_CATEGORY_KEYS)
        self.synthesize = settings.SYNTHESIZE_DEMOGRAPHICS if synthesize is None else synthesize
        self.seed = settings.DEMOGRAPHICS_SEED if seed is None else seed

    async def fetch(self, req: AnalyticsRequest) -> tuple[Any, Any, list[FetchOutcome]]:
        location = req.location or settings.DEFAULT_LOCATION
        (heatmap, heat_err), (combined, comb_err) = await asyncio.gather(
            or_empty(
                "heatmap",
                self.client.get_heatmap(location=location, age=req.age, income=req.income),
            ),
            or_empty(
                "combined",
                self.client.get_combined(
                    location=location,
                    radius=req.radius,
                    age=req.age,
                    income=req.income,
                    popularity=req.popularity,
                    take=req.take,
                ),
            ),
        )
        outcomes = [
            _outcome("heatmap", heat_err, _heatmap_count(heatmap)),
            _outcome("combined", comb_err, _combined_count(combined)),
        ]
        return heatmap, combined, outcomes

    async def load(self, req: AnalyticsRequest) -> tuple[AnalyticsModel, bool, list[FetchOutcome]]:
        generation = self.slot.begin()
        heatmap, combined, outcomes = await self.fetch(req)
        model = build_analytics(
            heatmap,
            combined,
            generation=generation,
            location=req.location or settings.DEFAULT_LOCATION,
            reserved=self.reserved,
            seed=self.seed,
            synthesize=self.synthesize,
        )
        committed = self.slot.commit(generation, model)
        logger.info(
            f"[pipeline] gen={generation} location={req.location or settings.DEFAULT_LOCATION} "
            f"locations={len(model.locations)} heat_points={len(model.heat_points)} "
            f"issues={len(model.issues)} committed={committed}"
        )
        return model, committed, outcomes
