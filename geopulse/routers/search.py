# geopulse/routers/search.py
# -----------------------------------------------------------------------------
# /search : free-text venue search, normalized like the combined buckets
# -----------------------------------------------------------------------------
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from geopulse.core.config import settings
from geopulse.db import crud
from geopulse.db.session import get_session
from geopulse.routers.deps import get_client
from geopulse.schemas.analytics import ParseIssue, SearchRequest, SearchResponse
from geopulse.services.demographics import aggregate_search_demographics
from geopulse.services.normalize import normalize_search_results, search_items
from geopulse.services.pipeline import FetchOutcome
from geopulse.services.qloo import QlooClient, or_empty

router = APIRouter(prefix="/search", tags=["search"])


@router.post("", response_model=SearchResponse)
async def search(
    req: SearchRequest,
    client: QlooClient = Depends(get_client),
    db: AsyncSession = Depends(get_session),
):
    location = req.location or settings.DEFAULT_LOCATION
    raw, error = await or_empty(
        "search", client.search(query=req.query, location=location, take=req.take)
    )
    batch = normalize_search_results(raw, fetched_at=datetime.now(timezone.utc))

    if error is not None:
        outcome = FetchOutcome("search", f"error:{error}", 0)
    else:
        outcome = FetchOutcome("search", "ok" if batch.records else "empty", len(batch))
    await crud.record_fetches(db, location, [outcome])

    items = search_items(raw)
    return SearchResponse(
        locations=batch.records,
        issues=tuple(ParseIssue(**e.as_dict()) for e in batch.errors),
        demographics=aggregate_search_demographics(items if isinstance(items, list) else []),
    )
