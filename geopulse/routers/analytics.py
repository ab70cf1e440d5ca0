# geopulse/routers/analytics.py
# -----------------------------------------------------------------------------
# /analytics         : fetch both sources, normalize, commit to latest slot
# /analytics/latest  : last committed result
# /analytics/export  : last committed result as a JSON attachment
# -----------------------------------------------------------------------------
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from geopulse.db import crud
from geopulse.db.session import get_session
from geopulse.routers.deps import get_analytics_service, get_slot
from geopulse.schemas.analytics import AnalyticsExport, AnalyticsModel, AnalyticsRequest
from geopulse.services.pipeline import AnalyticsService, LatestResultSlot
from geopulse.services.summary import category_breakdown

router = APIRouter(prefix="/analytics", tags=["analytics"])

EXPORT_RECORD_LIMIT = 100
EXPORT_TOP_CATEGORIES = 5


@router.post("", response_model=AnalyticsModel)
async def load_analytics(
    req: AnalyticsRequest,
    service: AnalyticsService = Depends(get_analytics_service),
    db: AsyncSession = Depends(get_session),
):
    try:
        model, _, outcomes = await service.load(req)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
    await crud.record_fetches(db, model.location or "", outcomes)
    return model


@router.get("/latest", response_model=AnalyticsModel)
async def latest_analytics(slot: LatestResultSlot = Depends(get_slot)):
    if slot.latest is None:
        raise HTTPException(status_code=404, detail="no analytics loaded yet")
    return slot.latest


@router.get("/export")
async def export_analytics(slot: LatestResultSlot = Depends(get_slot)):
    model = slot.latest
    if model is None:
        raise HTTPException(status_code=404, detail="no analytics loaded yet")

    exported_at = datetime.now(timezone.utc)
    export = AnalyticsExport(
        location=model.location,
        generation=model.generation,
        exported_at=exported_at,
        status=model.status,
        summary=model.summary,
        demographics=model.demographics,
        top_categories=tuple(category_breakdown(model.summary, limit=EXPORT_TOP_CATEGORIES)),
        locations=model.locations[:EXPORT_RECORD_LIMIT],
        heat_points=model.heat_points[:EXPORT_RECORD_LIMIT],
    )
    name = (model.location or "analytics").strip().replace(" ", "-")
    filename = f"analytics-{name}-{int(exported_at.timestamp())}.json"
    return JSONResponse(
        content=export.model_dump(mode="json", by_alias=True),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
