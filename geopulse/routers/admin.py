# geopulse/routers/admin.py
# -----------------------------------------------------------------------------
# Upstream fetch audit log
# -----------------------------------------------------------------------------
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from geopulse.db import crud
from geopulse.db.session import get_session

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/fetch-logs")
async def get_fetch_logs(
    source: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_session),
):
    logs = await crud.list_fetch_logs(db, source=source, limit=limit)
    return [
        {
            "id": x.id,
            "source": x.source,
            "location": x.location,
            "status": x.status,
            "items": x.items,
            "createdAt": x.created_at.isoformat() if x.created_at else None,
        }
        for x in logs
    ]
