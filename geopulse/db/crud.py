# geopulse/db/crud.py
# -----------------------------------------------------------------------------
# Fetch audit log read/write helpers
# -----------------------------------------------------------------------------
from typing import Iterable, Sequence

from loguru import logger
from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from geopulse.db.models import FetchLog


async def record_fetches(db: AsyncSession, location: str, outcomes: Iterable) -> int:
    """
    Store one FetchLog row per outcome (source/status/items).
    Audit failures are logged and swallowed so they never fail a request.
    """
    rows = [
        FetchLog(source=o.source, location=location, status=o.status[:255], items=o.items)
        for o in outcomes
    ]
    try:
        db.add_all(rows)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"[db] fetch log write failed: {e}")
        return 0
    return len(rows)


async def list_fetch_logs(
    db: AsyncSession, *, source: str | None = None, limit: int = 100
) -> Sequence[FetchLog]:
    stmt = select(FetchLog).order_by(desc(FetchLog.id)).limit(limit)
    if source:
        stmt = stmt.where(FetchLog.source == source)
    res = await db.execute(stmt)
    return res.scalars().all()
