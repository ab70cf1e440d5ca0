# geopulse/db/models.py
# -----------------------------------------------------------------------------
# ORM models
# - FetchLog: outcome of each upstream fetch (audit only; normalized
#   analytics are never stored)
# -----------------------------------------------------------------------------
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, Integer, String

from geopulse.db.session import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FetchLog(Base):
    __tablename__ = "fetch_logs"

    id = Column(Integer, primary_key=True)
    source = Column(String, index=True)  # "heatmap" | "combined" | "search"
    location = Column(String)
    status = Column(String)  # "ok" | "empty" | "error:..."
    items = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (Index("ix_fetch_logs_source_created", "source", "created_at"),)
