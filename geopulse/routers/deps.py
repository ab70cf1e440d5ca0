# geopulse/routers/deps.py
# -----------------------------------------------------------------------------
# Shared FastAPI dependencies (upstream client, latest-result slot, service)
# -----------------------------------------------------------------------------
from fastapi import Depends

from geopulse.services.pipeline import AnalyticsService, LatestResultSlot
from geopulse.services.qloo import QlooClient

_slot = LatestResultSlot()


def get_client() -> QlooClient:
    return QlooClient()


def get_slot() -> LatestResultSlot:
    return _slot


def get_analytics_service(
    client: QlooClient = Depends(get_client),
    slot: LatestResultSlot = Depends(get_slot),
) -> AnalyticsService:
    return AnalyticsService(client, slot)
