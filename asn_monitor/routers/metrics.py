# asn_monitor/routers/metrics.py
from fastapi import APIRouter, Depends
from asn_monitor.core.config import get_settings, Settings
from asn_monitor.deps import get_store
from asn_monitor.notifications import summarize
from asn_monitor.schemas import MetricsSummary
from asn_monitor.stores.base import RecordStore

router = APIRouter()

@router.get("/metrics/summary", tags=["Metrics"], summary="Ringkasan del dashboard",
            response_model=MetricsSummary)
def metrics_summary(
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    return summarize(store.list(), window=settings.DUE_SOON_DAYS)
