# asn_monitor/routers/notifications.py
from fastapi import APIRouter, Depends, Query
from asn_monitor.core.config import get_settings, Settings
from asn_monitor.deps import get_store
from asn_monitor.notifications import build_notifications, filter_kind, notification_feed
from asn_monitor.schedule import MilestoneKind
from asn_monitor.schemas import NotificationItem, NotificationSummary
from asn_monitor.stores.base import RecordStore

router = APIRouter()


@router.get("/notifications", tags=["Notifications"], summary="Jatuh tempo y terlewat",
            response_model=list[NotificationItem])
def list_notifications(
    limit: int | None = Query(None, ge=1),
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    cap = settings.NOTIFICATION_LIMIT
    limit = min(limit or cap, cap)
    return notification_feed(store.list(), window=settings.DUE_SOON_DAYS, limit=limit)


@router.get("/notifications/summary", tags=["Notifications"], summary="Soon / overdue por separado",
            response_model=NotificationSummary)
def notifications_summary(
    kind: MilestoneKind | None = Query(None),
    top: int | None = Query(None, ge=1, description="Máximo de items por lista"),
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    summary = build_notifications(store.list(), window=settings.DUE_SOON_DAYS)
    soon = filter_kind(summary.soon, kind)
    overdue = filter_kind(summary.overdue, kind)
    if top is not None:
        soon, overdue = soon[:top], overdue[:top]
    return NotificationSummary(soon=soon, overdue=overdue)
