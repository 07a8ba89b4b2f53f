# asn_monitor/notifications.py
"""
Agregador de notificaciones KGB / kenaikan pangkat.

Recorre una foto del store (un solo ``list()``) y arma dos listas, ``soon`` y
``overdue``, ordenadas por fecha ascendente con sort estable. Nada se cachea:
cada lectura recalcula todo, el volumen esperado son cientos de registros.
"""
import logging
from collections.abc import Iterable, Mapping
from datetime import datetime

from pydantic import ValidationError as PydanticValidationError

from asn_monitor.schedule import (
    DUE_SOON_DAYS,
    MILESTONE_LABELS,
    MilestoneKind,
    MilestoneStatus,
    classify,
    coerce_date,
    days_until,
)
from asn_monitor.schemas import AsnListItem, KindCounts, MetricsSummary, NotificationItem, NotificationSummary

logger = logging.getLogger("notifications")

MILESTONE_FIELDS = (
    (MilestoneKind.salary_step, "jadwal_kgb_berikutnya"),
    (MilestoneKind.promotion, "jadwal_pangkat_berikutnya"),
)


def _field(record, name: str):
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _resolve_now(now) -> datetime:
    # una sola "ahora" por recorrido, así todos los registros usan el mismo corte
    return now if now is not None else datetime.now()


def milestones(record):
    """Pares ``(kind, fecha)`` con fecha presente y legible."""
    for kind, field in MILESTONE_FIELDS:
        due = coerce_date(_field(record, field), field)
        if due is not None:
            yield kind, due


def build_notifications(records: Iterable, now=None, window: int = DUE_SOON_DAYS) -> NotificationSummary:
    now = _resolve_now(now)
    soon: list[NotificationItem] = []
    overdue: list[NotificationItem] = []
    for record in records:
        try:
            for kind, due in milestones(record):
                status = classify(due, now, window)
                if status is MilestoneStatus.ok:
                    continue
                item = NotificationItem(
                    employee_id=_field(record, "id"),
                    nama=_field(record, "nama") or "",
                    nip=_field(record, "nip") or "",
                    milestone_kind=kind,
                    label=MILESTONE_LABELS[kind],
                    due_date=due,
                    status=status,
                    days=days_until(due, now),
                )
                (soon if status is MilestoneStatus.due_soon else overdue).append(item)
        except PydanticValidationError as e:
            logger.warning("notification_skip_record id=%r: %s", _field(record, "id"), e)
    return NotificationSummary(
        soon=sorted(soon, key=lambda it: it.due_date),
        overdue=sorted(overdue, key=lambda it: it.due_date),
    )


def notification_feed(
    records: Iterable,
    now=None,
    window: int = DUE_SOON_DAYS,
    limit: int | None = None,
) -> list[NotificationItem]:
    """Overdue y due_soon juntos, la fecha más cercana primero."""
    summary = build_notifications(records, now, window)
    items = sorted(summary.overdue + summary.soon, key=lambda it: it.due_date)
    return items[:limit] if limit is not None else items


def filter_kind(items: list[NotificationItem], kind: MilestoneKind | None) -> list[NotificationItem]:
    if kind is None:
        return items
    return [it for it in items if it.milestone_kind == kind]


# -------- estado por registro (tabla de pegawai) --------
def annotate_record(record, now=None, window: int = DUE_SOON_DAYS) -> AsnListItem:
    """Estado del registro según su hito más cercano; sin fechas es ``ok``."""
    now = _resolve_now(now)
    dates = dict(milestones(record))
    days = {kind: days_until(due, now) for kind, due in dates.items()}
    status = classify(min(dates.values()), now, window) if dates else MilestoneStatus.ok
    data = record.model_dump() if hasattr(record, "model_dump") else dict(record)
    return AsnListItem(
        **data,
        days_until_kgb=days.get(MilestoneKind.salary_step),
        days_until_pangkat=days.get(MilestoneKind.promotion),
        status=status,
    )


def summarize(records: list, now=None, window: int = DUE_SOON_DAYS) -> MetricsSummary:
    summary = build_notifications(records, now, window)
    by_kind = {kind: KindCounts() for kind, _ in MILESTONE_FIELDS}
    for it in summary.soon:
        by_kind[it.milestone_kind].due_soon += 1
    for it in summary.overdue:
        by_kind[it.milestone_kind].overdue += 1
    return MetricsSummary(
        total=len(records),
        due_soon=len(summary.soon),
        overdue=len(summary.overdue),
        by_kind=by_kind,
    )
