# asn_monitor/schedule.py
"""
Motor de fechas del registro ASN.

Todas las decisiones de "jatuh tempo" pasan por estas funciones, así los
bordes de 0 y de 90 días quedan definidos en un solo lugar:

- ``add_years``: avanza el año; el 29 de febrero cae al 28 si el año destino
  no es bisiesto.
- ``days_until``: ``ceil((fecha - ahora) / 1 día)``. Hoy es 0, ayer es -1.
- ``classify``: ``< 0`` overdue, ``0..window`` due_soon, ``> window`` ok.
- ``within_next_days``: ``0 <= days_until <= n``.

Las fechas son de calendario local, sin zona horaria.
"""
import logging
import math
from datetime import date, datetime, time
from enum import Enum
from typing import Optional

import pandas as pd
from dateutil.relativedelta import relativedelta

from asn_monitor.core.errors import MalformedDate, ValidationError

logger = logging.getLogger("schedule")

SECONDS_PER_DAY = 24 * 60 * 60
DUE_SOON_DAYS = 90
KGB_INTERVAL_YEARS = 2
PANGKAT_INTERVAL_YEARS = 4


class MilestoneStatus(str, Enum):
    overdue = "overdue"
    due_soon = "due_soon"
    ok = "ok"


class MilestoneKind(str, Enum):
    salary_step = "salary_step"
    promotion = "promotion"


MILESTONE_LABELS = {
    MilestoneKind.salary_step: "Kenaikan Gaji Berikutnya",
    MilestoneKind.promotion: "Kenaikan Pangkat Berikutnya",
}

NULL_TOKENS = {"", "nan", "nat", "none", "null"}


# -------- parseo --------
def parse_date(value, field: str | None = None) -> Optional[date]:
    """Convierte a ``date``. Vacío -> None; ilegible -> MalformedDate."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if pd.isna(value):
            return None
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise MalformedDate(value, field)
    s = value.strip()
    if s.lower() in NULL_TOKENS:
        return None
    # ISO: 2021-07-27, 2021-07-27T16:02:08Z, 2021-07-27 16:02:08
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    ts = pd.to_datetime(s, errors="coerce")
    if pd.isna(ts):
        raise MalformedDate(value, field)
    return ts.date()


def coerce_date(value, field: str | None = None) -> Optional[date]:
    """Como ``parse_date`` pero una fecha ilegible queda ausente (y se loguea)."""
    try:
        return parse_date(value, field)
    except MalformedDate as exc:
        logger.warning("malformed_date field=%s value=%r", exc.field, exc.value)
        return None


def format_date(d: Optional[date]) -> str:
    return d.isoformat() if d else ""


# -------- aritmética --------
def add_years(d: Optional[date], n: int) -> Optional[date]:
    """29/02 + n años cae al 28/02 si el año destino no es bisiesto."""
    if d is None:
        return None
    return d + relativedelta(years=n)


def _as_datetime(now) -> datetime:
    if now is None:
        return datetime.now()
    if isinstance(now, datetime):
        return now.replace(tzinfo=None)
    return datetime.combine(now, time.min)


def days_until(d: date, now=None) -> int:
    delta = datetime.combine(d, time.min) - _as_datetime(now)
    # ceil(-0.4) es -0.0; int() lo deja en 0
    return int(math.ceil(delta.total_seconds() / SECONDS_PER_DAY))


def classify(d: Optional[date], now=None, window: int = DUE_SOON_DAYS) -> Optional[MilestoneStatus]:
    if d is None:
        return None
    days = days_until(d, now)
    if days < 0:
        return MilestoneStatus.overdue
    if days <= window:
        return MilestoneStatus.due_soon
    return MilestoneStatus.ok


def within_next_days(d: Optional[date], n: int, now=None) -> bool:
    if d is None:
        return False
    return 0 <= days_until(d, now) <= n


# -------- campos derivados --------
def _next(d: Optional[date], years: int, field: str) -> Optional[date]:
    try:
        return add_years(d, years)
    except (ValueError, OverflowError) as e:
        raise ValidationError(f"'{field}' {d} + {years} years is out of range") from e


def derive_schedule(
    riwayat_tmt_kgb: Optional[date],
    riwayat_tmt_pangkat: Optional[date],
    kgb_years: int = KGB_INTERVAL_YEARS,
    pangkat_years: int = PANGKAT_INTERVAL_YEARS,
) -> dict:
    """
    Único punto donde se calculan ``jadwal_*`` a partir de ``riwayat_*``.
    Un jadwal fuera del rango de ``date`` (año > 9999) es ValidationError.
    """
    return {
        "jadwal_kgb_berikutnya": _next(riwayat_tmt_kgb, kgb_years, "riwayat_tmt_kgb"),
        "jadwal_pangkat_berikutnya": _next(riwayat_tmt_pangkat, pangkat_years, "riwayat_tmt_pangkat"),
    }
