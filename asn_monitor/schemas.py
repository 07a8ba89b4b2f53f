import logging
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from asn_monitor.core.errors import MalformedDate
from asn_monitor.schedule import MilestoneKind, MilestoneStatus, coerce_date, parse_date

TEXT_FIELDS = ("nama", "nip")
DATE_FIELDS = ("tmt_pns", "riwayat_tmt_kgb", "riwayat_tmt_pangkat")
EDITABLE_FIELDS = TEXT_FIELDS + DATE_FIELDS

logger = logging.getLogger("schemas")


class _AsnFields(BaseModel):
    # acepta snake_case y camelCase; jadwal_* y claves desconocidas se ignoran
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    nama: str | None = None
    nip: str | None = None
    tmt_pns: date | None = None
    riwayat_tmt_kgb: date | None = None
    riwayat_tmt_pangkat: date | None = None

    @model_validator(mode="before")
    @classmethod
    def drop_malformed_dates(cls, data):
        # una fecha ilegible cuenta como ausente: no entra en model_fields_set,
        # así un patch no borra el valor guardado. Un null explícito sí limpia.
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for field in DATE_FIELDS:
            for key in (field, to_camel(field)):
                if data.get(key) is None:
                    continue
                try:
                    parse_date(data[key], field)
                except MalformedDate as exc:
                    logger.warning("malformed_date field=%s value=%r dropped", field, exc.value)
                    data.pop(key)
        return data

    @field_validator(*TEXT_FIELDS, mode="before")
    @classmethod
    def as_text(cls, v):
        if v is None:
            return None
        return str(v).strip()

    @field_validator(*DATE_FIELDS, mode="before")
    @classmethod
    def lenient_date(cls, v, info):
        return coerce_date(v, info.field_name)


class AsnIn(_AsnFields):
    """Campos de alta. nama/nip se validan en el store."""


class AsnPatch(_AsnFields):
    """
    Update parcial (merge-patch): solo cuentan los campos presentes en el body,
    ver ``model_fields_set``. Un null explícito limpia la fecha.
    """

    def changes(self) -> dict:
        return self.model_dump(include=self.model_fields_set & set(EDITABLE_FIELDS))


class AsnImportRow(AsnIn):
    id: int | None = Field(default=None, ge=1)


class AsnRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nama: str
    nip: str
    tmt_pns: date | None = None
    riwayat_tmt_kgb: date | None = None
    riwayat_tmt_pangkat: date | None = None
    jadwal_kgb_berikutnya: date | None = None
    jadwal_pangkat_berikutnya: date | None = None
    created_at: datetime


class AsnListItem(AsnRecord):
    days_until_kgb: int | None = None
    days_until_pangkat: int | None = None
    status: MilestoneStatus


class NotificationItem(BaseModel):
    employee_id: int
    nama: str
    nip: str
    milestone_kind: MilestoneKind
    label: str
    due_date: date
    status: MilestoneStatus
    days: int


class NotificationSummary(BaseModel):
    soon: list[NotificationItem] = []
    overdue: list[NotificationItem] = []


class KindCounts(BaseModel):
    due_soon: int = 0
    overdue: int = 0


class MetricsSummary(BaseModel):
    total: int
    due_soon: int
    overdue: int
    by_kind: dict[MilestoneKind, KindCounts]


class ImportResult(BaseModel):
    rows: int
    created: int
    updated: int
    rejected: int
    batch_id: str
    rejected_file: str | None = None
