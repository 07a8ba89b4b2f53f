# asn_monitor/stores/base.py
"""
Contrato del store de registros ASN.

Dos implementaciones intercambiables (tabla SQL y archivo JSON local). Ambas
delegan en este módulo la validación de nama/nip y el cálculo de ``jadwal_*``,
así ningún camino de escritura puede dejar un jadwal desfasado de su riwayat.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from asn_monitor.core.errors import ValidationError
from asn_monitor.schedule import KGB_INTERVAL_YEARS, PANGKAT_INTERVAL_YEARS, derive_schedule
from asn_monitor.schemas import (
    DATE_FIELDS,
    EDITABLE_FIELDS,
    TEXT_FIELDS,
    AsnImportRow,
    AsnIn,
    AsnPatch,
    AsnRecord,
)


class RecordStore(ABC):
    backend: str = ""

    def __init__(self, kgb_years: int = KGB_INTERVAL_YEARS, pangkat_years: int = PANGKAT_INTERVAL_YEARS):
        self.kgb_years = kgb_years
        self.pangkat_years = pangkat_years

    # -------- ciclo de vida --------
    def open(self) -> None:
        pass

    def close(self) -> None:
        pass

    @abstractmethod
    def ping(self) -> datetime:
        """Hora actual vista por la persistencia; StoreUnavailable si no responde."""

    # -------- CRUD --------
    @abstractmethod
    def list(self) -> list[AsnRecord]:
        """Todos los registros, el más reciente primero."""

    @abstractmethod
    def get(self, record_id: int) -> AsnRecord:
        """NotFoundError si no existe."""

    @abstractmethod
    def create(self, fields: AsnIn) -> AsnRecord:
        ...

    @abstractmethod
    def update(self, record_id: int, patch: AsnPatch) -> AsnRecord:
        ...

    @abstractmethod
    def delete(self, record_id: int) -> None:
        """Idempotente: borrar un id inexistente no es error."""

    @abstractmethod
    def put(self, row: AsnImportRow) -> tuple[AsnRecord, bool]:
        """
        Alta o reemplazo para importación masiva. Con id existente reemplaza los
        campos editables; con id desconocido crea con ese id. Devuelve
        ``(registro, creado)``.
        """

    # -------- helpers compartidos --------
    def _derive(self, values: dict) -> dict:
        values.update(
            derive_schedule(
                values.get("riwayat_tmt_kgb"),
                values.get("riwayat_tmt_pangkat"),
                kgb_years=self.kgb_years,
                pangkat_years=self.pangkat_years,
            )
        )
        return values

    @staticmethod
    def _require_text(values: dict) -> None:
        missing = [f for f in TEXT_FIELDS if not values.get(f)]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    def new_values(self, fields: AsnIn) -> dict:
        """Valores completos para un alta: validados, con jadwal y created_at."""
        values = fields.model_dump(include=set(EDITABLE_FIELDS))
        self._require_text(values)
        values["created_at"] = datetime.now()
        return self._derive(values)

    def merged_values(self, current: AsnRecord, patch: AsnPatch) -> dict:
        """Merge-patch sobre ``current``; lo omitido conserva su valor."""
        values = current.model_dump(include=set(EDITABLE_FIELDS))
        values.update(patch.changes())
        self._require_text(values)
        return self._derive(values)

    def replaced_values(self, row: AsnImportRow) -> dict:
        values = {f: getattr(row, f) for f in TEXT_FIELDS + DATE_FIELDS}
        self._require_text(values)
        return self._derive(values)
