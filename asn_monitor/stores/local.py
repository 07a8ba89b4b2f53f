# asn_monitor/stores/local.py
from __future__ import annotations

import json
import logging
import os
import threading
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from asn_monitor.core.errors import NotFoundError, StoreUnavailable, ValidationError
from asn_monitor.schedule import coerce_date
from asn_monitor.schemas import DATE_FIELDS, AsnImportRow, AsnIn, AsnPatch, AsnRecord
from asn_monitor.stores.base import RecordStore

logger = logging.getLogger("stores.local")


class LocalRecordStore(RecordStore):
    """
    Store embebido en un archivo JSON (``{"next_id": n, "records": [...]}``).

    Todo vive en memoria; cada escritura reescribe el archivo completo vía un
    temporal + ``os.replace``. Pensado para cientos de registros.
    """

    backend = "local"

    def __init__(self, path: Path | str, **kwargs):
        super().__init__(**kwargs)
        self.path = Path(path)
        self._lock = threading.RLock()
        self._records: dict[int, AsnRecord] = {}
        # filas ilegibles del archivo: se reescriben tal cual, nunca se pierden
        self._unreadable: list = []
        self._next_id = 1
        self._opened = False

    # -------- archivo --------
    def open(self) -> None:
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                if self.path.exists():
                    payload = json.loads(self.path.read_text(encoding="utf-8") or "{}")
                else:
                    payload = {}
            except (OSError, ValueError) as e:
                logger.error("local_store_open_failed path=%s: %s", self.path, e)
                raise StoreUnavailable(f"Cannot read {self.path}: {e}") from e
            # también acepta directamente un export (array de registros)
            if isinstance(payload, list):
                payload = {"records": payload}
            self._records = {}
            self._unreadable = []
            for raw in payload.get("records", []):
                record = self._load_record(raw)
                if record is not None:
                    self._records[record.id] = record
                else:
                    self._unreadable.append(raw)
            self._next_id = max(
                int(payload.get("next_id", 1)),
                max(self._records, default=0) + 1,
                max(self._unreadable_ids(), default=0) + 1,
            )
            self._opened = True
            logger.info("local_store_opened path=%s records=%d", self.path, len(self._records))

    def close(self) -> None:
        with self._lock:
            if self._opened:
                self._flush()
            self._opened = False

    def _load_record(self, raw) -> AsnRecord | None:
        if not isinstance(raw, dict):
            logger.warning("local_store_unreadable_record value=%r", raw)
            return None
        values = dict(raw)
        for f in DATE_FIELDS:
            values[f] = coerce_date(values.get(f), f)
        try:
            self._derive(values)
            return AsnRecord.model_validate(values)
        except (PydanticValidationError, ValidationError) as e:
            logger.warning("local_store_unreadable_record id=%s kept as-is: %s", raw.get("id"), e)
            return None

    def _unreadable_ids(self) -> list[int]:
        ids = []
        for raw in self._unreadable:
            if isinstance(raw, dict) and isinstance(raw.get("id"), int):
                ids.append(raw["id"])
        return ids

    def _flush(self) -> None:
        payload = {
            "next_id": self._next_id,
            "records": [r.model_dump(mode="json") for r in self._records.values()] + [
                # una fila ilegible cuyo id ya se reemplazó (put) deja de escribirse
                raw for raw in self._unreadable
                if not (isinstance(raw, dict) and raw.get("id") in self._records)
            ],
        }
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            logger.error("local_store_write_failed path=%s: %s", self.path, e)
            raise StoreUnavailable(f"Cannot write {self.path}: {e}") from e

    def _check_open(self) -> None:
        if not self._opened:
            raise StoreUnavailable("Local store is not open")

    def _get(self, record_id: int) -> AsnRecord:
        record = self._records.get(record_id)
        if record is None:
            raise NotFoundError(record_id)
        return record

    # -------- contrato --------
    def ping(self) -> datetime:
        self._check_open()
        if not self.path.parent.is_dir() or not os.access(self.path.parent, os.W_OK):
            raise StoreUnavailable(f"Directory {self.path.parent} is not writable")
        return datetime.now()

    def list(self) -> list[AsnRecord]:
        with self._lock:
            self._check_open()
            # copias: el llamador no puede tocar el estado interno
            records = sorted(self._records.values(), key=lambda r: (r.created_at, r.id), reverse=True)
            return [r.model_copy() for r in records]

    def get(self, record_id: int) -> AsnRecord:
        with self._lock:
            self._check_open()
            return self._get(record_id).model_copy()

    def create(self, fields: AsnIn) -> AsnRecord:
        values = self.new_values(fields)
        with self._lock:
            self._check_open()
            record = AsnRecord(id=self._next_id, **values)
            self._records[record.id] = record
            self._next_id += 1
            self._flush()
            logger.info("asn_created id=%s", record.id)
            return record.model_copy()

    def update(self, record_id: int, patch: AsnPatch) -> AsnRecord:
        with self._lock:
            self._check_open()
            current = self._get(record_id)
            record = current.model_copy(update=self.merged_values(current, patch))
            self._records[record_id] = record
            self._flush()
            logger.info("asn_updated id=%s fields=%s", record_id, sorted(patch.changes()))
            return record.model_copy()

    def delete(self, record_id: int) -> None:
        with self._lock:
            self._check_open()
            if self._records.pop(record_id, None) is not None:
                self._flush()
                logger.info("asn_deleted id=%s", record_id)

    def put(self, row: AsnImportRow) -> tuple[AsnRecord, bool]:
        if row.id is None:
            return self.create(row), True
        values = self.replaced_values(row)
        with self._lock:
            self._check_open()
            current = self._records.get(row.id)
            created = current is None
            if created:
                record = AsnRecord(id=row.id, created_at=datetime.now(), **values)
                self._next_id = max(self._next_id, row.id + 1)
            else:
                record = current.model_copy(update=values)
            self._records[record.id] = record
            self._flush()
            return record.model_copy(), created
