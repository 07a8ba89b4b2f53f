# asn_monitor/stores/sql.py
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from asn_monitor.core.errors import NotFoundError, StoreUnavailable
from asn_monitor.db import Base, make_engine, make_sessionmaker
from asn_monitor.models import Asn
from asn_monitor.schemas import AsnImportRow, AsnIn, AsnPatch, AsnRecord
from asn_monitor.stores.base import RecordStore

logger = logging.getLogger("stores.sql")


class SqlRecordStore(RecordStore):
    """Store sobre la tabla ``asns`` (MySQL en producción, SQLite en tests)."""

    backend = "sql"

    def __init__(self, url: str, create_tables: bool = True, **kwargs):
        super().__init__(**kwargs)
        self.url = url
        self.create_tables = create_tables
        self.engine = None
        self.SessionLocal = None

    def open(self) -> None:
        self.engine = make_engine(self.url)
        self.SessionLocal = make_sessionmaker(self.engine)
        if self.create_tables:
            try:
                Base.metadata.create_all(self.engine)
            except SQLAlchemyError as e:
                # la app arranca igual; /health reporta el fallo
                logger.error("create_tables failed: %s", e)

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None
            self.SessionLocal = None

    @contextmanager
    def _session(self):
        if self.SessionLocal is None:
            raise StoreUnavailable("SQL store is not open")
        db: Session = self.SessionLocal()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("sql_error")
            raise StoreUnavailable(f"Database error: {e.__class__.__name__}") from e
        finally:
            db.close()

    def _get_row(self, db: Session, record_id: int) -> Asn:
        row = db.get(Asn, record_id)
        if row is None:
            raise NotFoundError(record_id)
        return row

    def ping(self) -> datetime:
        with self._session() as db:
            return db.execute(select(func.now())).scalar_one()

    def list(self) -> list[AsnRecord]:
        with self._session() as db:
            rows = db.execute(select(Asn).order_by(Asn.created_at.desc(), Asn.id.desc())).scalars().all()
            return [AsnRecord.model_validate(r) for r in rows]

    def get(self, record_id: int) -> AsnRecord:
        with self._session() as db:
            return AsnRecord.model_validate(self._get_row(db, record_id))

    def create(self, fields: AsnIn) -> AsnRecord:
        values = self.new_values(fields)
        with self._session() as db:
            row = Asn(**values)
            db.add(row)
            db.commit()
            logger.info("asn_created id=%s", row.id)
            return AsnRecord.model_validate(row)

    def update(self, record_id: int, patch: AsnPatch) -> AsnRecord:
        with self._session() as db:
            row = self._get_row(db, record_id)
            values = self.merged_values(AsnRecord.model_validate(row), patch)
            for key, value in values.items():
                setattr(row, key, value)
            db.commit()
            logger.info("asn_updated id=%s fields=%s", record_id, sorted(patch.changes()))
            return AsnRecord.model_validate(row)

    def delete(self, record_id: int) -> None:
        with self._session() as db:
            row = db.get(Asn, record_id)
            if row is None:
                return
            db.delete(row)
            db.commit()
            logger.info("asn_deleted id=%s", record_id)

    def put(self, row: AsnImportRow) -> tuple[AsnRecord, bool]:
        if row.id is None:
            return self.create(row), True
        values = self.replaced_values(row)
        with self._session() as db:
            asn = db.get(Asn, row.id)
            created = asn is None
            if created:
                asn = Asn(id=row.id, created_at=datetime.now(), **values)
                db.add(asn)
            else:
                for key, value in values.items():
                    setattr(asn, key, value)
            db.commit()
            return AsnRecord.model_validate(asn), created
