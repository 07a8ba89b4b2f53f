# asn_monitor/deps.py
from fastapi import Request

from asn_monitor.core.config import Settings
from asn_monitor.core.errors import StoreUnavailable
from asn_monitor.stores.base import RecordStore
from asn_monitor.stores.local import LocalRecordStore
from asn_monitor.stores.sql import SqlRecordStore


def build_store(settings: Settings) -> RecordStore:
    intervals = dict(
        kgb_years=settings.KGB_INTERVAL_YEARS,
        pangkat_years=settings.PANGKAT_INTERVAL_YEARS,
    )
    if settings.STORE_BACKEND == "local":
        return LocalRecordStore(settings.local_store_path, **intervals)
    return SqlRecordStore(settings.sqlalchemy_url, create_tables=settings.CREATE_TABLES, **intervals)


# dependencia para FastAPI: el store lo abre/cierra el lifespan de la app
def get_store(request: Request) -> RecordStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise StoreUnavailable("Record store is not initialised")
    return store
