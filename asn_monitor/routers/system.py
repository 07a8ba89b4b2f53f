# asn_monitor/routers/system.py
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from asn_monitor.core.config import get_settings, Settings
from asn_monitor.core.errors import StoreUnavailable
from asn_monitor.core.security import validate_api_key
from asn_monitor.deps import get_store
from asn_monitor.stores.base import RecordStore

router = APIRouter()

@router.get("/health", tags=["System"], summary="Health check",
            responses={200: {"description": "Service healthy"},
                       500: {"description": "Storage unreachable"}})
def health(store: RecordStore = Depends(get_store)):
    try:
        now = store.ping()
    except StoreUnavailable as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"ok": False, "error": str(e), "store": store.backend},
        )
    return {"ok": True, "now": now.isoformat() if hasattr(now, "isoformat") else str(now),
            "store": store.backend}

@router.get("/info", tags=["System"], summary="Información de la app",
            status_code=status.HTTP_200_OK)
def info(
    settings: Settings = Depends(get_settings),
    _: bool = Depends(validate_api_key),
):
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "store": settings.STORE_BACKEND,
        "engine": "SQLAlchemy" if settings.STORE_BACKEND == "sql" else "JSON file",
        "due_soon_days": settings.DUE_SOON_DAYS,
    }
