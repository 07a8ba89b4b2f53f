# asn_monitor/main.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from asn_monitor.core.config import get_settings, Settings
from asn_monitor.core.errors import register_error_handlers
from asn_monitor.deps import build_store
from asn_monitor.routers import system
from asn_monitor.routers import records
from asn_monitor.routers import notifications
from asn_monitor.routers import metrics
from asn_monitor.routers import ingestion
from fastapi.responses import RedirectResponse

logger = logging.getLogger("asn_monitor")

tags_metadata = [
    {"name": "System", "description": "Salud del servicio y metadatos."},
    {"name": "Records", "description": "CRUD de pegawai ASN; jadwal KGB / pangkat calculados."},
    {"name": "Notifications", "description": "Jadwal jatuh tempo (≤ 90 días) y terlewat."},
    {"name": "Metrics", "description": "Ringkasan para el dashboard."},
    {"name": "Ingestion", "description": "Importar / exportar pegawai (JSON y CSV)."},
]

@asynccontextmanager
async def lifespan(app: FastAPI):
    store = build_store(app.state.settings)
    store.open()
    app.state.store = store
    logger.info("store_opened backend=%s", store.backend)
    try:
        yield
    finally:
        store.close()
        app.state.store = None
        logger.info("store_closed backend=%s", store.backend)

def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=settings.APP_DESCRIPTION,
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )
    app.state.settings = settings
    # las rutas leen Settings vía Depends(get_settings)
    app.dependency_overrides[get_settings] = lambda: settings

    # Redirige "/" -> "/docs"
    @app.get("/", include_in_schema=False)
    def root():
        return RedirectResponse(url="/docs")
    app.include_router(system.router, prefix=settings.API_PREFIX)
    app.include_router(records.router, prefix=settings.API_PREFIX)
    app.include_router(notifications.router, prefix=settings.API_PREFIX)
    app.include_router(metrics.router, prefix=settings.API_PREFIX)
    app.include_router(ingestion.router, prefix=settings.API_PREFIX)
    register_error_handlers(app)
    for r in app.routes:
        logger.debug("route %s %s", getattr(r, "path", None), sorted(getattr(r, "methods", None) or []))
    return app

app = create_app()
