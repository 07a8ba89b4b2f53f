# asn_monitor/core/errors.py
import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("errors")


class AsnMonitorError(Exception):
    """Base de los errores del dominio."""


class ValidationError(AsnMonitorError):
    """Falta un campo obligatorio; se rechaza antes de escribir."""


class NotFoundError(AsnMonitorError):
    def __init__(self, record_id: int):
        super().__init__(f"Record {record_id} not found")
        self.record_id = record_id


class StoreUnavailable(AsnMonitorError):
    """La persistencia no responde. No se reintenta."""


class MalformedDate(AsnMonitorError):
    def __init__(self, value, field: str | None = None):
        where = f" in '{field}'" if field else ""
        super().__init__(f"Unparsable date{where}: {value!r}")
        self.value = value
        self.field = field


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    def validation_error(request: Request, exc: ValidationError):
        return _error(422, str(exc))

    @app.exception_handler(NotFoundError)
    def not_found(request: Request, exc: NotFoundError):
        return _error(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(StoreUnavailable)
    def store_unavailable(request: Request, exc: StoreUnavailable):
        logger.error("store_unavailable %s %s: %s", request.method, request.url.path, exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    @app.exception_handler(RequestValidationError)
    def request_validation(request: Request, exc: RequestValidationError):
        parts = []
        for err in exc.errors():
            loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
            parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
        return _error(422, "; ".join(parts) or "Invalid request")

    @app.exception_handler(StarletteHTTPException)
    def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )
