# asn_monitor/core/security.py
import logging
import secrets
from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from fastapi.security.api_key import APIKeyHeader
from asn_monitor.core.config import get_settings, Settings

logger = logging.getLogger("security")

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)
basic_auth = HTTPBasic(auto_error=False)


def _same(a: str, b: str) -> bool:
    return secrets.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def validate_api_key(
    api_key: str = Security(api_key_header),
    credentials: HTTPBasicCredentials | None = Security(basic_auth),
    settings: Settings = Depends(get_settings),
):
    """Clave fija en ``X-API-Key`` o usuario admin por Basic auth."""
    if api_key and _same(api_key, settings.API_KEY):
        return True
    if credentials is not None and _same(credentials.username, settings.ADMIN_USERNAME) \
            and _same(credentials.password, settings.ADMIN_PASSWORD):
        return True
    logger.info("auth_rejected api_key=%s basic=%s", bool(api_key), credentials is not None)
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or missing API key",
    )
