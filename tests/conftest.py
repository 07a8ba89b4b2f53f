import pytest
from fastapi.testclient import TestClient

from asn_monitor.core.config import Settings
from asn_monitor.deps import build_store
from asn_monitor.main import create_app

API = "/api"
API_KEY = "test-key"


def make_settings(tmp_path, backend: str) -> Settings:
    return Settings(
        _env_file=None,
        STORE_BACKEND=backend,
        DATABASE_URL=f"sqlite:///{tmp_path / 'asn.db'}",
        LOCAL_STORE_PATH=str(tmp_path / "asn.json"),
        DATA_DIR=str(tmp_path / "inbox"),
        API_KEY=API_KEY,
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture(params=["sql", "local"])
def settings(request, tmp_path):
    return make_settings(tmp_path, request.param)


@pytest.fixture
def store(settings):
    s = build_store(settings)
    s.open()
    yield s
    s.close()


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture
def auth():
    return {"X-API-Key": API_KEY}
