"""Shared fixtures: isolated data directory, controllable clock and a test client."""
import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app
from services.record_store import RecordStore


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def settings(data_dir):
    return Settings(
        app_env="development",
        data_dir=str(data_dir),
        secret_key="test-secret",
        otp_echo=True,
        smtp_host=None,
        smtp_port=0,
        smtp_user=None,
        smtp_password=None,
        termii_api_key=None,
    )


@pytest.fixture
def app(settings, clock):
    return create_app(settings, clock=clock)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def services(app):
    return app.state.services


@pytest.fixture
def make_store(data_dir):
    def _make(filename="records.json", factory=list):
        return RecordStore(str(data_dir / filename), factory=factory)
    return _make


@pytest.fixture
def register_user(client):
    def _register(name="Ada", email="a@x.com", phone="08012345678", password="secret1"):
        resp = client.post("/api/auth/register", json={"name": name, "email": email, "phone": phone, "password": password})
        assert resp.status_code == 200, resp.text
        return resp.json()
    return _register