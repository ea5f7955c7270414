"""Shared test fixtures."""
import pytest
from fastapi.testclient import TestClient

from clinic_backend.api_main import create_app
from clinic_backend.config import Settings
from clinic_backend.notifications import Notifier
from clinic_backend.storage import SQLiteStorage

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "s3cret-pass"


class RecordingNotifier(Notifier):
    """Collects notifications instead of sending them."""

    def __init__(self, settings):
        super().__init__(settings)
        self.sent = []

    def notify(self, appointment, kind):
        self.sent.append((kind, dict(appointment)))


@pytest.fixture
def settings():
    return Settings(
        jwt_secret="test-secret",
        admin_username=ADMIN_USERNAME,
        admin_password=ADMIN_PASSWORD,
        log_level="WARNING",
    )


@pytest.fixture
def storage():
    s = SQLiteStorage(":memory:")
    s.init_schema()
    yield s
    s.dispose()


@pytest.fixture
def notifier(settings):
    return RecordingNotifier(settings)


@pytest.fixture
def client(settings, storage, notifier):
    """FastAPI test client; the context manager runs startup (schema + admin seed)."""
    app = create_app(settings=settings, storage=storage, notifier=notifier)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_token(client):
    r = client.post("/api/auth/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert r.status_code == 200
    return r.json()["token"]


@pytest.fixture
def auth_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def booking():
    """Valid public booking payload."""
    return {
        "name": "Test Patient",
        "email": "test@example.com",
        "phone": "1234567890",
        "date": "2026-01-10",
        "time": "10:00",
        "service": "musculoskeletal",
        "notes": "Test notes",
    }


@pytest.fixture
def make_appointment(storage):
    def _create(**overrides):
        data = {
            "patient_name": "Jane Doe",
            "email": "jane@example.com",
            "phone": "5551234567",
            "date": "2026-01-10",
            "time": "10:00",
            "service": "sports-injury",
            "notes": "",
        }
        data.update(overrides)
        return storage.create_appointment(data)
    return _create
