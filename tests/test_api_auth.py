"""/api/auth routes and service endpoints."""
from datetime import datetime, timedelta, timezone

import pytest

from clinic_backend.auth_security import create_access_token

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "s3cret-pass"


def test_login_returns_token(client):
    r = client.post("/api/auth/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})

    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "Login successful"
    assert body["token"].count(".") == 2


def test_login_wrong_password(client):
    r = client.post("/api/auth/login", json={"username": ADMIN_USERNAME, "password": "nope"})

    assert r.status_code == 401
    assert r.json() == {"message": "Invalid credentials"}
    assert "token" not in r.json()


def test_login_unknown_user(client):
    r = client.post("/api/auth/login", json={"username": "ghost", "password": ADMIN_PASSWORD})
    assert r.status_code == 401


@pytest.mark.parametrize(
    "payload",
    [{}, {"username": ADMIN_USERNAME}, {"password": ADMIN_PASSWORD}, {"username": "", "password": ""}],
)
def test_login_missing_fields(client, payload):
    r = client.post("/api/auth/login", json=payload)
    assert r.status_code == 400


def test_verify_accepts_fresh_token(client, admin_token):
    r = client.get("/api/auth/verify", headers={"Authorization": f"Bearer {admin_token}"})

    assert r.status_code == 200
    body = r.json()
    assert body["valid"] is True
    assert body["user"]["username"] == ADMIN_USERNAME
    assert body["user"]["exp"] - body["user"]["iat"] == 24 * 3600


def test_verify_without_token(client):
    r = client.get("/api/auth/verify")
    assert r.status_code == 401


def test_verify_rejects_expired_token(client, settings):
    old = datetime.now(timezone.utc) - timedelta(hours=30)
    token = create_access_token(1, ADMIN_USERNAME, settings.jwt_secret, now=old)

    r = client.get("/api/auth/verify", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 403


def test_verify_rejects_tampered_signature(client, settings):
    token = create_access_token(1, ADMIN_USERNAME, "someone-elses-secret")

    r = client.get("/api/auth/verify", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 403
    assert r.json() == {"message": "Invalid token"}


def test_token_is_accepted_by_another_app_sharing_the_secret(client, admin_token, settings):
    from fastapi.testclient import TestClient

    from clinic_backend.api_main import create_app
    from clinic_backend.storage import SQLiteStorage

    other = create_app(settings=settings, storage=SQLiteStorage(":memory:"))
    with TestClient(other) as c:
        r = c.get("/api/auth/verify", headers={"Authorization": f"Bearer {admin_token}"})

    assert r.status_code == 200


def test_health_and_root(client):
    assert client.get("/health").json() == {"status": "ok", "backend": "sqlite"}
    assert client.get("/").json()["name"] == "Clinic Booking API"
