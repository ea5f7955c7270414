"""Password hashing, tokens and admin seeding."""
import base64
import json
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from clinic_backend import auth_security
from clinic_backend.auth_security import (
    TOKEN_TTL_HOURS,
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)
from clinic_backend.auth_service import login, seed_admin, verify
from clinic_backend.config import DEFAULT_ADMIN_PASSWORD
from clinic_backend.errors import ConfigError, Forbidden, Unauthorized


def test_password_hash_is_salted_and_verifiable():
    h1 = hash_password("secret")
    h2 = hash_password("secret")

    assert h1 != "secret"
    assert h1 != h2
    assert verify_password("secret", h1)
    assert not verify_password("wrong", h1)


def test_token_round_trip_carries_identity():
    token = create_access_token(7, "admin", "k")
    identity = decode_token(token, "k")

    assert identity.id == 7
    assert identity.username == "admin"
    assert identity.expires_at - identity.issued_at == TOKEN_TTL_HOURS * 3600


def test_token_from_another_secret_is_forbidden():
    token = create_access_token(1, "admin", "other-secret")
    with pytest.raises(Forbidden):
        decode_token(token, "k")


def test_tampered_payload_is_forbidden():
    header, payload, signature = create_access_token(1, "admin", "k").split(".")
    claims = json.loads(base64.urlsafe_b64decode(payload + "=" * (-len(payload) % 4)))
    claims["username"] = "mallory"
    forged = base64.urlsafe_b64encode(json.dumps(claims).encode()).rstrip(b"=").decode()

    with pytest.raises(Forbidden):
        decode_token(f"{header}.{forged}.{signature}", "k")


def test_expired_token_is_forbidden():
    issued = datetime.now(timezone.utc) - timedelta(hours=TOKEN_TTL_HOURS + 1)
    token = create_access_token(1, "admin", "k", now=issued)

    with pytest.raises(Forbidden):
        decode_token(token, "k")


def test_garbage_token_is_forbidden():
    with pytest.raises(Forbidden):
        decode_token("not-a-jwt", "k")


def test_verify_without_token_is_unauthorized(settings):
    with pytest.raises(Unauthorized):
        verify(settings, None)
    with pytest.raises(Unauthorized):
        verify(settings, "")


def test_verify_strips_quotes(settings):
    token = create_access_token(1, "admin", settings.jwt_secret)
    assert verify(settings, f'"{token}"').username == "admin"


def test_login_success_and_failures(storage, settings):
    seed_admin(storage, settings)

    token = login(storage, settings, settings.admin_username, settings.admin_password)
    assert verify(settings, token).username == settings.admin_username

    with pytest.raises(Unauthorized):
        login(storage, settings, settings.admin_username, "wrong")
    with pytest.raises(Unauthorized):
        login(storage, settings, "nobody", settings.admin_password)


def test_unknown_user_still_pays_for_a_hash_check(storage, settings, monkeypatch):
    seed_admin(storage, settings)
    calls = []
    monkeypatch.setattr(auth_security.pwd_context, "dummy_verify", lambda: calls.append(1))

    with pytest.raises(Unauthorized):
        login(storage, settings, "nobody", "whatever")
    assert calls == [1]

    login(storage, settings, settings.admin_username, settings.admin_password)
    assert calls == [1]


def test_seed_admin_is_idempotent(storage, settings):
    assert seed_admin(storage, settings) is True
    first = storage.get_admin_by_username(settings.admin_username)

    assert seed_admin(storage, settings) is False
    assert storage.get_admin_by_username(settings.admin_username) == first
    assert verify_password(settings.admin_password, first["password_hash"])


def test_seed_with_default_password_warns(storage, settings, caplog):
    dev = replace(settings, admin_password=DEFAULT_ADMIN_PASSWORD)

    with caplog.at_level("WARNING"):
        assert seed_admin(storage, dev) is True

    assert "DO NOT USE IN PRODUCTION" in caplog.text


def test_seed_with_default_password_refused_in_production(storage, settings):
    prod = replace(settings, admin_password=DEFAULT_ADMIN_PASSWORD, app_env="production")

    with pytest.raises(ConfigError):
        seed_admin(storage, prod)
    assert storage.get_admin_by_username(prod.admin_username) is None


def test_seed_in_production_with_real_password(storage, settings):
    prod = replace(settings, app_env="production")
    assert seed_admin(storage, prod) is True
