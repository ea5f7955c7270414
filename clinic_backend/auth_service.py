from __future__ import annotations

import logging

from .auth_security import AdminIdentity, create_access_token, decode_token, dummy_verify, hash_password, verify_password
from .config import Settings
from .errors import ConfigError, Unauthorized
from .storage import AppointmentStorage

logger = logging.getLogger(__name__)


def login(storage: AppointmentStorage, settings: Settings, username: str, password: str) -> str:
    # same message for unknown user and wrong password
    admin = storage.get_admin_by_username(username.strip())
    if admin is None:
        dummy_verify()
    if not admin or not verify_password(password, admin["password_hash"]):
        logger.info("Failed login for username %r", username)
        raise Unauthorized("Invalid credentials")

    logger.info("Admin %s logged in", admin["username"])
    return create_access_token(admin["id"], admin["username"], settings.jwt_secret)


def verify(settings: Settings, token: str | None) -> AdminIdentity:
    if not token:
        raise Unauthorized("Access denied. No token provided.")
    # extra guard: strip accidental spaces / quotes
    token = token.strip().strip('"').strip("'")
    return decode_token(token, settings.jwt_secret)


def seed_admin(storage: AppointmentStorage, settings: Settings) -> bool:
    """
    Create the configured admin if missing (idempotent, safe on every startup).
    Returns True when a new row was inserted.
    """
    username = settings.admin_username
    if storage.get_admin_by_username(username) is not None:
        return False

    if settings.uses_default_admin_password:
        if settings.is_production:
            raise ConfigError(
                "ADMIN_PASSWORD is not set: refusing to seed the default admin password in production"
            )
        logger.warning(
            "ADMIN_PASSWORD not set! Seeding admin %r with the default development password - "
            "DO NOT USE IN PRODUCTION",
            username,
        )

    storage.create_admin(username, hash_password(settings.admin_password))
    logger.info("Default admin created - Username: %s", username)
    return True
