from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigError

load_dotenv()

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[1]

# Fallback values for local development only
DEFAULT_SQLITE_PATH = PROJECT_ROOT / "clinic.sqlite"
DEFAULT_JWT_SECRET = "CHANGE_ME_DEV_SECRET"
DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "admin123"

BACKENDS = ("sqlite", "postgres")


@dataclass(frozen=True)
class Settings:
    db_backend: str = "sqlite"
    database_url: str | None = None
    sqlite_path: str = str(DEFAULT_SQLITE_PATH)
    db_pool_size: int = 5
    db_max_overflow: int = 10

    jwt_secret: str = DEFAULT_JWT_SECRET
    admin_username: str = DEFAULT_ADMIN_USERNAME
    admin_password: str = DEFAULT_ADMIN_PASSWORD

    email_user: str | None = None
    email_pass: str | None = None
    email_host: str = "smtp.gmail.com"
    email_port: int = 465
    email_timeout: float = 10.0

    clinic_name: str = "Dr. Vanshika Physiotherapy"
    clinic_location: str = "Hadapsar Physiotherapy Clinic / Medizen Clinic"
    clinic_doctor: str = "Dr. Vanshika Naik"

    app_env: str = "development"
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    @property
    def uses_default_admin_password(self) -> bool:
        return self.admin_password == DEFAULT_ADMIN_PASSWORD

    @property
    def uses_default_jwt_secret(self) -> bool:
        return self.jwt_secret == DEFAULT_JWT_SECRET

    @property
    def email_enabled(self) -> bool:
        return bool(self.email_user and self.email_pass)


def _resolve_backend(explicit: str | None, database_url: str | None) -> str:
    if explicit:
        backend = explicit.strip().lower()
        if backend == "postgresql":
            backend = "postgres"
        if backend not in BACKENDS:
            raise ConfigError(f"DB_BACKEND must be one of {', '.join(BACKENDS)}, got {explicit!r}")
        if backend == "postgres" and not database_url:
            raise ConfigError("DB_BACKEND=postgres requires DATABASE_URL")
        return backend

    backend = "postgres" if database_url else "sqlite"
    logger.info("DB_BACKEND not set, resolved to %s from DATABASE_URL presence", backend)
    return backend


def load_settings() -> Settings:
    """
    Read configuration from the environment (and .env) once.
    The storage backend is decided here and never changes at runtime.
    """
    database_url = os.getenv("DATABASE_URL") or None
    settings = Settings(
        db_backend=_resolve_backend(os.getenv("DB_BACKEND"), database_url),
        database_url=database_url,
        sqlite_path=os.getenv("SQLITE_PATH", str(DEFAULT_SQLITE_PATH)),
        db_pool_size=int(os.getenv("DB_POOL_SIZE", "5")),
        db_max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "10")),
        jwt_secret=os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET),
        admin_username=os.getenv("ADMIN_USERNAME", DEFAULT_ADMIN_USERNAME),
        admin_password=os.getenv("ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD),
        email_user=os.getenv("EMAIL_USER") or None,
        email_pass=os.getenv("EMAIL_PASS") or None,
        email_host=os.getenv("EMAIL_HOST", "smtp.gmail.com"),
        email_port=int(os.getenv("EMAIL_PORT", "465")),
        email_timeout=float(os.getenv("EMAIL_TIMEOUT", "10")),
        clinic_name=os.getenv("CLINIC_NAME", Settings.clinic_name),
        clinic_location=os.getenv("CLINIC_LOCATION", Settings.clinic_location),
        clinic_doctor=os.getenv("CLINIC_DOCTOR", Settings.clinic_doctor),
        app_env=os.getenv("APP_ENV", "development"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
    check_secrets(settings)
    return settings


def check_secrets(settings: Settings) -> None:
    if not settings.uses_default_jwt_secret:
        return
    if settings.is_production:
        raise ConfigError("JWT_SECRET is not set: refusing to sign tokens with the development secret in production")
    logger.warning("JWT_SECRET not set! Using insecure development secret - DO NOT USE IN PRODUCTION")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
