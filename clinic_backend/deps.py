from __future__ import annotations

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from .auth_security import AdminIdentity
from .auth_service import verify
from .config import Settings
from .notifications import Notifier
from .storage import AppointmentStorage

# Authorization: Bearer <token>; a missing header is reported by verify() as 401
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> AppointmentStorage:
    return request.app.state.storage


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def require_admin(
    token: str | None = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings),
) -> AdminIdentity:
    return verify(settings, token)
