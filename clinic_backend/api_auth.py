from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from .auth_security import AdminIdentity
from .auth_service import login
from .config import Settings
from .deps import get_settings, get_storage, require_admin
from .errors import BadRequest, InternalError, StorageError
from .storage import AppointmentStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginIn(BaseModel):
    # optional so that a missing field is a 400, not a pydantic 422
    username: str | None = None
    password: str | None = None


class TokenOut(BaseModel):
    token: str
    message: str = "Login successful"


@router.post("/login", response_model=TokenOut)
def api_login(
    payload: LoginIn,
    storage: AppointmentStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> TokenOut:
    if not payload.username or not payload.password:
        raise BadRequest("Username and password are required")

    try:
        token = login(storage, settings, payload.username, payload.password)
    except StorageError as e:
        logger.error("Login error: %s", e)
        raise InternalError("Internal server error") from e
    return TokenOut(token=token)


@router.get("/verify")
def api_verify(user: AdminIdentity = Depends(require_admin)) -> dict[str, Any]:
    return {"valid": True, "user": user.to_dict()}
