from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from .errors import Forbidden

JWT_ALG = "HS256"
TOKEN_TTL_HOURS = 24

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def dummy_verify() -> None:
    # burn a bcrypt round so unknown users take as long as wrong passwords
    pwd_context.dummy_verify()


@dataclass(frozen=True)
class AdminIdentity:
    """Claims carried by a verified token."""

    id: int
    username: str
    issued_at: int
    expires_at: int

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "username": self.username, "iat": self.issued_at, "exp": self.expires_at}


def create_access_token(
    user_id: int,
    username: str,
    secret: str,
    now: datetime | None = None,
) -> str:
    """
    Signed token valid for TOKEN_TTL_HOURS.
    Uses timezone-aware datetimes to avoid offset bugs on timestamps.
    """
    now = now or datetime.now(timezone.utc)
    expire = now + timedelta(hours=TOKEN_TTL_HOURS)

    payload: dict[str, Any] = {
        "sub": str(user_id),
        "id": user_id,
        "username": username,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALG)


def decode_token(token: str, secret: str) -> AdminIdentity:
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALG])
    except ExpiredSignatureError as e:
        raise Forbidden("Token expired") from e
    except JWTError as e:
        raise Forbidden("Invalid token") from e

    try:
        return AdminIdentity(
            id=int(payload["id"]),
            username=str(payload["username"]),
            issued_at=int(payload["iat"]),
            expires_at=int(payload["exp"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise Forbidden("Invalid token") from e
