from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from sqlalchemy import create_engine, delete, select, update
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from .config import Settings
from .db import Base, make_session_factory, masked_url, session_scope
from .errors import ConfigError, StorageError
from .models import AdminUser, Appointment, AppointmentStatus

logger = logging.getLogger(__name__)

# largest value a 64-bit INTEGER column can hold; sqlite3 cannot bind anything bigger
MAX_ID = 2**63 - 1

APPOINTMENT_FIELDS = ("patient_name", "email", "phone", "date", "time", "service", "notes")


class AppointmentStorage(ABC):
    """
    Persistence contract shared by every backend.

    Records are returned as plain dicts so callers never hold ORM instances;
    "not found" is None for reads and 0 affected rows for writes.
    """

    name = "abstract"

    @abstractmethod
    def init_schema(self) -> None: ...

    @abstractmethod
    def list_appointments(self) -> list[dict]: ...

    @abstractmethod
    def get_appointment(self, appointment_id: int) -> dict | None: ...

    @abstractmethod
    def create_appointment(self, data: dict[str, Any]) -> dict: ...

    @abstractmethod
    def update_status(self, appointment_id: int, status: str) -> int: ...

    @abstractmethod
    def delete_appointment(self, appointment_id: int) -> int: ...

    @abstractmethod
    def get_admin_by_username(self, username: str) -> dict | None: ...

    @abstractmethod
    def create_admin(self, username: str, password_hash: str) -> dict: ...

    @abstractmethod
    def describe(self) -> str: ...

    def dispose(self) -> None:
        pass


def _storable_id(appointment_id: int) -> bool:
    return 0 < appointment_id <= MAX_ID


class _SqlAlchemyStorage(AppointmentStorage):
    """Query code common to the SQL backends; subclasses only build the engine."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._sessions = make_session_factory(engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with session_scope(self._sessions) as s:
                yield s
        except SQLAlchemyError as e:
            logger.error("Storage error on %s backend: %s", self.name, e)
            raise StorageError(str(e)) from e

    def init_schema(self) -> None:
        """Create the tables if they do not exist."""
        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            logger.error("Could not create tables on %s backend: %s", self.name, e)
            raise StorageError(str(e)) from e

    def list_appointments(self) -> list[dict]:
        with self._session() as s:
            q = select(Appointment).order_by(
                Appointment.date.desc(),
                Appointment.time.desc(),
                Appointment.id.desc(),
            )
            return [a.to_dict() for a in s.scalars(q)]

    def get_appointment(self, appointment_id: int) -> dict | None:
        if not _storable_id(appointment_id):
            return None
        with self._session() as s:
            a = s.get(Appointment, appointment_id)
            return a.to_dict() if a else None

    def create_appointment(self, data: dict[str, Any]) -> dict:
        values = {k: data.get(k) for k in APPOINTMENT_FIELDS}
        with self._session() as s:
            a = Appointment(**values, status=AppointmentStatus.PENDING.value)
            s.add(a)
            s.flush()
            return a.to_dict()

    def update_status(self, appointment_id: int, status: str) -> int:
        if not _storable_id(appointment_id):
            return 0
        with self._session() as s:
            res = s.execute(
                update(Appointment).where(Appointment.id == appointment_id).values(status=status)
            )
            return res.rowcount

    def delete_appointment(self, appointment_id: int) -> int:
        if not _storable_id(appointment_id):
            return 0
        with self._session() as s:
            res = s.execute(delete(Appointment).where(Appointment.id == appointment_id))
            return res.rowcount

    def get_admin_by_username(self, username: str) -> dict | None:
        with self._session() as s:
            u = s.execute(select(AdminUser).where(AdminUser.username == username)).scalar_one_or_none()
            return u.to_dict() if u else None

    def create_admin(self, username: str, password_hash: str) -> dict:
        with self._session() as s:
            u = AdminUser(username=username, password_hash=password_hash)
            s.add(u)
            s.flush()
            return u.to_dict()

    def describe(self) -> str:
        return f"{self.name} ({masked_url(self.engine)})"

    def dispose(self) -> None:
        self.engine.dispose()


class SQLiteStorage(_SqlAlchemyStorage):
    """Embedded file store. ":memory:" keeps one shared connection (handy for tests)."""

    name = "sqlite"

    def __init__(self, path: str | Path = ":memory:", echo: bool = False) -> None:
        path = str(path)
        if path in ("", ":memory:", "sqlite://"):
            engine = create_engine(
                "sqlite://",
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            url = path if path.startswith("sqlite") else f"sqlite:///{Path(path).resolve()}"
            engine = create_engine(url, echo=echo, connect_args={"check_same_thread": False})
        super().__init__(engine)


def normalize_postgres_url(url: str) -> str:
    """Hosted providers hand out postgres:// URLs; SQLAlchemy wants an explicit driver."""
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        url = "postgresql+psycopg2://" + url[len("postgresql://"):]
    return url


class PostgresStorage(_SqlAlchemyStorage):
    """Networked store with a connection pool shared by all requests."""

    name = "postgres"

    def __init__(
        self,
        url: str,
        pool_size: int = 5,
        max_overflow: int = 10,
        echo: bool = False,
    ) -> None:
        sa_url = make_url(normalize_postgres_url(url))
        connect_args = {}
        # managed hosts (Neon, Render) require TLS
        if "sslmode" not in sa_url.query:
            connect_args["sslmode"] = "require"

        engine = create_engine(
            sa_url,
            echo=echo,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
            pool_recycle=300,
            connect_args=connect_args,
        )
        super().__init__(engine)


def build_storage(settings: Settings) -> AppointmentStorage:
    """Pick the backend once, from explicit configuration."""
    if settings.db_backend == "postgres":
        if not settings.database_url:
            raise ConfigError("postgres backend selected but DATABASE_URL is empty")
        storage: AppointmentStorage = PostgresStorage(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )
    elif settings.db_backend == "sqlite":
        storage = SQLiteStorage(settings.sqlite_path)
    else:
        raise ConfigError(f"Unknown storage backend: {settings.db_backend!r}")

    logger.info("Storage backend: %s", storage.describe())
    return storage
