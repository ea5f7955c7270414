from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api_appointments import router as appointments_router
from .api_auth import router as auth_router
from .auth_service import seed_admin
from .config import Settings, configure_logging, load_settings
from .errors import ClinicError
from .notifications import Notifier
from .storage import AppointmentStorage, build_storage

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    storage: AppointmentStorage | None = None,
    notifier: Notifier | None = None,
) -> FastAPI:
    """
    Build the API. Collaborators are created once here and shared through
    app.state; tests pass their own storage/notifier.
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # create tables and seed the admin (idempotent)
        app.state.storage.init_schema()
        seed_admin(app.state.storage, settings)
        yield
        app.state.storage.dispose()

    app = FastAPI(title="Clinic Booking API", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.storage = storage or build_storage(settings)
    app.state.notifier = notifier or Notifier(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ClinicError)
    async def clinic_error_handler(request: Request, exc: ClinicError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        # client input errors are 400 across the API, never 422
        logger.warning("Validation error for %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"message": "Invalid request"})

    @app.get("/")
    def root() -> dict[str, Any]:
        return {"name": app.title, "version": __version__}

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {"status": "ok", "backend": app.state.storage.name}

    app.include_router(auth_router)
    app.include_router(appointments_router)
    return app


def get_app() -> FastAPI:
    """Factory for `uvicorn --factory clinic_backend.api_main:get_app`."""
    return create_app()
