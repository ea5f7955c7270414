from __future__ import annotations


class ClinicError(Exception):
    """Application error rendered by the API as a JSON {"message": ...} body."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BadRequest(ClinicError):
    status_code = 400


class Unauthorized(ClinicError):
    status_code = 401


class Forbidden(ClinicError):
    status_code = 403


class NotFound(ClinicError):
    status_code = 404


class InternalError(ClinicError):
    status_code = 500


class StorageError(Exception):
    """Failure talking to the relational store (connectivity or constraint violation)."""


class ConfigError(Exception):
    pass
