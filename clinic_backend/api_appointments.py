from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict

from .auth_security import AdminIdentity
from .deps import get_notifier, get_storage, require_admin
from .errors import BadRequest, InternalError, NotFound, StorageError
from .models import AppointmentStatus
from .notifications import Notifier
from .storage import AppointmentStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/appointments", tags=["appointments"])

REQUIRED_FIELDS = ("name", "email", "phone", "date", "time", "service")


class AppointmentCreateIn(BaseModel):
    # phone numbers often arrive as JSON numbers
    model_config = ConfigDict(coerce_numbers_to_str=True)

    # all optional: missing fields are reported together as a 400
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    date: str | None = None
    time: str | None = None
    service: str | None = None
    notes: str | None = None


class StatusUpdateIn(BaseModel):
    status: str | None = None


def _missing_fields(payload: AppointmentCreateIn) -> list[str]:
    return [f for f in REQUIRED_FIELDS if not (getattr(payload, f) or "").strip()]


def _notify(notifier: Notifier, appointment: dict, kind: str) -> None:
    # notification failures never fail the request
    try:
        notifier.notify(appointment, kind)
    except Exception:
        logger.exception("Notification error")


@router.get("")
def list_appointments(
    user: AdminIdentity = Depends(require_admin),
    storage: AppointmentStorage = Depends(get_storage),
) -> list[dict]:
    try:
        return storage.list_appointments()
    except StorageError as e:
        logger.error("Error fetching appointments: %s", e)
        raise InternalError("Failed to fetch appointments") from e


@router.post("", status_code=status.HTTP_201_CREATED)
def create_appointment(
    payload: AppointmentCreateIn,
    storage: AppointmentStorage = Depends(get_storage),
    notifier: Notifier = Depends(get_notifier),
) -> dict[str, Any]:
    """
    Public booking (no login):
    - every contact field and the slot are required
    - the appointment always starts as "pending"
    """
    missing = _missing_fields(payload)
    if missing:
        logger.info("Rejected booking, missing fields: %s", ", ".join(missing))
        raise BadRequest("Missing required fields")

    try:
        appointment = storage.create_appointment(
            {
                "patient_name": payload.name.strip(),
                "email": payload.email.strip(),
                "phone": payload.phone.strip(),
                "date": payload.date.strip(),
                "time": payload.time.strip(),
                "service": payload.service.strip(),
                "notes": payload.notes or "",
            }
        )
    except StorageError as e:
        logger.error("Error creating appointment: %s", e)
        raise InternalError("Failed to book appointment") from e

    logger.info("Appointment %s booked for %s %s", appointment["id"], appointment["date"], appointment["time"])
    _notify(notifier, appointment, "new")

    return {"message": "Appointment booked successfully", "appointment": appointment}


@router.put("/{appointment_id}")
def update_appointment_status(
    appointment_id: int,
    payload: StatusUpdateIn,
    user: AdminIdentity = Depends(require_admin),
    storage: AppointmentStorage = Depends(get_storage),
    notifier: Notifier = Depends(get_notifier),
) -> dict[str, Any]:
    if payload.status not in AppointmentStatus.values():
        raise BadRequest("Invalid status")

    try:
        appointment = storage.get_appointment(appointment_id)
        if appointment is None:
            raise NotFound("Appointment not found")
        if storage.update_status(appointment_id, payload.status) == 0:
            # deleted between the read and the write
            raise NotFound("Appointment not found")
    except StorageError as e:
        logger.error("Error updating appointment %s: %s", appointment_id, e)
        raise InternalError("Failed to update appointment") from e

    logger.info("Appointment %s set to %s by %s", appointment_id, payload.status, user.username)
    _notify(notifier, {**appointment, "status": payload.status}, "update")

    return {"message": "Appointment updated successfully"}


@router.delete("/{appointment_id}")
def delete_appointment(
    appointment_id: int,
    user: AdminIdentity = Depends(require_admin),
    storage: AppointmentStorage = Depends(get_storage),
) -> dict[str, Any]:
    try:
        deleted = storage.delete_appointment(appointment_id)
    except StorageError as e:
        logger.error("Error deleting appointment %s: %s", appointment_id, e)
        raise InternalError("Failed to delete appointment") from e

    if not deleted:
        raise NotFound("Appointment not found")

    logger.info("Appointment %s deleted by %s", appointment_id, user.username)
    return {"message": "Appointment deleted successfully"}
