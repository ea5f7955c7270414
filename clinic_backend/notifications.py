from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage

from .config import Settings

logger = logging.getLogger(__name__)

KINDS = ("new", "update")


def build_email(settings: Settings, appointment: dict, kind: str) -> EmailMessage:
    """Fixed plaintext template, one per notification kind."""
    if kind not in KINDS:
        raise ValueError(f"Unknown notification kind: {kind!r}")

    if kind == "new":
        subject = f"Appointment Confirmation - {settings.clinic_name}"
        intro = "Your appointment has been successfully booked."
    else:
        subject = f"Appointment Update - {settings.clinic_name}"
        intro = "Your appointment details have been updated."

    lines = [
        f"Dear {appointment.get('patient_name')},",
        "",
        intro,
        "",
        "Details:",
        f"Date: {appointment.get('date')}",
        f"Time: {appointment.get('time')}",
        f"Service: {appointment.get('service')}",
    ]
    if kind == "update":
        lines.append(f"Status: {appointment.get('status')}")
    lines += [
        "",
        f"Location: {settings.clinic_location}",
        settings.clinic_doctor,
        "",
        "If you have any questions, please reply to this email.",
    ]

    msg = EmailMessage()
    msg["From"] = settings.email_user or ""
    msg["To"] = appointment.get("email") or ""
    msg["Subject"] = subject
    msg.set_content("\n".join(lines))
    return msg


class Notifier:
    """Best-effort patient notifications: nothing here ever raises to the caller."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def send_email(self, appointment: dict, kind: str) -> bool:
        s = self.settings
        if not s.email_enabled:
            logger.info("[EMAIL] Credentials missing, skipping email.")
            return False

        try:
            msg = build_email(s, appointment, kind)
            logger.info("[EMAIL] Sending %s email to %s", kind, appointment.get("email"))
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(s.email_host, s.email_port, context=context, timeout=s.email_timeout) as server:
                server.login(s.email_user, s.email_pass)
                server.send_message(msg)
        except Exception as e:
            logger.error("[EMAIL] Error sending email: %s", e)
            return False

        logger.info("[EMAIL] Sent successfully")
        return True

    def send_whatsapp(self, appointment: dict, kind: str) -> bool:
        # Not integrated: kept as an explicit no-op so callers have one place to hook a provider.
        logger.info(
            "[WHATSAPP] Skipped %s notification for %s (email preferred).",
            kind,
            appointment.get("patient_name"),
        )
        return True

    def notify(self, appointment: dict, kind: str) -> None:
        try:
            self.send_email(appointment, kind)
            self.send_whatsapp(appointment, kind)
        except Exception:
            logger.exception("Notification error for appointment %s", appointment.get("id"))
