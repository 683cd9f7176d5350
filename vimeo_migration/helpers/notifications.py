"""Failure notification emails for migration runs."""

from __future__ import annotations

import logging
import os
import smtplib
from dataclasses import dataclass
from datetime import datetime, timezone
from email.message import EmailMessage
from typing import Optional, Sequence, Tuple

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SmtpSettings:
    """Where alert emails go, read from ``SMTP_*`` and ``ALERT_EMAIL_*``."""

    host: str
    port: int
    recipients: Tuple[str, ...]
    sender: str = ""
    username: Optional[str] = None
    password: Optional[str] = None

    @classmethod
    def from_env(cls) -> Optional["SmtpSettings"]:
        host = os.getenv("SMTP_HOST")
        recipients = tuple(
            addr.strip()
            for addr in os.getenv("ALERT_EMAIL_TO", "").split(",")
            if addr.strip()
        )
        if not host or not recipients:
            return None
        try:
            port = int(os.getenv("SMTP_PORT", "587"))
        except ValueError:
            LOGGER.warning("Ignoring invalid SMTP_PORT %r", os.getenv("SMTP_PORT"))
            port = 587
        username = os.getenv("SMTP_USERNAME")
        return cls(
            host=host,
            port=port,
            recipients=recipients,
            sender=os.getenv("ALERT_EMAIL_FROM") or username or "",
            username=username,
            password=os.getenv("SMTP_PASSWORD"),
        )


def send_failure_email(
    subject: str, body: str, settings: Optional[SmtpSettings] = None
) -> None:
    """Email ``body`` to the alert recipients.

    Does nothing when SMTP is not configured. Delivery problems are logged
    and never interrupt the migration.
    """

    settings = settings or SmtpSettings.from_env()
    if settings is None:
        LOGGER.debug("SMTP not configured, skipping alert email")
        return

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.sender
    msg["To"] = ", ".join(settings.recipients)
    msg.set_content(body)

    try:
        with smtplib.SMTP(settings.host, settings.port) as server:
            server.starttls()
            if settings.username and settings.password:
                server.login(settings.username, settings.password)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        LOGGER.warning("Failed to send notification email: %s", exc)


def failure_report(failures: Sequence[Tuple[str, str]], folder: str | None) -> str:
    """Return the email body listing each failed ``(filename, error)`` pair."""

    lines = [
        f"Time: {datetime.now(timezone.utc).isoformat()}",
        f"Folder: {folder or '(none)'}",
        f"Failed uploads: {len(failures)}",
        "",
    ]
    for filename, error in failures:
        lines.append(f"Video: {filename}")
        lines.append(f"Error: {error}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def notify_failed_jobs(failures: Sequence[Tuple[str, str]], folder: str | None = None) -> None:
    if not failures:
        return
    send_failure_email(
        f"Video migration: {len(failures)} upload(s) failed",
        failure_report(failures, folder),
    )


__all__ = ["SmtpSettings", "failure_report", "notify_failed_jobs", "send_failure_email"]
