"""
Operator summary email for finished broadcasts.

The SMTP exchange is blocking, so async callers go through
send_broadcast_summary(), which hands it to a worker thread.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from campusboard.config import settings
from campusboard.services.push_service import BroadcastResult

logger = logging.getLogger(__name__)


def summary_enabled() -> bool:
    return bool(settings.SMTP_HOST and settings.SMTP_ADMIN_EMAIL)


def build_summary(title: str, admin_email: str | None, result: BroadcastResult) -> EmailMessage:
    rate = f"{result.sent * 100 // result.total}%" if result.total else "n/a"
    msg = EmailMessage()
    msg["Subject"] = f"[campusboard] Broadcast #{result.notification_id}: {result.sent}/{result.total} delivered"
    msg["From"] = settings.SMTP_FROM_EMAIL or f"campusboard@{settings.SERVER_DOMAIN}"
    msg["To"] = settings.SMTP_ADMIN_EMAIL
    msg.set_content(
        "\n".join(
            [
                f"Title:      {title}",
                f"Sent by:    {admin_email or 'unknown'}",
                f"Delivered:  {result.sent} of {result.total} ({rate})",
                f"Failed:     {result.errors}",
                f"Reports:    https://{settings.SERVER_DOMAIN}/admin/notifications",
            ]
        )
    )
    return msg


def deliver_summary(msg: EmailMessage) -> bool:
    """Blocking SMTP send. Returns False on failure; the broadcast itself already went out."""
    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
            if settings.SMTP_TLS:
                smtp.starttls()
            if settings.SMTP_USERNAME:
                smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        logger.warning("Broadcast summary to %s failed: %s", msg["To"], exc)
        return False
    logger.info("Broadcast summary sent to %s", msg["To"])
    return True


async def send_broadcast_summary(title: str, admin_email: str | None, result: BroadcastResult) -> bool:
    if not summary_enabled() or result.notification_id is None:
        return False
    return await asyncio.to_thread(deliver_summary, build_summary(title, admin_email, result))
