# rentez/services/email_service.py
from __future__ import annotations

import asyncio
import logging
from datetime import date
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib

from ..config import settings

log = logging.getLogger(__name__)


def email_configured() -> bool:
    return bool(settings.email_host)


def _rent_reminder_html(*, tenant_name: str, property_title: str, amount: float, due_date: date) -> str:
    return f"""
    <html>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
        <h2>Rent Payment Reminder</h2>
        <p>Hello {tenant_name},</p>
        <p>Your rent of <strong>{amount:,.2f}</strong> for <strong>{property_title}</strong>
           is due on <strong>{due_date.isoformat()}</strong>.</p>
        <p>You can pay and upload your receipt from the Rent Status page.</p>
        <p>Best regards,<br>RentEz</p>
        <p><a href="{settings.client_url}/rent-status">{settings.client_url}/rent-status</a></p>
    </body>
    </html>
    """


async def send_rent_reminder_email(
    *,
    to: str,
    tenant_name: str,
    property_title: str,
    amount: float,
    due_date: date,
) -> bool:
    """
    Sends one reminder. Returns False when SMTP isn't configured; raises on
    delivery errors so the calling task can retry.
    """
    if not email_configured():
        log.warning("email not configured; skipping rent reminder to %s", to)
        return False

    message = MIMEMultipart("alternative")
    message["Subject"] = f"Rent reminder: {property_title} due {due_date.isoformat()}"
    message["From"] = settings.email_from
    message["To"] = to
    message.attach(
        MIMEText(
            _rent_reminder_html(
                tenant_name=tenant_name, property_title=property_title, amount=amount, due_date=due_date
            ),
            "html",
        )
    )

    await aiosmtplib.send(
        message,
        hostname=settings.email_host,
        port=settings.email_port,
        username=settings.email_user,
        password=settings.email_password,
        start_tls=settings.email_use_tls,
    )
    return True


def deliver_rent_reminder(**kwargs) -> bool:
    # Celery workers are sync
    return asyncio.run(send_rent_reminder_email(**kwargs))
