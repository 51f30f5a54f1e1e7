"""Email notification via SMTP (Gmail by default)."""

import html
import logging
import os
import smtplib
from email.message import EmailMessage
from typing import NamedTuple

from stockwatch.models import RestockEvent

logger = logging.getLogger(__name__)


class SmtpSettings(NamedTuple):
    user: str
    password: str
    recipient: str
    host: str
    port: int


def load_smtp_settings() -> SmtpSettings | None:
    """
    SMTP settings from the environment, or None when credentials are missing.

    SMTP_USER and SMTP_PASS (Gmail App Password) are required.
    SMTP_TO defaults to SMTP_USER.
    """
    user = os.environ.get("SMTP_USER")
    password = os.environ.get("SMTP_PASS")
    if not user or not password:
        return None
    try:
        port = int(os.environ.get("SMTP_PORT", "587"))
    except ValueError:
        port = 587
    return SmtpSettings(
        user=user,
        password=password,
        recipient=os.environ.get("SMTP_TO") or user,
        host=os.environ.get("SMTP_HOST", "smtp.gmail.com"),
        port=port,
    )


def build_restock_message(event: RestockEvent, sender: str, recipient: str) -> EmailMessage:
    """Plain-text restock email with an HTML alternative linking the product page."""
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = recipient
    msg["Subject"] = f"Restock Alert: {event.name[:50]} ({event.brand}) is back in stock"

    msg.set_content(
        f"{event.name} from {event.brand} is back in stock.\n\n"
        f"{event.url}\n\n"
        f"Tracked product #{event.product_id}\n"
    )
    msg.add_alternative(
        f"<p><b>{html.escape(event.name)}</b> from {html.escape(event.brand)} is back in stock.</p>"
        f'<p><a href="{html.escape(event.url, quote=True)}">Open product page</a></p>'
        f"<p><small>Tracked product #{event.product_id}</small></p>",
        subtype="html",
    )
    return msg


def send_email_alert(event: RestockEvent) -> bool:
    settings = load_smtp_settings()
    if settings is None:
        logger.warning("Email: SMTP_USER or SMTP_PASS not set")
        return False

    msg = build_restock_message(event, settings.user, settings.recipient)
    try:
        logger.debug("Email: sending alert to %s", settings.recipient)
        with smtplib.SMTP(settings.host, settings.port) as server:
            server.starttls()
            server.login(settings.user, settings.password)
            server.send_message(msg)
        logger.info("Email: alert sent for %s", event.name[:50])
        return True
    except smtplib.SMTPAuthenticationError as e:
        logger.error("Email authentication failed: %s", e)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Email delivery to %s:%d failed: %s", settings.host, settings.port, e)
    return False
