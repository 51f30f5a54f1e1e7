"""Telegram push notification."""

import html
import logging
import os

import requests

from stockwatch.models import RestockEvent

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org/bot{token}/sendMessage"


def format_restock_message(event: RestockEvent, chat_id: str) -> dict:
    """sendMessage payload: HTML text plus a button opening the product page."""
    text = (
        f"🔔 <b>Back in stock</b>\n\n"
        f'<a href="{html.escape(event.url, quote=True)}">{html.escape(event.name[:80])}</a>\n'
        f"🏷 {html.escape(event.brand)}\n\n"
        f"{html.escape(event.url)}"
    )
    return {
        "chat_id": chat_id,
        "text": text,
        "parse_mode": "HTML",
        "disable_web_page_preview": True,
        "reply_markup": {"inline_keyboard": [[{"text": "Open product page", "url": event.url}]]},
    }


def send_telegram_alert(event: RestockEvent) -> bool:
    """
    Send restock alert via Telegram Bot API.

    Requires TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID.
    """
    token = os.environ.get("TELEGRAM_BOT_TOKEN")
    chat_id = os.environ.get("TELEGRAM_CHAT_ID")
    if not token or not chat_id:
        logger.warning("Telegram: TELEGRAM_BOT_TOKEN or TELEGRAM_CHAT_ID not set")
        return False

    try:
        resp = requests.post(
            TELEGRAM_API.format(token=token),
            json=format_restock_message(event, chat_id),
            timeout=10,
        )
    except requests.exceptions.RequestException as e:
        logger.error("Telegram request failed: %s", e)
        return False

    if resp.status_code != 200:
        try:
            description = resp.json().get("description")
        except (ValueError, AttributeError):
            description = resp.text
        logger.error("Telegram API error (status %d): %s", resp.status_code, description)
        return False

    logger.info("Telegram: alert sent for %s", event.name[:50])
    return True
