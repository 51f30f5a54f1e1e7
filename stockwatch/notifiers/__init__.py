"""Notification backends."""

from stockwatch.notifiers.dispatcher import RestockNotifier
from stockwatch.notifiers.email import send_email_alert
from stockwatch.notifiers.telegram import send_telegram_alert

__all__ = ["RestockNotifier", "send_email_alert", "send_telegram_alert"]
