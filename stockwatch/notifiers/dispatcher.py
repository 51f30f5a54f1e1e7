"""Fire-and-forget fan-out of restock events to notification backends."""

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor

from stockwatch.models import RestockEvent
from stockwatch.notifiers.email import send_email_alert
from stockwatch.notifiers.telegram import send_telegram_alert

logger = logging.getLogger(__name__)

Backend = Callable[[RestockEvent], bool]

DEFAULT_BACKENDS: tuple[Backend, ...] = (send_email_alert, send_telegram_alert)


class RestockNotifier:
    """
    Delivers restock alerts on a background worker.

    emit_restock() returns as soon as the event is queued; delivery results
    are only logged. There is no retry.
    """

    def __init__(self, backends: Sequence[Backend] = DEFAULT_BACKENDS):
        self.backends = list(backends)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="notify")

    def emit_restock(self, product_id: int, name: str, brand: str, url: str) -> None:
        event = RestockEvent(product_id=product_id, name=name, brand=brand, url=url)
        logger.info("🎉 RESTOCK: %s from %s is back in stock", name, brand)
        self._executor.submit(self._deliver, event)

    def _deliver(self, event: RestockEvent) -> None:
        for backend in self.backends:
            name = getattr(backend, "__name__", repr(backend))
            try:
                sent = backend(event)
            except Exception:
                logger.exception("Notifier %s crashed for product %s", name, event.product_id)
                continue
            if not sent:
                logger.warning("Notifier %s did not deliver alert for product %s", name, event.product_id)

    def close(self, wait: bool = True) -> None:
        """Stop accepting events; by default wait for queued deliveries."""
        self._executor.shutdown(wait=wait)
