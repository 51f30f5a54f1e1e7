"""Single-product check lifecycle: fetch, classify, persist, detect restocks."""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Protocol

from stockwatch.classifier import classify
from stockwatch.errors import FetchError, ProductNotFound, StorageError, StorageWriteFailure
from stockwatch.models import (
    MAX_EVIDENCE_PHRASES,
    CheckRecord,
    ClassificationResult,
    Confidence,
    StockStatus,
    TrackedProduct,
)

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    def fetch(self, url: str) -> str: ...


class NotificationSink(Protocol):
    def emit_restock(self, product_id: int, name: str, brand: str, url: str) -> None: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_restock(previous: StockStatus | None, current: StockStatus) -> bool:
    """Only an out-of-stock -> in-stock transition counts as a restock."""
    return previous == StockStatus.OUT_OF_STOCK and current == StockStatus.IN_STOCK


class CheckOrchestrator:
    """
    Runs one check of one product.

    Every call ends with the product in a terminal status (in-stock,
    out-of-stock or error) and exactly one CheckRecord appended. Fetch and
    classification problems are recorded as `error`; only storage write
    failures leave this class, after a best-effort move to `error`.
    """

    def __init__(
        self,
        store,
        fetcher: Fetcher,
        notifier: NotificationSink,
        classifier: Callable[[str, str], ClassificationResult] = classify,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.fetcher = fetcher
        self.notifier = notifier
        self.classifier = classifier
        self.clock = clock

    def check_product_by_id(self, product_id: int) -> TrackedProduct:
        product = self.store.get_by_id(product_id)
        if product is None:
            raise ProductNotFound(f"product {product_id} not found")
        return self.check_product(product)

    def check_product(self, product: TrackedProduct) -> TrackedProduct:
        # Baseline comes from the store; the caller may hold a stale sweep snapshot.
        stored = self.store.get_by_id(product.id)
        previous_status = stored.status if stored is not None else product.status
        logger.info("🔍 Checking %s (%s)", product.name, product.url)
        self.store.update(product.id, status=StockStatus.CHECKING)

        try:
            return self._run_check(product, previous_status)
        except StorageWriteFailure:
            self._release_to_error(product)
            raise
        except Exception as e:
            logger.exception("Unexpected error checking %s", product.name)
            return self._record_error(product, e)

    def _run_check(self, product: TrackedProduct, previous_status: StockStatus) -> TrackedProduct:
        try:
            html = self.fetcher.fetch(product.url)
        except FetchError as e:
            logger.warning("❌ Failed to fetch %s: %s", product.name, e)
            return self._record_error(product, e)

        result = self.classifier(html, product.url)
        checked = self._persist(
            product,
            status=result.status,
            confidence=result.confidence,
            evidence=list(result.evidence_phrases),
        )
        logger.info(
            "✅ %s: %s (%s confidence, evidence=%s)",
            product.name, checked.status.value, checked.confidence.value, checked.evidence_phrases,
        )

        if is_restock(previous_status, checked.status):
            try:
                self.notifier.emit_restock(product.id, product.name, product.brand, product.url)
            except Exception:
                logger.exception("Could not emit restock event for %s", product.name)
        return checked

    def _record_error(self, product: TrackedProduct, error: Exception) -> TrackedProduct:
        return self._persist(
            product,
            status=StockStatus.ERROR,
            confidence=None,
            evidence=[f"error: {error}"],
        )

    def _persist(
        self,
        product: TrackedProduct,
        status: StockStatus,
        confidence: Confidence | None,
        evidence: list[str],
    ) -> TrackedProduct:
        checked_at = self.clock()
        evidence = evidence[:MAX_EVIDENCE_PHRASES]
        self.store.update(
            product.id,
            status=status,
            confidence=confidence,
            evidence_phrases=evidence,
            last_checked_at=checked_at,
        )
        self.store.append_check_record(
            CheckRecord(
                product_id=product.id,
                status=status,
                confidence=confidence,
                evidence_phrases=tuple(evidence),
                checked_at=checked_at,
            )
        )
        product.status = status
        product.confidence = confidence
        product.evidence_phrases = evidence
        product.last_checked_at = checked_at
        return product

    def _release_to_error(self, product: TrackedProduct) -> None:
        try:
            self.store.update(product.id, status=StockStatus.ERROR)
        except StorageError as e:
            logger.error("Product %s left as checking, storage unavailable: %s", product.id, e)
