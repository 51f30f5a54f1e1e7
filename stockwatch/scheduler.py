"""Periodic and on-demand sweeps over every tracked product."""

import logging
import threading
import time
from collections.abc import Callable
from contextlib import contextmanager
from datetime import datetime, timedelta

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from stockwatch.errors import StorageError
from stockwatch.models import SweepSummary

logger = logging.getLogger(__name__)


class BatchScheduler:
    """
    Checks all products one by one, at most one sweep at a time.

    A sweep requested while another is running is dropped, not queued.
    Consecutive checks are separated by pacing_seconds to keep the request
    rate towards retailer sites low.
    """

    def __init__(
        self,
        store,
        checker,
        interval_minutes: float = 30,
        pacing_seconds: float = 3.0,
        warmup_seconds: float = 10.0,
        scheduler=None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.checker = checker
        self.interval_minutes = interval_minutes
        self.pacing_seconds = pacing_seconds
        self.warmup_seconds = warmup_seconds
        self._scheduler = scheduler
        self._sleep = sleep
        self._lock = threading.Lock()
        self._sweeping = False

    @property
    def scheduler(self):
        """APScheduler instance, created on first use so one-off sweeps never build one."""
        if self._scheduler is None:
            self._scheduler = BackgroundScheduler()
        return self._scheduler

    @property
    def is_sweeping(self) -> bool:
        with self._lock:
            return self._sweeping

    @contextmanager
    def _sweep_slot(self):
        """Yield True if this caller owns the sweep flag, False if it is taken."""
        with self._lock:
            acquired = not self._sweeping
            self._sweeping = True
        try:
            yield acquired
        finally:
            if acquired:
                with self._lock:
                    self._sweeping = False

    def run_sweep(self) -> SweepSummary | None:
        """Check every product once. Returns None if a sweep was already running."""
        with self._sweep_slot() as acquired:
            if not acquired:
                logger.info("🔄 Sweep already in progress, skipping")
                return None
            return self._sweep()

    def _sweep(self) -> SweepSummary:
        summary = SweepSummary()
        try:
            products = self.store.get_all()
        except StorageError:
            logger.exception("❌ Could not load products, sweep aborted")
            summary.aborted = True
            return summary

        summary.total = len(products)
        logger.info("🔍 Starting sweep of %d products", summary.total)
        for i, product in enumerate(products):
            logger.info("Checking %d/%d: %s", i + 1, summary.total, product.name)
            try:
                checked = self.checker.check_product(product)
            except Exception:
                logger.exception("Check failed for %s (id=%s)", product.name, product.id)
                summary.failed_ids.append(product.id)
            else:
                summary.record(checked.status)

            if i < summary.total - 1:
                self._sleep(self.pacing_seconds)

        logger.info(
            "✅ Sweep finished: %d in stock, %d out of stock, %d errors, %d failed",
            summary.in_stock, summary.out_of_stock, summary.errors, len(summary.failed_ids),
        )
        return summary

    def start(self) -> None:
        """Schedule the warm-up sweep and the periodic sweeps, then start the scheduler."""
        self.scheduler.add_job(
            self.run_sweep,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id="stock_sweep",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=300,
            replace_existing=True,
        )
        self.scheduler.add_job(
            self.run_sweep,
            trigger=DateTrigger(run_date=datetime.now() + timedelta(seconds=self.warmup_seconds)),
            id="warmup_sweep",
            replace_existing=True,
        )
        logger.info(
            "⏰ Sweeps every %s min, first one in %.0f s",
            self.interval_minutes, self.warmup_seconds,
        )
        self.scheduler.start()

    def request_sweep(self) -> None:
        """Queue an immediate sweep on the scheduler's worker pool."""
        self.scheduler.add_job(self.run_sweep, id="manual_sweep", replace_existing=True)

    def stop(self) -> None:
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("⏹️ Stopped periodic checking")
