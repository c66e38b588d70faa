from __future__ import annotations

import asyncio
import logging
import time
import uuid
from datetime import datetime

from campus_queue.core.cache import cache_manager
from campus_queue.core.change_feed import change_feed
from campus_queue.core.config import get_settings
from campus_queue.core.db import session_scope
from campus_queue.core.locking import make_lock
from campus_queue.core.observability import correlation_context
from campus_queue.services import QueueService

logger = logging.getLogger("campus_queue.sweeper")


class UnresponsiveEntrySweeper:
    """Removes called entries whose students never showed up.

    Runs inside the web process as an asyncio task, or standalone through
    ``scripts/run_sweeper.py``. A shared lock keeps concurrent processes from
    sweeping at the same moment.

    The change feed lives in the web process, so DELETE events from a
    standalone sweeper reach no WebSocket subscriber. Clients that need them
    should rely on the in-process task.
    """

    LOCK_NAME = "campus_queue:sweep:unresponsive"
    LOCK_TTL_SECONDS = 30
    LOCK_WAIT_SECONDS = 0
    METRICS_LOG_INTERVAL_SECONDS = 600

    def __init__(self, *, worker_id: str | None = None, interval_seconds: int | None = None):
        settings = get_settings()
        self.worker_id = worker_id or f"sweeper-{uuid.uuid4().hex[:8]}"
        self.interval_seconds = interval_seconds or settings.SWEEP_INTERVAL_SECONDS
        self._metrics: dict[str, int] = {
            "iterations": 0,
            "removed": 0,
            "lock_busy": 0,
            "failures": 0,
        }
        self._last_metrics_log = time.monotonic()

    @property
    def metrics(self) -> dict[str, int]:
        return dict(self._metrics)

    def run_once(self, *, now: datetime | None = None) -> int:
        self._inc_metric("iterations")
        lock = make_lock(
            self.LOCK_NAME,
            redis_client=cache_manager.redis_client(),
            ttl_seconds=self.LOCK_TTL_SECONDS,
            wait_timeout=self.LOCK_WAIT_SECONDS,
            log=logger,
        )
        with lock.hold() as acquired:
            if not acquired:
                self._inc_metric("lock_busy")
                return 0
            with correlation_context(prefix="sweep"), session_scope() as session:
                removed = QueueService(session).sweep_unresponsive(now=now)
        if removed:
            self._inc_metric("removed", removed)
            logger.info("sweep_removed_entries", extra={"worker_id": self.worker_id, "count": removed})
        return removed

    def _safe_run_once(self) -> int:
        try:
            return self.run_once()
        except Exception:
            self._inc_metric("failures")
            logger.exception("sweep_failed", extra={"worker_id": self.worker_id})
            return 0

    def run_forever(self) -> None:
        logger.info("sweeper_started", extra={"worker_id": self.worker_id, "interval": self.interval_seconds})
        if not change_feed.is_bound:
            logger.warning("sweeper_change_feed_unbound", extra={"worker_id": self.worker_id})
        while True:
            self._safe_run_once()
            self._log_metrics_if_due()
            time.sleep(self.interval_seconds)

    async def run_periodically(self, stop_event: asyncio.Event) -> None:
        logger.info("sweeper_task_started", extra={"worker_id": self.worker_id, "interval": self.interval_seconds})
        while not stop_event.is_set():
            await asyncio.to_thread(self._safe_run_once)
            self._log_metrics_if_due()
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                continue
        logger.info("sweeper_task_stopped", extra={"worker_id": self.worker_id})

    def _inc_metric(self, key: str, amount: int = 1) -> None:
        self._metrics[key] = self._metrics.get(key, 0) + amount

    def _log_metrics_if_due(self) -> None:
        now = time.monotonic()
        if now - self._last_metrics_log < self.METRICS_LOG_INTERVAL_SECONDS:
            return
        self._last_metrics_log = now
        logger.info("sweeper_metrics", extra={"worker_id": self.worker_id, **self._metrics})
