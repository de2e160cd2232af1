"""Work dispatcher: a keyed, deduplicating, delay-aware work queue.

The dispatcher guarantees that a descriptor key is processed by at most one
worker at a time. A key enqueued while it is being processed is marked
dirty and processed again once the running step finishes. Keys enqueued
while already queued are collapsed into a single entry.

Delayed requeues keep only the earliest pending time per key.
"""

from __future__ import annotations

import contextvars
import heapq
import itertools
import logging
import threading
import time
from collections import deque
from typing import Callable

from . import metrics
from .config import EngineTimings
from .engine import ReconciliationEngine
from .models import ResourceKey
from .results import ReconcileResult
from .utils.rate_limit import exponential_backoff

logger = logging.getLogger(__name__)


class WorkDispatcher:
    """Runs reconcile steps on a fixed pool of worker threads."""

    def __init__(
        self,
        engine: ReconciliationEngine,
        workers: int = 4,
        timings: EngineTimings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.engine = engine
        self.workers = workers
        self.timings = timings or engine.timings
        self.clock = clock

        self._cond = threading.Condition()
        self._queue: deque[ResourceKey] = deque()
        self._dirty: set[ResourceKey] = set()
        self._processing: set[ResourceKey] = set()
        self._delayed: list[tuple[float, int, ResourceKey]] = []
        self._waiting: dict[ResourceKey, float] = {}
        self._failures: dict[ResourceKey, int] = {}
        self._sequence = itertools.count()
        self._threads: list[threading.Thread] = []
        self._shutdown = False

    @property
    def is_running(self) -> bool:
        return bool(self._threads) and not self._shutdown

    def failures(self, key: ResourceKey) -> int:
        """Consecutive backoff retries recorded for a key."""
        with self._cond:
            return self._failures.get(key, 0)

    def pending(self) -> int:
        """Keys queued for immediate processing."""
        with self._cond:
            return len(self._queue)

    def enqueue(self, key: ResourceKey) -> None:
        """Schedule a key for processing as soon as a worker is free."""
        with self._cond:
            self._add(key)

    def enqueue_after(self, key: ResourceKey, delay: float) -> None:
        """Schedule a key for processing after ``delay`` seconds."""
        if delay <= 0:
            self.enqueue(key)
            return
        with self._cond:
            if self._shutdown:
                return
            ready_at = self.clock() + delay
            current = self._waiting.get(key)
            if current is not None and current <= ready_at:
                return
            self._waiting[key] = ready_at
            heapq.heappush(self._delayed, (ready_at, next(self._sequence), key))
            self._update_depth()
            self._cond.notify()

    def start(self) -> None:
        """Start the worker threads.

        Each worker runs in its own copy of the caller's context, so context
        set up by the caller (such as kopf's event posting queue) is visible
        to reconcile steps.
        """
        if self._threads:
            return
        self._shutdown = False
        for index in range(self.workers):
            context = contextvars.copy_context()
            thread = threading.Thread(
                target=context.run,
                args=(self._worker,),
                name=f"aiven-worker-{index}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)
        logger.info(f"Started {self.workers} reconcile workers")

    def stop(self, timeout: float | None = 10.0) -> None:
        """Stop accepting work and wait for running steps to finish."""
        with self._cond:
            self._shutdown = True
            self._cond.notify_all()
        for thread in self._threads:
            thread.join(timeout)
        self._threads = []
        logger.info("Reconcile workers stopped")

    def _add(self, key: ResourceKey) -> None:
        if self._shutdown or key in self._dirty:
            return
        self._dirty.add(key)
        if key in self._processing:
            # Picked up again by _done() when the running step finishes
            return
        self._queue.append(key)
        self._update_depth()
        self._cond.notify()

    def _promote_due(self) -> float | None:
        """Move due delayed keys to the queue, returning seconds until the next one."""
        now = self.clock()
        while self._delayed:
            ready_at, _, key = self._delayed[0]
            if self._waiting.get(key) != ready_at:
                heapq.heappop(self._delayed)
                continue
            if ready_at > now:
                return ready_at - now
            heapq.heappop(self._delayed)
            del self._waiting[key]
            self._add(key)
        return None

    def _get(self) -> ResourceKey | None:
        with self._cond:
            while True:
                wait = self._promote_due()
                if self._queue:
                    key = self._queue.popleft()
                    self._dirty.discard(key)
                    self._processing.add(key)
                    self._update_depth()
                    return key
                if self._shutdown:
                    return None
                self._cond.wait(wait)

    def _done(self, key: ResourceKey) -> None:
        with self._cond:
            self._processing.discard(key)
            if key in self._dirty:
                self._queue.append(key)
                self._update_depth()
                self._cond.notify()

    def _worker(self) -> None:
        while True:
            key = self._get()
            if key is None:
                return
            try:
                self.process(key)
            finally:
                self._done(key)

    def process(self, key: ResourceKey) -> ReconcileResult:
        """Run one reconcile step for a key and schedule its follow-up."""
        attempt = self.failures(key)
        deadline = self.clock() + self.timings.reconcile_timeout
        try:
            result = self.engine.reconcile(key, attempt=attempt, deadline=deadline)
        except Exception:
            logger.exception(f"Reconcile of {key} raised")
            delay = exponential_backoff(attempt, self.timings.backoff_base, self.timings.backoff_max)
            result = ReconcileResult.retry(delay, "engine_error", backoff=True)

        with self._cond:
            if result.is_retry and result.backoff:
                self._failures[key] = attempt + 1
            elif not result.is_retry:
                self._failures.pop(key, None)

        if result.is_failed:
            logger.warning(f"{key} failed permanently, waiting for the next change: {result.reason}")
        elif result.requeue_after is not None:
            if result.is_retry:
                metrics.requeue_total.labels(kind=key.kind, reason=result.reason or "retry").inc()
            self.enqueue_after(key, result.requeue_after)
        return result

    def _update_depth(self) -> None:
        metrics.queue_depth.set(len(self._queue) + len(self._waiting))
