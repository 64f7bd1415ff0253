"""Periodic batching in front of a table sink.

`PeriodicBatcher` buffers events in memory and hands them to an `IBatchSink`
in batches of at most `batch_posting_limit` events:

- every `period`, or sooner once a full batch is waiting
- once more on `aclose()`, draining whatever is left

Events below `minimum_level` never enter the queue.

A failed flush keeps its batch and retries it on later cycles with an
exponential back-off (capped at 10 × period). After `failure_limit`
consecutive failures the batch is dropped. Flushes never overlap.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from datetime import timedelta

from logsink.constants import DEFAULT_BATCH_POSTING_LIMIT, DEFAULT_FAILURE_LIMIT, DEFAULT_PERIOD
from logsink.core.interfaces import IBatchSink
from logsink.core.models import LogEvent, LogEventLevel

logger = logging.getLogger(__name__)

MAX_BACKOFF_FACTOR = 10


@dataclass(kw_only=True)
class BatcherStats:
    """Counters updated by the batcher as events flow through it."""

    received: int = 0
    filtered: int = 0
    written: int = 0
    dropped: int = 0
    batches: int = 0
    failed_flushes: int = 0


class PeriodicBatcher:
    def __init__(
        self,
        sink: IBatchSink,
        *,
        batch_posting_limit: int = DEFAULT_BATCH_POSTING_LIMIT,
        period: timedelta = DEFAULT_PERIOD,
        queue_limit: int | None = None,
        failure_limit: int = DEFAULT_FAILURE_LIMIT,
        minimum_level: LogEventLevel = LogEventLevel.Verbose,
    ) -> None:
        if batch_posting_limit <= 0:
            raise ValueError("batch_posting_limit must be positive")
        if period <= timedelta(0):
            raise ValueError("period must be positive")

        self.sink = sink
        self.batch_posting_limit = batch_posting_limit
        self.period = period
        self.queue_limit = queue_limit
        self.failure_limit = failure_limit
        self.minimum_level = minimum_level
        self.stats = BatcherStats()

        self._queue: deque[LogEvent] = deque()
        self._pending: list[LogEvent] = []  # batch being written (or retried)
        self._failures = 0
        self._wake = asyncio.Event()
        self._flush_lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None
        self._closing = False
        self._closed = False

    # ---------- producer side ----------

    def emit(self, event: LogEvent) -> bool:
        """Buffer one event. Returns False when it was not buffered.

        Events below `minimum_level` are skipped (counted as `filtered`);
        events arriving at a full queue are dropped.
        """
        if self._closing:
            raise RuntimeError("batcher is closed")
        if event.level < self.minimum_level:
            self.stats.filtered += 1
            return False

        if self.queue_limit is not None and len(self._queue) >= self.queue_limit:
            self.stats.dropped += 1
            logger.warning("queue limit %d reached, dropping event", self.queue_limit)
            return False

        self._queue.append(event)
        self.stats.received += 1
        if len(self._queue) >= self.batch_posting_limit and self._failures == 0:
            self._wake.set()
        return True

    @property
    def buffered(self) -> int:
        return len(self._queue) + len(self._pending)

    # ---------- lifecycle ----------

    async def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run())

    async def aclose(self) -> None:
        """Stop the background loop and flush everything still buffered."""
        if self._closed:
            return
        self._closing = True
        self._wake.set()
        if self._task is not None:
            await self._task

        if not await self.flush():
            lost = self.buffered
            self._pending = []
            self._queue.clear()
            self.stats.dropped += lost
            logger.warning("dropping %d buffered events on shutdown after a failed flush", lost)
        self._closed = True

    async def __aenter__(self) -> PeriodicBatcher:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ---------- flushing ----------

    def _interval_s(self) -> float:
        factor = min(2 ** self._failures, MAX_BACKOFF_FACTOR)
        return self.period.total_seconds() * factor

    async def _run(self) -> None:
        while not self._closing:
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=self._interval_s())
            except asyncio.TimeoutError:
                pass
            self._wake.clear()
            if self._closing:
                break

            ok = await self._flush_batch()
            while ok and len(self._queue) >= self.batch_posting_limit:
                ok = await self._flush_batch()

    async def _flush_batch(self) -> bool:
        """Write one batch. Returns False when the sink raised."""
        async with self._flush_lock:
            if not self._pending:
                n = min(self.batch_posting_limit, len(self._queue))
                self._pending = [self._queue.popleft() for _ in range(n)]
            if not self._pending:
                return True

            try:
                await self.sink.emit_batch_async(self._pending)
            except Exception:
                self._failures += 1
                self.stats.failed_flushes += 1
                logger.exception(
                    "failed to emit a batch of %d events (attempt %d)",
                    len(self._pending),
                    self._failures,
                )
                if self._failures >= self.failure_limit:
                    logger.warning(
                        "dropping batch of %d events after %d failed attempts",
                        len(self._pending),
                        self._failures,
                    )
                    self.stats.dropped += len(self._pending)
                    self._pending = []
                    self._failures = 0
                return False

            self.stats.written += len(self._pending)
            self.stats.batches += 1
            self._pending = []
            self._failures = 0
            return True

    async def flush(self) -> bool:
        """Write everything buffered now; stops at the first failed batch."""
        while self._pending or self._queue:
            if not await self._flush_batch():
                return False
        return True
