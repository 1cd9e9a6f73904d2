"""
Bounded worker pool for clientcast batch jobs.

Fans a fixed list of work items out to ``W`` concurrent workers and collects
every outcome, success or failure, into a single ``BatchResult``.

Architecture:
    - All items are placed in a distribution queue before any worker starts
    - Exactly ``min(W, len(items))`` workers claim items until the queue is empty
    - Blocking operations run in a thread pool of the same size, so remote
      calls really execute in parallel
    - After each item a worker sleeps for the pacing interval, which keeps
      steady-state traffic near ``W`` requests per interval
    - A failing item is logged and recorded; the worker moves on

Outcomes arrive in completion order. Each one carries the item it came from
and that item's identifier.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_PACE_SECONDS = 0.1


@dataclass
class ParallelRunnerConfig:
    """Configuration for parallel runner.

    Attributes:
        max_workers: Number of concurrent workers (W)
        pace_seconds: Pause after each item before claiming the next one
        timeout_per_call: Deadline in seconds for a single operation, or None
        progress_every: Log progress every N completed items (0 disables)
        name: Label used in log lines
    """

    max_workers: int = 10
    pace_seconds: float = DEFAULT_PACE_SECONDS
    timeout_per_call: float | None = None
    progress_every: int = 100
    name: str = "batch"


@dataclass
class RequestResult(Generic[T, R]):
    """Outcome of processing a single work item.

    Attributes:
        item_id: Identifier of the originating item
        item: The work item itself
        result: Value returned by the operation (if successful)
        error: Error message (if failed)
        latency_ms: Time spent in the operation, pacing excluded
        success: Whether processing succeeded
        error_type: Exception class name (if failed)
    """

    item_id: str
    item: T
    result: R | None
    error: str | None
    latency_ms: float
    success: bool
    error_type: str | None = None


@dataclass
class BatchResult(Generic[T, R]):
    """Aggregated, unordered outcome of one batch.

    ``successes`` and ``failures`` are disjoint and together hold exactly one
    outcome per input item.
    """

    successes: list[RequestResult[T, R]] = field(default_factory=list)
    failures: list[RequestResult[T, R]] = field(default_factory=list)
    total_items: int = 0
    total_time_ms: float = 0.0
    avg_latency_ms: float = 0.0
    throughput_rps: float = 0.0
    workers_started: int = 0

    @property
    def success_count(self) -> int:
        return len(self.successes)

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def results(self) -> list[RequestResult[T, R]]:
        return self.successes + self.failures

    @property
    def values(self) -> list[R]:
        """Return values of the successful outcomes."""
        return [r.result for r in self.successes]  # type: ignore[misc]

    @property
    def failed_items(self) -> list[T]:
        return [r.item for r in self.failures]


class ParallelRunner(Generic[T, R]):
    """
    Generic fan-out/fan-in engine with a fixed worker count and pacing delay.

    Example:
        >>> runner = ParallelRunner(fetch_detail, max_workers=50)
        >>> result = await runner.run_batch(client_ids)
        >>> print(f"{result.success_count} ok, {result.failure_count} failed")

    Sync usage:
        >>> result = map_concurrent(client_ids, 50, fetch_detail)

    The operation may be a plain function (run in the thread pool) or a
    coroutine function (awaited on the loop). Raising marks the item as failed.
    """

    def __init__(
        self,
        operation: Callable[[T], R],
        max_workers: int = 10,
        pace_seconds: float = DEFAULT_PACE_SECONDS,
        timeout_per_call: float | None = None,
        item_id: Callable[[T], Any] | None = None,
        progress_every: int = 100,
        name: str = "batch",
    ) -> None:
        """
        Initialize the parallel runner.

        Args:
            operation: Callable mapping one item to one result
            max_workers: Number of concurrent workers, must be >= 1
            pace_seconds: Pause after each item, must be >= 0
            timeout_per_call: Optional deadline for one operation call
            item_id: Optional function extracting an identifier from an item
            progress_every: Log progress every N completed items
            name: Label for log lines
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        if pace_seconds < 0:
            raise ValueError(f"pace_seconds must be >= 0, got {pace_seconds}")
        if timeout_per_call is not None and timeout_per_call <= 0:
            raise ValueError(f"timeout_per_call must be > 0, got {timeout_per_call}")

        self._operation = operation
        self._is_async = inspect.iscoroutinefunction(operation)
        self._item_id = item_id
        self._config = ParallelRunnerConfig(
            max_workers=max_workers,
            pace_seconds=pace_seconds,
            timeout_per_call=timeout_per_call,
            progress_every=progress_every,
            name=name,
        )

        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=f"clientcast_{name}",
        )

        self._processed_count = 0
        self._total_count = 0

        logger.debug(
            "ParallelRunner[%s] initialized: workers=%d, pace=%.3fs, timeout=%s",
            name,
            max_workers,
            pace_seconds,
            timeout_per_call,
        )

    @property
    def config(self) -> ParallelRunnerConfig:
        """Get current configuration."""
        return self._config

    async def run_batch(
        self,
        items: Sequence[T],
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> BatchResult[T, R]:
        """
        Process every item exactly once and return all outcomes.

        Args:
            items: The complete, finite batch of work items
            progress_callback: Optional callback(current, total)

        Returns:
            BatchResult with successes, failures and timing statistics
        """
        items = list(items)
        total = len(items)
        self._processed_count = 0
        self._total_count = total

        if total == 0:
            logger.info("Batch %s: nothing to process", self._config.name)
            return BatchResult()

        workers = min(self._config.max_workers, total)
        logger.info(
            "Batch %s: %d items, %d workers, pace %.3fs",
            self._config.name,
            total,
            workers,
            self._config.pace_seconds,
        )
        start_time = time.monotonic()

        # Sized to the whole batch, so no put ever waits
        pending: asyncio.Queue[tuple[int, T]] = asyncio.Queue(maxsize=total)
        successes: asyncio.Queue[RequestResult[T, R]] = asyncio.Queue(maxsize=total)
        failures: asyncio.Queue[RequestResult[T, R]] = asyncio.Queue(maxsize=total)
        for idx, item in enumerate(items):
            pending.put_nowait((idx, item))

        await asyncio.gather(
            *(
                self._worker(
                    worker_id, pending, successes, failures, progress_callback
                )
                for worker_id in range(workers)
            )
        )

        result: BatchResult[T, R] = BatchResult(
            successes=_drain(successes),
            failures=_drain(failures),
            total_items=total,
            workers_started=workers,
        )
        result.total_time_ms = (time.monotonic() - start_time) * 1000
        if result.successes:
            result.avg_latency_ms = sum(r.latency_ms for r in result.successes) / len(
                result.successes
            )
        if result.total_time_ms > 0:
            result.throughput_rps = total / (result.total_time_ms / 1000)

        logger.info(
            "Batch %s complete: %d/%d success, %d failed, %.1fs total, %.0f ms/call avg",
            self._config.name,
            result.success_count,
            total,
            result.failure_count,
            result.total_time_ms / 1000,
            result.avg_latency_ms,
        )
        return result

    async def _worker(
        self,
        worker_id: int,
        pending: asyncio.Queue[tuple[int, T]],
        successes: asyncio.Queue[RequestResult[T, R]],
        failures: asyncio.Queue[RequestResult[T, R]],
        progress_callback: Callable[[int, int], None] | None,
    ) -> None:
        while True:
            try:
                idx, item = pending.get_nowait()
            except asyncio.QueueEmpty:
                return

            outcome = await self._process_item(worker_id, idx, item)
            if outcome.success:
                successes.put_nowait(outcome)
            else:
                failures.put_nowait(outcome)
            pending.task_done()

            self._processed_count += 1
            every = self._config.progress_every
            if every and self._processed_count % every == 0:
                logger.info(
                    "Batch %s progress: %d/%d (%.1f%%)",
                    self._config.name,
                    self._processed_count,
                    self._total_count,
                    100 * self._processed_count / self._total_count,
                )
            if progress_callback:
                progress_callback(self._processed_count, self._total_count)

            if self._config.pace_seconds:
                await asyncio.sleep(self._config.pace_seconds)

    async def _process_item(self, worker_id: int, idx: int, item: T) -> RequestResult[T, R]:
        item_id = self._describe(item, idx)
        logger.debug("Worker %d processing %s", worker_id, item_id)

        start_time = time.monotonic()
        try:
            value = await self._invoke(item)
        except asyncio.TimeoutError:
            latency_ms = (time.monotonic() - start_time) * 1000
            logger.warning(
                "Worker %d: %s timed out after %.1fs",
                worker_id,
                item_id,
                latency_ms / 1000,
            )
            return RequestResult(
                item_id=item_id,
                item=item,
                result=None,
                error=f"Timeout after {self._config.timeout_per_call}s",
                latency_ms=latency_ms,
                success=False,
                error_type="TimeoutError",
            )
        except Exception as e:
            latency_ms = (time.monotonic() - start_time) * 1000
            logger.error(
                "Worker %d: %s failed: %s",
                worker_id,
                item_id,
                str(e)[:200],
            )
            return RequestResult(
                item_id=item_id,
                item=item,
                result=None,
                error=str(e),
                latency_ms=latency_ms,
                success=False,
                error_type=type(e).__name__,
            )

        return RequestResult(
            item_id=item_id,
            item=item,
            result=value,
            error=None,
            latency_ms=(time.monotonic() - start_time) * 1000,
            success=True,
        )

    async def _invoke(self, item: T) -> R:
        timeout = self._config.timeout_per_call
        if self._is_async:
            return await asyncio.wait_for(self._operation(item), timeout=timeout)  # type: ignore[arg-type]

        loop = asyncio.get_running_loop()
        started = asyncio.Event()

        def call() -> R:
            loop.call_soon_threadsafe(started.set)
            return self._operation(item)

        # A timed-out call keeps its thread until it returns, so the deadline
        # starts once this call holds a thread, not while it waits for one.
        future = loop.run_in_executor(self._executor, call)
        await started.wait()
        return await asyncio.wait_for(future, timeout=timeout)

    def _describe(self, item: T, idx: int) -> str:
        if self._item_id is not None:
            return str(self._item_id(item))
        item_id = getattr(item, "id", None)
        return str(item_id) if item_id is not None else f"item_{idx}"

    def shutdown(self) -> None:
        """Shutdown the thread pool executor."""
        self._executor.shutdown(wait=True)
        logger.debug("ParallelRunner[%s] shutdown complete", self._config.name)

    async def __aenter__(self) -> "ParallelRunner[T, R]":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.shutdown()


def _drain(queue: asyncio.Queue) -> list:
    drained = []
    while not queue.empty():
        drained.append(queue.get_nowait())
    return drained


def estimate_duration(
    item_count: int,
    workers: int,
    latency_seconds: float,
    pace_seconds: float = DEFAULT_PACE_SECONDS,
) -> float:
    """Worst-case wall time for uniform per-item cost."""
    if item_count <= 0:
        return 0.0
    return math.ceil(item_count / max(1, workers)) * (latency_seconds + pace_seconds)


def run_batch_sync(
    items: Sequence[T],
    operation: Callable[[T], R],
    max_workers: int = 10,
    pace_seconds: float = DEFAULT_PACE_SECONDS,
    timeout_per_call: float | None = None,
    item_id: Callable[[T], Any] | None = None,
    name: str = "batch",
    progress_callback: Callable[[int, int], None] | None = None,
) -> BatchResult[T, R]:
    """
    Synchronous wrapper for batch processing.

    Runs its own event loop, so it must not be called from a running loop.

    Example:
        >>> from clientcast.parallel import run_batch_sync
        >>> result = run_batch_sync(clients, fetch_detail, max_workers=300)
    """

    async def _run() -> BatchResult[T, R]:
        async with ParallelRunner(
            operation,
            max_workers=max_workers,
            pace_seconds=pace_seconds,
            timeout_per_call=timeout_per_call,
            item_id=item_id,
            name=name,
        ) as runner:
            return await runner.run_batch(items, progress_callback=progress_callback)

    return asyncio.run(_run())


def map_concurrent(
    items: Sequence[T],
    workers: int,
    op: Callable[[T], R],
    pace: float = DEFAULT_PACE_SECONDS,
    **kwargs: Any,
) -> BatchResult[T, R]:
    """Bounded-parallelism map: ``(items, W, op, pace) -> BatchResult``."""
    return run_batch_sync(
        items, op, max_workers=workers, pace_seconds=pace, **kwargs
    )
