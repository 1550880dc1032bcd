from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Iterable, Optional, TypeVar

from .logging_utils import _scraper_event

T = TypeVar("T")
Worker = Callable[[T], Awaitable[Any]]


class ConcurrencyLimiter:
    """
    Fixed-size asyncio worker pool.

    - At most ``limit`` jobs are in flight; the next queued item starts as soon
      as any job finishes.
    - Workers are expected to handle their own failures. Anything that still
      escapes is logged and counted, and the batch carries on.
    - Completion order is not submission order.
    """

    def __init__(self, limit: int, *, label: str = "batch") -> None:
        self._limit = max(1, int(limit))
        self._label = label
        self._in_flight = 0
        self._peak_in_flight = 0
        self._completed = 0
        self._failed = 0

    async def run(self, items: Iterable[T], worker: Worker) -> None:
        queue: asyncio.Queue = asyncio.Queue()
        for item in items:
            queue.put_nowait(item)

        pool_size = min(self._limit, queue.qsize())
        if pool_size == 0:
            return

        async def _drain() -> None:
            while True:
                try:
                    item = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                self._in_flight += 1
                self._peak_in_flight = max(self._peak_in_flight, self._in_flight)
                try:
                    await worker(item)
                except Exception as exc:  # noqa: BLE001
                    self._failed += 1
                    _scraper_event(
                        "error",
                        phase="scheduler",
                        batch=self._label,
                        kind="worker_escaped",
                        item=item,
                        error=f"{type(exc).__name__}: {exc}",
                    )
                finally:
                    self._in_flight -= 1
                    self._completed += 1

        await asyncio.gather(*(_drain() for _ in range(pool_size)))
        _scraper_event(
            "state",
            phase="scheduler",
            batch=self._label,
            kind="summary",
            completed=self._completed,
            failed=self._failed,
            peak_in_flight=self._peak_in_flight,
            limit=self._limit,
        )

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def peak_in_flight(self) -> int:
        return self._peak_in_flight

    @property
    def completed(self) -> int:
        return self._completed

    @property
    def failed(self) -> int:
        return self._failed


async def run_limited(
    items: Iterable[T],
    worker: Worker,
    limit: int,
    *,
    label: str = "batch",
    limiter: Optional[ConcurrencyLimiter] = None,
) -> ConcurrencyLimiter:
    """Run ``worker(item)`` for every item with at most ``limit`` in flight."""

    limiter = limiter or ConcurrencyLimiter(limit, label=label)
    await limiter.run(items, worker)
    return limiter


__all__ = ["ConcurrencyLimiter", "run_limited"]
