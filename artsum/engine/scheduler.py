"""
Bounded-concurrency task scheduler.

A counting permit pool caps how many file tasks touch the filesystem at
once. Tasks run independently and may finish in any order.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Iterable, Iterator, TypeVar

from artsum.core.errors import TaskJoinError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TaskScheduler:
    """
    Thread-pooled executor guarded by a permit pool.

    A task acquires a permit before running and releases it when it
    finishes, whether it returned or raised, so no more than
    ``max_workers`` tasks are ever in flight.

    Example:
        >>> with TaskScheduler(max_workers=4) as scheduler:
        ...     futures = [scheduler.submit(hash_file, p) for p in paths]
        ...     results = list(scheduler.join(futures))
    """

    def __init__(self, max_workers: int):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")

        self.max_workers = max_workers
        self._permits = threading.BoundedSemaphore(max_workers)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="artsum-worker"
        )
        self._lock = threading.Lock()
        self._in_flight = 0
        self._peak = 0

    @property
    def in_flight(self) -> int:
        """Number of tasks currently holding a permit."""
        with self._lock:
            return self._in_flight

    @property
    def peak(self) -> int:
        """Highest number of tasks that held permits at the same time."""
        with self._lock:
            return self._peak

    def _run(self, func: Callable[..., T], args: tuple[Any, ...], kwargs: dict[str, Any]) -> T:
        with self._permits:
            with self._lock:
                self._in_flight += 1
                self._peak = max(self._peak, self._in_flight)
            try:
                return func(*args, **kwargs)
            finally:
                with self._lock:
                    self._in_flight -= 1

    def submit(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> Future[T]:
        """Schedule a task; it waits for a permit before running."""
        return self._executor.submit(self._run, func, args, kwargs)

    def join(self, futures: Iterable[Future[T]]) -> Iterator[T]:
        """
        Wait for tasks in submission order and yield their results.

        Raises:
            TaskJoinError: If a task raised instead of returning an outcome.
        """
        for future in futures:
            try:
                yield future.result()
            except Exception as e:
                logger.debug("Task failed", exc_info=True)
                raise TaskJoinError(f"{type(e).__name__}: {e}", e) from e

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=not wait)

    def __enter__(self) -> TaskScheduler:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown(wait=exc_type is None)
