"""
Shared outcome counters.

Tasks increment buckets from worker threads while the progress ticker
reads them from its own thread.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass


class Counter:
    """Integer with atomic increment and read."""

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def increment(self, amount: int = 1) -> int:
        with self._lock:
            self._value += amount
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


@dataclass(frozen=True)
class GenerateProgress:
    """Snapshot of generate counters."""

    success: int
    error: int

    @property
    def total(self) -> int:
        return self.success + self.error


@dataclass(frozen=True)
class VerifyProgress:
    """Snapshot of verify counters."""

    valid: int
    invalid: int
    missing: int
    errored: int
    expected: int = 0

    @property
    def total(self) -> int:
        return self.valid + self.invalid + self.missing + self.errored


class GenerateCounters:
    def __init__(self) -> None:
        self.success = Counter()
        self.error = Counter()

    def snapshot(self) -> GenerateProgress:
        return GenerateProgress(success=self.success.value, error=self.error.value)


class VerifyCounters:
    def __init__(self, expected: int = 0) -> None:
        self.valid = Counter()
        self.invalid = Counter()
        self.missing = Counter()
        self.errored = Counter()
        self.expected = expected

    def snapshot(self) -> VerifyProgress:
        return VerifyProgress(
            valid=self.valid.value,
            invalid=self.invalid.value,
            missing=self.missing.value,
            errored=self.errored.value,
            expected=self.expected,
        )
