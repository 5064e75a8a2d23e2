"""
Per-file checksum tasks and their outcomes.

Each task computes or re-computes one checksum, increments exactly one
counter bucket, and hands its outcome to the display.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Union

from artsum.core.checksum import (
    DEFAULT_CHUNK_SIZE,
    Checksum,
    ChecksumAlgorithm,
    ChecksumMode,
    compute_checksum,
)
from artsum.core.errors import ChecksumIOError
from artsum.engine.counters import GenerateCounters, VerifyCounters
from artsum.engine.scheduler import TaskScheduler

if TYPE_CHECKING:
    from artsum.engine.display import DisplayManager

logger = logging.getLogger(__name__)

# (path, algorithm, mode, chunk_size) -> Checksum, raising ChecksumIOError
ChecksumProvider = Callable[[Path, ChecksumAlgorithm, ChecksumMode, int], Checksum]


@dataclass(frozen=True)
class GenerateTaskResult:
    """A computed checksum for one file."""

    filepath: str
    checksum: Checksum


@dataclass(frozen=True)
class GenerateTaskError:
    """A file whose checksum could not be computed."""

    filepath: str
    message: str
    error: Exception | None = None


GenerateOutcome = Union[GenerateTaskResult, GenerateTaskError]


class VerifyTaskStatus(str, Enum):
    """Classification of a verified artifact."""

    VALID = "valid"
    INVALID = "invalid"
    MISSING = "missing"

    @property
    def symbol(self) -> str:
        return _STATUS_SYMBOLS[self]


_STATUS_SYMBOLS = {
    VerifyTaskStatus.VALID: "✓",
    VerifyTaskStatus.INVALID: "✗",
    VerifyTaskStatus.MISSING: "?",
}


@dataclass(frozen=True)
class VerifyTaskResult:
    """Outcome of comparing one file with its expected checksum."""

    status: VerifyTaskStatus
    filename: str
    expected: Checksum
    actual: Checksum | None = None


@dataclass(frozen=True)
class VerifyTaskError:
    """A manifest entry whose file could not be read."""

    filepath: str
    message: str
    error: Exception | None = None


VerifyOutcome = Union[VerifyTaskResult, VerifyTaskError]


class GenerateTaskBuilder:
    """Creates checksum tasks for the generate flow."""

    def __init__(
        self,
        scheduler: TaskScheduler,
        counters: GenerateCounters,
        display: DisplayManager,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        provider: ChecksumProvider = compute_checksum,
    ):
        self.scheduler = scheduler
        self.counters = counters
        self.display = display
        self.chunk_size = chunk_size
        self.provider = provider

    def generate_checksum(
        self,
        filepath: Path,
        relative_filepath: str,
        algorithm: ChecksumAlgorithm,
        mode: ChecksumMode,
    ) -> Future[GenerateOutcome]:
        return self.scheduler.submit(
            self._run, filepath, relative_filepath, algorithm, mode
        )

    def _run(
        self,
        filepath: Path,
        relative_filepath: str,
        algorithm: ChecksumAlgorithm,
        mode: ChecksumMode,
    ) -> GenerateOutcome:
        try:
            checksum = self.provider(filepath, algorithm, mode, self.chunk_size)
        except ChecksumIOError as e:
            error = GenerateTaskError(
                filepath=relative_filepath,
                message="Failed to calculate checksum",
                error=e,
            )
            logger.warning("%s: %s (%s)", error.filepath, error.message, e)
            self.counters.error.increment()
            self.display.report_error(error)
            return error

        result = GenerateTaskResult(filepath=relative_filepath, checksum=checksum)
        logger.info("%s %s", checksum, relative_filepath)
        self.counters.success.increment()
        self.display.report_result(result)
        return result


class VerifyTaskBuilder:
    """Creates verification tasks for manifest entries."""

    def __init__(
        self,
        scheduler: TaskScheduler,
        counters: VerifyCounters,
        display: DisplayManager,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        provider: ChecksumProvider = compute_checksum,
    ):
        self.scheduler = scheduler
        self.counters = counters
        self.display = display
        self.chunk_size = chunk_size
        self.provider = provider

    def verify_checksum(
        self,
        base_dirpath: Path,
        filename: str,
        expected: Checksum,
    ) -> Future[VerifyOutcome]:
        return self.scheduler.submit(self._run, Path(base_dirpath) / filename, filename, expected)

    def _run(self, filepath: Path, filename: str, expected: Checksum) -> VerifyOutcome:
        if not os.path.isfile(filepath):
            result = VerifyTaskResult(
                status=VerifyTaskStatus.MISSING, filename=filename, expected=expected
            )
            logger.info("%s %s", result.status.symbol, filename)
            self.counters.missing.increment()
            self.display.report_result(result)
            return result

        # The entry's own algorithm and mode, not a run-wide one
        try:
            actual = self.provider(filepath, expected.algorithm, expected.mode, self.chunk_size)
        except ChecksumIOError as e:
            error = VerifyTaskError(
                filepath=filename,
                message="Failed to calculate checksum",
                error=e,
            )
            logger.warning("%s: %s (%s)", error.filepath, error.message, e)
            self.counters.errored.increment()
            self.display.report_error(error)
            return error

        if actual == expected:
            status = VerifyTaskStatus.VALID
            self.counters.valid.increment()
        else:
            status = VerifyTaskStatus.INVALID
            self.counters.invalid.increment()

        result = VerifyTaskResult(
            status=status, filename=filename, expected=expected, actual=actual
        )
        logger.info("%s %s", status.symbol, filename)
        self.display.report_result(result)
        return result
