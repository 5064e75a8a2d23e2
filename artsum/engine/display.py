"""
Single-consumer display for concurrent runs.

Producers (tasks, the progress ticker, the orchestrator) put typed
messages on one bounded queue; a single thread renders them, so output
lines never interleave. A full queue blocks producers until the
renderer catches up. On a terminal the running tally is a transient
live line that is cleared before the final tally prints.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from rich.console import Console
from rich.live import Live
from rich.text import Text

from artsum.engine.counters import (
    GenerateCounters,
    GenerateProgress,
    VerifyCounters,
    VerifyProgress,
)
from artsum.engine.tasks import (
    GenerateTaskError,
    GenerateTaskResult,
    VerifyTaskError,
    VerifyTaskResult,
    VerifyTaskStatus,
)

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL_SECONDS = 0.01


@dataclass(frozen=True)
class StartMessage:
    action: str
    format: str
    filepath: Path


@dataclass(frozen=True)
class WarningMessage:
    text: str


@dataclass(frozen=True)
class ResultMessage:
    result: GenerateTaskResult | VerifyTaskResult


@dataclass(frozen=True)
class ErrorMessage:
    error: GenerateTaskError | VerifyTaskError


@dataclass(frozen=True)
class ProgressMessage:
    progress: GenerateProgress | VerifyProgress
    final: bool = False


@dataclass(frozen=True)
class ExitMessage:
    ack: threading.Event = field(default_factory=threading.Event)


DisplayMessage = Union[
    StartMessage, WarningMessage, ResultMessage, ErrorMessage, ProgressMessage, ExitMessage
]


def verify_buffer_size(max_workers: int) -> int:
    """Queue capacity for verify runs."""
    return max(1024, max_workers * 8 + max(0, max_workers - 4) * 4)


def generate_buffer_size(max_workers: int) -> int:
    """Queue capacity for generate runs."""
    return max(1, max_workers * 4)


def render_generate_result(result: GenerateTaskResult) -> Text:
    return Text(f"{result.checksum} {result.filepath}", style="dim")


def render_verify_result(result: VerifyTaskResult) -> Text:
    label = f"{result.status.symbol} {result.filename}"
    if result.status is VerifyTaskStatus.VALID:
        return Text.assemble((label, "green"), " ", (f"({result.expected})", "dim"))
    if result.status is VerifyTaskStatus.INVALID:
        return Text.assemble(
            (label, "bold red"),
            " ",
            ("(", "dim"),
            (str(result.actual), "red"),
            (f" != {result.expected})", "dim"),
        )
    return Text(label, style="yellow")


def render_error(error: GenerateTaskError | VerifyTaskError) -> Text:
    text = Text.assemble((error.filepath, "dim"), ": ", (error.message, "red"))
    if error.error is not None:
        text.append(f" ({error.error})", style="red")
    return text


def render_progress(progress: GenerateProgress | VerifyProgress) -> Text:
    if isinstance(progress, GenerateProgress):
        text = Text(f"{progress.success} added", style="green")
        if progress.error > 0:
            text.append(f" {progress.error} errors", style="red")
        return text

    text = Text(f"{progress.valid} valid", style="green")
    if progress.invalid > 0:
        text.append(f" {progress.invalid} invalid", style="red")
    if progress.missing > 0:
        text.append(f" {progress.missing} missing", style="yellow")
    if progress.errored > 0:
        text.append(f" {progress.errored} errors", style="red")
    if progress.expected:
        text.append(f" ({progress.total}/{progress.expected})", style="dim")
    return text


class DisplayManager:
    """
    Renders run output from a single consumer thread.

    Success lines are shown only at verbosity >= 1; mismatches, missing
    files and errors are always shown unless the display is disabled.
    A final tally line is always printed.
    """

    def __init__(
        self,
        buffer_size: int,
        counters: GenerateCounters | VerifyCounters,
        verbosity: int = 0,
        disabled: bool = False,
        console: Console | None = None,
        interval: float = PROGRESS_INTERVAL_SECONDS,
    ):
        """
        Initialize the display and start its consumer thread.

        Args:
            buffer_size: Queue capacity before producers block.
            counters: Counters polled by the progress ticker.
            verbosity: Output verbosity level.
            disabled: Render nothing (e.g. in debug mode).
            console: Console to render to.
            interval: Progress ticker poll interval in seconds.
        """
        self.counters = counters
        self.verbosity = verbosity
        self.disabled = disabled
        self.interval = interval
        self.console = console or Console(highlight=False, soft_wrap=True)

        self._queue: queue.Queue[DisplayMessage] = queue.Queue(maxsize=max(1, buffer_size))
        self._closed = threading.Event()
        self._stop_progress = threading.Event()
        self._progress_thread: threading.Thread | None = None
        self._last_progress_total = 0
        self._display_thread: threading.Thread | None = None

        if not disabled:
            self._display_thread = threading.Thread(
                target=self._display_worker, name="artsum-display", daemon=True
            )
            self._display_thread.start()

    def _send(self, message: DisplayMessage) -> None:
        if self.disabled:
            return
        # Blocks while the queue is full, unless the display has shut down
        while not self._closed.is_set():
            try:
                self._queue.put(message, timeout=0.1)
                return
            except queue.Full:
                continue

    def _display_worker(self) -> None:
        # Owned by this thread only; draws the transient progress line
        live = Live(
            console=self.console,
            transient=True,
            auto_refresh=False,
            redirect_stdout=False,
            redirect_stderr=False,
        )
        try:
            while True:
                message = self._queue.get()
                if isinstance(message, ExitMessage):
                    break
                try:
                    self._render(message, live)
                except Exception:
                    logger.exception("Failed to render %s", type(message).__name__)
        finally:
            live.stop()
            self._closed.set()
        message.ack.set()

    def _render(self, message: DisplayMessage, live: Live) -> None:
        if isinstance(message, StartMessage):
            live.console.print(
                Text(f"{message.action} {message.filepath} ({message.format})")
            )
        elif isinstance(message, WarningMessage):
            live.console.print(Text(message.text, style="yellow"))
        elif isinstance(message, ResultMessage):
            if isinstance(message.result, GenerateTaskResult):
                live.console.print(render_generate_result(message.result))
            else:
                live.console.print(render_verify_result(message.result))
        elif isinstance(message, ErrorMessage):
            live.console.print(render_error(message.error))
        elif isinstance(message, ProgressMessage):
            if message.final:
                live.stop()
                live.console.print(render_progress(message.progress))
            else:
                live.start()
                live.update(render_progress(message.progress), refresh=True)

    def report_start(self, action: str, format: str, filepath: Path) -> None:
        self._send(StartMessage(action=action, format=str(format), filepath=Path(filepath)))

    def report_warning(self, text: str) -> None:
        self._send(WarningMessage(text=text))

    def report_result(self, result: GenerateTaskResult | VerifyTaskResult) -> None:
        is_success = isinstance(result, GenerateTaskResult) or (
            result.status is VerifyTaskStatus.VALID
        )
        if is_success and self.verbosity < 1:
            return
        self._send(ResultMessage(result=result))

    def report_error(self, error: GenerateTaskError | VerifyTaskError) -> None:
        self._send(ErrorMessage(error=error))

    def report_progress(self, final: bool = False) -> None:
        snapshot = self.counters.snapshot()
        self._last_progress_total = snapshot.total
        self._send(ProgressMessage(progress=snapshot, final=final))

    def poll_progress(self) -> bool:
        """Send a progress snapshot if the total changed since the last one."""
        snapshot = self.counters.snapshot()
        if snapshot.total == self._last_progress_total:
            return False
        self._last_progress_total = snapshot.total
        self._send(ProgressMessage(progress=snapshot))
        return True

    def _progress_worker(self) -> None:
        while not self._stop_progress.wait(self.interval):
            self.poll_progress()

    def start_progress_worker(self) -> None:
        if self.disabled:
            logger.warning("Attempted to start progress worker when display is disabled")
            return
        if self._progress_thread is not None:
            return
        self._stop_progress.clear()
        self._progress_thread = threading.Thread(
            target=self._progress_worker, name="artsum-progress", daemon=True
        )
        self._progress_thread.start()

    def stop_progress_worker(self) -> None:
        if self._progress_thread is None:
            return
        self._stop_progress.set()
        self._progress_thread.join()
        self._progress_thread = None

    def report_exit(self) -> None:
        """
        Shut down the renderer and wait until it has drained the queue.

        Returns only after every message sent before the call is rendered.
        """
        if self._display_thread is None:
            return
        if not self._closed.is_set():
            exit_message = ExitMessage()
            self._queue.put(exit_message)
            exit_message.ack.wait()
        self._display_thread.join()
        self._display_thread = None
