"""
Verify flow.

Re-hashes every manifest entry and classifies it as valid, invalid,
missing, or errored. Only invalid entries fail the run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console

from artsum.core.checksum import compute_checksum
from artsum.core.config import VerifyOptions
from artsum.core.errors import DirectoryNotFoundError, ManifestNotFoundError
from artsum.engine.counters import VerifyCounters, VerifyProgress
from artsum.engine.display import DisplayManager, verify_buffer_size
from artsum.engine.scheduler import TaskScheduler
from artsum.engine.tasks import ChecksumProvider, VerifyOutcome, VerifyTaskBuilder
from artsum.manifest.base import Manifest
from artsum.manifest.source import ManifestSource

logger = logging.getLogger(__name__)

EXIT_INVALID = 1


@dataclass(frozen=True)
class VerifySummary:
    """Result of a verify run."""

    source: ManifestSource
    manifest: Manifest
    progress: VerifyProgress
    outcomes: tuple[VerifyOutcome, ...] = ()

    @property
    def exit_code(self) -> int:
        """Non-zero iff at least one entry was invalid."""
        return EXIT_INVALID if self.progress.invalid > 0 else 0


def resolve_manifest_source(options: VerifyOptions) -> ManifestSource:
    """
    Find the manifest to verify against.

    Raises:
        ManifestNotFoundError: If no manifest can be resolved.
    """
    if options.manifest is not None:
        source = ManifestSource.from_path(Path(options.manifest), options.format)
        if source is None:
            raise ManifestNotFoundError(Path(options.manifest))
        return source

    source = ManifestSource.from_path(Path(options.dirpath), options.format)
    if source is None:
        raise ManifestNotFoundError(Path(options.dirpath), searched_directory=True)
    return source


def verify(
    options: VerifyOptions,
    console: Console | None = None,
    provider: ChecksumProvider = compute_checksum,
) -> VerifySummary:
    """
    Verify a directory against its manifest.

    Args:
        options: Verify options.
        console: Console for display output.
        provider: Checksum provider used by tasks.

    Returns:
        VerifySummary; its exit_code is 1 if any entry was invalid.

    Raises:
        DirectoryNotFoundError: If the directory does not exist.
        ManifestNotFoundError: If no manifest can be resolved.
        ManifestFormatError: If the manifest cannot be parsed.
        TaskJoinError: If a task fails unexpectedly.
    """
    logger.debug("%r", options)
    dirpath = Path(options.dirpath)
    if not dirpath.is_dir():
        raise DirectoryNotFoundError(dirpath)

    source = resolve_manifest_source(options)
    manifest = source.parser().parse(source)
    logger.debug("Loaded %d entries from %s", len(manifest), source.filepath)

    counters = VerifyCounters(expected=len(manifest))
    display = DisplayManager(
        verify_buffer_size(options.max_workers),
        counters,
        verbosity=options.verbosity,
        disabled=options.debug or options.no_display,
        console=console,
    )

    try:
        display.report_start("Verifying", source.format, source.filepath)
        if options.show_progress and not display.disabled:
            display.start_progress_worker()

        with TaskScheduler(options.max_workers) as scheduler:
            builder = VerifyTaskBuilder(
                scheduler, counters, display, chunk_size=options.chunk_size, provider=provider
            )
            futures = [
                builder.verify_checksum(dirpath, filename, expected)
                for filename, expected in manifest.artifacts.items()
            ]
            outcomes = tuple(scheduler.join(futures))

        display.stop_progress_worker()
        display.report_progress(final=True)
    finally:
        display.stop_progress_worker()
        display.report_exit()

    summary = VerifySummary(
        source=source,
        manifest=manifest,
        progress=counters.snapshot(),
        outcomes=outcomes,
    )
    logger.debug("Verify finished: %s", summary.progress)
    return summary
