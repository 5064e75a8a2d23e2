"""
Generate flow.

Hashes every regular file under a directory and writes the manifest.
Per-file errors are reported but do not fail the run.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from rich.console import Console

from artsum.core.checksum import ChecksumAlgorithm, ChecksumMode, compute_checksum
from artsum.core.config import GenerateOptions
from artsum.core.errors import DirectoryNotFoundError, ManifestWriteError
from artsum.engine.counters import GenerateCounters, GenerateProgress
from artsum.engine.display import DisplayManager, generate_buffer_size
from artsum.engine.scheduler import TaskScheduler
from artsum.engine.tasks import ChecksumProvider, GenerateTaskBuilder, GenerateTaskResult
from artsum.manifest.base import Manifest, ManifestFormat, ManifestParser
from artsum.manifest.registry import get_parser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerateSummary:
    """Result of a generate run."""

    manifest_filepath: Path
    format: ManifestFormat
    algorithm: ChecksumAlgorithm
    mode: ChecksumMode
    manifest: Manifest
    progress: GenerateProgress

    @property
    def exit_code(self) -> int:
        # Per-file errors never fail a generate run
        return 0


def resolve_algorithm(
    parser: ManifestParser,
    requested: ChecksumAlgorithm | None,
) -> tuple[ChecksumAlgorithm, str | None]:
    """
    Pick the algorithm for a generate run.

    A format's implied algorithm wins over the requested one.

    Returns:
        Tuple of (algorithm, warning message or None).
    """
    algorithm = parser.algorithm or requested or ChecksumAlgorithm.default()
    if requested is not None and requested is not algorithm:
        return algorithm, (
            f"Unsupported algorithm {requested} for format {parser.format}, "
            f"using algorithm {algorithm}"
        )
    return algorithm, None


def resolve_mode(
    parser: ManifestParser,
    requested: ChecksumMode | None,
) -> tuple[ChecksumMode, str | None]:
    """Pick the byte mode; binary-only formats override a text request."""
    mode = requested or ChecksumMode.default()
    if mode is ChecksumMode.TEXT and not parser.supports_text_mode:
        return ChecksumMode.BINARY, (
            f"Unsupported mode {mode} for format {parser.format}, using mode binary"
        )
    return mode, None


def discover_files(dirpath: Path, exclude: Path | None = None) -> Iterator[tuple[Path, str]]:
    """
    Walk a directory for regular files.

    Symlinks and directories are skipped, as is ``exclude`` (the
    manifest being written).

    Yields:
        Tuples of (path, POSIX path relative to dirpath), in sorted order.
    """
    dirpath = Path(dirpath)
    excluded = Path(os.path.abspath(exclude)) if exclude is not None else None

    for root, dirnames, filenames in os.walk(dirpath, followlinks=False):
        dirnames.sort()
        for filename in sorted(filenames):
            path = Path(root) / filename
            if path.is_symlink() or not path.is_file():
                continue
            if excluded is not None and Path(os.path.abspath(path)) == excluded:
                continue
            yield path, path.relative_to(dirpath).as_posix()


def write_manifest(parser: ManifestParser, manifest: Manifest, filepath: Path) -> None:
    """
    Serialize and write a manifest.

    Raises:
        ManifestFormatError: If the manifest cannot be serialized.
        ManifestWriteError: If the file cannot be written.
    """
    content = parser.to_string(manifest)
    logger.info("Writing manifest file: %s", filepath)
    try:
        with open(filepath, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
    except OSError as e:
        raise ManifestWriteError(Path(filepath), e) from e


def generate(
    options: GenerateOptions,
    console: Console | None = None,
    provider: ChecksumProvider = compute_checksum,
) -> GenerateSummary:
    """
    Generate a manifest for a directory.

    Args:
        options: Generate options.
        console: Console for display output.
        provider: Checksum provider used by tasks.

    Returns:
        GenerateSummary with the written manifest and counts.

    Raises:
        DirectoryNotFoundError: If the directory does not exist.
        ManifestFormatError: If the manifest cannot be serialized.
        ManifestWriteError: If the manifest cannot be written.
        TaskJoinError: If a task fails unexpectedly.
    """
    logger.debug("%r", options)
    dirpath = Path(options.dirpath)
    if not dirpath.is_dir():
        raise DirectoryNotFoundError(dirpath)

    parser = get_parser(options.format)
    algorithm, algorithm_conflict = resolve_algorithm(parser, options.algorithm)
    mode, mode_conflict = resolve_mode(parser, options.mode)
    manifest_filepath = (
        Path(options.output) if options.output is not None
        else parser.build_manifest_filepath(dirpath)
    )

    counters = GenerateCounters()
    display = DisplayManager(
        generate_buffer_size(options.max_workers),
        counters,
        verbosity=options.verbosity,
        disabled=options.debug or options.no_display,
        console=console,
    )

    try:
        for conflict in (algorithm_conflict, mode_conflict):
            if conflict is not None:
                logger.warning(conflict)
                display.report_warning(conflict)

        display.report_start("Generating", parser.format, Path(os.path.abspath(manifest_filepath)))
        if options.show_progress and not display.disabled:
            display.start_progress_worker()

        artifacts = {}
        with TaskScheduler(options.max_workers) as scheduler:
            builder = GenerateTaskBuilder(
                scheduler, counters, display, chunk_size=options.chunk_size, provider=provider
            )
            futures = [
                builder.generate_checksum(path, relative_filepath, algorithm, mode)
                for path, relative_filepath in discover_files(dirpath, exclude=manifest_filepath)
            ]
            for outcome in scheduler.join(futures):
                if isinstance(outcome, GenerateTaskResult):
                    artifacts[outcome.filepath] = outcome.checksum

        manifest = Manifest(version=None, artifacts=artifacts)
        write_manifest(parser, manifest, manifest_filepath)

        display.stop_progress_worker()
        display.report_progress(final=True)
    finally:
        display.stop_progress_worker()
        display.report_exit()

    return GenerateSummary(
        manifest_filepath=manifest_filepath,
        format=parser.format,
        algorithm=algorithm,
        mode=mode,
        manifest=manifest,
        progress=counters.snapshot(),
    )
