"""
artsum CLI.

Command-line interface for generating and verifying checksum manifests.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import click
from rich.console import Console

from artsum import __version__
from artsum.core.checksum import ChecksumAlgorithm, ChecksumMode
from artsum.core.config import (
    ArtsumSettings,
    GenerateOptions,
    VerifyOptions,
    default_max_workers,
    load_settings,
)
from artsum.core.errors import ArtsumError
from artsum.logging_setup import log_level_for, setup_logging
from artsum.manifest.base import ManifestFormat

EXIT_FATAL = 2

ALGORITHM_CHOICES = click.Choice([a.value for a in ChecksumAlgorithm], case_sensitive=False)
FORMAT_CHOICES = click.Choice([f.value for f in ManifestFormat], case_sensitive=False)
MODE_CHOICES = click.Choice([m.value for m in ChecksumMode], case_sensitive=False)


@dataclass
class CliState:
    """Settings shared by all subcommands."""

    settings: ArtsumSettings
    debug: bool
    console: Console
    max_workers_configured: bool = False


def _fail(error: Exception) -> None:
    click.echo(f"Error: {error}", err=True)
    raise SystemExit(EXIT_FATAL)


def _run_verify(state: CliState, options: VerifyOptions) -> None:
    from artsum.engine.verify import verify

    try:
        summary = verify(options, console=state.console)
    except ArtsumError as e:
        _fail(e)

    if summary.exit_code != 0:
        raise SystemExit(summary.exit_code)


@click.group(invoke_without_command=True)
@click.version_option(version=__version__)
@click.option("--verbose", "-v", "verbosity", count=True, help="Verbosity level")
@click.option("--no-color", is_flag=True, help="Disable color output")
@click.option("--no-progress", is_flag=True, help="Disable progress output")
@click.option("--debug", is_flag=True, help="Log debug output instead of the display")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="ARTSUM_CONFIG",
    help="Path to settings YAML",
)
@click.pass_context
def main(
    ctx: click.Context,
    verbosity: int,
    no_color: bool,
    no_progress: bool,
    debug: bool,
    config_path: Path | None,
) -> None:
    """artsum: Generate and verify checksum manifests.

    Without a command, verifies the current directory.
    """
    try:
        loaded = load_settings(config_path)
        settings = loaded.merge(
            verbosity=verbosity or None,
            show_progress=False if no_progress else None,
            color=False if no_color else None,
        )
    except ArtsumError as e:
        _fail(e)

    setup_logging(log_level_for(settings.verbosity, debug))

    ctx.obj = CliState(
        settings=settings,
        debug=debug,
        console=Console(highlight=False, soft_wrap=True, no_color=not settings.color),
        max_workers_configured="max_workers" in loaded.model_fields_set,
    )

    if ctx.invoked_subcommand is None:
        _run_verify(
            ctx.obj,
            VerifyOptions(
                dirpath=Path.cwd(),
                chunk_size=settings.chunk_size,
                max_workers=(
                    settings.max_workers if ctx.obj.max_workers_configured
                    else default_max_workers()
                ),
                verbosity=settings.verbosity,
                show_progress=settings.show_progress,
                debug=debug,
            ),
        )


@main.command()
@click.argument("dirpath", type=click.Path(path_type=Path))
@click.option("--output", "-o", type=click.Path(path_type=Path), help="Path to write the manifest to")
@click.option("--algorithm", "-a", type=ALGORITHM_CHOICES, help="Checksum algorithm")
@click.option("--format", "-f", "format_name", type=FORMAT_CHOICES, help="Manifest format")
@click.option("--mode", "-m", type=MODE_CHOICES, help="Checksum mode")
@click.option("--chunk-size", "-c", type=click.IntRange(min=1), help="Read size in bytes")
@click.option("--max-workers", "-x", type=click.IntRange(min=1), help="Maximum concurrent files")
@click.option("--verbose", "-v", "verbosity", count=True, help="Verbosity level")
@click.pass_obj
def generate(
    state: CliState,
    dirpath: Path,
    output: Path | None,
    algorithm: str | None,
    format_name: str | None,
    mode: str | None,
    chunk_size: int | None,
    max_workers: int | None,
    verbosity: int,
) -> None:
    """Generate a manifest for DIRPATH."""
    from artsum.engine.generate import generate as run_generate

    settings = state.settings
    options = GenerateOptions(
        dirpath=dirpath,
        output=output,
        format=format_name or settings.format,
        algorithm=ChecksumAlgorithm(algorithm.lower()) if algorithm else settings.algorithm,
        mode=ChecksumMode(mode.lower()) if mode else settings.mode,
        chunk_size=chunk_size or settings.chunk_size,
        max_workers=max_workers or settings.max_workers,
        verbosity=verbosity or settings.verbosity,
        show_progress=settings.show_progress,
        debug=state.debug,
    )

    try:
        run_generate(options, console=state.console)
    except (ArtsumError, ValueError) as e:
        _fail(e)


@main.command()
@click.argument("dirpath", type=click.Path(path_type=Path))
@click.option("--manifest", "-m", type=click.Path(path_type=Path), help="Path to the manifest file")
@click.option("--format", "-f", "format_name", type=FORMAT_CHOICES, help="Manifest format")
@click.option("--chunk-size", "-c", type=click.IntRange(min=1), help="Read size in bytes")
@click.option("--max-workers", "-x", type=click.IntRange(min=1), help="Maximum concurrent files")
@click.option("--verbose", "-v", "verbosity", count=True, help="Verbosity level")
@click.pass_obj
def verify(
    state: CliState,
    dirpath: Path,
    manifest: Path | None,
    format_name: str | None,
    chunk_size: int | None,
    max_workers: int | None,
    verbosity: int,
) -> None:
    """Verify the files in DIRPATH against a manifest.

    Exits with status 1 if any file does not match its checksum.
    """
    settings = state.settings
    _run_verify(
        state,
        VerifyOptions(
            dirpath=dirpath,
            manifest=manifest,
            format=format_name,
            chunk_size=chunk_size or settings.chunk_size,
            max_workers=max_workers or settings.max_workers,
            verbosity=verbosity or settings.verbosity,
            show_progress=settings.show_progress,
            debug=state.debug,
        ),
    )


if __name__ == "__main__":
    main()
