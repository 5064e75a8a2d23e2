"""
Run configuration.

Settings can come from a YAML file; command-line flags override them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from artsum.core.checksum import DEFAULT_CHUNK_SIZE, ChecksumAlgorithm, ChecksumMode
from artsum.core.errors import ConfigError

DEFAULT_MAX_WORKERS = 8


def default_max_workers() -> int:
    """Worker count used when verifying without explicit options."""
    return max(1, os.cpu_count() or 1)


class ArtsumSettings(BaseModel):
    """Defaults for generate and verify runs."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, ge=1, description="Read size in bytes")
    max_workers: int = Field(default=DEFAULT_MAX_WORKERS, ge=1, description="Concurrent file tasks")
    verbosity: int = Field(default=0, ge=0, description="Output verbosity")
    show_progress: bool = Field(default=True, description="Show progress line")
    color: bool = Field(default=True, description="Colorize output")
    format: str | None = Field(default=None, description="Default manifest format")
    algorithm: ChecksumAlgorithm | None = Field(default=None, description="Default algorithm")
    mode: ChecksumMode = Field(default=ChecksumMode.BINARY, description="Default byte mode")

    def merge(self, **overrides: Any) -> ArtsumSettings:
        """Return a copy with every non-None override applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        if not values:
            return self
        try:
            return self.model_validate({**self.model_dump(), **values})
        except ValidationError as e:
            raise ConfigError(f"Invalid settings: {e}") from e


def load_settings(path: Path | None) -> ArtsumSettings:
    """
    Load settings from a YAML file.

    Args:
        path: Path to the YAML file, or None for defaults.

    Returns:
        Validated settings.

    Raises:
        ConfigError: If the file is missing, unparsable, or invalid.
    """
    if path is None:
        return ArtsumSettings()

    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with path.open() as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing config {path}: {e}") from e

    if data is None:
        return ArtsumSettings()
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must contain a mapping")

    try:
        return ArtsumSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config {path}: {e}") from e


@dataclass
class GenerateOptions:
    """Options for generating a manifest."""

    # Input
    dirpath: Path

    # Output
    output: Path | None = None
    format: str | None = None

    # Hashing
    algorithm: ChecksumAlgorithm | None = None
    mode: ChecksumMode | None = None
    chunk_size: int = DEFAULT_CHUNK_SIZE

    # Execution
    max_workers: int = DEFAULT_MAX_WORKERS

    # Display
    verbosity: int = 0
    show_progress: bool = True
    debug: bool = False
    no_display: bool = False


@dataclass
class VerifyOptions:
    """Options for verifying a directory against a manifest."""

    # Input
    dirpath: Path
    manifest: Path | None = None
    format: str | None = None

    # Hashing
    chunk_size: int = DEFAULT_CHUNK_SIZE

    # Execution
    max_workers: int = DEFAULT_MAX_WORKERS

    # Display
    verbosity: int = 0
    show_progress: bool = True
    debug: bool = False
    no_display: bool = False
