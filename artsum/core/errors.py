"""
Error taxonomy for checksum runs.

Per-file failures are recovered inside tasks; everything else aborts the run.
"""

from __future__ import annotations

from pathlib import Path


class ArtsumError(Exception):
    """Base class for errors that abort a run."""

    pass


class DirectoryNotFoundError(ArtsumError):
    """The directory to scan does not exist."""

    def __init__(self, dirpath: Path):
        super().__init__(f"No directory exists at {dirpath}")
        self.dirpath = dirpath


class ManifestNotFoundError(ArtsumError):
    """No manifest file could be resolved."""

    def __init__(self, path: Path, searched_directory: bool = False):
        if searched_directory:
            message = f"No manifest file found in directory {path}"
        else:
            message = f"No manifest file found at {path}"
        super().__init__(message)
        self.path = path


class ManifestFormatError(ArtsumError):
    """Manifest content could not be parsed or serialized."""

    def __init__(self, message: str, line_number: int | None = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


class ManifestWriteError(ArtsumError):
    """The manifest file could not be written."""

    def __init__(self, path: Path, original_error: Exception):
        super().__init__(f"Failed to write manifest {path}: {original_error}")
        self.path = path
        self.original_error = original_error


class TaskJoinError(ArtsumError):
    """A checksum task did not complete."""

    def __init__(self, message: str, original_error: BaseException | None = None):
        super().__init__(f"Failed to join checksum task, {message}")
        self.original_error = original_error


class ConfigError(ArtsumError):
    """Settings file could not be loaded."""

    pass


class ChecksumIOError(Exception):
    """Reading a file for hashing failed."""

    def __init__(self, path: Path, original_error: OSError):
        reason = original_error.strerror or str(original_error)
        super().__init__(f"{reason}")
        self.path = path
        self.original_error = original_error
