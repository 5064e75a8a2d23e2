"""Core utilities: checksums, errors, configuration."""

from artsum.core.checksum import (
    DEFAULT_CHUNK_SIZE,
    Checksum,
    ChecksumAlgorithm,
    ChecksumMode,
    compute_bytes_checksum,
    compute_checksum,
)
from artsum.core.config import ArtsumSettings, GenerateOptions, VerifyOptions, load_settings
from artsum.core.errors import (
    ArtsumError,
    ChecksumIOError,
    DirectoryNotFoundError,
    ManifestFormatError,
    ManifestNotFoundError,
    ManifestWriteError,
    TaskJoinError,
)

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "Checksum",
    "ChecksumAlgorithm",
    "ChecksumMode",
    "compute_bytes_checksum",
    "compute_checksum",
    "ArtsumSettings",
    "GenerateOptions",
    "VerifyOptions",
    "load_settings",
    "ArtsumError",
    "ChecksumIOError",
    "DirectoryNotFoundError",
    "ManifestFormatError",
    "ManifestNotFoundError",
    "ManifestWriteError",
    "TaskJoinError",
]
