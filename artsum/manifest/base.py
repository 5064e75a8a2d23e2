"""
Manifest model and parser interface.

Every on-disk dialect implements ManifestParser; the registry maps
formats to implementations.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from artsum.core.checksum import Checksum, ChecksumAlgorithm
from artsum.core.errors import ManifestFormatError, ManifestNotFoundError

if TYPE_CHECKING:
    from artsum.manifest.source import ManifestSource


class ManifestFormat(str, Enum):
    """Registered manifest dialects."""

    SFV = "sfv"
    JSON = "json"
    B2SUM = "b2sum"
    SHA512SUM = "sha512sum"

    @classmethod
    def default(cls) -> ManifestFormat:
        return cls.SFV

    def __str__(self) -> str:
        return self.value


class Manifest(BaseModel):
    """
    Relative paths mapped to expected checksums.

    Keys are POSIX-style paths relative to the scanned directory. The
    mapping is a value: entry order never affects equality.
    """

    version: str | None = Field(default=None, description="Manifest version")
    artifacts: dict[str, Checksum] = Field(
        default_factory=dict, description="Relative path to checksum"
    )

    def __len__(self) -> int:
        return len(self.artifacts)


class ManifestParser(ABC):
    """
    Parser and serializer for one manifest dialect.

    Implementations declare the patterns used to auto-detect their files,
    the filename written when no output path is given, the algorithm
    the dialect forces (if any) and whether it can record text-mode
    checksums.
    """

    format: ManifestFormat
    default_filename: str
    filename_patterns: tuple[re.Pattern[str], ...] = ()
    algorithm: ChecksumAlgorithm | None = None
    # False for dialects whose readers always hash raw bytes
    supports_text_mode: bool = True

    def can_handle_filepath(self, filepath: Path | str) -> bool:
        """Check whether a file name matches this dialect."""
        name = Path(filepath).name
        return any(pattern.match(name) for pattern in self.filename_patterns)

    def build_manifest_filepath(self, dirpath: Path | None = None) -> Path:
        """Default manifest path inside a directory."""
        if dirpath is None:
            return Path(self.default_filename)
        return Path(dirpath) / self.default_filename

    def parse(self, source: ManifestSource) -> Manifest:
        """
        Read and parse a manifest file.

        Raises:
            ManifestNotFoundError: If the file does not exist.
            ManifestFormatError: If the file cannot be read or parsed.
        """
        try:
            data = Path(source.filepath).read_text(encoding="utf-8")
        except FileNotFoundError:
            raise ManifestNotFoundError(source.filepath) from None
        except UnicodeDecodeError as e:
            raise ManifestFormatError(f"Manifest is not valid UTF-8: {e}") from e
        except OSError as e:
            raise ManifestFormatError(f"Failed to read manifest {source.filepath}: {e}") from e
        return self.parse_str(data)

    @abstractmethod
    def parse_str(self, data: str) -> Manifest:
        """
        Parse manifest text.

        Raises:
            ManifestFormatError: If the text is malformed.
        """
        ...

    @abstractmethod
    def to_string(self, manifest: Manifest) -> str:
        """
        Serialize a manifest.

        Raises:
            ManifestFormatError: If the manifest cannot be represented.
        """
        ...


def compile_patterns(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p) for p in patterns)


def split_lines(data: str) -> list[str]:
    """Split on LF only, dropping a trailing CR from each line."""
    lines = data.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def escape_path(path: str) -> str:
    """Backslash-escape characters that would break a line-based format."""
    return path.replace("\\", "\\\\").replace("\n", "\\n").replace("\r", "\\r")


def unescape_path(text: str, line_number: int | None = None) -> str:
    r"""Reverse escape_path; ``\n`` and ``\r`` decode, any other ``\x`` is ``x``."""
    out = []
    i = 0
    while i < len(text):
        char = text[i]
        if char == "\\":
            if i + 1 >= len(text):
                raise ManifestFormatError("Dangling escape at end of path", line_number)
            following = text[i + 1]
            out.append({"n": "\n", "r": "\r"}.get(following, following))
            i += 2
        else:
            out.append(char)
            i += 1
    return "".join(out)


def add_artifact(
    artifacts: dict[str, Checksum],
    path: str,
    checksum: Checksum,
    line_number: int | None = None,
) -> None:
    """Insert an entry, rejecting empty and duplicate paths."""
    if not path:
        raise ManifestFormatError("Empty path", line_number)
    if path in artifacts:
        raise ManifestFormatError(f"Duplicate path {path!r}", line_number)
    artifacts[path] = checksum
