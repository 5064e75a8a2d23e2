"""
Coreutils-compatible checksum lists (``b2sum``, ``sha512sum``).

Lines follow the GNU grammar ``<hex> <flag><path>``. On POSIX systems
coreutils hashes raw bytes whatever the flag, so both ``*`` and a space
read as binary and only binary entries are written. Names containing
a backslash, newline or carriage return are escaped and the line is
prefixed with a backslash. BSD tagged lines (``SHA512 (path) = <hex>``)
are accepted when reading.

These dialects are algorithm-specific: the algorithm is implied by the
format rather than stored per line.
"""

from __future__ import annotations

import re

from artsum.core.checksum import Checksum, ChecksumAlgorithm, ChecksumMode
from artsum.core.errors import ManifestFormatError
from artsum.manifest.base import (
    Manifest,
    ManifestFormat,
    ManifestParser,
    add_artifact,
    compile_patterns,
    escape_path,
    split_lines,
    unescape_path,
)

_GNU_LINE_RE = re.compile(r"^(?P<hex>[0-9a-fA-F]+) (?P<flag>[ *])(?P<path>.+)$", re.DOTALL)
_BSD_LINE_RE = re.compile(r"^(?P<tag>[A-Za-z0-9-]+) \((?P<path>.+)\) = (?P<hex>[0-9a-fA-F]+)$", re.DOTALL)
_VERSION_RE = re.compile(r"^#\s*version\s+(?P<version>\S.*?)\s*$")

_BSD_TAGS = {
    ChecksumAlgorithm.BLAKE2B512: {"BLAKE2B", "BLAKE2B-512"},
    ChecksumAlgorithm.SHA512: {"SHA512", "SHA2-512"},
}


class SumFileParser(ManifestParser):
    """Parser for one algorithm-locked coreutils dialect."""

    def __init__(
        self,
        format: ManifestFormat,
        algorithm: ChecksumAlgorithm,
        default_filename: str,
        patterns: tuple[str, ...],
    ):
        self.format = format
        self.algorithm = algorithm
        self.default_filename = default_filename
        self.filename_patterns = compile_patterns(*patterns)
        self.supports_text_mode = False

    def _parse_line(self, line: str, line_number: int) -> tuple[str, Checksum]:
        escaped = line.startswith("\\")
        if escaped:
            line = line[1:]

        match = _GNU_LINE_RE.match(line)
        if not match:
            match = _BSD_LINE_RE.match(line)
            if not match:
                raise ManifestFormatError("Improperly formatted checksum line", line_number)
            tag = match.group("tag").upper()
            if tag not in _BSD_TAGS.get(self.algorithm, set()):
                raise ManifestFormatError(
                    f"Tag {match.group('tag')!r} does not match {self.format} format",
                    line_number,
                )

        try:
            checksum = Checksum.from_hex(match.group("hex").lower(), self.algorithm)
        except ValueError as e:
            raise ManifestFormatError(str(e), line_number) from e

        path = match.group("path")
        if escaped:
            path = unescape_path(path, line_number)
        return path, checksum

    def parse_str(self, data: str) -> Manifest:
        version: str | None = None
        artifacts: dict[str, Checksum] = {}

        for line_number, line in enumerate(split_lines(data), start=1):
            if not line.strip():
                continue
            if line.startswith("#"):
                match = _VERSION_RE.match(line)
                if match and version is None and not artifacts:
                    version = match.group("version")
                continue

            path, checksum = self._parse_line(line, line_number)
            add_artifact(artifacts, path, checksum, line_number)

        return Manifest(version=version, artifacts=artifacts)

    def to_string(self, manifest: Manifest) -> str:
        lines = []
        if manifest.version is not None:
            if "\n" in manifest.version or "\r" in manifest.version:
                raise ManifestFormatError("Version must be a single line")
            lines.append(f"# version {manifest.version}")

        for path in sorted(manifest.artifacts):
            checksum = manifest.artifacts[path]
            if checksum.algorithm is not self.algorithm:
                raise ManifestFormatError(
                    f"{self.format} manifests only hold {self.algorithm} checksums, "
                    f"{path!r} uses {checksum.algorithm}"
                )
            if checksum.mode is not ChecksumMode.BINARY:
                raise ManifestFormatError(
                    f"{self.format} manifests only hold binary checksums, "
                    f"{path!r} is {checksum.mode}"
                )
            escaped = escape_path(path)
            prefix = "\\" if escaped != path else ""
            lines.append(f"{prefix}{checksum.hexdigest} *{escaped}")

        if not lines:
            return ""
        return "\n".join(lines) + "\n"


def b2sum_parser() -> SumFileParser:
    return SumFileParser(
        format=ManifestFormat.B2SUM,
        algorithm=ChecksumAlgorithm.BLAKE2B512,
        default_filename="artsum.b2sum",
        patterns=(r"^artsum\.b2sum$", r"^.*\.b2sum$", r"^.*\.b2$", r"^B2SUMS$"),
    )


def sha512sum_parser() -> SumFileParser:
    return SumFileParser(
        format=ManifestFormat.SHA512SUM,
        algorithm=ChecksumAlgorithm.SHA512,
        default_filename="artsum.sha512sum",
        patterns=(r"^artsum\.sha512sum$", r"^.*\.sha512sum$", r"^.*\.sha512$", r"^SHA512SUMS$"),
    )
