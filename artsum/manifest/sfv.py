"""
Default ``.sfv`` style manifest.

One ``<path> <checksum>`` line per entry, where the checksum carries its
own algorithm and mode, so a single file may mix algorithms::

    ; version 1
    docs/readme.txt sha512:b:9b71d224bd62f378...
    photo.jpg 1A2B3C4D

A bare 8-digit hex value is read as a classic SFV CRC-32.
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

DEFAULT_MANIFEST_FILENAME = "artsum.sfv"

_VERSION_RE = re.compile(r"^;\s*version\s+(?P<version>\S.*?)\s*$")
_CRC32_RE = re.compile(r"^[0-9a-fA-F]{8}$")


class SFVParser(ManifestParser):
    """Parser for the default manifest dialect."""

    format = ManifestFormat.SFV
    default_filename = DEFAULT_MANIFEST_FILENAME
    filename_patterns = compile_patterns(r"^artsum\.sfv$", r"^.*\.sfv$")
    algorithm = None

    def parse_str(self, data: str) -> Manifest:
        version: str | None = None
        artifacts: dict[str, Checksum] = {}

        for line_number, line in enumerate(split_lines(data), start=1):
            if not line.strip():
                continue

            if line.startswith(";"):
                match = _VERSION_RE.match(line)
                if match and version is None and not artifacts:
                    version = match.group("version")
                continue

            separator = line.rfind(" ")
            if separator <= 0:
                raise ManifestFormatError("Expected '<path> <checksum>'", line_number)

            path_text, token = line[:separator], line[separator + 1 :]
            if _CRC32_RE.match(token):
                # Classic SFV pads the name with any number of spaces
                path_text = path_text.rstrip(" ")
                checksum = Checksum.from_hex(token.lower(), ChecksumAlgorithm.CRC32)
            else:
                try:
                    checksum = Checksum.parse_token(token)
                except ValueError as e:
                    raise ManifestFormatError(str(e), line_number) from e

            add_artifact(artifacts, unescape_path(path_text, line_number), checksum, line_number)

        return Manifest(version=version, artifacts=artifacts)

    def to_string(self, manifest: Manifest) -> str:
        lines = []
        if manifest.version is not None:
            if "\n" in manifest.version or "\r" in manifest.version:
                raise ManifestFormatError("Version must be a single line")
            lines.append(f"; version {manifest.version}")

        for path in sorted(manifest.artifacts):
            checksum = manifest.artifacts[path]
            escaped = escape_path(path)
            if escaped.startswith(";"):
                escaped = "\\" + escaped
            lines.append(f"{escaped} {checksum}")

        if not lines:
            return ""
        return "\n".join(lines) + "\n"
