"""
JSON manifest dialect.

Canonical JSON with sorted keys, so identical manifests produce
identical files.
"""

from __future__ import annotations

from typing import Any

import orjson

from artsum.core.checksum import Checksum, ChecksumAlgorithm, ChecksumMode
from artsum.core.errors import ManifestFormatError
from artsum.core.json_canonical import canonical_json_dumps, canonical_json_loads
from artsum.manifest.base import (
    Manifest,
    ManifestFormat,
    ManifestParser,
    add_artifact,
    compile_patterns,
)

DEFAULT_MANIFEST_FILENAME = "artsum.json"


def _checksum_from_entry(path: str, entry: Any) -> Checksum:
    if not isinstance(entry, dict):
        raise ManifestFormatError(f"Entry for {path!r} must be an object")
    try:
        algorithm = ChecksumAlgorithm(entry["algorithm"])
        mode = ChecksumMode(entry.get("mode", ChecksumMode.BINARY.value))
        return Checksum.from_hex(entry["digest"], algorithm, mode)
    except KeyError as e:
        raise ManifestFormatError(f"Entry for {path!r} is missing {e.args[0]!r}") from e
    except (TypeError, ValueError) as e:
        raise ManifestFormatError(f"Entry for {path!r}: {e}") from e


class JSONParser(ManifestParser):
    """Parser for ``artsum.json`` manifests."""

    format = ManifestFormat.JSON
    default_filename = DEFAULT_MANIFEST_FILENAME
    filename_patterns = compile_patterns(r"^artsum\.json$", r"^.*\.artsum\.json$")
    algorithm = None

    def parse_str(self, data: str) -> Manifest:
        try:
            document = canonical_json_loads(data)
        except orjson.JSONDecodeError as e:
            raise ManifestFormatError(f"Invalid JSON: {e}") from e

        if not isinstance(document, dict):
            raise ManifestFormatError("Manifest must be a JSON object")

        version = document.get("version")
        if version is not None and not isinstance(version, str):
            raise ManifestFormatError("'version' must be a string or null")

        entries = document.get("artifacts", {})
        if not isinstance(entries, dict):
            raise ManifestFormatError("'artifacts' must be an object")

        artifacts: dict[str, Checksum] = {}
        for path, entry in entries.items():
            add_artifact(artifacts, path, _checksum_from_entry(path, entry))

        return Manifest(version=version, artifacts=artifacts)

    def to_string(self, manifest: Manifest) -> str:
        document = {
            "version": manifest.version,
            "artifacts": {
                path: {
                    "algorithm": checksum.algorithm,
                    "mode": checksum.mode,
                    "digest": checksum.digest,
                }
                for path, checksum in manifest.artifacts.items()
            },
        }
        return canonical_json_dumps(document, indent=True) + "\n"
