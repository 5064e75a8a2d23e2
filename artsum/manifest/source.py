"""Resolution of the manifest file a verify run reads."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from artsum.manifest.base import ManifestFormat, ManifestParser
from artsum.manifest.registry import DETECTION_PRIORITY, detect_format, get_parser, resolve_format

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ManifestSource:
    """A manifest file and the format it is read with."""

    filepath: Path
    format: ManifestFormat

    def parser(self) -> ManifestParser:
        return get_parser(self.format)

    @classmethod
    def from_path(
        cls,
        path: Path,
        format: ManifestFormat | str | None = None,
    ) -> ManifestSource | None:
        """
        Resolve a manifest from a file or directory path.

        A directory is scanned for its immediate files: formats are tried
        in DETECTION_PRIORITY order and file names in sorted order, and the
        first match wins. A file is read with the given format, else the
        format its name matches, else the default format.

        Args:
            path: Manifest file or directory to search.
            format: Optional explicit format.

        Returns:
            ManifestSource, or None if nothing was found.
        """
        path = Path(path)
        explicit = resolve_format(format) if format is not None else None

        if path.is_dir():
            entries = sorted(p for p in path.iterdir() if p.is_file())
            formats = (explicit,) if explicit is not None else DETECTION_PRIORITY
            for candidate in formats:
                parser = get_parser(candidate)
                for entry in entries:
                    if parser.can_handle_filepath(entry):
                        logger.debug("Detected %s manifest %s", candidate, entry)
                        return cls(filepath=entry, format=candidate)
            return None

        if path.is_file():
            if explicit is not None:
                return cls(filepath=path, format=explicit)
            detected = detect_format(path)
            if detected is None:
                detected = ManifestFormat.default()
                logger.debug("No format matches %s, reading as %s", path.name, detected)
            return cls(filepath=path, format=detected)

        return None
