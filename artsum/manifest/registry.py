"""
Manifest format registry.

Maps each ManifestFormat to its parser and fixes the order in which
formats are tried during auto-detection.
"""

from __future__ import annotations

from typing import Callable

from artsum.manifest.base import ManifestFormat, ManifestParser
from artsum.manifest.json_format import JSONParser
from artsum.manifest.sfv import SFVParser
from artsum.manifest.sumfile import b2sum_parser, sha512sum_parser

_PARSER_FACTORIES: dict[ManifestFormat, Callable[[], ManifestParser]] = {
    ManifestFormat.SFV: SFVParser,
    ManifestFormat.JSON: JSONParser,
    ManifestFormat.B2SUM: b2sum_parser,
    ManifestFormat.SHA512SUM: sha512sum_parser,
}

# When a directory holds files for several dialects, the earliest wins
DETECTION_PRIORITY: tuple[ManifestFormat, ...] = (
    ManifestFormat.SFV,
    ManifestFormat.JSON,
    ManifestFormat.B2SUM,
    ManifestFormat.SHA512SUM,
)


def get_parser(format: ManifestFormat | str | None = None) -> ManifestParser:
    """
    Get the parser for a format.

    Args:
        format: Format or format name; None selects the default.

    Returns:
        A parser instance.

    Raises:
        ValueError: If the format name is unknown.
    """
    return _PARSER_FACTORIES[resolve_format(format)]()


def resolve_format(format: ManifestFormat | str | None) -> ManifestFormat:
    """Normalize a format name to a ManifestFormat."""
    if format is None:
        return ManifestFormat.default()
    if isinstance(format, ManifestFormat):
        return format
    try:
        return ManifestFormat(format.lower())
    except ValueError:
        choices = ", ".join(f.value for f in ManifestFormat)
        raise ValueError(f"Unknown manifest format {format!r} (choose from {choices})") from None


def detect_format(filepath) -> ManifestFormat | None:
    """Return the first format, by priority, whose patterns match a file name."""
    for format in DETECTION_PRIORITY:
        if get_parser(format).can_handle_filepath(filepath):
            return format
    return None
