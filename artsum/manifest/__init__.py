"""Manifest formats: model, dialects, registry, and source resolution."""

from artsum.manifest.base import Manifest, ManifestFormat, ManifestParser
from artsum.manifest.registry import DETECTION_PRIORITY, detect_format, get_parser, resolve_format
from artsum.manifest.source import ManifestSource

__all__ = [
    "Manifest",
    "ManifestFormat",
    "ManifestParser",
    "ManifestSource",
    "DETECTION_PRIORITY",
    "detect_format",
    "get_parser",
    "resolve_format",
]
