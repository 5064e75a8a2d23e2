"""
artsum: Concurrent checksum manifests for directory trees.

Generates portable checksum manifests and verifies files against them.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
