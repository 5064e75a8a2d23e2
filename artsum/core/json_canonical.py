"""
Deterministic JSON serialization for byte-stable manifests.

Identical manifests always serialize to identical text regardless of
dict ordering or platform.
"""

from __future__ import annotations

from typing import Any

import orjson


def _default_serializer(obj: Any) -> Any:
    """
    Serializer for types orjson does not handle natively.

    Raises:
        TypeError: If object cannot be serialized.
    """
    if isinstance(obj, bytes):
        # Digests are stored as lowercase hex
        return obj.hex()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonical_json_dumps(obj: Any, *, indent: bool = False) -> str:
    """
    Serialize object to canonical JSON string.

    Keys are sorted and line endings are always ``\\n``.

    Examples:
        >>> canonical_json_dumps({"b": 2, "a": 1})
        '{"a":1,"b":2}'
    """
    options = orjson.OPT_SORT_KEYS

    if indent:
        options |= orjson.OPT_INDENT_2

    result = orjson.dumps(obj, default=_default_serializer, option=options)
    return result.decode("utf-8")


def canonical_json_loads(json_str: str | bytes) -> Any:
    """
    Parse JSON text.

    Raises:
        orjson.JSONDecodeError: If the text is not valid JSON.
    """
    return orjson.loads(json_str)
