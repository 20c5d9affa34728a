"""Hashing utilities for cache key generation."""

import hashlib
import json
from typing import Any


def canonical_json(value: Any) -> str:
    """Serialize a value to canonical JSON.

    Mapping keys are sorted and separators are compact, so structurally
    equal values always serialize identically regardless of key order.
    Non-string mapping keys are converted the way json converts them
    (``1`` becomes ``"1"``, ``True`` becomes ``"true"``), other key types
    via ``str``, so mixed key types still sort. Values json cannot encode
    natively are stringified.

    Args:
        value: A JSON-compatible value.

    Returns:
        The canonical JSON text.

    Raises:
        ValueError: If the value contains a reference cycle.
    """
    return json.dumps(
        _stringify_keys(value, set()),
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )


def hash_value(value: Any) -> str:
    """Create a deterministic hash of a value.

    Args:
        value: Any JSON-serializable value.

    Returns:
        A hexadecimal hash string (first 16 chars of SHA-256).
    """
    if value is None:
        return "none"

    return hashlib.sha256(canonical_json(value).encode()).hexdigest()[:16]


def _json_key(key: Any) -> str:
    if isinstance(key, str):
        return key
    if key is None or isinstance(key, (bool, int, float)):
        return json.dumps(key)
    return str(key)


def _stringify_keys(value: Any, path: set[int]) -> Any:
    if not isinstance(value, (dict, list, tuple)):
        return value

    if id(value) in path:
        raise ValueError("Circular reference detected")
    path.add(id(value))
    try:
        if isinstance(value, dict):
            return {
                _json_key(key): _stringify_keys(item, path)
                for key, item in value.items()
            }
        return [_stringify_keys(item, path) for item in value]
    finally:
        path.discard(id(value))
