"""Canonical serialization for vote hashing.

Logically identical payloads must serialize to identical strings regardless
of key order, or a re-derived vote hash would not match the receipt.

Rules:
- Keys are sorted alphabetically (recursive)
- Compact separators, no whitespace
- Non-ASCII characters are not escaped
- Strings are hashed exactly as given, with no Unicode normalization
- NaN and Infinity are rejected
"""

from __future__ import annotations

import json
import math
from datetime import datetime, timezone
from typing import Any

_LOWER_HEX = frozenset("0123456789abcdef")


def _sanitize_for_json(data: Any) -> Any:
    """Recursively normalize data for deterministic JSON serialization.

    Raises:
        ValueError: If data contains NaN, Infinity, or -Infinity values.
    """
    if isinstance(data, float):
        if math.isnan(data) or math.isinf(data):
            raise ValueError(
                f"Cannot serialize non-finite float value: {data!r}. "
                "NaN and Infinity are not valid JSON."
            )
        return data
    elif isinstance(data, dict):
        return {_sanitize_for_json(k): _sanitize_for_json(v) for k, v in data.items()}
    elif isinstance(data, (list, tuple)):
        return [_sanitize_for_json(item) for item in data]
    else:
        return data


def canonical_json(data: Any) -> str:
    """Produce a deterministic JSON representation for hashing.

    Args:
        data: Any JSON-serializable data.

    Returns:
        Canonical JSON string.

    Raises:
        ValueError: If data contains NaN, Infinity, or -Infinity values.

    Example:
        >>> canonical_json({"type": "RANKED", "rankings": ["b", "a"]})
        '{"rankings":["b","a"],"type":"RANKED"}'
    """
    return json.dumps(
        _sanitize_for_json(data),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def iso_timestamp(timestamp: datetime) -> str:
    """Render a timestamp as UTC ISO 8601 with millisecond precision.

    Naive datetimes are taken to be UTC. The output matches the receipts
    issued by the vote-casting workflow, e.g. "2025-10-22T14:03:07.120Z".
    """
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    utc = timestamp.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def is_sha256_hex(value: object) -> bool:
    """Check that a value is a 64-character lowercase hexadecimal string."""
    if not isinstance(value, str) or len(value) != 64:
        return False
    return all(c in _LOWER_HEX for c in value)
