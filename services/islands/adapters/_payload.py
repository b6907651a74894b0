"""
Defensive readers for provider JSON.

Providers occasionally send numbers as strings, nulls, or nested objects
where a scalar is expected. Readers coerce what they can and fall back to the
caller's default otherwise, so a malformed field never escapes an adapter.
"""

from __future__ import annotations

import math
from typing import Any


def as_float(value: Any, default: float = 0.0) -> float:
    """Finite float from a JSON scalar ("1.2" -> 1.2); `default` for anything else."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return default
    else:
        return default
    return number if math.isfinite(number) else default


def as_dict(value: Any) -> dict[str, Any]:
    """The value itself if it is a JSON object, otherwise an empty dict."""
    return value if isinstance(value, dict) else {}


def as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True or (isinstance(value, (int, float)) and value != 0)
