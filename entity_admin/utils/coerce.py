"""
Value Coercion Helpers

Loose-JSON readers used when ingesting remote schema descriptions and list
envelopes. Each helper returns the fallback instead of raising.
"""

import math
from typing import Any, Dict, Optional


def is_record(value: Any) -> bool:
    return isinstance(value, dict)


def to_number(value: Any) -> Optional[float]:
    """Read an int/float or a numeric string; None for anything else."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str) and value.strip():
        try:
            parsed = float(value)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def to_int(value: Any) -> Optional[int]:
    number = to_number(value)
    if number is None:
        return None
    return int(number)


def safe_string(value: Any, fallback: str = "") -> str:
    return value if isinstance(value, str) else fallback


def non_empty_string(value: Any, fallback: str = "") -> str:
    """Like safe_string, but an empty or blank string also takes the fallback."""
    if isinstance(value, str) and value.strip():
        return value
    return fallback


def safe_bool(value: Any, fallback: bool) -> bool:
    return value if isinstance(value, bool) else fallback


def optional_bool(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def to_record(value: Any, fallback: Dict[str, Any]) -> Dict[str, Any]:
    return value if isinstance(value, dict) else fallback
