"""Reusable coercion and alert primitives shared across the reporter."""

import math
from typing import Any


def safe_list(value: Any) -> list[Any]:
    if isinstance(value, (str, dict)):
        return []
    try:
        return list(value or [])
    except (TypeError, ValueError):
        return []


def safe_dict(value: Any) -> dict[str, Any]:
    return dict(value) if isinstance(value, dict) else {}


def to_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return int(default)
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return int(default)


def to_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return float(default)
    try:
        out = float(value)
    except (TypeError, ValueError):
        return float(default)
    if math.isnan(out) or math.isinf(out):
        return float(default)
    return out


def non_negative(value: Any) -> float:
    return max(to_float(value, 0.0), 0.0)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up (0.5 -> 1, 2.5 -> 3)."""
    return int(math.floor(to_float(value, 0.0) + 0.5))


def is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def first_present(*values: Any, default: Any = None) -> Any:
    """
    Return the first value that is defined and non-empty.

    Empty and whitespace-only strings count as absent; zero and False do not.
    """
    for value in values:
        if is_present(value):
            return value
    return default


def normalize_detail(detail: Any) -> dict[str, Any]:
    if isinstance(detail, dict):
        return detail
    if detail is None:
        return {}
    return {"value": detail}


def build_alert(
    severity: str,
    category: str,
    message: str,
    detail: Any = None,
    affected_items: list[str] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    out: dict[str, Any] = {
        "severity": severity,
        "category": category,
        "message": message,
        "detail": normalize_detail(detail),
    }
    if affected_items is not None:
        out["affected_items"] = affected_items
    for key, val in extra.items():
        if val is not None:
            out[key] = val
    return out


def canonical_severity(value: Any) -> str:
    sev = str(value or "INFO").upper()
    if sev in ("CRITICAL", "RED", "HIGH", "SEVERE", "FAILED"):
        return "CRITICAL"
    if sev in ("WARNING", "WARN", "YELLOW", "MEDIUM", "MODERATE"):
        return "WARNING"
    return "INFO"


_TRUTHY_STRINGS = frozenset(("true", "yes", "y", "1", "on"))


def is_truthy(value: Any) -> bool:
    """Normalize flag values that arrive as bools, numbers or strings."""
    if value is True:
        return True
    if value is False or value is None:
        return False
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY_STRINGS
    return False
