"""Shared helpers for template-facing view-model builders."""

from typing import Any

from ..primitives import to_float


def status_badge_meta(status: Any) -> dict[str, str]:
    """
    Normalize a health label into badge presentation metadata.
    Returns a dict with:
      - css_class: one of status-ok/status-warn/status-fail
      - label: display text (HEALTHY, WARNING, or CRITICAL)
    """
    raw = str(status or "UNKNOWN").strip().upper()

    ok_values = {"OK", "HEALTHY", "GREEN", "ACTIVE"}
    fail_values = {"CRITICAL", "RED", "FAILED", "ERROR"}

    if raw in ok_values:
        return {"css_class": "status-ok", "label": "HEALTHY"}
    if raw in fail_values:
        return {"css_class": "status-fail", "label": "CRITICAL"}

    return {"css_class": "status-warn", "label": "WARNING"}


def build_meta(
    report_stamp: str | None = None,
    report_date: str | None = None,
    report_id: str | None = None,
) -> dict[str, str | None]:
    """Standard meta block shared across all view-model builders."""
    return {
        "report_stamp": report_stamp,
        "report_date": report_date,
        "report_id": report_id,
    }


def usage_pct(used: Any, total: Any) -> float:
    """Unrounded percentage of *total*; 0 when there is no positive total."""
    total_f = to_float(total, 0.0)
    if total_f <= 0:
        return 0.0
    return to_float(used, 0.0) * 100.0 / total_f
