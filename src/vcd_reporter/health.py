"""Tenant health classification and alert summarization."""

from typing import Any

from vcd_reporter.models.vcd import OrgVdc
from vcd_reporter.primitives import build_alert, canonical_severity, safe_list, to_float

HEALTHY = "HEALTHY"
WARNING = "WARNING"
CRITICAL = "CRITICAL"

HEALTH_LEVELS = (HEALTHY, WARNING, CRITICAL)

NORMAL_STATUS_CODE = 1
SATURATION_THRESHOLD = 0.9


def pool_ratio(used: Any, capacity: Any) -> float | None:
    """used / capacity, or None when the pool has no positive ceiling (Flex)."""
    cap = to_float(capacity, 0.0)
    if cap <= 0:
        return None
    return to_float(used, 0.0) / cap


def is_near_saturated(used: Any, capacity: Any, threshold: float = SATURATION_THRESHOLD) -> bool:
    ratio = pool_ratio(used, capacity)
    return ratio is not None and ratio > threshold


def is_critical_status(status_code: Any) -> bool:
    """
    A defined status code other than 1 (normal/active) is critical.
    An absent code is never critical on its own.
    """
    if status_code is None:
        return False
    if isinstance(status_code, str) and not status_code.strip():
        return False
    if isinstance(status_code, bool):
        return True
    code = to_float(status_code, float("nan"))
    return code != NORMAL_STATUS_CODE


def classify_health(
    cpu_capacity: Any = 0,
    cpu_used: Any = 0,
    mem_capacity: Any = 0,
    mem_used: Any = 0,
    ip_capacity: Any = 0,
    ip_used: Any = 0,
    status_code: Any = None,
    threshold: float = SATURATION_THRESHOLD,
) -> str:
    """Critical beats warning beats healthy."""
    if is_critical_status(status_code):
        return CRITICAL
    if (
        is_near_saturated(cpu_used, cpu_capacity, threshold)
        or is_near_saturated(mem_used, mem_capacity, threshold)
        or is_near_saturated(ip_used, ip_capacity, threshold)
    ):
        return WARNING
    return HEALTHY


def _pools(vdc: OrgVdc) -> list[tuple[str, float, float]]:
    cpu = vdc.compute_capacity.cpu
    memory = vdc.compute_capacity.memory
    ips = vdc.network.allocated_ips
    return [
        ("cpu", cpu.capacity, cpu.used),
        ("memory", memory.capacity, memory.used),
        ("ip", float(ips.total_ip_count), float(ips.used_ip_count)),
    ]


def classify_vdc(vdc: OrgVdc, threshold: float = SATURATION_THRESHOLD) -> str:
    (_, cpu_cap, cpu_used), (_, mem_cap, mem_used), (_, ip_cap, ip_used) = _pools(vdc)
    return classify_health(
        cpu_capacity=cpu_cap,
        cpu_used=cpu_used,
        mem_capacity=mem_cap,
        mem_used=mem_used,
        ip_capacity=ip_cap,
        ip_used=ip_used,
        status_code=vdc.status,
        threshold=threshold,
    )


def health_alerts(vdc: OrgVdc, threshold: float = SATURATION_THRESHOLD) -> list[dict[str, Any]]:
    """Explain a tenant's classification as alert dicts."""
    alerts = []
    if is_critical_status(vdc.status):
        alerts.append(
            build_alert(
                CRITICAL,
                "status",
                f"Org VDC status code {vdc.status} is not active",
                {"status_code": vdc.status, "expected": NORMAL_STATUS_CODE},
            )
        )
    for pool, capacity, used in _pools(vdc):
        ratio = pool_ratio(used, capacity)
        if ratio is None or ratio <= threshold:
            continue
        alerts.append(
            build_alert(
                WARNING,
                "capacity",
                f"{pool.upper()} pool near saturation ({ratio * 100:.1f}% of quota)",
                {
                    "pool": pool,
                    "used": used,
                    "capacity": capacity,
                    "usage_pct": round(ratio * 100, 1),
                    "threshold_pct": round(threshold * 100, 1),
                },
            )
        )
    return alerts


def summarize_alerts(alerts: list[Any]) -> dict[str, Any]:
    """Tally alert counts by severity and category."""
    alerts = safe_list(alerts)
    summary: dict[str, Any] = {
        "total": len(alerts),
        "critical_count": 0,
        "warning_count": 0,
        "info_count": 0,
        "by_category": {},
    }
    for alert in alerts:
        if not isinstance(alert, dict):
            continue
        severity = canonical_severity(alert.get("severity", "INFO"))
        if severity == CRITICAL:
            summary["critical_count"] += 1
        elif severity == WARNING:
            summary["warning_count"] += 1
        else:
            summary["info_count"] += 1
        cat = str(alert.get("category", "uncategorized")).lower()
        summary["by_category"][cat] = summary["by_category"].get(cat, 0) + 1
    return summary


def count_health(labels: list[str]) -> dict[str, int]:
    counts = {HEALTHY.lower(): 0, WARNING.lower(): 0, CRITICAL.lower(): 0}
    for label in labels:
        key = str(label).lower()
        if key in counts:
            counts[key] += 1
    counts["total"] = sum(counts.values())
    return counts
