"""Capacity unit normalization and presentation conversions."""

from typing import Any

from vcd_reporter.models.vcd import ResourceQuota
from vcd_reporter.primitives import round_half_up, safe_dict, to_float

COMPUTE_CPU = "compute-cpu"
COMPUTE_MEMORY = "compute-memory"

DEFAULT_UNITS: dict[str, str] = {
    COMPUTE_CPU: "MHz",
    COMPUTE_MEMORY: "MB",
}

DEFAULT_MHZ_PER_VCPU = 2000.0

_QUOTA_FIELDS = ("allocated", "limit", "reserved", "used")


def normalize_quota(raw: Any, kind: str) -> ResourceQuota:
    """
    Build a fully populated quota from a raw record of the given dimension kind.

    Missing or malformed amounts become 0; missing units resolve from
    DEFAULT_UNITS. Capitalized keys (``Used``, ``Limit``) are accepted.
    """
    if isinstance(raw, ResourceQuota):
        raw = raw.model_dump()
    data = safe_dict(raw)
    record: dict[str, Any] = {}
    for field in _QUOTA_FIELDS:
        record[field] = data.get(field, data.get(field.capitalize()))
    units = data.get("units", data.get("Units"))
    if units is None or not str(units).strip():
        units = DEFAULT_UNITS.get(kind, "")
    record["units"] = units
    return ResourceQuota.model_validate(record)


def quota_capacity(quota: ResourceQuota) -> float:
    return quota.capacity


def resolve_mhz_per_vcpu(*candidates: Any) -> float:
    """First positive divisor among *candidates*, else the 2000 MHz default."""
    for candidate in candidates:
        value = to_float(candidate, 0.0)
        if value > 0:
            return value
    return DEFAULT_MHZ_PER_VCPU


def mhz_to_vcpu(mhz: Any, mhz_per_vcpu: Any = None, ratio: Any = 1) -> int:
    """
    Convert a MHz quantity into a virtual CPU count for display.

    ``ratio`` is the vCPU:pCPU oversubscription factor (3 for a 3:1 model).

    >>> mhz_to_vcpu(6000, 2000, 3)
    9
    """
    divisor = resolve_mhz_per_vcpu(mhz_per_vcpu)
    factor = to_float(ratio, 1.0) or 1.0
    return round_half_up((to_float(mhz, 0.0) / divisor) * factor)


def quota_to_vcpu(quota: ResourceQuota, mhz_per_vcpu: Any = None, ratio: Any = 1) -> dict[str, int]:
    return {
        "allocated": mhz_to_vcpu(quota.allocated, mhz_per_vcpu, ratio),
        "limit": mhz_to_vcpu(quota.limit, mhz_per_vcpu, ratio),
        "reserved": mhz_to_vcpu(quota.reserved, mhz_per_vcpu, ratio),
        "used": mhz_to_vcpu(quota.used, mhz_per_vcpu, ratio),
        "capacity": mhz_to_vcpu(quota.capacity, mhz_per_vcpu, ratio),
    }


def mhz_to_ghz(mhz: Any) -> float:
    return to_float(mhz, 0.0) / 1000.0


def mb_to_gb(mb: Any) -> float:
    return to_float(mb, 0.0) / 1024.0


def mb_to_tb(mb: Any) -> float:
    return to_float(mb, 0.0) / 1024.0 / 1024.0


def gb_to_mb(gb: Any) -> float:
    return to_float(gb, 0.0) * 1024.0


def format_compute(amount: Any, units: str) -> tuple[str, str]:
    """Return (value, display unit): MHz shows as GHz, anything else as GB."""
    if units == "MHz":
        return f"{mhz_to_ghz(amount):.1f}", "GHz"
    return f"{mb_to_gb(amount):.1f}", "GB"


def format_storage(used_mb: Any, limit_mb: Any, tb_threshold_mb: float = 1_000_000) -> tuple[str, str]:
    """Return (display used, display total), switching to TB above the threshold."""
    if to_float(limit_mb, 0.0) > tb_threshold_mb:
        return f"{mb_to_tb(used_mb):.2f}", f"{mb_to_tb(limit_mb):.2f} TB"
    return f"{mb_to_gb(used_mb):.1f}", f"{mb_to_gb(limit_mb):.1f} GB"
