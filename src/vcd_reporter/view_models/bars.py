"""Utilization bar view-models for compute, storage and network resources."""

from typing import Any

from vcd_reporter.models.settings import ReporterSettings
from vcd_reporter.models.vcd import IpAllocation, ResourceQuota, StorageProfile
from vcd_reporter.normalization.units import format_compute, format_storage

from .common import usage_pct

_DEFAULT_SETTINGS = ReporterSettings()


def bar_level(used_pct: float, settings: ReporterSettings = _DEFAULT_SETTINGS, unlimited: bool = False) -> str:
    if unlimited:
        return "normal"
    if used_pct > settings.bar_critical_pct:
        return "critical"
    if used_pct > settings.bar_warning_pct:
        return "warning"
    return "normal"


def build_compute_bar(label: str, quota: ResourceQuota, settings: ReporterSettings = _DEFAULT_SETTINGS) -> dict[str, Any]:
    """
    Bar for a compute quota, measured against its capacity.

    A quota without a positive capacity is uncapped: the bar is drawn full
    and dimmed, and the displayed ceiling is 1.5x the current usage.
    """
    used = quota.used
    capacity = quota.capacity
    unlimited = capacity <= 0
    limit = used * 1.5 if unlimited else capacity

    ratio = usage_pct(used, limit)
    used_pct = round(ratio, 1)
    reserved_pct = round(usage_pct(quota.reserved, limit), 1)
    display_used, unit = format_compute(used, quota.units)
    display_limit, _ = format_compute(limit, quota.units)

    return {
        "label": label,
        "type": "compute",
        "units": quota.units,
        "used": used,
        "limit": limit,
        "reserved": quota.reserved,
        "is_unlimited": unlimited,
        "used_pct": None if unlimited else used_pct,
        "reserved_pct": None if unlimited else reserved_pct,
        "bar_width": 100.0 if unlimited else min(used_pct, 100.0),
        "reserved_width": min(reserved_pct, 100.0),
        "display_used": display_used,
        "display_total": "Uncapped" if unlimited else f"{display_limit} {unit}",
        "level": bar_level(ratio, settings, unlimited),
    }


def build_storage_bar(
    label: str,
    used_mb: float,
    limit_mb: float,
    settings: ReporterSettings = _DEFAULT_SETTINGS,
) -> dict[str, Any]:
    ratio = usage_pct(used_mb, limit_mb)
    used_pct = round(ratio, 1)
    display_used, display_total = format_storage(used_mb, limit_mb, settings.tb_threshold_mb)
    return {
        "label": label,
        "type": "storage",
        "units": "MB",
        "used": used_mb,
        "limit": limit_mb,
        "is_unlimited": False,
        "used_pct": used_pct,
        "bar_width": min(used_pct, 100.0),
        "display_used": display_used,
        "display_total": display_total,
        "level": bar_level(ratio, settings),
    }


def build_profile_bar(profile: StorageProfile, settings: ReporterSettings = _DEFAULT_SETTINGS) -> dict[str, Any]:
    return build_storage_bar(profile.name or "Storage", profile.used, profile.limit, settings)


def build_network_bar(label: str, ips: IpAllocation, settings: ReporterSettings = _DEFAULT_SETTINGS) -> dict[str, Any]:
    ratio = usage_pct(ips.used_ip_count, ips.total_ip_count)
    used_pct = round(ratio, 1)
    return {
        "label": label,
        "type": "network",
        "units": "IPs",
        "used": ips.used_ip_count,
        "limit": ips.total_ip_count,
        "free": ips.free_ip_count,
        "is_unlimited": False,
        "used_pct": used_pct,
        "bar_width": min(used_pct, 100.0),
        "display_used": str(ips.used_ip_count),
        "display_total": f"{ips.total_ip_count} IPs",
        "level": bar_level(ratio, settings),
    }
