"""Site-level resource summary view-model builder."""

from typing import Any

from vcd_reporter.health import CRITICAL, HEALTHY, WARNING, classify_vdc, count_health, is_near_saturated
from vcd_reporter.models.settings import ReporterSettings
from vcd_reporter.models.vcd import IpAllocation, OrgVdc, ResourceQuota
from vcd_reporter.normalization.tenant import normalize_org_vdc, normalize_provider_capacity, normalize_site
from vcd_reporter.normalization.units import gb_to_mb, mb_to_gb, mb_to_tb, quota_to_vcpu
from vcd_reporter.primitives import safe_dict, to_float

from .bars import build_compute_bar, build_network_bar, build_storage_bar
from .common import build_meta, status_badge_meta

_TENANT_LABELS = {
    "vcd": "Organization VDCs",
    "cloudstack": "Projects",
    "proxmox": "Nodes",
}


def tenant_label(platform_type: str | None) -> str:
    return _TENANT_LABELS.get(str(platform_type or "").lower(), "Tenants")


def _sum_quota(quotas: list[ResourceQuota], capacity: float, units: str) -> dict[str, Any]:
    allocated = sum(q.allocated for q in quotas)
    cap = capacity or allocated
    return {
        "capacity": cap,
        "allocated": allocated,
        "used": sum(q.used for q in quotas),
        "reserved": sum(q.reserved for q in quotas),
        "available": cap - allocated,
        "units": units,
    }


def _storage_tiers(vdcs: list[OrgVdc], storage_config: dict[str, Any]) -> list[dict[str, Any]]:
    tiers: dict[str, dict[str, Any]] = {}
    for vdc in vdcs:
        for profile in vdc.storage_profiles:
            name = profile.name or "Default"
            tier = tiers.setdefault(name, {"name": name, "limit": 0.0, "used": 0.0})
            tier["limit"] += profile.limit
            tier["used"] += profile.used

    rows = []
    for name in sorted(tiers):
        tier = tiers[name]
        configured_gb = to_float(storage_config.get(name), 0.0)
        has_configured = configured_gb > 0
        capacity = gb_to_mb(configured_gb) if has_configured else tier["limit"]
        rows.append(
            {
                **tier,
                "capacity": capacity,
                "available": capacity - tier["used"],
                "has_configured_capacity": has_configured,
                "capacity_tb": round(mb_to_tb(capacity), 1),
                "allocated_tb": round(mb_to_tb(tier["limit"]), 1),
            }
        )
    return rows


def build_site_summary_view(
    vdcs: list[Any],
    site: Any = None,
    provider_capacity: Any = None,
    storage_config: dict[str, Any] | None = None,
    settings: ReporterSettings | None = None,
    *,
    report_stamp: str | None = None,
    report_date: str | None = None,
    report_id: str | None = None,
) -> dict[str, Any]:
    """
    Aggregate tenant snapshots into the site resource summary.

    Capacities come from the provider when known, otherwise from the summed
    tenant allocations (storage: summed profile limits). Tiered storage
    capacity can be overridden with configured usable GB per tier name.
    """
    settings = settings or ReporterSettings()
    site_info = normalize_site(site)
    provider = normalize_provider_capacity(provider_capacity)
    storage_config = safe_dict(storage_config)
    tenants = [normalize_org_vdc(v) for v in vdcs]

    cpu = _sum_quota([t.compute_capacity.cpu for t in tenants], provider.cpu, "MHz")
    memory = _sum_quota([t.compute_capacity.memory for t in tenants], provider.memory, "MB")

    storage_limit = sum(p.limit for t in tenants for p in t.storage_profiles)
    storage_used = sum(p.used for t in tenants for p in t.storage_profiles)
    storage_capacity = provider.storage or storage_limit

    ip_total = sum(t.network.allocated_ips.total_ip_count for t in tenants)
    ip_used = sum(t.network.allocated_ips.used_ip_count for t in tenants)
    ip_free = sum(t.network.allocated_ips.free_ip_count for t in tenants)

    total_vms = sum(t.vm_resources.vm_count for t in tenants)
    running_vms = sum(t.vm_resources.running_vm_count for t in tenants)

    labels = [classify_vdc(t, settings.saturation_threshold) for t in tenants]
    health_counts = count_health(labels)
    if health_counts["critical"]:
        site_status = CRITICAL
    elif health_counts["warning"]:
        site_status = WARNING
    else:
        site_status = HEALTHY

    cpu_quota = ResourceQuota(limit=cpu["capacity"], used=cpu["used"], reserved=cpu["reserved"], units="MHz")
    memory_quota = ResourceQuota(
        limit=memory["capacity"], used=memory["used"], reserved=memory["reserved"], units="MB"
    )
    cpu_vcpu = quota_to_vcpu(
        ResourceQuota(allocated=cpu["allocated"], limit=cpu["capacity"], used=cpu["used"], reserved=cpu["reserved"]),
        settings.mhz_per_vcpu,
        settings.vcpu_ratio,
    )
    tiers = _storage_tiers(tenants, storage_config)
    network_ips = IpAllocation.model_validate(
        {"totalIpCount": ip_total, "usedIpCount": ip_used, "freeIpCount": ip_free}
    )

    return {
        "meta": build_meta(report_stamp, report_date, report_id),
        "site": {
            "id": site_info.id,
            "name": site_info.name,
            "location": site_info.location,
            "url": site_info.url,
            "platform_type": site_info.platform_type,
            "tenant_label": tenant_label(site_info.platform_type),
        },
        "status": {"raw": site_status, "badge": status_badge_meta(site_status)},
        "totals": {
            "tenants": len(tenants),
            "vms": total_vms,
            "running_vms": running_vms,
            "stopped_vms": max(total_vms - running_vms, 0),
            "health": health_counts,
        },
        "cpu": {
            **cpu,
            "vcpu": cpu_vcpu,
            "vcpu_ratio": settings.ratio_label,
            "bar": build_compute_bar(f"vCPU ({settings.ratio_label})", cpu_quota, settings),
        },
        "memory": {
            **memory,
            "capacity_gb": round(mb_to_gb(memory["capacity"])),
            "allocated_gb": round(mb_to_gb(memory["allocated"])),
            "bar": build_compute_bar("Memory", memory_quota, settings),
        },
        "storage": {
            "capacity": storage_capacity,
            "limit": storage_limit,
            "used": storage_used,
            "available": storage_capacity - storage_used,
            "units": "MB",
            "used_tb": round(mb_to_tb(storage_used), 1),
            "limit_tb": round(mb_to_tb(storage_limit), 1),
            "bar": build_storage_bar("Storage", storage_used, storage_capacity, settings),
            "tiers": [
                {**tier, "bar": build_storage_bar(tier["name"], tier["used"], tier["capacity"], settings)}
                for tier in tiers
            ],
        },
        "network": {
            "total_ips": ip_total,
            "used_ips": ip_used,
            "free_ips": ip_free,
            "warning": is_near_saturated(ip_used, ip_total, settings.saturation_threshold),
            "bar": build_network_bar("Public IPs", network_ips, settings),
        },
    }
