"""Tenant (Org VDC) detail-card view-model builder."""

from typing import Any

from vcd_reporter.health import classify_vdc, health_alerts, summarize_alerts
from vcd_reporter.models.settings import ReporterSettings
from vcd_reporter.models.vcd import BackupMetrics, CommitLevel, OrgVdc
from vcd_reporter.normalization.tenant import normalize_backup_metrics, normalize_commit_level, normalize_org_vdc
from vcd_reporter.normalization.units import quota_to_vcpu, resolve_mhz_per_vcpu
from vcd_reporter.primitives import first_present, round_half_up

from .bars import build_compute_bar, build_network_bar, build_profile_bar
from .common import build_meta, status_badge_meta

UNKNOWN_ORGANIZATION = "Unknown Organization"
NO_ALLOCATION_TYPE = "N/A"
NO_COMPUTE_PLACEHOLDER = "No quota limits"


def resolve_org_display_name(vdc: OrgVdc) -> str:
    org = vdc.org
    return first_present(
        vdc.org_full_name,
        org.display_name if org else None,
        org.name if org else None,
        default=UNKNOWN_ORGANIZATION,
    )


def resolve_allocation_label(vdc: OrgVdc) -> str:
    return first_present(vdc.allocation_type, vdc.allocation_model, default=NO_ALLOCATION_TYPE)


def has_compute_data(vdc: OrgVdc) -> bool:
    return vdc.compute_capacity.cpu.allocated > 0 or vdc.compute_capacity.memory.allocated > 0


def backup_coverage_pct(metrics: BackupMetrics) -> int | None:
    if metrics.total_vm_count <= 0:
        return None
    return round_half_up(metrics.protected_vm_count / metrics.total_vm_count * 100)


def build_backup_section(metrics: BackupMetrics | None) -> dict[str, Any] | None:
    """Backup block, or None when no metric is positive (section suppressed)."""
    if metrics is None or not metrics.has_data:
        return None
    return {
        "protected_vm_count": metrics.protected_vm_count,
        "total_vm_count": metrics.total_vm_count,
        "unprotected_vm_count": max(metrics.total_vm_count - metrics.protected_vm_count, 0),
        "backup_size_gb": metrics.backup_size_gb,
        "coverage_pct": backup_coverage_pct(metrics),
    }


def build_compute_section(vdc: OrgVdc, settings: ReporterSettings) -> dict[str, Any]:
    cpu = vdc.compute_capacity.cpu
    memory = vdc.compute_capacity.memory
    has_data = has_compute_data(vdc)
    mhz_per_vcpu = resolve_mhz_per_vcpu(vdc.vcpu_in_mhz, settings.mhz_per_vcpu)
    return {
        "has_data": has_data,
        "placeholder": None if has_data else NO_COMPUTE_PLACEHOLDER,
        "cpu": {
            **cpu.model_dump(),
            "capacity": cpu.capacity,
            "vcpu": quota_to_vcpu(cpu, mhz_per_vcpu, settings.vcpu_ratio),
            "vcpu_ratio": settings.ratio_label,
            "mhz_per_vcpu": mhz_per_vcpu,
        },
        "memory": {
            **memory.model_dump(),
            "capacity": memory.capacity,
        },
        "bars": [
            build_compute_bar(f"vCPU ({settings.ratio_label})", cpu, settings),
            build_compute_bar("Memory", memory, settings),
        ]
        if has_data
        else [],
    }


def build_storage_section(vdc: OrgVdc, settings: ReporterSettings) -> dict[str, Any]:
    profiles = []
    for profile in vdc.storage_profiles:
        profiles.append({**profile.model_dump(), "bar": build_profile_bar(profile, settings)})
    return {
        "profiles": profiles,
        "total_limit_mb": sum(p.limit for p in vdc.storage_profiles),
        "total_used_mb": sum(p.used for p in vdc.storage_profiles),
    }


def build_network_section(vdc: OrgVdc, settings: ReporterSettings) -> dict[str, Any]:
    ips = vdc.network.allocated_ips
    return {
        "total_ip_count": ips.total_ip_count,
        "used_ip_count": ips.used_ip_count,
        "free_ip_count": ips.free_ip_count,
        "subnets": list(ips.subnets),
        "bar": build_network_bar("Public IPs", ips, settings),
    }


def build_reporting_section(commit_level: CommitLevel | None) -> dict[str, Any]:
    return {
        "has_commit": commit_level is not None,
        "disabled": bool(commit_level and commit_level.is_reporting_disabled),
        "disabled_reason": commit_level.disabled_reason if commit_level else None,
        "business_id": commit_level.business_id if commit_level else None,
        "business_name": commit_level.business_name if commit_level else None,
    }


def build_tenant_view(
    vdc: Any,
    backup_metrics: Any = None,
    commit_level: Any = None,
    settings: ReporterSettings | None = None,
    *,
    report_stamp: str | None = None,
    report_date: str | None = None,
    report_id: str | None = None,
) -> dict[str, Any]:
    """
    Compose the detail-card view-model for one Org VDC.

    Accepts raw payload dicts or already-normalized models. The result is a
    pure function of the inputs: no clock reads, no shared state.
    """
    settings = settings or ReporterSettings()
    vdc = normalize_org_vdc(vdc)
    backup = normalize_backup_metrics(backup_metrics)
    commit = normalize_commit_level(commit_level)

    health = classify_vdc(vdc, settings.saturation_threshold)
    alerts = health_alerts(vdc, settings.saturation_threshold)
    vms = vdc.vm_resources

    return {
        "meta": build_meta(report_stamp, report_date, report_id),
        "tenant": {
            "id": vdc.id,
            "name": vdc.name,
            "description": vdc.description,
            "org_name": vdc.org_name,
            "org_id": vdc.org.id if vdc.org else None,
            "org_display_name": resolve_org_display_name(vdc),
            "allocation_type": resolve_allocation_label(vdc),
            "status_code": vdc.status,
        },
        "health": {
            "status": health,
            "badge": status_badge_meta(health),
            "alerts": alerts,
            "summary": summarize_alerts(alerts),
        },
        "vms": {
            "vm_count": vms.vm_count,
            "running_vm_count": vms.running_vm_count,
            "stopped_vm_count": max(vms.vm_count - vms.running_vm_count, 0),
        },
        "compute": build_compute_section(vdc, settings),
        "storage": build_storage_section(vdc, settings),
        "network": build_network_section(vdc, settings),
        "backup": build_backup_section(backup),
        "reporting": build_reporting_section(commit),
    }


def select_backup_metrics(vdc: OrgVdc, metrics_by_org: dict[str, Any] | None) -> Any:
    """Backup metrics for a tenant's organization, matched by org id then org name."""
    metrics_by_org = metrics_by_org or {}
    for key in (vdc.org.id if vdc.org else None, vdc.org_name):
        if key and key in metrics_by_org:
            return metrics_by_org[key]
    return None


def build_tenant_views(
    vdcs: list[OrgVdc],
    backup_metrics: dict[str, Any] | None = None,
    commit_levels: dict[str, Any] | None = None,
    settings: ReporterSettings | None = None,
    *,
    report_stamp: str | None = None,
    report_date: str | None = None,
    report_id: str | None = None,
) -> list[dict[str, Any]]:
    commit_levels = commit_levels or {}
    views = []
    for vdc in vdcs:
        vdc = normalize_org_vdc(vdc)
        views.append(
            build_tenant_view(
                vdc,
                select_backup_metrics(vdc, backup_metrics),
                commit_levels.get(vdc.id),
                settings,
                report_stamp=report_stamp,
                report_date=report_date,
                report_id=report_id,
            )
        )
    views.sort(key=lambda v: (str(v["tenant"]["org_display_name"]).lower(), str(v["tenant"]["name"]).lower()))
    return views
