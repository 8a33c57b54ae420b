"""Tenant allocation export rows: one row per storage tier per tenant."""

import logging
from typing import Any

from vcd_reporter.health import classify_vdc
from vcd_reporter.models.settings import ReporterSettings
from vcd_reporter.models.vcd import CommitLevel, OrgVdc, SiteInfo
from vcd_reporter.normalization.tenant import normalize_commit_level, normalize_org_vdc, normalize_site
from vcd_reporter.primitives import first_present

logger = logging.getLogger(__name__)

TENANT_EXPORT_HEADERS: list[str] = [
    "Timestamp",
    "Site",
    "Location",
    "Platform",
    "Tenant",
    "Business ID",
    "Business Name",
    "Status",
    "VM Count",
    "Running VMs",
    "CPU Allocated (MHz)",
    "CPU Used (MHz)",
    "RAM Allocated (MB)",
    "RAM Used (MB)",
    "Storage Total (MB)",
    "Storage Used (MB)",
    "Storage Tier",
    "Tier Limit (MB)",
    "Tier Used (MB)",
    "Allocated IPs",
    "Commit vCPU",
    "Commit GHz",
    "Commit RAM (GB)",
    "Commit HPS (GB)",
    "Commit SPS (GB)",
    "Commit VVol (GB)",
    "Commit Other (GB)",
    "Commit IPs",
    "Commit Notes",
]


def commit_columns(commit: CommitLevel | None) -> dict[str, str]:
    if commit is None:
        commit = CommitLevel()
    return {
        "commit_vcpu": commit.vcpu_count or "",
        "commit_ghz": commit.vcpu_speed_ghz or "",
        "commit_ram": commit.ram_gb or "",
        "commit_hps": commit.storage_hps_gb or "",
        "commit_sps": commit.storage_sps_gb or "",
        "commit_vvol": commit.storage_vvol_gb or "",
        "commit_other": commit.storage_other_gb or "",
        "commit_ips": commit.allocated_ips or "",
        "commit_notes": commit.notes or "",
    }


def _base_row(
    site: SiteInfo,
    vdc: OrgVdc,
    commit: CommitLevel | None,
    timestamp: str | None,
    settings: ReporterSettings,
) -> dict[str, Any]:
    cpu = vdc.compute_capacity.cpu
    memory = vdc.compute_capacity.memory
    return {
        "timestamp": timestamp or "",
        "site": site.name,
        "location": site.location,
        "platform": site.platform_type.upper(),
        "tenant": vdc.name,
        "business_id": first_present(commit.business_id if commit else None, vdc.org_name, default=""),
        "business_name": first_present(commit.business_name if commit else None, vdc.org_full_name, default=""),
        "status": classify_vdc(vdc, settings.saturation_threshold),
        "vm_count": vdc.vm_resources.vm_count,
        "running_vms": vdc.vm_resources.running_vm_count,
        "cpu_allocated": cpu.allocated,
        "cpu_used": cpu.used,
        "ram_allocated": memory.allocated,
        "ram_used": memory.used,
        "storage_total": sum(p.limit for p in vdc.storage_profiles),
        "storage_used": sum(p.used for p in vdc.storage_profiles),
        "allocated_ips": vdc.network.allocated_ips.total_ip_count,
        **commit_columns(commit),
    }


def build_export_rows(
    site: Any,
    vdcs: list[Any],
    commit_levels: dict[str, Any] | None = None,
    settings: ReporterSettings | None = None,
    *,
    timestamp: str | None = None,
    include_disabled: bool = False,
) -> list[dict[str, Any]]:
    """
    Flatten tenants into export rows keyed for TENANT_EXPORT_HEADERS.

    Tenants whose commit level disables reporting are left out unless
    *include_disabled* is set.
    """
    settings = settings or ReporterSettings()
    site_info = normalize_site(site)
    commit_levels = commit_levels or {}
    rows: list[dict[str, Any]] = []

    for raw in vdcs:
        vdc = normalize_org_vdc(raw)
        commit = normalize_commit_level(commit_levels.get(vdc.id))
        if commit is not None and commit.is_reporting_disabled and not include_disabled:
            logger.debug("Excluding tenant %s from export: %s", vdc.name, commit.disabled_reason or "reporting disabled")
            continue

        base = _base_row(site_info, vdc, commit, timestamp, settings)
        if vdc.storage_profiles:
            for profile in vdc.storage_profiles:
                rows.append(
                    {
                        **base,
                        "storage_tier": profile.name or "",
                        "tier_limit": profile.limit,
                        "tier_used": profile.used,
                    }
                )
        else:
            rows.append(
                {
                    **base,
                    "storage_tier": "Default",
                    "tier_limit": base["storage_total"],
                    "tier_used": base["storage_used"],
                }
            )
    return rows
