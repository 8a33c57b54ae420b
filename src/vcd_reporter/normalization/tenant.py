"""Boundary normalization of raw Org VDC, backup and commit level records."""

import logging
from typing import Any

from vcd_reporter.models.vcd import (
    BackupMetrics,
    CommitLevel,
    IpAllocation,
    OrgVdc,
    ProviderCapacity,
    SiteInfo,
    TenantPollSnapshot,
)
from vcd_reporter.primitives import safe_dict, safe_list

from .units import COMPUTE_CPU, COMPUTE_MEMORY, normalize_quota

logger = logging.getLogger(__name__)


def _coerce_compute(raw: Any) -> dict[str, Any]:
    compute = safe_dict(raw)
    return {
        "cpu": normalize_quota(compute.get("cpu"), COMPUTE_CPU),
        "memory": normalize_quota(compute.get("memory"), COMPUTE_MEMORY),
    }


def normalize_ip_allocation(raw: Any) -> IpAllocation:
    if isinstance(raw, IpAllocation):
        return raw
    return IpAllocation.model_validate(safe_dict(raw))


def _coerce_network(vdc: dict[str, Any]) -> dict[str, Any]:
    network = safe_dict(vdc.get("network"))
    allocated = network.get("allocatedIps", network.get("allocated_ips"))
    if allocated is None:
        # Older payloads only carry the total under ipAllocation.
        legacy = safe_dict(vdc.get("ipAllocation"))
        allocated = {"totalIpCount": legacy.get("totalIpCount")} if legacy else {}
    return {"allocatedIps": normalize_ip_allocation(allocated)}


def normalize_org_vdc(raw: Any) -> OrgVdc:
    """
    Turn a raw Org VDC payload into a fully defaulted OrgVdc snapshot.

    Never raises: absent or malformed sections degrade to zero/empty values.
    """
    if isinstance(raw, OrgVdc):
        return raw
    vdc = safe_dict(raw)
    data = dict(vdc)
    data.pop("compute_capacity", None)
    data["computeCapacity"] = _coerce_compute(vdc.get("computeCapacity", vdc.get("compute_capacity")))
    data["network"] = _coerce_network(vdc)
    return OrgVdc.model_validate(data)


def normalize_org_vdcs(raw_list: Any) -> list[OrgVdc]:
    out: list[OrgVdc] = []
    for idx, item in enumerate(safe_list(raw_list)):
        if not isinstance(item, (dict, OrgVdc)):
            logger.warning("Skipping tenant record %d: expected a mapping, got %s", idx, type(item).__name__)
            continue
        out.append(normalize_org_vdc(item))
    return out


def normalize_backup_metrics(raw: Any) -> BackupMetrics | None:
    if raw is None:
        return None
    if isinstance(raw, BackupMetrics):
        return raw
    return BackupMetrics.model_validate(safe_dict(raw))


def normalize_commit_level(raw: Any) -> CommitLevel | None:
    if raw is None:
        return None
    if isinstance(raw, CommitLevel):
        return raw
    return CommitLevel.model_validate(safe_dict(raw))


def normalize_provider_capacity(raw: Any) -> ProviderCapacity:
    if isinstance(raw, ProviderCapacity):
        return raw
    return ProviderCapacity.model_validate(safe_dict(raw))


def normalize_site(raw: Any) -> SiteInfo:
    if isinstance(raw, SiteInfo):
        return raw
    return SiteInfo.model_validate(safe_dict(raw))


def normalize_poll_snapshot(raw: Any) -> TenantPollSnapshot:
    if isinstance(raw, TenantPollSnapshot):
        return raw
    return TenantPollSnapshot.model_validate(safe_dict(raw))


def normalize_poll_snapshots(raw_list: Any) -> list[TenantPollSnapshot]:
    """Normalize poll snapshots, dropping records with no tenant id or no readable timestamp."""
    out: list[TenantPollSnapshot] = []
    for idx, item in enumerate(safe_list(raw_list)):
        if not isinstance(item, (dict, TenantPollSnapshot)):
            logger.warning("Skipping snapshot %d: expected a mapping, got %s", idx, type(item).__name__)
            continue
        snapshot = normalize_poll_snapshot(item)
        if not snapshot.tenant_id:
            logger.warning("Skipping snapshot %d: no tenantId", idx)
            continue
        if snapshot.polled_at is None:
            logger.warning("Skipping snapshot %d for tenant %s: missing or unreadable polledAt", idx, snapshot.tenant_id)
            continue
        out.append(snapshot)
    return out
