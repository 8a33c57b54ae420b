"""Monthly high-water-mark view model: peak tenant usage across poll snapshots."""

import logging
from datetime import datetime, timezone
from typing import Any

from vcd_reporter.export import commit_columns
from vcd_reporter.models.settings import ReporterSettings
from vcd_reporter.models.vcd import CommitLevel, SiteInfo, TenantPollSnapshot
from vcd_reporter.normalization.tenant import normalize_commit_level, normalize_poll_snapshots, normalize_site
from vcd_reporter.normalization.units import mb_to_gb, mhz_to_vcpu
from vcd_reporter.primitives import first_present, round_half_up, safe_dict, safe_list

from .common import build_meta

logger = logging.getLogger(__name__)

MIN_YEAR = 2000
MAX_YEAR = 2100

STORAGE_BUCKETS = ("hps", "sps", "vvol", "other")

HIGH_WATER_MARK_HEADERS: list[str] = [
    "Site",
    "Location",
    "Platform",
    "Tenant ID",
    "Tenant",
    "Business ID",
    "Business Name",
    "vCPU",
    "CPU Used (MHz)",
    "RAM (GB)",
    "RAM Used (MB)",
    "Storage HPS (GB)",
    "Storage SPS (GB)",
    "Storage VVol (GB)",
    "Storage Other (GB)",
    "Allocated IPs",
    "Snapshots",
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


def validate_period(year: Any, month: Any) -> tuple[int, int]:
    """Return ``(year, month)`` as ints; raises ValueError outside 2000-2100 / 1-12."""
    try:
        year_i, month_i = int(year), int(month)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid billing period: year={year!r} month={month!r}") from exc
    if not MIN_YEAR <= year_i <= MAX_YEAR:
        raise ValueError(f"Invalid year {year_i}: expected {MIN_YEAR}-{MAX_YEAR}")
    if not 1 <= month_i <= 12:
        raise ValueError(f"Invalid month {month_i}: expected 1-12")
    return year_i, month_i


def storage_bucket(tier_name: str | None) -> str:
    """Map a storage tier name onto one of the commit buckets in STORAGE_BUCKETS."""
    name = str(tier_name or "").lower()
    if "hps" in name or "high" in name:
        return "hps"
    if "sps" in name or "standard" in name:
        return "sps"
    if "vvol" in name:
        return "vvol"
    return "other"


def in_period(polled_at: datetime | None, year: int, month: int) -> bool:
    """Aware timestamps are compared in UTC; naive ones as given."""
    if polled_at is None:
        return False
    if polled_at.tzinfo is not None:
        polled_at = polled_at.astimezone(timezone.utc)
    return polled_at.year == year and polled_at.month == month


def _new_mark(snapshot: TenantPollSnapshot) -> dict[str, Any]:
    return {
        "site_id": snapshot.site_id,
        "tenant_id": snapshot.tenant_id,
        "tenant_name": first_present(snapshot.allocation.name, snapshot.tenant_id),
        "org_name": snapshot.org_name,
        "org_full_name": snapshot.org_full_name,
        "max_cpu_mhz": 0.0,
        "max_ram_mb": 0.0,
        "max_storage_mb": 0.0,
        "max_ips": 0,
        "tiers": {},
        "snapshot_count": 0,
    }


def aggregate_high_water_marks(snapshots: Any, year: Any, month: Any) -> list[dict[str, Any]]:
    """
    Fold the month's snapshots into one peak-usage record per (site, tenant).

    Peaks are taken independently per measure, so CPU and RAM maxima may come
    from different polls. Tier peaks are keyed by the lowercased tier name.
    """
    year, month = validate_period(year, month)
    marks: dict[tuple[str, str], dict[str, Any]] = {}

    for snapshot in normalize_poll_snapshots(snapshots):
        if not in_period(snapshot.polled_at, year, month):
            continue
        key = (snapshot.site_id, snapshot.tenant_id)
        mark = marks.get(key)
        if mark is None:
            mark = marks[key] = _new_mark(snapshot)

        alloc = snapshot.allocation
        mark["max_cpu_mhz"] = max(mark["max_cpu_mhz"], alloc.cpu.used)
        mark["max_ram_mb"] = max(mark["max_ram_mb"], alloc.memory.used)
        mark["max_storage_mb"] = max(mark["max_storage_mb"], alloc.storage.used)
        mark["max_ips"] = max(mark["max_ips"], alloc.allocated_ips)
        for tier in alloc.storage.tiers:
            mark["tiers"][tier.name] = max(mark["tiers"].get(tier.name, 0.0), tier.used)
        mark["snapshot_count"] += 1

    logger.debug("Aggregated %d tenant high-water mark(s) for %04d-%02d", len(marks), year, month)
    return list(marks.values())


def bucket_storage_gb(tiers: dict[str, float]) -> dict[str, int]:
    """Sum per-tier peaks (MB) into whole-GB buckets; each tier rounds half-up first."""
    buckets = dict.fromkeys(STORAGE_BUCKETS, 0)
    for name, used_mb in tiers.items():
        buckets[storage_bucket(name)] += round_half_up(mb_to_gb(used_mb))
    return buckets


def _site_index(sites: Any) -> dict[str, SiteInfo]:
    if isinstance(sites, dict) and ("id" in sites or "name" in sites):
        records = [sites]
    elif isinstance(sites, dict):
        records = list(sites.values())
    else:
        records = safe_list(sites)
    index: dict[str, SiteInfo] = {}
    for raw in records:
        site = normalize_site(raw)
        if site.id:
            index[site.id] = site
    return index


def _commit_for(commit_levels: dict[str, Any], site_id: str, tenant_id: str) -> CommitLevel | None:
    raw = commit_levels.get(f"{site_id}:{tenant_id}")
    if raw is None:
        raw = commit_levels.get(tenant_id)
    return normalize_commit_level(raw)


def build_high_water_marks(
    snapshots: Any,
    year: Any,
    month: Any,
    commit_levels: dict[str, Any] | None = None,
    sites: Any = None,
    settings: ReporterSettings | None = None,
) -> list[dict[str, Any]]:
    """
    Build billing rows keyed for HIGH_WATER_MARK_HEADERS, sorted by site then tenant.

    Commit levels are looked up by ``"<siteId>:<tenantId>"`` first, then by
    tenant id alone. Sites are matched by id; an unknown site shows its id.
    """
    settings = settings or ReporterSettings()
    commit_levels = safe_dict(commit_levels)
    site_index = _site_index(sites)
    rows: list[dict[str, Any]] = []

    for mark in aggregate_high_water_marks(snapshots, year, month):
        site = site_index.get(mark["site_id"])
        commit = _commit_for(commit_levels, mark["site_id"], mark["tenant_id"])
        storage = bucket_storage_gb(mark["tiers"])
        rows.append(
            {
                "site_id": mark["site_id"],
                "site": (site.name if site else "") or mark["site_id"],
                "location": site.location if site else "",
                "platform": (site.platform_type if site else "vcd").upper(),
                "tenant_id": mark["tenant_id"],
                "tenant": mark["tenant_name"],
                "business_id": first_present(commit.business_id if commit else None, mark["org_name"], default=""),
                "business_name": first_present(
                    commit.business_name if commit else None, mark["org_full_name"], default=""
                ),
                "vcpu": mhz_to_vcpu(mark["max_cpu_mhz"], settings.billing_mhz_per_vcpu),
                "cpu_used": mark["max_cpu_mhz"],
                "ram": round_half_up(mb_to_gb(mark["max_ram_mb"])),
                "ram_used": mark["max_ram_mb"],
                "storage_used": mark["max_storage_mb"],
                "storage_hps": storage["hps"],
                "storage_sps": storage["sps"],
                "storage_vvol": storage["vvol"],
                "storage_other": storage["other"],
                "storage_tiers": dict(sorted(mark["tiers"].items())),
                "allocated_ips": mark["max_ips"],
                "snapshots": mark["snapshot_count"],
                **commit_columns(commit),
            }
        )

    rows.sort(key=lambda row: (row["site"].lower(), str(row["tenant"]).lower()))
    return rows


def build_high_water_mark_view(
    snapshots: Any,
    year: Any,
    month: Any,
    commit_levels: dict[str, Any] | None = None,
    sites: Any = None,
    settings: ReporterSettings | None = None,
    *,
    report_stamp: str | None = None,
    report_date: str | None = None,
    report_id: str | None = None,
) -> dict[str, Any]:
    year, month = validate_period(year, month)
    rows = build_high_water_marks(snapshots, year, month, commit_levels, sites, settings)
    return {
        "meta": build_meta(report_stamp, report_date, report_id),
        "period": {"year": year, "month": month, "label": f"{year:04d}-{month:02d}"},
        "totals": {
            "tenants": len(rows),
            "snapshots": sum(row["snapshots"] for row in rows),
        },
        "rows": rows,
    }
