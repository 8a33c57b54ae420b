from .settings import ReporterSettings
from .vcd import (
    BackupMetrics,
    CommitLevel,
    ComputeCapacity,
    IpAllocation,
    NetworkInfo,
    OrgRef,
    OrgVdc,
    ProviderCapacity,
    ResourceQuota,
    SiteInfo,
    StorageProfile,
    VmResourceSummary,
)

__all__ = [
    "BackupMetrics",
    "CommitLevel",
    "ComputeCapacity",
    "IpAllocation",
    "NetworkInfo",
    "OrgRef",
    "OrgVdc",
    "ProviderCapacity",
    "ReporterSettings",
    "ResourceQuota",
    "SiteInfo",
    "StorageProfile",
    "VmResourceSummary",
]
