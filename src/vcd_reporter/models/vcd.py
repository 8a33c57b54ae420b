from datetime import date, datetime
from typing import Any, Optional

from pydantic import AliasChoices, Field, field_validator, model_validator

from vcd_reporter.primitives import is_truthy, safe_dict, safe_list, to_float

from .base import SnapshotModel, coerce_amount, coerce_count, coerce_optional_text


class ResourceQuota(SnapshotModel):
    allocated: float = Field(default=0.0, validation_alias=AliasChoices("allocated", "Allocated"))
    limit: float = Field(default=0.0, validation_alias=AliasChoices("limit", "Limit"))
    reserved: float = Field(default=0.0, validation_alias=AliasChoices("reserved", "Reserved"))
    used: float = Field(default=0.0, validation_alias=AliasChoices("used", "Used"))
    units: str = Field(default="", validation_alias=AliasChoices("units", "Units"))

    @field_validator("allocated", "limit", "reserved", "used", mode="before")
    @classmethod
    def _amount(cls, value: Any) -> float:
        return coerce_amount(value)

    @field_validator("units", mode="before")
    @classmethod
    def _units(cls, value: Any) -> str:
        return str(value).strip() if value is not None else ""

    @property
    def capacity(self) -> float:
        """Quota ceiling: the limit when positive, otherwise the allocation."""
        return self.limit if self.limit > 0 else self.allocated


class ComputeCapacity(SnapshotModel):
    cpu: ResourceQuota = Field(default_factory=ResourceQuota)
    memory: ResourceQuota = Field(default_factory=ResourceQuota)

    @field_validator("cpu", "memory", mode="before")
    @classmethod
    def _quota(cls, value: Any) -> Any:
        return value if isinstance(value, ResourceQuota) else safe_dict(value)


class IpAllocation(SnapshotModel):
    total_ip_count: int = Field(default=0, alias="totalIpCount")
    used_ip_count: int = Field(default=0, alias="usedIpCount")
    free_ip_count: int = Field(default=0, alias="freeIpCount")
    subnets: list[Any] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _default_free(cls, data: Any) -> Any:
        if isinstance(data, IpAllocation):
            return data
        if not isinstance(data, dict):
            return {}
        data = dict(data)
        free = data.get("freeIpCount", data.get("free_ip_count"))
        if free is None:
            total = coerce_count(data.get("totalIpCount", data.get("total_ip_count")))
            used = coerce_count(data.get("usedIpCount", data.get("used_ip_count")))
            data.pop("free_ip_count", None)
            data["freeIpCount"] = max(total - used, 0)
        return data

    @field_validator("total_ip_count", "used_ip_count", "free_ip_count", mode="before")
    @classmethod
    def _count(cls, value: Any) -> int:
        return coerce_count(value)

    @field_validator("subnets", mode="before")
    @classmethod
    def _subnets(cls, value: Any) -> list[Any]:
        return safe_list(value)


class NetworkInfo(SnapshotModel):
    allocated_ips: IpAllocation = Field(default_factory=IpAllocation, alias="allocatedIps")

    @field_validator("allocated_ips", mode="before")
    @classmethod
    def _ips(cls, value: Any) -> Any:
        return value if isinstance(value, IpAllocation) else safe_dict(value)


class VmResourceSummary(SnapshotModel):
    vm_count: int = Field(default=0, alias="vmCount")
    running_vm_count: int = Field(default=0, alias="runningVmCount")

    @field_validator("vm_count", "running_vm_count", mode="before")
    @classmethod
    def _count(cls, value: Any) -> int:
        return coerce_count(value)


class StorageProfile(SnapshotModel):
    id: Optional[str] = None
    name: Optional[str] = None
    limit: float = 0.0
    used: float = 0.0
    units: str = "MB"
    default: bool = False
    enabled: bool = True

    @field_validator("id", "name", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str | None:
        return coerce_optional_text(value)

    @field_validator("limit", "used", mode="before")
    @classmethod
    def _amount(cls, value: Any) -> float:
        return coerce_amount(value)

    @field_validator("units", mode="before")
    @classmethod
    def _units(cls, value: Any) -> str:
        text = str(value).strip() if value is not None else ""
        return text or "MB"

    @field_validator("default", mode="before")
    @classmethod
    def _default(cls, value: Any) -> bool:
        return is_truthy(value)

    @field_validator("enabled", mode="before")
    @classmethod
    def _enabled(cls, value: Any) -> bool:
        return True if value is None else is_truthy(value)


class OrgRef(SnapshotModel):
    id: Optional[str] = None
    name: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")

    @field_validator("id", "name", "display_name", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str | None:
        return coerce_optional_text(value)


class OrgVdc(SnapshotModel):
    """A tenant Org VDC snapshot as delivered by the data-fetch layer."""

    id: str = ""
    name: str = ""
    description: Optional[str] = None
    status: Optional[int | str] = None
    org_name: Optional[str] = Field(default=None, alias="orgName")
    org_full_name: Optional[str] = Field(default=None, alias="orgFullName")
    org: Optional[OrgRef] = None
    allocation_type: Optional[str] = Field(default=None, alias="allocationType")
    allocation_model: Optional[str] = Field(default=None, alias="allocationModel")
    compute_capacity: ComputeCapacity = Field(default_factory=ComputeCapacity, alias="computeCapacity")
    storage_profiles: list[StorageProfile] = Field(default_factory=list, alias="storageProfiles")
    network: NetworkInfo = Field(default_factory=NetworkInfo)
    vm_resources: VmResourceSummary = Field(default_factory=VmResourceSummary, alias="vmResources")
    vcpu_in_mhz: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("vCpuInMhz", "vcpuInMhz", "vcpu_in_mhz"),
    )

    @field_validator("id", "name", mode="before")
    @classmethod
    def _ident(cls, value: Any) -> str:
        return coerce_optional_text(value) or ""

    @field_validator(
        "description", "org_name", "org_full_name", "allocation_type", "allocation_model", mode="before"
    )
    @classmethod
    def _text(cls, value: Any) -> str | None:
        return coerce_optional_text(value)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value: Any) -> Any:
        if value is None or (isinstance(value, (int, str)) and not isinstance(value, bool)):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return str(value)

    @field_validator("org", mode="before")
    @classmethod
    def _org(cls, value: Any) -> Any:
        if value is None or isinstance(value, OrgRef):
            return value
        return value if isinstance(value, dict) else None

    @field_validator("compute_capacity", "network", "vm_resources", mode="before")
    @classmethod
    def _section(cls, value: Any) -> Any:
        if isinstance(value, SnapshotModel):
            return value
        return safe_dict(value)

    @field_validator("storage_profiles", mode="before")
    @classmethod
    def _profiles(cls, value: Any) -> list[Any]:
        return [p for p in safe_list(value) if isinstance(p, (dict, StorageProfile))]

    @field_validator("vcpu_in_mhz", mode="before")
    @classmethod
    def _divisor(cls, value: Any) -> float | None:
        if value is None:
            return None
        divisor = to_float(value, 0.0)
        return divisor if divisor > 0 else None


class BackupMetrics(SnapshotModel):
    protected_vm_count: int = Field(default=0, alias="protectedVmCount")
    total_vm_count: int = Field(default=0, alias="totalVmCount")
    backup_size_gb: float = Field(default=0.0, validation_alias=AliasChoices("backupSizeGB", "backup_size_gb"))

    @field_validator("protected_vm_count", "total_vm_count", mode="before")
    @classmethod
    def _count(cls, value: Any) -> int:
        return coerce_count(value)

    @field_validator("backup_size_gb", mode="before")
    @classmethod
    def _size(cls, value: Any) -> float:
        return coerce_amount(value)

    @property
    def has_data(self) -> bool:
        return self.protected_vm_count > 0 or self.total_vm_count > 0 or self.backup_size_gb > 0


class CommitLevel(SnapshotModel):
    """Contracted per-tenant commitment; text columns mirror the commit level table."""

    tenant_id: Optional[str] = Field(default=None, alias="tenantId")
    tenant_name: Optional[str] = Field(default=None, alias="tenantName")
    business_id: Optional[str] = Field(default=None, alias="businessId")
    business_name: Optional[str] = Field(default=None, alias="businessName")
    vcpu_count: Optional[str] = Field(default=None, alias="vcpuCount")
    vcpu_speed_ghz: Optional[str] = Field(default=None, alias="vcpuSpeedGhz")
    ram_gb: Optional[str] = Field(default=None, alias="ramGB")
    storage_hps_gb: Optional[str] = Field(default=None, alias="storageHpsGB")
    storage_sps_gb: Optional[str] = Field(default=None, alias="storageSpsGB")
    storage_vvol_gb: Optional[str] = Field(default=None, alias="storageVvolGB")
    storage_other_gb: Optional[str] = Field(default=None, alias="storageOtherGB")
    allocated_ips: Optional[str] = Field(default=None, alias="allocatedIps")
    notes: Optional[str] = None
    is_reporting_disabled: bool = Field(default=False, alias="isReportingDisabled")
    disabled_reason: Optional[str] = Field(default=None, alias="disabledReason")

    @field_validator(
        "tenant_id",
        "tenant_name",
        "business_id",
        "business_name",
        "vcpu_count",
        "vcpu_speed_ghz",
        "ram_gb",
        "storage_hps_gb",
        "storage_sps_gb",
        "storage_vvol_gb",
        "storage_other_gb",
        "allocated_ips",
        "notes",
        "disabled_reason",
        mode="before",
    )
    @classmethod
    def _text(cls, value: Any) -> str | None:
        return coerce_optional_text(value)

    @field_validator("is_reporting_disabled", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> bool:
        return is_truthy(value)


class ProviderCapacity(SnapshotModel):
    """Provider-side physical capacity (MHz, MB, MB); zero means unknown."""

    cpu: float = 0.0
    memory: float = 0.0
    storage: float = 0.0

    @field_validator("cpu", "memory", "storage", mode="before")
    @classmethod
    def _capacity(cls, value: Any) -> float:
        if isinstance(value, dict):
            value = value.get("capacity")
        return coerce_amount(value)


class SiteInfo(SnapshotModel):
    id: str = ""
    name: str = ""
    location: str = ""
    url: str = ""
    platform_type: str = Field(default="vcd", alias="platformType")

    @field_validator("id", "name", "location", "url", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return coerce_optional_text(value) or ""

    @field_validator("platform_type", mode="before")
    @classmethod
    def _platform(cls, value: Any) -> str:
        return (coerce_optional_text(value) or "vcd").lower()


class TierUsage(SnapshotModel):
    name: str = "unknown"
    used: float = 0.0

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> str:
        return (coerce_optional_text(value) or "").strip().lower() or "unknown"

    @field_validator("used", mode="before")
    @classmethod
    def _used(cls, value: Any) -> float:
        return coerce_amount(value)


class StorageUsage(SnapshotModel):
    used: float = 0.0
    tiers: list[TierUsage] = Field(default_factory=list)

    @field_validator("used", mode="before")
    @classmethod
    def _used(cls, value: Any) -> float:
        return coerce_amount(value)

    @field_validator("tiers", mode="before")
    @classmethod
    def _tiers(cls, value: Any) -> list[Any]:
        return [t for t in safe_list(value) if isinstance(t, (dict, TierUsage))]


class AllocationUsage(SnapshotModel):
    """The allocation block of one poll snapshot (MHz, MB, MB)."""

    name: Optional[str] = None
    cpu: ResourceQuota = Field(default_factory=ResourceQuota)
    memory: ResourceQuota = Field(default_factory=ResourceQuota)
    storage: StorageUsage = Field(default_factory=StorageUsage)
    allocated_ips: int = Field(default=0, alias="allocatedIps")

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> str | None:
        return coerce_optional_text(value)

    @field_validator("cpu", "memory", "storage", mode="before")
    @classmethod
    def _section(cls, value: Any) -> Any:
        if isinstance(value, SnapshotModel):
            return value
        return safe_dict(value)

    @field_validator("allocated_ips", mode="before")
    @classmethod
    def _ips(cls, value: Any) -> int:
        if isinstance(value, dict):
            value = value.get("totalIpCount", value.get("total_ip_count"))
        return coerce_count(value)


class TenantPollSnapshot(SnapshotModel):
    """One polled reading of a tenant's usage, as stored by the collector."""

    site_id: str = Field(default="", alias="siteId")
    tenant_id: str = Field(default="", alias="tenantId")
    org_name: Optional[str] = Field(default=None, alias="orgName")
    org_full_name: Optional[str] = Field(default=None, alias="orgFullName")
    polled_at: Optional[datetime] = Field(default=None, alias="polledAt")
    allocation: AllocationUsage = Field(
        default_factory=AllocationUsage,
        validation_alias=AliasChoices("allocationData", "allocation_data", "allocation"),
    )

    @field_validator("site_id", "tenant_id", mode="before")
    @classmethod
    def _ident(cls, value: Any) -> str:
        return (coerce_optional_text(value) or "").strip()

    @field_validator("org_name", "org_full_name", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str | None:
        return coerce_optional_text(value)

    @field_validator("polled_at", mode="before")
    @classmethod
    def _polled_at(cls, value: Any) -> datetime | None:
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        if not isinstance(value, str) or not value.strip():
            return None
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None

    @field_validator("allocation", mode="before")
    @classmethod
    def _allocation(cls, value: Any) -> Any:
        return value if isinstance(value, AllocationUsage) else safe_dict(value)
