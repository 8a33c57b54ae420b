from .tenant import normalize_backup_metrics, normalize_commit_level, normalize_org_vdc, normalize_org_vdcs
from .units import mhz_to_vcpu, normalize_quota, quota_capacity

__all__ = [
    "normalize_org_vdc",
    "normalize_org_vdcs",
    "normalize_backup_metrics",
    "normalize_commit_level",
    "normalize_quota",
    "quota_capacity",
    "mhz_to_vcpu",
]
