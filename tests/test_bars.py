"""Tests for utilization bar view models."""

from vcd_reporter.models.settings import ReporterSettings
from vcd_reporter.models.vcd import IpAllocation, ResourceQuota, StorageProfile
from vcd_reporter.view_models.bars import (
    bar_level,
    build_compute_bar,
    build_network_bar,
    build_profile_bar,
    build_storage_bar,
)


def _quota(**kwargs):
    return ResourceQuota(units="MHz", **kwargs)


class TestBarLevel:
    def test_thresholds_are_exclusive(self):
        assert bar_level(75.0) == "normal"
        assert bar_level(75.1) == "warning"
        assert bar_level(90.0) == "warning"
        assert bar_level(90.1) == "critical"

    def test_unlimited_never_flagged(self):
        assert bar_level(500.0, unlimited=True) == "normal"

    def test_custom_settings(self):
        settings = ReporterSettings(bar_warning_pct=50, bar_critical_pct=60)
        assert bar_level(55.0, settings) == "warning"
        assert bar_level(61.0, settings) == "critical"


class TestComputeBar:
    def test_capped_quota(self):
        bar = build_compute_bar("vCPU", _quota(limit=1000, used=960, reserved=100))
        assert bar["is_unlimited"] is False
        assert bar["used_pct"] == 96.0
        assert bar["reserved_pct"] == 10.0
        assert bar["level"] == "critical"
        assert bar["display_used"] == "1.0"
        assert bar["display_total"] == "1.0 GHz"

    def test_warning_band(self):
        assert build_compute_bar("vCPU", _quota(limit=1000, used=800))["level"] == "warning"
        assert build_compute_bar("vCPU", _quota(limit=1000, used=750))["level"] == "normal"

    def test_allocation_used_when_no_limit(self):
        bar = build_compute_bar("vCPU", _quota(allocated=2000, used=1000))
        assert bar["limit"] == 2000.0
        assert bar["used_pct"] == 50.0
        assert bar["is_unlimited"] is False
        assert bar["display_total"] == "2.0 GHz"

    def test_uncapped_quota(self):
        bar = build_compute_bar("vCPU", _quota(used=4000))
        assert bar["is_unlimited"] is True
        assert bar["limit"] == 6000.0
        assert bar["used_pct"] is None
        assert bar["reserved_pct"] is None
        assert bar["bar_width"] == 100.0
        assert bar["display_total"] == "Uncapped"
        assert bar["level"] == "normal"

    def test_bar_width_capped_at_full(self):
        bar = build_compute_bar("Memory", ResourceQuota(limit=1024, used=2048, units="MB"))
        assert bar["used_pct"] == 200.0
        assert bar["bar_width"] == 100.0
        assert bar["display_total"] == "1.0 GB"


class TestStorageBar:
    def test_gb_display(self):
        bar = build_storage_bar("Gold", 51200, 102400)
        assert bar["used_pct"] == 50.0
        assert bar["display_used"] == "50.0"
        assert bar["display_total"] == "100.0 GB"

    def test_tb_display_above_threshold(self):
        bar = build_storage_bar("Gold", 500000, 2000000)
        assert bar["used_pct"] == 25.0
        assert bar["display_used"] == "0.48"
        assert bar["display_total"] == "1.91 TB"

    def test_zero_limit(self):
        bar = build_storage_bar("Empty", 100, 0)
        assert bar["used_pct"] == 0.0
        assert bar["level"] == "normal"

    def test_profile_bar_uses_profile_name(self):
        profile = StorageProfile(name="Silver", limit=1024, used=1000)
        bar = build_profile_bar(profile)
        assert bar["label"] == "Silver"
        assert bar["level"] == "critical"

    def test_unnamed_profile(self):
        assert build_profile_bar(StorageProfile())["label"] == "Storage"


class TestNetworkBar:
    def test_exhausted_pool(self):
        ips = IpAllocation.model_validate({"totalIpCount": 10, "usedIpCount": 10})
        bar = build_network_bar("Public IPs", ips)
        assert bar["used_pct"] == 100.0
        assert bar["free"] == 0
        assert bar["level"] == "critical"
        assert bar["display_total"] == "10 IPs"

    def test_explicit_free_kept(self):
        ips = IpAllocation.model_validate({"totalIpCount": 10, "usedIpCount": 2, "freeIpCount": 5})
        assert build_network_bar("Public IPs", ips)["free"] == 5


class TestLevelUsesUnroundedUsage:
    """Displayed percentages round to one decimal; levels compare the exact usage."""

    def test_compute_just_over_critical(self):
        bar = build_compute_bar("vCPU", _quota(limit=10000, used=9004))
        assert bar["used_pct"] == 90.0
        assert bar["level"] == "critical"

    def test_storage_just_over_warning(self):
        bar = build_storage_bar("Gold", 75040, 100000)
        assert bar["used_pct"] == 75.0
        assert bar["level"] == "warning"

    def test_network_just_over_critical(self):
        ips = IpAllocation.model_validate({"totalIpCount": 10000, "usedIpCount": 9004})
        bar = build_network_bar("Public IPs", ips)
        assert bar["used_pct"] == 90.0
        assert bar["level"] == "critical"

    def test_exact_threshold_not_flagged(self):
        assert build_storage_bar("Gold", 90000, 100000)["level"] == "warning"
        assert build_storage_bar("Gold", 75000, 100000)["level"] == "normal"
