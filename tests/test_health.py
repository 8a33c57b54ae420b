"""Tests for tenant health classification."""

import unittest

import pytest

from vcd_reporter.health import (
    CRITICAL,
    HEALTHY,
    WARNING,
    classify_health,
    classify_vdc,
    count_health,
    health_alerts,
    is_critical_status,
    is_near_saturated,
    pool_ratio,
    summarize_alerts,
)
from vcd_reporter.normalization.tenant import normalize_org_vdc


class TestSaturation:
    def test_ratio_without_capacity_is_none(self):
        assert pool_ratio(50, 0) is None
        assert pool_ratio(50, -1) is None

    def test_threshold_is_exclusive(self):
        assert is_near_saturated(90, 100) is False
        assert is_near_saturated(91, 100) is True

    def test_zero_capacity_never_saturated(self):
        assert is_near_saturated(1000, 0) is False


class TestStatusCode:
    @pytest.mark.parametrize("code", [None, "", "   "])
    def test_absent_code_not_critical(self, code):
        assert is_critical_status(code) is False

    @pytest.mark.parametrize("code", [1, 1.0, "1"])
    def test_normal_code(self, code):
        assert is_critical_status(code) is False

    @pytest.mark.parametrize("code", [0, 2, -1, "2", "offline", True])
    def test_other_codes_critical(self, code):
        assert is_critical_status(code) is True


class TestClassifyHealth:
    def test_ninety_percent_is_healthy(self):
        assert classify_health(cpu_capacity=100, cpu_used=90) == HEALTHY

    def test_ninety_one_percent_is_warning(self):
        assert classify_health(cpu_capacity=100, cpu_used=91) == WARNING

    def test_memory_pool_warning(self):
        assert classify_health(mem_capacity=1000, mem_used=950) == WARNING

    def test_ip_pool_warning(self):
        assert classify_health(ip_capacity=10, ip_used=10) == WARNING

    def test_status_code_critical(self):
        assert classify_health(cpu_capacity=100, cpu_used=0, status_code=2) == CRITICAL

    def test_critical_beats_warning(self):
        assert classify_health(cpu_capacity=100, cpu_used=99, status_code=0) == CRITICAL

    def test_all_zero_capacity_is_healthy(self):
        assert classify_health(cpu_used=500, mem_used=500, ip_used=5) == HEALTHY

    def test_custom_threshold(self):
        assert classify_health(cpu_capacity=100, cpu_used=80, threshold=0.75) == WARNING


class TestClassifyVdc(unittest.TestCase):
    def test_limit_used_as_capacity(self):
        vdc = normalize_org_vdc({"status": 1, "computeCapacity": {"cpu": {"limit": 1000, "used": 950}}})
        self.assertEqual(classify_vdc(vdc), WARNING)

    def test_allocation_used_when_no_limit(self):
        vdc = normalize_org_vdc({"computeCapacity": {"cpu": {"allocated": 1000, "limit": 0, "used": 950}}})
        self.assertEqual(classify_vdc(vdc), WARNING)

    def test_uncapped_pool_ignored(self):
        vdc = normalize_org_vdc({"computeCapacity": {"memory": {"used": 99999}}})
        self.assertEqual(classify_vdc(vdc), HEALTHY)

    def test_ip_exhaustion(self):
        vdc = normalize_org_vdc({"network": {"allocatedIps": {"totalIpCount": 4, "usedIpCount": 4}}})
        self.assertEqual(classify_vdc(vdc), WARNING)

    def test_stopped_vdc_critical(self):
        vdc = normalize_org_vdc({"status": 4})
        self.assertEqual(classify_vdc(vdc), CRITICAL)


class TestHealthAlerts(unittest.TestCase):
    def test_healthy_vdc_has_no_alerts(self):
        vdc = normalize_org_vdc({"status": 1, "computeCapacity": {"cpu": {"limit": 100, "used": 10}}})
        self.assertEqual(health_alerts(vdc), [])

    def test_status_alert(self):
        alerts = health_alerts(normalize_org_vdc({"status": 4}))
        self.assertEqual(len(alerts), 1)
        self.assertEqual(alerts[0]["severity"], CRITICAL)
        self.assertEqual(alerts[0]["category"], "status")
        self.assertEqual(alerts[0]["detail"]["status_code"], 4)

    def test_capacity_alerts_name_pools(self):
        vdc = normalize_org_vdc(
            {
                "computeCapacity": {
                    "cpu": {"limit": 100, "used": 95},
                    "memory": {"limit": 100, "used": 99},
                },
            }
        )
        alerts = health_alerts(vdc)
        self.assertEqual([a["detail"]["pool"] for a in alerts], ["cpu", "memory"])
        self.assertTrue(all(a["severity"] == WARNING for a in alerts))
        self.assertEqual(alerts[0]["detail"]["usage_pct"], 95.0)

    def test_summary_counts(self):
        vdc = normalize_org_vdc({"status": 0, "network": {"allocatedIps": {"totalIpCount": 2, "usedIpCount": 2}}})
        summary = summarize_alerts(health_alerts(vdc))
        self.assertEqual(summary["total"], 2)
        self.assertEqual(summary["critical_count"], 1)
        self.assertEqual(summary["warning_count"], 1)
        self.assertEqual(summary["by_category"], {"status": 1, "capacity": 1})

    def test_summary_ignores_non_dicts(self):
        summary = summarize_alerts(["bogus", {"severity": "warn", "category": "Capacity"}])
        self.assertEqual(summary["total"], 2)
        self.assertEqual(summary["warning_count"], 1)
        self.assertEqual(summary["by_category"], {"capacity": 1})


def test_count_health():
    counts = count_health([HEALTHY, WARNING, WARNING, "bogus"])
    assert counts == {"healthy": 1, "warning": 2, "critical": 0, "total": 3}
