"""Tests for the monthly high-water-mark view model."""

from datetime import datetime

import pytest

from vcd_reporter.models.settings import ReporterSettings
from vcd_reporter.view_models.high_water_mark import (
    aggregate_high_water_marks,
    bucket_storage_gb,
    build_high_water_mark_view,
    build_high_water_marks,
    in_period,
    storage_bucket,
    validate_period,
)

SITE = {"id": "s1", "name": "DC1", "location": "Sydney", "platformType": "vcd"}


def _snapshot(tenant_id, polled_at, site_id="s1", **allocation):
    return {
        "siteId": site_id,
        "tenantId": tenant_id,
        "orgName": allocation.pop("org_name", None),
        "orgFullName": allocation.pop("org_full_name", None),
        "polledAt": polled_at,
        "allocationData": allocation,
    }


def _january():
    return [
        _snapshot(
            "t1",
            "2026-01-05T10:00:00Z",
            name="Alpha",
            org_name="alpha",
            org_full_name="Alpha Ltd",
            cpu={"used": 5600},
            memory={"used": 2048},
            storage={"used": 1000, "tiers": [{"name": "HPS-Gold", "used": 2048}, {"name": "Standard", "used": 512}]},
            allocatedIps=3,
        ),
        _snapshot(
            "t1",
            "2026-01-20T10:00:00+00:00",
            name="Alpha",
            cpu={"used": 4200},
            memory={"used": 4096},
            storage={"used": 800, "tiers": [{"name": "hps-gold", "used": 1024}, {"name": "VVol-1", "used": 3072}]},
            allocatedIps=2,
        ),
        _snapshot("t1", "2026-02-01T00:00:00Z", name="Alpha", cpu={"used": 99999}),
        _snapshot("t2", datetime(2026, 1, 10, 8, 0), cpu={"used": 1400}, memory={"used": 512}),
    ]


class TestValidatePeriod:
    def test_valid(self):
        assert validate_period("2026", 1) == (2026, 1)

    @pytest.mark.parametrize("year,month", [(1999, 1), (2101, 1), (2026, 0), (2026, 13), ("x", 1), (2026, None)])
    def test_rejected(self, year, month):
        with pytest.raises(ValueError):
            validate_period(year, month)


class TestStorageBucket:
    @pytest.mark.parametrize(
        "name,bucket",
        [
            ("HPS-Gold", "hps"),
            ("high-performance", "hps"),
            ("SPS", "sps"),
            ("standard-tier", "sps"),
            ("vVol-A", "vvol"),
            ("archive", "other"),
            (None, "other"),
        ],
    )
    def test_names(self, name, bucket):
        assert storage_bucket(name) == bucket

    def test_each_tier_rounds_before_summing(self):
        buckets = bucket_storage_gb({"hps-a": 512, "hps-b": 512, "archive": 100})
        assert buckets == {"hps": 2, "sps": 0, "vvol": 0, "other": 0}


class TestInPeriod:
    def test_aware_timestamp_compared_in_utc(self):
        late = datetime.fromisoformat("2026-02-01T09:00:00+10:00")
        assert in_period(late, 2026, 1)
        assert not in_period(late, 2026, 2)

    def test_missing_timestamp(self):
        assert not in_period(None, 2026, 1)


class TestAggregate:
    def test_peaks_per_tenant(self):
        marks = {m["tenant_id"]: m for m in aggregate_high_water_marks(_january(), 2026, 1)}
        alpha = marks["t1"]
        assert alpha["max_cpu_mhz"] == 5600.0
        assert alpha["max_ram_mb"] == 4096.0
        assert alpha["max_storage_mb"] == 1000.0
        assert alpha["max_ips"] == 3
        assert alpha["snapshot_count"] == 2
        assert alpha["tiers"] == {"hps-gold": 2048.0, "standard": 512.0, "vvol-1": 3072.0}

    def test_other_month_excluded(self):
        marks = aggregate_high_water_marks(_january(), 2026, 2)
        assert [(m["tenant_id"], m["max_cpu_mhz"]) for m in marks] == [("t1", 99999.0)]

    def test_same_tenant_on_two_sites_kept_apart(self):
        snapshots = _january() + [_snapshot("t1", "2026-01-07T00:00:00Z", site_id="s2", cpu={"used": 100})]
        keys = {(m["site_id"], m["tenant_id"]) for m in aggregate_high_water_marks(snapshots, 2026, 1)}
        assert keys == {("s1", "t1"), ("s1", "t2"), ("s2", "t1")}

    def test_unusable_snapshots_skipped_with_warning(self, caplog):
        snapshots = ["junk", {"polledAt": "2026-01-01T00:00:00Z"}, {"tenantId": "t9", "polledAt": "not a date"}]
        with caplog.at_level("WARNING", logger="vcd_reporter.normalization.tenant"):
            assert aggregate_high_water_marks(snapshots, 2026, 1) == []
        assert len(caplog.records) == 3

    def test_untiered_tenant_has_no_tiers(self):
        marks = {m["tenant_id"]: m for m in aggregate_high_water_marks(_january(), 2026, 1)}
        assert marks["t2"]["tiers"] == {}


class TestBuildRows:
    def _rows(self, **kwargs):
        commit_levels = {"s1:t1": {"businessId": "B-1", "storageHpsGB": "500"}, "t2": {"businessName": "Beta Biz"}}
        return build_high_water_marks(_january(), 2026, 1, commit_levels, SITE, **kwargs)

    def test_row_values(self):
        alpha, beta = self._rows()
        assert alpha["site"] == "DC1"
        assert alpha["location"] == "Sydney"
        assert alpha["platform"] == "VCD"
        assert alpha["tenant"] == "Alpha"
        assert alpha["vcpu"] == 2
        assert alpha["ram"] == 4
        assert (alpha["storage_hps"], alpha["storage_sps"], alpha["storage_vvol"], alpha["storage_other"]) == (2, 1, 3, 0)
        assert alpha["snapshots"] == 2
        assert beta["tenant"] == "t2"
        assert beta["vcpu"] == 1

    def test_commit_enrichment(self):
        alpha, beta = self._rows()
        assert alpha["business_id"] == "B-1"
        assert alpha["business_name"] == "Alpha Ltd"
        assert alpha["commit_hps"] == "500"
        assert alpha["commit_notes"] == ""
        assert beta["business_id"] == ""
        assert beta["business_name"] == "Beta Biz"

    def test_billing_divisor_configurable(self):
        alpha, _ = self._rows(settings=ReporterSettings(billing_mhz_per_vcpu=1400))
        assert alpha["vcpu"] == 4

    def test_unknown_site_shows_id(self):
        rows = build_high_water_marks(_january(), 2026, 1)
        assert {r["site"] for r in rows} == {"s1"}
        assert {r["platform"] for r in rows} == {"VCD"}

    def test_site_list_matched_by_id(self):
        sites = [SITE, {"id": "s2", "name": "DC2"}]
        rows = build_high_water_marks(_january(), 2026, 1, sites=sites)
        assert rows[0]["site"] == "DC1"

    def test_empty_month(self):
        assert build_high_water_marks(_january(), 2025, 12) == []

    def test_invalid_period_raises(self):
        with pytest.raises(ValueError, match="month"):
            build_high_water_marks(_january(), 2026, 13)


class TestView:
    def test_view_shape(self):
        view = build_high_water_mark_view(_january(), 2026, 1, sites=SITE, report_stamp="20260201")
        assert view["meta"]["report_stamp"] == "20260201"
        assert view["period"] == {"year": 2026, "month": 1, "label": "2026-01"}
        assert view["totals"] == {"tenants": 2, "snapshots": 3}
        assert [r["tenant_id"] for r in view["rows"]] == ["t1", "t2"]
