"""Tests for tenant allocation export rows."""

import csv
import unittest

from vcd_reporter.csv_export import export_csv, header_to_key
from vcd_reporter.export import TENANT_EXPORT_HEADERS, build_export_rows

SITE = {"name": "DC1", "location": "Sydney", "platformType": "vcd"}


def _tenants():
    return [
        {
            "id": "vdc-a",
            "name": "alpha-vdc",
            "status": 1,
            "orgName": "alpha",
            "orgFullName": "Alpha Pty Ltd",
            "vmResources": {"vmCount": 4, "runningVmCount": 3},
            "computeCapacity": {
                "cpu": {"allocated": 10000, "used": 2500},
                "memory": {"allocated": 8192, "used": 4096},
            },
            "storageProfiles": [
                {"name": "Gold", "limit": 1000, "used": 100},
                {"name": "Silver", "limit": 3000, "used": 300},
            ],
            "network": {"allocatedIps": {"totalIpCount": 6, "usedIpCount": 1}},
        },
        {
            "id": "vdc-b",
            "name": "beta-vdc",
            "status": 2,
            "orgName": "beta",
            "orgFullName": "Beta Inc",
        },
    ]


class TestExportRows(unittest.TestCase):
    def test_one_row_per_tier(self):
        rows = build_export_rows(SITE, _tenants())
        self.assertEqual(len(rows), 3)
        self.assertEqual([r["storage_tier"] for r in rows], ["Gold", "Silver", "Default"])

    def test_tier_figures(self):
        gold, silver, _ = build_export_rows(SITE, _tenants())
        self.assertEqual(gold["tier_limit"], 1000.0)
        self.assertEqual(silver["tier_used"], 300.0)
        self.assertEqual(gold["storage_total"], 4000.0)
        self.assertEqual(gold["storage_used"], 400.0)

    def test_default_row_without_profiles(self):
        default = build_export_rows(SITE, _tenants())[2]
        self.assertEqual(default["tenant"], "beta-vdc")
        self.assertEqual(default["tier_limit"], 0)
        self.assertEqual(default["status"], "CRITICAL")

    def test_site_and_tenant_columns(self):
        row = build_export_rows(SITE, _tenants(), timestamp="2026-01-01T00:00:00+00:00")[0]
        self.assertEqual(row["timestamp"], "2026-01-01T00:00:00+00:00")
        self.assertEqual(row["site"], "DC1")
        self.assertEqual(row["platform"], "VCD")
        self.assertEqual(row["status"], "HEALTHY")
        self.assertEqual(row["vm_count"], 4)
        self.assertEqual(row["cpu_used"], 2500.0)
        self.assertEqual(row["allocated_ips"], 6)

    def test_business_falls_back_to_org(self):
        row = build_export_rows(SITE, _tenants())[0]
        self.assertEqual(row["business_id"], "alpha")
        self.assertEqual(row["business_name"], "Alpha Pty Ltd")
        self.assertEqual(row["commit_vcpu"], "")

    def test_commit_columns(self):
        commits = {"vdc-a": {"businessId": "B-100", "businessName": "Alpha Group", "vcpuCount": 16, "ramGB": "64"}}
        row = build_export_rows(SITE, _tenants(), commits)[0]
        self.assertEqual(row["business_id"], "B-100")
        self.assertEqual(row["business_name"], "Alpha Group")
        self.assertEqual(row["commit_vcpu"], "16")
        self.assertEqual(row["commit_ram"], "64")

    def test_reporting_disabled_excluded(self):
        commits = {"vdc-b": {"isReportingDisabled": True, "disabledReason": "Internal"}}
        rows = build_export_rows(SITE, _tenants(), commits)
        self.assertNotIn("beta-vdc", [r["tenant"] for r in rows])

    def test_reporting_disabled_kept_on_request(self):
        commits = {"vdc-b": {"isReportingDisabled": True}}
        rows = build_export_rows(SITE, _tenants(), commits, include_disabled=True)
        self.assertIn("beta-vdc", [r["tenant"] for r in rows])

    def test_every_header_has_a_column(self):
        for row in build_export_rows(SITE, _tenants()):
            for header in TENANT_EXPORT_HEADERS:
                self.assertIn(header_to_key(header), row, header)


class TestExportCsvFile:
    def test_written_csv(self, tmp_path):
        out = tmp_path / "export" / "tenants.csv"
        export_csv(build_export_rows(SITE, _tenants()), TENANT_EXPORT_HEADERS, out, sort_by="Tenant")
        with open(out, newline="") as f:
            result = list(csv.reader(f))
        assert result[0] == TENANT_EXPORT_HEADERS
        assert len(result) == 4
        cpu_col = TENANT_EXPORT_HEADERS.index("CPU Allocated (MHz)")
        assert result[1][cpu_col] == "10000"
