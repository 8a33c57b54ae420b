"""Tenant resource health and view-model reporting for VMware Cloud Director."""

__version__ = "0.1.0"
