from .site import build_site_summary_view
from .tenant import build_tenant_view, build_tenant_views

__all__ = [
    "build_site_summary_view",
    "build_tenant_view",
    "build_tenant_views",
]
