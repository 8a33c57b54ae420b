"""Shared CLI helpers for input loading, settings and report writing."""

from __future__ import annotations

import functools
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml
from jinja2 import Environment, FileSystemLoader
from pydantic import ValidationError

from .models.settings import ReporterSettings
from .primitives import safe_dict, safe_list

logger = logging.getLogger(__name__)

_VIEW_MODEL_KEYS = {"report_stamp", "report_date", "report_id"}


# ---------------------------------------------------------------------------
# Cached Jinja environment
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=1)
def get_jinja_env() -> Environment:
    """Return a cached Jinja2 Environment configured for report templates."""
    from .view_models.common import status_badge_meta as _badge  # avoid circular

    template_dir = Path(__file__).parent / "templates"
    env = Environment(
        loader=FileSystemLoader(template_dir),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["status_badge_meta"] = _badge
    return env


# ---------------------------------------------------------------------------
# YAML / JSON loading
# ---------------------------------------------------------------------------


def load_document(input_file: str | Path) -> Any:
    """Load a YAML or JSON document; JSON is chosen by the .json suffix."""
    path = Path(input_file)
    try:
        with open(path, encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                return json.load(f)
            return yaml.safe_load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ValueError(f"Cannot read {path}: {exc}") from exc


def load_site_data(input_file: str | Path) -> dict[str, Any]:
    """
    Load a site snapshot file into its canonical sections.

    A bare list is treated as the tenants list. Missing sections default to
    empty containers. ``snapshots`` holds the poll history used for the
    monthly high-water mark.
    """
    data = load_document(input_file)
    if isinstance(data, list):
        data = {"tenants": data}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid input file: {input_file} (expected a mapping or a list of tenants)")

    tenants = safe_list(data.get("tenants", data.get("vdcs")))
    logger.debug("Loaded %d tenant record(s) from %s", len(tenants), input_file)
    return {
        "site": safe_dict(data.get("site")),
        "tenants": tenants,
        "backup_metrics": safe_dict(data.get("backup_metrics", data.get("backupMetrics"))),
        "commit_levels": safe_dict(data.get("commit_levels", data.get("commitLevels"))),
        "provider_capacity": safe_dict(data.get("provider_capacity", data.get("providerCapacity"))),
        "storage_config": safe_dict(data.get("storage_config", data.get("storageConfig"))),
        "sites": safe_list(data.get("sites")),
        "snapshots": safe_list(data.get("snapshots", data.get("pollSnapshots"))),
    }


def load_settings(config_file: str | Path | None) -> ReporterSettings:
    """Load reporter settings from an optional YAML mapping; defaults when absent."""
    if not config_file:
        return ReporterSettings()
    raw = load_document(config_file) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid config file: {config_file} (expected YAML mapping)")
    try:
        settings = ReporterSettings.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid config file {config_file}: {exc}") from exc
    logger.debug("Loaded settings from %s: %s", config_file, settings.model_dump())
    return settings


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def generate_timestamps(report_stamp: str | None = None) -> dict[str, Any]:
    """Build the full set of timestamp strings used by report commands."""
    now = datetime.now(tz=timezone.utc)
    stamp = report_stamp or now.strftime("%Y%m%d")
    date_str = now.strftime("%Y-%m-%d %H:%M:%S")
    rid = now.strftime("%Y%m%dT%H%M%SZ")
    return {
        "report_stamp": stamp,
        "report_date": date_str,
        "report_id": rid,
        "now_iso": now.isoformat(),
    }


def vm_kwargs(common_vars: dict[str, Any]) -> dict[str, Any]:
    """Extract only the keys accepted by view-model builder functions."""
    return {k: v for k, v in common_vars.items() if k in _VIEW_MODEL_KEYS}


# ---------------------------------------------------------------------------
# Output writing
# ---------------------------------------------------------------------------


def dump_document(data: Any, fmt: str = "json") -> str:
    if fmt == "yaml":
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
    return json.dumps(data, indent=2, default=str)


def write_report(output_path: Path, base_name: str, content: str, stamp: str) -> None:
    """Write a stamped report and a 'latest' (un-stamped) copy."""
    stem, ext = base_name.rsplit(".", 1) if "." in base_name else (base_name, "html")
    stamped = output_path / f"{stem}_{stamp}.{ext}"
    latest = output_path / f"{stem}.{ext}"
    with open(stamped, "w") as f:
        f.write(content)
    with open(latest, "w") as f:
        f.write(content)
