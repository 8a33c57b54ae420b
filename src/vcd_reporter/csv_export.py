"""CSV output for flat report rows addressed by their display headers.

Rows are plain dicts keyed in snake_case. Each display header maps to a row
key by dropping any parenthesised unit and snake-casing the rest, so
``"Tier Limit (MB)"`` reads ``row["tier_limit"]``.
"""

import csv
import re
from pathlib import Path
from typing import Any, Iterable, Mapping

_UNIT_SUFFIX = re.compile(r"\(.*?\)")
_WHITESPACE = re.compile(r"\s+")


def header_to_key(header: str) -> str:
    """
    >>> header_to_key("Running VMs")
    'running_vms'
    >>> header_to_key("CPU Used (MHz)")
    'cpu_used'
    """
    bare = _UNIT_SUFFIX.sub("", header).strip()
    return _WHITESPACE.sub("_", bare).lower()


def column_keys(headers: list[str], key_map: Mapping[str, str] | None = None) -> list[str]:
    overrides = key_map or {}
    return [overrides.get(header) or header_to_key(header) for header in headers]


def format_cell(value: Any) -> str:
    """Render one cell: whole-number floats lose their '.0', lists join with '; '."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return "; ".join(format_cell(item) for item in value)
    return " ".join(str(value).splitlines())


def export_csv(
    rows: Iterable[Mapping[str, Any]],
    headers: list[str],
    output_path: str | Path,
    sort_by: str | None = None,
    key_map: Mapping[str, str] | None = None,
) -> int:
    """
    Write *rows* under *headers* to *output_path* and return the row count.

    *sort_by* names a header; rows are ordered by that column's rendered
    text, case-insensitively. *key_map* overrides the derived key of any
    header. Missing keys become empty cells.
    """
    keys = column_keys(headers, key_map)
    ordered = list(rows)
    if sort_by in headers:
        sort_key = keys[headers.index(sort_by)]
        ordered.sort(key=lambda row: format_cell(row.get(sort_key)).lower())

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.writer(fh)
        writer.writerow(headers)
        writer.writerows([format_cell(row.get(key)) for key in keys] for row in ordered)
    return len(ordered)
