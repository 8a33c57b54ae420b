import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import click

from ._report_context import (
    dump_document,
    generate_timestamps,
    get_jinja_env,
    load_settings,
    load_site_data,
    vm_kwargs,
    write_report,
)
from .csv_export import export_csv as export_csv_fn
from .export import TENANT_EXPORT_HEADERS, build_export_rows
from .health import classify_vdc
from .models.settings import ReporterSettings
from .normalization.tenant import normalize_org_vdcs
from .view_models.high_water_mark import HIGH_WATER_MARK_HEADERS, build_high_water_mark_view
from .view_models.site import build_site_summary_view
from .view_models.tenant import build_tenant_views

logger = logging.getLogger("vcd_reporter")

_FORMATS = click.Choice(["json", "yaml"])


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug-level logging.")
@click.option("--config", "-c", "config_file", type=click.Path(exists=True), help="Path to reporter settings YAML.")
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_file: str | None) -> None:
    """VCD Reporter: tenant resource health and utilization reports."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,
    )
    try:
        settings = load_settings(config_file)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


def _settings(ctx: click.Context) -> ReporterSettings:
    return (ctx.obj or {}).get("settings") or ReporterSettings()


def _load(input_file: str) -> dict[str, Any]:
    try:
        return load_site_data(input_file)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc


def _emit(data: Any, output: str | None, fmt: str) -> None:
    text = dump_document(data, fmt)
    if not output:
        click.echo(text)
        return
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    click.echo(f"Success: wrote {path}")


# ---------------------------------------------------------------------------
# View-model commands
# ---------------------------------------------------------------------------

@main.command()
@click.option("--input", "-i", "input_file", required=True, type=click.Path(exists=True), help="Path to site snapshot YAML/JSON.")
@click.option("--output", "-o", type=click.Path(), help="Write to this file instead of stdout.")
@click.option("--format", "fmt", type=_FORMATS, default="json", show_default=True, help="Output format.")
@click.option("--report-stamp", help="Report timestamp (YYYYMMDD). Defaults to today.")
@click.pass_context
def tenants(ctx: click.Context, input_file: str, output: str | None, fmt: str, report_stamp: str | None) -> None:
    """Emit the detail-card view model of every tenant."""
    data = _load(input_file)
    common_vars = generate_timestamps(report_stamp)
    views = build_tenant_views(
        normalize_org_vdcs(data["tenants"]),
        data["backup_metrics"],
        data["commit_levels"],
        _settings(ctx),
        **vm_kwargs(common_vars),
    )
    _emit(views, output, fmt)


@main.command()
@click.option("--input", "-i", "input_file", required=True, type=click.Path(exists=True), help="Path to site snapshot YAML/JSON.")
@click.option("--output", "-o", type=click.Path(), help="Write to this file instead of stdout.")
@click.option("--format", "fmt", type=_FORMATS, default="json", show_default=True, help="Output format.")
@click.option("--report-stamp", help="Report timestamp (YYYYMMDD). Defaults to today.")
@click.pass_context
def site(ctx: click.Context, input_file: str, output: str | None, fmt: str, report_stamp: str | None) -> None:
    """Emit the site resource summary view model."""
    data = _load(input_file)
    common_vars = generate_timestamps(report_stamp)
    view = build_site_summary_view(
        normalize_org_vdcs(data["tenants"]),
        data["site"],
        data["provider_capacity"],
        data["storage_config"],
        _settings(ctx),
        **vm_kwargs(common_vars),
    )
    _emit(view, output, fmt)


@main.command()
@click.option("--input", "-i", "input_file", required=True, type=click.Path(exists=True), help="Path to site snapshot YAML/JSON.")
@click.pass_context
def classify(ctx: click.Context, input_file: str) -> None:
    """Print one 'name<TAB>HEALTH' line per tenant."""
    data = _load(input_file)
    threshold = _settings(ctx).saturation_threshold
    for vdc in normalize_org_vdcs(data["tenants"]):
        click.echo(f"{vdc.name or vdc.id or '?'}\t{classify_vdc(vdc, threshold)}")


# ---------------------------------------------------------------------------
# Export / report commands
# ---------------------------------------------------------------------------

@main.command("export")
@click.option("--input", "-i", "input_file", required=True, type=click.Path(exists=True), help="Path to site snapshot YAML/JSON.")
@click.option("--output", "-o", required=True, type=click.Path(), help="Destination CSV file.")
@click.option("--include-disabled", is_flag=True, default=False, help="Keep tenants whose reporting is disabled.")
@click.pass_context
def export_cmd(ctx: click.Context, input_file: str, output: str, include_disabled: bool) -> None:
    """Write the tenant allocation export as CSV (one row per storage tier)."""
    data = _load(input_file)
    rows = build_export_rows(
        data["site"],
        normalize_org_vdcs(data["tenants"]),
        data["commit_levels"],
        _settings(ctx),
        timestamp=generate_timestamps()["now_iso"],
        include_disabled=include_disabled,
    )
    count = export_csv_fn(rows, TENANT_EXPORT_HEADERS, output, sort_by="Tenant")
    click.echo(f"Success: exported {count} row(s) to {output}")


@main.command("high-water-mark")
@click.option("--input", "-i", "input_file", required=True, type=click.Path(exists=True), help="Path to site snapshot YAML/JSON with a 'snapshots' list.")
@click.option("--year", type=int, help="Billing year. Defaults to the current year.")
@click.option("--month", type=int, help="Billing month (1-12). Defaults to the current month.")
@click.option("--output", "-o", type=click.Path(), help="Write to this file instead of stdout.")
@click.option("--format", "fmt", type=click.Choice(["json", "yaml", "csv"]), default="json", show_default=True, help="Output format.")
@click.option("--report-stamp", help="Report timestamp (YYYYMMDD). Defaults to today.")
@click.pass_context
def high_water_mark(
    ctx: click.Context,
    input_file: str,
    year: int | None,
    month: int | None,
    output: str | None,
    fmt: str,
    report_stamp: str | None,
) -> None:
    """Emit each tenant's peak usage for one month, for billing."""
    if fmt == "csv" and not output:
        raise click.UsageError("--format csv requires --output")
    data = _load(input_file)
    now = datetime.now(tz=timezone.utc)
    common_vars = generate_timestamps(report_stamp)
    try:
        view = build_high_water_mark_view(
            data["snapshots"],
            now.year if year is None else year,
            now.month if month is None else month,
            data["commit_levels"],
            data["sites"] or data["site"],
            _settings(ctx),
            **vm_kwargs(common_vars),
        )
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    if fmt == "csv":
        count = export_csv_fn(view["rows"], HIGH_WATER_MARK_HEADERS, output)
        click.echo(f"Success: exported {count} row(s) to {output}")
        return
    _emit(view, output, fmt)


@main.command()
@click.option("--input", "-i", "input_file", required=True, type=click.Path(exists=True), help="Path to site snapshot YAML/JSON.")
@click.option("--output-dir", "-o", required=True, type=click.Path(), help="Output directory for HTML reports.")
@click.option("--report-stamp", help="Report timestamp (YYYYMMDD). Defaults to today.")
@click.option("--csv/--no-csv", "export_csv", default=False, help="Also write the tenant export CSV.")
@click.pass_context
def report(ctx: click.Context, input_file: str, output_dir: str, report_stamp: str | None, export_csv: bool) -> None:
    """Render the site summary and tenant cards as an HTML report."""
    settings = _settings(ctx)
    data = _load(input_file)
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    common_vars = generate_timestamps(report_stamp)
    kw = vm_kwargs(common_vars)

    vdcs = normalize_org_vdcs(data["tenants"])
    site_view = build_site_summary_view(
        vdcs, data["site"], data["provider_capacity"], data["storage_config"], settings, **kw
    )
    tenant_views = build_tenant_views(vdcs, data["backup_metrics"], data["commit_levels"], settings, **kw)

    tpl = get_jinja_env().get_template("tenant_report.html.j2")
    content = tpl.render(site_view=site_view, tenant_views=tenant_views, **common_vars)
    write_report(output_path, "tenant_report.html", content, common_vars["report_stamp"])
    logger.debug("Rendered %d tenant card(s)", len(tenant_views))

    if export_csv:
        rows = build_export_rows(
            data["site"], vdcs, data["commit_levels"], settings, timestamp=common_vars["now_iso"]
        )
        csv_path = output_path / f"tenant_export_{common_vars['report_stamp']}.csv"
        export_csv_fn(rows, TENANT_EXPORT_HEADERS, csv_path, sort_by="Tenant")

    click.echo(f"Done! Report generated in {output_dir}")


if __name__ == "__main__":
    main()
