"""CLI commands for mem-apps."""

import click
from click.core import ParameterSource

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def _configured(ctx: click.Context, name: str, value, configured):
    """Use the config file value unless the flag was given explicitly."""
    if ctx.get_parameter_source(name) in (None, ParameterSource.DEFAULT):
        return configured
    return value


@click.group(invoke_without_command=True, context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="mem-apps")
@click.option(
    "--top", "-n", type=click.IntRange(min=1), default=30, help="Show only top N entries"
)
@click.option("--json/--no-json", "json_output", default=False, help="Print machine-readable JSON")
@click.option(
    "--bytes/--no-bytes",
    "raw_bytes",
    default=False,
    help="Print raw bytes (default is human-readable)",
)
@click.option(
    "--include-others/--apps-only",
    "include_others",
    default=False,
    help='Include non-app processes grouped by executable path or "Other"',
)
@click.option(
    "--min",
    "min_mb",
    type=click.FloatRange(min=0),
    default=0.0,
    help="Minimum app footprint in MB to include",
)
@click.option("--verbose", "-v", is_flag=True, help="Print scan diagnostics to stderr")
@click.pass_context
def main(
    ctx: click.Context,
    top: int,
    json_output: bool,
    raw_bytes: bool,
    include_others: bool,
    min_mb: float,
    verbose: bool,
) -> None:
    """Print an application memory overview grouped by app.

    Defaults for every option except --verbose come from the config file
    (see `mem config show`).
    """
    if ctx.invoked_subcommand is not None:
        return

    from mem_apps import logging as mem_log
    from mem_apps.aggregator import aggregate, filtered_top, megabytes_to_bytes
    from mem_apps.config import Config
    from mem_apps.directory import default_directory
    from mem_apps.formatting import render_json, render_text
    from mem_apps.resolver import IdentityResolver
    from mem_apps.scanner import ProcessScanner

    mem_log.configure(verbose)

    try:
        cfg = Config.load()
    except ValueError as e:
        mem_log.config_invalid(str(e))
        raise SystemExit(1) from e

    report = cfg.report
    top = _configured(ctx, "top", top, report.top)
    min_mb = _configured(ctx, "min_mb", min_mb, report.min_mb)
    include_others = _configured(ctx, "include_others", include_others, report.include_others)
    json_output = _configured(ctx, "json_output", json_output, report.json)
    raw_bytes = _configured(ctx, "raw_bytes", raw_bytes, report.bytes)

    directory = default_directory()
    resolver = IdentityResolver(
        directory,
        include_others,
        max_depth=cfg.scan.max_lineage_depth,
        aliases=cfg.alias_table(),
    )
    scan = ProcessScanner(directory, include_others, resolver=resolver).scan()

    apps = filtered_top(aggregate(scan.records), megabytes_to_bytes(min_mb), top)

    if json_output:
        click.echo(render_json(apps))
    else:
        click.echo(render_text(apps, requested_top=top, raw_bytes=raw_bytes))

    if verbose:
        mem_log.scan_summary(scan.stats)


@main.group()
def config() -> None:
    """Manage configuration."""
    pass


@config.command("show")
def config_show() -> None:
    """Display current configuration."""
    from mem_apps import logging as mem_log
    from mem_apps.config import Config

    try:
        cfg = Config.load()
    except ValueError as e:
        mem_log.config_invalid(str(e))
        raise SystemExit(1) from e

    click.echo(f"Config file: {cfg.config_path}")
    click.echo(f"Exists: {cfg.config_path.exists()}")
    click.echo()
    click.echo("[report]")
    click.echo(f"  top = {cfg.report.top}")
    click.echo(f"  min_mb = {cfg.report.min_mb}")
    click.echo(f"  include_others = {cfg.report.include_others}")
    click.echo(f"  json = {cfg.report.json}")
    click.echo(f"  bytes = {cfg.report.bytes}")
    click.echo()
    click.echo("[scan]")
    click.echo(f"  max_lineage_depth = {cfg.scan.max_lineage_depth}")
    if cfg.aliases:
        click.echo()
        click.echo("[aliases]")
        for helper, target in cfg.aliases.items():
            click.echo(f"  {helper} -> {target['bundle_id']} ({target['name']})")


@config.command("edit")
def config_edit() -> None:
    """Open config file in editor."""
    import os
    import subprocess

    from mem_apps import logging as mem_log
    from mem_apps.config import Config

    cfg = Config()

    # Create config if it doesn't exist
    if not cfg.config_path.exists():
        cfg.save()
        mem_log.config_created(str(cfg.config_path))

    editor = os.environ.get("EDITOR", "nano")
    subprocess.run([editor, str(cfg.config_path)])


@config.command("reset")
@click.confirmation_option(prompt="Reset config to defaults?")
def config_reset() -> None:
    """Reset configuration to defaults."""
    from mem_apps import logging as mem_log
    from mem_apps.config import Config

    cfg = Config()
    cfg.save()
    mem_log.config_reset(str(cfg.config_path))
