"""Formatting utilities for byte counts and the app report."""

import json
from collections.abc import Sequence

from mem_apps.models import UINT64_MASK, AppAggregate

BYTE_UNITS = ("B", "KB", "MB", "GB", "TB", "PB", "EB")

NAME_WIDTH_CAP = 40

HEADERS = ("App Name", "Bundle ID", "Total Footprint", "Process Count")


def human_readable(num_bytes: int) -> str:
    """Format a byte count with binary units.

    Returns:
        "512 B", "1.5 KB", "12 MB", ... One decimal below 10 unless the
        value is whole.
    """
    if num_bytes < 1024:
        return f"{num_bytes} B"

    value = float(num_bytes)
    unit = 0
    while value >= 1024.0 and unit < len(BYTE_UNITS) - 1:
        value /= 1024.0
        unit += 1

    if value >= 10.0 or value.is_integer():
        return f"{value:.0f} {BYTE_UNITS[unit]}"
    return f"{value:.1f} {BYTE_UNITS[unit]}"


def format_bytes(num_bytes: int, raw: bool = False) -> str:
    """Format bytes either raw ("1234") or human-readable ("1.2 KB")."""
    return str(num_bytes) if raw else human_readable(num_bytes)


def render_json(apps: Sequence[AppAggregate]) -> str:
    """Render aggregates as a pretty-printed JSON array with sorted keys."""
    return json.dumps([app.to_dict() for app in apps], indent=2, sort_keys=True)


def render_text(apps: Sequence[AppAggregate], requested_top: int, raw_bytes: bool = False) -> str:
    """Render aggregates as a summary line followed by a pipe-separated table."""
    total = 0
    for app in apps:
        total = (total + app.footprint_bytes) & UINT64_MASK

    name_header, bundle_header, memory_header, count_header = HEADERS
    memory = [format_bytes(app.footprint_bytes, raw_bytes) for app in apps]
    counts = [str(app.process_count) for app in apps]
    bundles = [app.bundle_id or "-" for app in apps]

    # Long names overflow their column rather than widening it past the cap
    longest_name = max((len(app.name) for app in apps), default=len(name_header))
    name_width = max(len(name_header), min(NAME_WIDTH_CAP, longest_name))
    bundle_width = max([len(bundle_header), *map(len, bundles)])
    memory_width = max([len(memory_header), *map(len, memory)])
    count_width = max([len(count_header), *map(len, counts)])

    lines = [
        f"Total app footprint (top {requested_top}): {format_bytes(total, raw_bytes)}",
        "",
        f"{name_header.ljust(name_width)} | {bundle_header.ljust(bundle_width)} | "
        f"{memory_header.rjust(memory_width)} | {count_header.rjust(count_width)}",
        f"{'-' * name_width}-+-{'-' * bundle_width}-+-{'-' * memory_width}-+-{'-' * count_width}",
    ]
    for app, bundle, mem, count in zip(apps, bundles, memory, counts):
        lines.append(
            f"{app.name.ljust(name_width)} | {bundle.ljust(bundle_width)} | "
            f"{mem.rjust(memory_width)} | {count.rjust(count_width)}"
        )
    return "\n".join(lines)
