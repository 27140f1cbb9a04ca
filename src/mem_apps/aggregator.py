"""Grouping and ranking of process records into per-application totals."""

from collections.abc import Iterable, Sequence

from mem_apps.models import UINT64_MASK, AppAggregate, ProcessRecord


class _AggregateBuilder:
    """Running totals for one group key."""

    __slots__ = ("name", "bundle_id", "footprint_bytes", "process_count")

    def __init__(self, record: ProcessRecord) -> None:
        self.name = record.name
        self.bundle_id = record.bundle_id
        self.footprint_bytes = record.footprint_bytes & UINT64_MASK
        self.process_count = 1

    def add(self, record: ProcessRecord) -> None:
        self.footprint_bytes = (self.footprint_bytes + record.footprint_bytes) & UINT64_MASK
        self.process_count += 1

        # First non-empty value wins; a bundle id is never cleared
        if self.bundle_id is None and record.bundle_id is not None:
            self.bundle_id = record.bundle_id
        if not self.name and record.name:
            self.name = record.name

    def freeze(self) -> AppAggregate:
        return AppAggregate(
            name=self.name,
            bundle_id=self.bundle_id,
            footprint_bytes=self.footprint_bytes,
            process_count=self.process_count,
        )


def _rank_key(app: AppAggregate) -> tuple[int, str, str]:
    return (-app.footprint_bytes, app.name.casefold(), app.name)


def aggregate(records: Iterable[ProcessRecord]) -> list[AppAggregate]:
    """Combine records by group key and rank the result.

    Footprints are summed modulo 2**64. The result is ordered by descending
    footprint, then by case-insensitive name.
    """
    grouped: dict[str, _AggregateBuilder] = {}

    for record in records:
        builder = grouped.get(record.group_key)
        if builder is None:
            grouped[record.group_key] = _AggregateBuilder(record)
        else:
            builder.add(record)

    return sorted((b.freeze() for b in grouped.values()), key=_rank_key)


def filtered_top(apps: Sequence[AppAggregate], min_bytes: int, top: int) -> list[AppAggregate]:
    """Keep the first ``top`` apps with at least ``min_bytes``, in input order."""
    if top <= 0:
        return []
    return [app for app in apps if app.footprint_bytes >= min_bytes][:top]


def megabytes_to_bytes(megabytes: float) -> int:
    """Convert a MiB threshold to bytes, saturating at the 64-bit maximum."""
    if not megabytes > 0:
        return 0
    total = megabytes * 1024.0 * 1024.0
    if total >= float(UINT64_MASK):
        return UINT64_MASK
    return int(total)
