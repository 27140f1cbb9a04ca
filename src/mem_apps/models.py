"""Value types shared by the scanner, resolver and aggregator."""

from dataclasses import dataclass, field
from enum import Enum

# Footprint sums wrap modulo 2**64, matching an unsigned 64-bit counter.
UINT64_MASK = (1 << 64) - 1


class FootprintError(Enum):
    """Why a footprint could not be read for a process."""

    PERMISSION_DENIED = "permission_denied"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True, slots=True)
class FootprintResult:
    """Outcome of a single footprint query.

    Exactly one of ``bytes`` and ``error`` is set.
    """

    bytes: int | None = None
    error: FootprintError | None = None

    @property
    def ok(self) -> bool:
        return self.bytes is not None

    @classmethod
    def of(cls, footprint: int) -> "FootprintResult":
        return cls(bytes=footprint & UINT64_MASK)

    @classmethod
    def failed(cls, error: FootprintError) -> "FootprintResult":
        return cls(error=error)


@dataclass(frozen=True, slots=True)
class RunningApplication:
    """A user-facing application that owns a process."""

    bundle_id: str
    display_name: str


@dataclass(frozen=True, slots=True)
class AppIdentity:
    """Resolved identity of one process, independent of its footprint."""

    group_key: str
    name: str
    bundle_id: str | None = None


@dataclass(frozen=True, slots=True)
class ProcessRecord:
    """One successfully resolved process."""

    group_key: str
    name: str
    bundle_id: str | None
    footprint_bytes: int


@dataclass(frozen=True, slots=True)
class AppAggregate:
    """Summed footprint and process count for one application group."""

    name: str
    bundle_id: str | None
    footprint_bytes: int
    process_count: int

    def to_dict(self) -> dict:
        """Serialize to a dictionary (bundleId is null when absent)."""
        return {
            "name": self.name,
            "bundleId": self.bundle_id,
            "footprintBytes": self.footprint_bytes,
            "processCount": self.process_count,
        }


@dataclass(slots=True)
class ScanStats:
    """Counters collected during one scan pass."""

    total_scanned: int = 0
    skipped_permission_denied: int = 0
    skipped_unavailable: int = 0
    skipped_unmapped: int = 0

    def to_dict(self) -> dict:
        return {
            "total_scanned": self.total_scanned,
            "skipped_permission_denied": self.skipped_permission_denied,
            "skipped_unavailable": self.skipped_unavailable,
            "skipped_unmapped": self.skipped_unmapped,
        }


@dataclass(slots=True)
class ScanResult:
    """Records and statistics from one scan."""

    records: list[ProcessRecord] = field(default_factory=list)
    stats: ScanStats = field(default_factory=ScanStats)
