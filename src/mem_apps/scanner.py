"""Single-pass process scan: footprint plus identity for every PID."""

import structlog

from mem_apps.directory import ProcessDirectory
from mem_apps.models import FootprintError, ProcessRecord, ScanResult
from mem_apps.resolver import IdentityResolver

log = structlog.get_logger()


class ProcessScanner:
    """Drives directory -> footprint -> identity once per PID.

    Owns its IdentityResolver, so caches live exactly as long as the
    scanner. A supplied resolver carries its own include_others
    setting. Processes that cannot be read or resolved are counted in the
    scan statistics and left out of the records; nothing here raises for a
    single bad PID.
    """

    def __init__(
        self,
        directory: ProcessDirectory,
        include_others: bool = False,
        resolver: IdentityResolver | None = None,
    ) -> None:
        self.directory = directory
        self.resolver = resolver or IdentityResolver(directory, include_others)

    @property
    def include_others(self) -> bool:
        return self.resolver.include_others

    def scan(self) -> ScanResult:
        """Scan every live process once.

        Returns:
            ScanResult with one ProcessRecord per resolved process, in
            directory order, plus skip counters.
        """
        result = ScanResult()
        stats = result.stats

        for pid in self.directory.list_pids():
            if pid <= 0:
                continue
            stats.total_scanned += 1

            footprint = self.directory.footprint(pid)
            if not footprint.ok:
                error = footprint.error or FootprintError.UNAVAILABLE
                if error is FootprintError.PERMISSION_DENIED:
                    stats.skipped_permission_denied += 1
                else:
                    stats.skipped_unavailable += 1
                log.debug("footprint_skipped", pid=pid, reason=error.value)
                continue

            identity = self.resolver.resolve(pid)
            if identity is None:
                stats.skipped_unmapped += 1
                log.debug("identity_unmapped", pid=pid)
                continue

            result.records.append(
                ProcessRecord(
                    group_key=identity.group_key,
                    name=identity.name,
                    bundle_id=identity.bundle_id,
                    footprint_bytes=footprint.bytes,
                )
            )

        log.debug("scan_complete", records=len(result.records), **stats.to_dict())
        return result
