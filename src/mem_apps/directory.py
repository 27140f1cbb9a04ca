"""Process directory backends: PID listing, footprint, ancestry, app ownership.

Two backends implement the same interface:

- LibprocDirectory: macOS, reads ri_phys_footprint through libproc.dylib
- PsutilDirectory: portable, reads resident set size through psutil

Both resolve application ownership from the ``.app`` bundle enclosing a
process's executable.
"""

import sys
from pathlib import PurePosixPath
from typing import Protocol

import psutil

from mem_apps.bundles import find_app_bundle, read_bundle_info
from mem_apps.models import FootprintError, FootprintResult, RunningApplication


class ProcessDirectory(Protocol):
    """What the scanner and resolver need from the operating system."""

    def list_pids(self) -> list[int]: ...

    def footprint(self, pid: int) -> FootprintResult: ...

    def parent_pid(self, pid: int) -> int | None: ...

    def executable_path(self, pid: int) -> str | None: ...

    def running_application(
        self, pid: int, executable_path: str | None
    ) -> RunningApplication | None: ...


class _BundleLookup:
    """Maps executables to the application bundle that contains them.

    The caller supplies the executable path it already read for ``pid``, so
    each path is read from the OS once. Info.plist reads are memoized per
    bundle for the lifetime of the directory, which is one scan.
    """

    def __init__(self) -> None:
        self._bundles: dict[PurePosixPath, RunningApplication | None] = {}

    def running_application(
        self, pid: int, executable_path: str | None
    ) -> RunningApplication | None:
        bundle = find_app_bundle(executable_path or "")
        if bundle is None:
            return None
        if bundle not in self._bundles:
            self._bundles[bundle] = read_bundle_info(bundle)
        return self._bundles[bundle]


class LibprocDirectory(_BundleLookup):
    """Process directory backed by libproc.dylib (macOS only)."""

    def list_pids(self) -> list[int]:
        from mem_apps.libproc import list_all_pids

        return list_all_pids()

    def footprint(self, pid: int) -> FootprintResult:
        from mem_apps.libproc import get_phys_footprint, is_permission_error

        footprint, code = get_phys_footprint(pid)
        if footprint is not None:
            return FootprintResult.of(footprint)
        if is_permission_error(code):
            return FootprintResult.failed(FootprintError.PERMISSION_DENIED)
        return FootprintResult.failed(FootprintError.UNAVAILABLE)

    def parent_pid(self, pid: int) -> int | None:
        from mem_apps.libproc import get_parent_pid

        return get_parent_pid(pid)

    def executable_path(self, pid: int) -> str | None:
        from mem_apps.libproc import get_executable_path

        return get_executable_path(pid)


class PsutilDirectory(_BundleLookup):
    """Process directory backed by psutil.

    The footprint is the resident set size, the closest counter psutil
    exposes on every platform.
    """

    def list_pids(self) -> list[int]:
        return [pid for pid in psutil.pids() if pid > 0]

    def footprint(self, pid: int) -> FootprintResult:
        try:
            rss = psutil.Process(pid).memory_info().rss
        except psutil.AccessDenied:
            return FootprintResult.failed(FootprintError.PERMISSION_DENIED)
        except (psutil.NoSuchProcess, psutil.ZombieProcess):
            return FootprintResult.failed(FootprintError.UNAVAILABLE)
        return FootprintResult.of(rss)

    def parent_pid(self, pid: int) -> int | None:
        try:
            return psutil.Process(pid).ppid()
        except psutil.Error:
            return None

    def executable_path(self, pid: int) -> str | None:
        try:
            return psutil.Process(pid).exe() or None
        except psutil.Error:
            return None


def default_directory() -> ProcessDirectory:
    """Pick the most precise backend for the running platform."""
    if sys.platform == "darwin":
        return LibprocDirectory()
    return PsutilDirectory()
