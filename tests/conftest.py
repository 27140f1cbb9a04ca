"""Shared test fixtures for mem-apps."""

from collections import Counter

import pytest
import structlog

from mem_apps.models import (
    AppAggregate,
    FootprintError,
    FootprintResult,
    ProcessRecord,
    RunningApplication,
)


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo any structlog configuration a CLI test installed."""
    yield
    structlog.reset_defaults()


class FakeDirectory:
    """In-memory process table for scanner and resolver tests.

    Args:
        pids: PIDs returned by list_pids, in order
        footprints: pid -> bytes, or a FootprintError; missing means unavailable
        parents: pid -> parent pid
        paths: pid -> executable path
        apps: pid -> RunningApplication
    """

    def __init__(
        self,
        pids: list[int] | None = None,
        footprints: dict[int, int | FootprintError] | None = None,
        parents: dict[int, int] | None = None,
        paths: dict[int, str] | None = None,
        apps: dict[int, RunningApplication] | None = None,
    ) -> None:
        self.pids = pids or []
        self.footprints = footprints or {}
        self.parents = parents or {}
        self.paths = paths or {}
        self.apps = apps or {}
        self.calls: Counter[tuple[str, int]] = Counter()

    def list_pids(self) -> list[int]:
        return list(self.pids)

    def footprint(self, pid: int) -> FootprintResult:
        self.calls["footprint", pid] += 1
        value = self.footprints.get(pid)
        if value is None:
            return FootprintResult.failed(FootprintError.UNAVAILABLE)
        if isinstance(value, FootprintError):
            return FootprintResult.failed(value)
        return FootprintResult.of(value)

    def parent_pid(self, pid: int) -> int | None:
        self.calls["parent_pid", pid] += 1
        return self.parents.get(pid)

    def executable_path(self, pid: int) -> str | None:
        self.calls["executable_path", pid] += 1
        return self.paths.get(pid)

    def running_application(
        self, pid: int, executable_path: str | None = None
    ) -> RunningApplication | None:
        self.calls["running_application", pid] += 1
        return self.apps.get(pid)


@pytest.fixture
def fake_directory() -> FakeDirectory:
    """A small process tree.

    1    launchd
    100  Terminal.app            (app)
    101  -zsh                    child of Terminal
    102  python3                 child of zsh
    200  Firefox.app             (app)
    201  plugin-container        (helper bundle)
    300  sshd                    no app anywhere in lineage
    301  sshd session            child of sshd
    400  root-owned daemon       footprint denied
    500  vanished process        footprint unavailable
    """
    return FakeDirectory(
        pids=[1, 100, 101, 102, 200, 201, 300, 301, 400, 500],
        footprints={
            1: 10,
            100: 1000,
            101: 100,
            102: 300,
            200: 5000,
            201: 3000,
            300: 50,
            301: 70,
            400: FootprintError.PERMISSION_DENIED,
        },
        parents={1: 0, 100: 1, 101: 100, 102: 101, 200: 1, 201: 200, 300: 1, 301: 300},
        paths={
            1: "/sbin/launchd",
            100: "/System/Applications/Utilities/Terminal.app/Contents/MacOS/Terminal",
            101: "/bin/zsh",
            102: "/usr/bin/python3",
            300: "/usr/sbin/sshd",
            301: "/usr/sbin/sshd",
        },
        apps={
            100: RunningApplication("com.apple.Terminal", "Terminal"),
            200: RunningApplication("org.mozilla.firefox", "Firefox"),
            201: RunningApplication("org.mozilla.plugincontainer", "FirefoxCP Web Content"),
        },
    )


def make_record(
    group_key: str = "bundle:com.example.app",
    name: str = "Example",
    bundle_id: str | None = "com.example.app",
    footprint_bytes: int = 100,
) -> ProcessRecord:
    """Create a ProcessRecord for testing."""
    return ProcessRecord(
        group_key=group_key,
        name=name,
        bundle_id=bundle_id,
        footprint_bytes=footprint_bytes,
    )


def make_app(
    name: str = "Example",
    footprint_bytes: int = 100,
    bundle_id: str | None = None,
    process_count: int = 1,
) -> AppAggregate:
    """Create an AppAggregate for testing."""
    return AppAggregate(
        name=name,
        bundle_id=bundle_id,
        footprint_bytes=footprint_bytes,
        process_count=process_count,
    )
