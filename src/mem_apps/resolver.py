"""Process to application identity resolution.

A process belongs to an application when the OS knows of a running app that
owns it. Processes without one (daemons, CLI tools, XPC services) can be
attributed by walking up their ancestry until an app is found, or grouped by
the executable at the root of their lineage.

All lookups are memoized on the resolver instance. A missing key means "not
computed yet"; a stored None means "computed as absent" and is never
re-queried. Create one resolver per scan: PIDs are only meaningful while the
processes they name are alive.
"""

import os
from collections.abc import Mapping

from mem_apps.bundles import CanonicalBundleIdentity, canonicalize
from mem_apps.directory import ProcessDirectory
from mem_apps.models import AppIdentity, RunningApplication

MAX_LINEAGE_DEPTH = 48

OTHER_IDENTITY = AppIdentity(group_key="other", name="Other", bundle_id=None)


class IdentityResolver:
    """Resolves PIDs to AppIdentity with per-scan caches."""

    def __init__(
        self,
        directory: ProcessDirectory,
        include_others: bool = False,
        *,
        max_depth: int = MAX_LINEAGE_DEPTH,
        aliases: Mapping[str, CanonicalBundleIdentity] | None = None,
    ) -> None:
        self.directory = directory
        self.include_others = include_others
        self.max_depth = max_depth
        self.aliases = aliases
        self._identity_cache: dict[int, AppIdentity | None] = {}
        self._parent_cache: dict[int, int | None] = {}
        self._path_cache: dict[int, str | None] = {}
        self._app_cache: dict[int, RunningApplication | None] = {}

    def resolve(self, pid: int) -> AppIdentity | None:
        """Resolve a PID to its application identity.

        Returns:
            AppIdentity, or None when the process has no owning app and
            non-app processes are excluded.
        """
        if pid in self._identity_cache:
            return self._identity_cache[pid]

        resolved = self.bundle_identity(pid)
        if resolved is None and self.include_others:
            resolved = self.lineage_identity(pid)

        self._identity_cache[pid] = resolved
        return resolved

    def bundle_identity(self, pid: int) -> AppIdentity | None:
        """Identity from the running application that owns ``pid``, if any."""
        app = self.running_application(pid)
        if app is None or not app.bundle_id:
            return None

        display_name = app.display_name or app.bundle_id
        canonical = canonicalize(app.bundle_id, display_name, self.aliases)
        return AppIdentity(
            group_key=f"bundle:{canonical.bundle_id}",
            name=canonical.name,
            bundle_id=canonical.bundle_id,
        )

    def lineage_identity(self, pid: int) -> AppIdentity:
        """Identity for a process with no owning app.

        Preference order: nearest ancestor owned by an app, the executable
        at the root of the lineage, the process's own executable, "Other".
        """
        lineage = self.process_lineage(pid, self.max_depth)

        for ancestor in lineage:
            identity = self.bundle_identity(ancestor)
            if identity is not None:
                return identity

        if lineage:
            root_path = self.executable_path(lineage[-1])
            if root_path:
                return AppIdentity(
                    group_key=f"tree:{root_path}",
                    name=os.path.basename(root_path),
                )

        own_path = self.executable_path(pid)
        if own_path:
            return AppIdentity(group_key=f"path:{own_path}", name=os.path.basename(own_path))

        return OTHER_IDENTITY

    def process_lineage(self, pid: int, max_depth: int = MAX_LINEAGE_DEPTH) -> list[int]:
        """Walk parent links upward from ``pid``.

        The chain starts with ``pid`` itself and stops after ``max_depth``
        entries, at a non-positive or already-visited PID, when the parent
        is unknown, or when the parent is launchd (PID 1) or the kernel.
        """
        lineage: list[int] = []
        seen: set[int] = set()
        current = pid

        for _ in range(max_depth):
            if current <= 0 or current in seen:
                break

            lineage.append(current)
            seen.add(current)

            parent = self.parent_pid(current)
            if parent is None or parent <= 1:
                break
            current = parent

        return lineage

    def parent_pid(self, pid: int) -> int | None:
        if pid not in self._parent_cache:
            self._parent_cache[pid] = self.directory.parent_pid(pid)
        return self._parent_cache[pid]

    def executable_path(self, pid: int) -> str | None:
        if pid not in self._path_cache:
            # Empty paths are stored as absent
            self._path_cache[pid] = self.directory.executable_path(pid) or None
        return self._path_cache[pid]

    def running_application(self, pid: int) -> RunningApplication | None:
        """Owning app, looked up from the cached executable path."""
        if pid not in self._app_cache:
            self._app_cache[pid] = self.directory.running_application(
                pid, self.executable_path(pid)
            )
        return self._app_cache[pid]
