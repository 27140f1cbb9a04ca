"""Application bundle identity: helper aliasing and Info.plist lookup.

Helper processes (content renderers, GPU processes, plugin hosts) live in
their own nested ``.app`` bundles with their own bundle identifiers. The
alias table folds them back into the application that launched them.
"""

import plistlib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import PurePosixPath
from types import MappingProxyType

import structlog

from mem_apps.models import RunningApplication

log = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class CanonicalBundleIdentity:
    """Bundle id and display name after alias folding."""

    bundle_id: str
    name: str


_FIREFOX = CanonicalBundleIdentity("org.mozilla.firefox", "Firefox")
_CHROME = CanonicalBundleIdentity("com.google.Chrome", "Google Chrome")
_EDGE = CanonicalBundleIdentity("com.microsoft.edgemac", "Microsoft Edge")
_BRAVE = CanonicalBundleIdentity("com.brave.Browser", "Brave Browser")

# One entry per known helper bundle id.
BUNDLE_ALIASES: Mapping[str, CanonicalBundleIdentity] = MappingProxyType(
    {
        "org.mozilla.plugincontainer": _FIREFOX,
        "com.google.Chrome.helper": _CHROME,
        "com.google.Chrome.helper.renderer": _CHROME,
        "com.google.Chrome.helper.gpu": _CHROME,
        "com.google.Chrome.helper.plugin": _CHROME,
        "com.microsoft.edgemac.helper": _EDGE,
        "com.microsoft.edgemac.helper.renderer": _EDGE,
        "com.microsoft.edgemac.helper.gpu": _EDGE,
        "com.microsoft.edgemac.helper.plugin": _EDGE,
        "com.brave.Browser.helper": _BRAVE,
        "com.brave.Browser.helper.renderer": _BRAVE,
        "com.brave.Browser.helper.gpu": _BRAVE,
        "com.brave.Browser.helper.plugin": _BRAVE,
    }
)


def canonicalize(
    bundle_id: str,
    name: str,
    aliases: Mapping[str, CanonicalBundleIdentity] | None = None,
) -> CanonicalBundleIdentity:
    """Fold a helper bundle id into the application it belongs to.

    Args:
        bundle_id: Bundle identifier reported for the process
        name: Display name reported for the process
        aliases: Extra entries checked before the built-in table

    Returns:
        The aliased identity, or the input unchanged when not listed.
    """
    if aliases and bundle_id in aliases:
        return aliases[bundle_id]
    canonical = BUNDLE_ALIASES.get(bundle_id)
    if canonical is not None:
        return canonical
    return CanonicalBundleIdentity(bundle_id=bundle_id, name=name)


def find_app_bundle(executable_path: str) -> PurePosixPath | None:
    """Return the innermost ``.app`` directory containing an executable.

    ``/Applications/Firefox.app/Contents/MacOS/plugin-container.app/Contents/MacOS/plugin-container``
    yields the ``plugin-container.app`` bundle, so nested helpers keep their
    own bundle id (and are folded by ``canonicalize``).
    """
    if not executable_path:
        return None
    path = PurePosixPath(executable_path)
    for parent in path.parents:
        if parent.suffix == ".app":
            return parent
    return None


def read_bundle_info(bundle: PurePosixPath) -> RunningApplication | None:
    """Read the bundle id and display name from ``Contents/Info.plist``.

    Returns:
        RunningApplication, or None if the plist is missing, unreadable,
        or has no CFBundleIdentifier.
    """
    plist_path = bundle / "Contents" / "Info.plist"
    try:
        with open(plist_path, "rb") as f:
            plist = plistlib.load(f)
    except FileNotFoundError:
        return None
    except (OSError, plistlib.InvalidFileException, ValueError) as e:
        log.debug("bundle_plist_unreadable", path=str(plist_path), error=str(e))
        return None

    if not isinstance(plist, dict):
        return None

    bundle_id = plist.get("CFBundleIdentifier")
    if not isinstance(bundle_id, str) or not bundle_id:
        return None

    display_name = plist.get("CFBundleDisplayName") or plist.get("CFBundleName") or bundle.stem
    if not isinstance(display_name, str):
        display_name = bundle.stem
    return RunningApplication(bundle_id=bundle_id, display_name=display_name)
