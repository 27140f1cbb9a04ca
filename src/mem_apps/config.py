"""Configuration system for mem-apps."""

from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path

import structlog
import tomlkit

from mem_apps.bundles import CanonicalBundleIdentity
from mem_apps.resolver import MAX_LINEAGE_DEPTH

log = structlog.get_logger()


@dataclass
class ReportConfig:
    """Defaults for the report; command-line flags override these."""

    top: int = 30  # Number of apps to show
    min_mb: float = 0.0  # Hide apps below this footprint (MiB)
    include_others: bool = False  # Group non-app processes by lineage/path
    json: bool = False  # Machine-readable output
    bytes: bool = False  # Raw byte counts instead of human units


@dataclass
class ScanConfig:
    """Process scan configuration."""

    max_lineage_depth: int = MAX_LINEAGE_DEPTH  # Ancestors checked per process


def _dataclass_to_table(obj: object) -> tomlkit.items.Table:
    """Convert a dataclass instance to a tomlkit Table recursively."""
    table = tomlkit.table()
    for f in fields(obj):  # type: ignore[arg-type]
        value = getattr(obj, f.name)
        if is_dataclass(value) and not isinstance(value, type):
            table.add(f.name, _dataclass_to_table(value))
        else:
            table.add(f.name, value)
    return table


@dataclass
class Config:
    """Main configuration container.

    ``aliases`` maps extra helper bundle ids to the app they belong to, as
    ``{"helper.id": {"bundle_id": "app.id", "name": "App"}}``.
    """

    report: ReportConfig = field(default_factory=ReportConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    aliases: dict[str, dict[str, str]] = field(default_factory=dict)

    @property
    def config_dir(self) -> Path:
        """Configuration directory."""
        return Path.home() / ".config" / "mem-apps"

    @property
    def config_path(self) -> Path:
        """Path to config file."""
        return self.config_dir / "config.toml"

    def alias_table(self) -> dict[str, CanonicalBundleIdentity]:
        """Configured aliases as canonical identities."""
        return {
            helper: CanonicalBundleIdentity(bundle_id=target["bundle_id"], name=target["name"])
            for helper, target in self.aliases.items()
        }

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        path = path or self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)

        doc = tomlkit.document()
        for name in ("report", "scan"):
            doc.add(name, _dataclass_to_table(getattr(self, name)))
            doc.add(tomlkit.nl())

        aliases = tomlkit.table()
        for helper, target in self.aliases.items():
            entry = tomlkit.inline_table()
            entry.update(target)
            aliases.add(helper, entry)
        doc.add("aliases", aliases)

        path.write_text(tomlkit.dumps(doc))

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values.

        All defaults come from the dataclass definitions - no hardcoded values here.

        Raises:
            ValueError: If the file can't be parsed or holds invalid values.
        """
        defaults = cls()
        path = path or defaults.config_path
        if not path.exists():
            return defaults

        try:
            with open(path) as f:
                data = tomlkit.load(f).unwrap()
        except tomlkit.exceptions.TOMLKitError as e:
            raise ValueError(f"Failed to parse config file {path}: {e}") from e

        config = cls(
            report=_load_report_config(data.get("report", {})),
            scan=_load_scan_config(data.get("scan", {})),
            aliases=_load_aliases(data.get("aliases", {})),
        )
        log.debug("config_loaded", path=str(path))
        return config


def _load_report_config(data: dict) -> ReportConfig:
    """Load report config from TOML data, using dataclass defaults for missing fields."""
    d = ReportConfig()

    top = data.get("top", d.top)
    min_mb = data.get("min_mb", d.min_mb)

    if isinstance(top, bool) or not isinstance(top, int) or top < 1:
        raise ValueError(f"report.top must be an integer >= 1, got {top!r}")
    if isinstance(min_mb, bool) or not isinstance(min_mb, (int, float)) or not min_mb >= 0:
        raise ValueError(f"report.min_mb must be a number >= 0, got {min_mb!r}")

    return ReportConfig(
        top=top,
        min_mb=float(min_mb),
        include_others=bool(data.get("include_others", d.include_others)),
        json=bool(data.get("json", d.json)),
        bytes=bool(data.get("bytes", d.bytes)),
    )


def _load_scan_config(data: dict) -> ScanConfig:
    """Load scan config from TOML data."""
    d = ScanConfig()
    depth = data.get("max_lineage_depth", d.max_lineage_depth)
    if isinstance(depth, bool) or not isinstance(depth, int) or depth < 1:
        raise ValueError(f"scan.max_lineage_depth must be an integer >= 1, got {depth!r}")
    return ScanConfig(max_lineage_depth=depth)


def _load_aliases(data: dict) -> dict[str, dict[str, str]]:
    """Load helper aliases; every entry needs a bundle_id and a name."""
    aliases: dict[str, dict[str, str]] = {}
    for helper, target in data.items():
        if not isinstance(target, dict):
            raise ValueError(f"aliases.{helper} must be a table, got {target!r}")
        bundle_id = target.get("bundle_id")
        name = target.get("name")
        if not isinstance(bundle_id, str) or not bundle_id:
            raise ValueError(f"aliases.{helper}.bundle_id must be a non-empty string")
        if not isinstance(name, str) or not name:
            raise ValueError(f"aliases.{helper}.name must be a non-empty string")
        aliases[helper] = {"bundle_id": bundle_id, "name": name}
    return aliases
