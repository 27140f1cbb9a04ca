"""Per-application physical memory report for a running machine."""

__version__ = "0.1.0"
