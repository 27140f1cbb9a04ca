"""Tests for console diagnostics and structlog configuration."""

import structlog

from mem_apps import logging as mem_log
from mem_apps.models import ScanStats


class TestConsoleHelpers:
    """Rich console helpers write to stderr."""

    def test_scan_summary(self, capsys):
        mem_log.scan_summary(ScanStats(12, 3, 2, 1))

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Scanned 12 PIDs. Skipped EPERM: 3, unavailable: 2, unmapped: 1" in captured.err
        assert "[info]" in captured.err

    def test_error_level(self, capsys):
        mem_log.config_invalid("broken")

        assert "[err]" in capsys.readouterr().err


class TestConfigure:
    """structlog rendering levels."""

    def test_quiet_hides_debug(self, capsys):
        mem_log.configure(verbose=False)

        structlog.get_logger().debug("scan_complete", records=3)

        assert "scan_complete" not in capsys.readouterr().err

    def test_quiet_shows_warnings(self, capsys):
        mem_log.configure(verbose=False)

        structlog.get_logger().warning("something_odd", pid=7)

        assert "something_odd" in capsys.readouterr().err

    def test_verbose_shows_debug(self, capsys):
        mem_log.configure(verbose=True)

        structlog.get_logger().debug("scan_complete", records=3)

        err = capsys.readouterr().err
        assert "scan_complete" in err
        assert "records=3" in err
