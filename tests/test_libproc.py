"""Tests for libproc module."""

import ctypes
import errno
import os
import sys
from unittest.mock import MagicMock, patch

import pytest

from mem_apps.libproc import (
    ProcBSDInfo,
    RusageInfoV4,
    RusageInfoV5,
    RusageInfoV6,
    get_executable_path,
    get_parent_pid,
    get_phys_footprint,
    is_permission_error,
    list_all_pids,
)

macos_only = pytest.mark.skipif(sys.platform != "darwin", reason="libproc.dylib is macOS-only")

NONEXISTENT_PID = 999999999


class TestStructSizes:
    """Test that struct sizes match C definitions."""

    def test_rusage_info_v4_size(self):
        """RusageInfoV4 should be 296 bytes.

        16 (uuid) + 35 * 8 (uint64 fields) = 296.
        """
        assert ctypes.sizeof(RusageInfoV4) == 296

    def test_rusage_info_v5_size(self):
        """v5 appends ri_flags."""
        assert ctypes.sizeof(RusageInfoV5) == 304

    def test_rusage_info_v6_size(self):
        """v6 appends 11 uint64 fields and 9 reserved words."""
        assert ctypes.sizeof(RusageInfoV6) == 464

    def test_newer_versions_keep_footprint_offset(self):
        assert RusageInfoV6.ri_phys_footprint.offset == RusageInfoV4.ri_phys_footprint.offset

    def test_phys_footprint_offset(self):
        """ri_phys_footprint sits after the uuid and 7 uint64 fields in every version."""
        assert RusageInfoV4.ri_phys_footprint.offset == 16 + 7 * 8

    def test_proc_bsd_info_size(self):
        """ProcBSDInfo should be 136 bytes."""
        assert ctypes.sizeof(ProcBSDInfo) == 136


class TestFootprintFallback:
    """Flavor fallback in get_phys_footprint (library mocked)."""

    def test_tries_every_flavor_in_order(self):
        lib = MagicMock()
        lib.proc_pid_rusage.return_value = -1
        with patch("mem_apps.libproc._libproc", return_value=lib):
            footprint, _ = get_phys_footprint(5)

        assert footprint is None
        flavors = [call.args[1] for call in lib.proc_pid_rusage.call_args_list]
        assert flavors == [4, 6, 5, 3, 2, 1, 0]

    def test_first_success_wins(self):
        lib = MagicMock()
        lib.proc_pid_rusage.side_effect = [-1, 0]
        with patch("mem_apps.libproc._libproc", return_value=lib):
            footprint, code = get_phys_footprint(5)

        assert footprint == 0
        assert code == 0
        assert lib.proc_pid_rusage.call_count == 2


class TestErrno:
    def test_eperm_is_permission_error(self):
        assert is_permission_error(errno.EPERM)

    def test_other_errors_are_not(self):
        assert not is_permission_error(errno.ESRCH)
        assert not is_permission_error(0)


@macos_only
class TestPIDListing:
    """Test PID enumeration."""

    def test_list_all_pids(self):
        """Should return list of PIDs including current process."""
        pids = list_all_pids()
        assert os.getpid() in pids

    def test_list_all_pids_positive(self):
        """Should not contain zero (kernel) or negatives."""
        assert all(pid > 0 for pid in list_all_pids())


@macos_only
class TestFootprint:
    """Test footprint retrieval."""

    def test_own_process(self):
        footprint, code = get_phys_footprint(os.getpid())
        assert footprint is not None
        assert footprint > 0
        assert code == 0

    def test_nonexistent(self):
        """Nonexistent PID reports an error that isn't EPERM."""
        footprint, code = get_phys_footprint(NONEXISTENT_PID)
        assert footprint is None
        assert not is_permission_error(code)

    def test_pid_1(self):
        """launchd may be denied; either way, no crash."""
        footprint, code = get_phys_footprint(1)
        assert footprint is not None or code != 0


@macos_only
class TestAncestry:
    """Test parent PID and executable path lookups."""

    def test_parent_of_own_process(self):
        assert get_parent_pid(os.getpid()) == os.getppid()

    def test_parent_of_nonexistent(self):
        assert get_parent_pid(NONEXISTENT_PID) is None

    def test_executable_path_own_process(self):
        path = get_executable_path(os.getpid())
        assert path is not None
        assert os.path.isabs(path)

    def test_executable_path_nonexistent(self):
        assert get_executable_path(NONEXISTENT_PID) is None
