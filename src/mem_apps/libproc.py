"""Low-level libproc interface for macOS process memory and ancestry.

Uses ctypes to call libproc.dylib directly - no subprocess overhead.

This module provides access to:
- proc_pid_rusage: Physical footprint (ri_phys_footprint)
- proc_pidinfo: BSD info (parent PID)
- proc_pidpath: Executable path
- proc_listallpids: List all PIDs

The library is loaded on first use so that importing this module is safe on
other platforms. Lookups return None when a process has disappeared or is
not accessible.
"""

import ctypes
import errno
from ctypes import Structure, byref, c_char, c_int, c_int32, c_uint8, c_uint32, c_uint64
from functools import cache

# ─────────────────────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────────────────────

# proc_pid_rusage flavors in the order they are tried. v4 is available on
# every supported release; v6 and v5 cover kernels that reject it. All
# versions share the field prefix, so one RusageInfoV6 buffer fits each.
RUSAGE_INFO_FLAVORS = (4, 6, 5, 3, 2, 1, 0)

# proc_pidinfo flavors
PROC_PIDTBSDINFO = 3

# Buffer sizes
MAXPATHLEN = 1024
PROC_PIDPATHINFO_MAXSIZE = 4 * MAXPATHLEN
MAXCOMLEN = 16

# Upper bound for the PID buffer when the system keeps spawning processes
MAX_PID_CAPACITY = 1_000_000


# ─────────────────────────────────────────────────────────────────────────────
# Structures
# ─────────────────────────────────────────────────────────────────────────────


class RusageInfoV4(Structure):
    """rusage_info_v4 from sys/resource.h.

    Only ri_phys_footprint is read; the full layout is kept so the kernel
    never writes past the buffer.
    """

    _fields_ = [
        ("ri_uuid", c_uint8 * 16),
        ("ri_user_time", c_uint64),
        ("ri_system_time", c_uint64),
        ("ri_pkg_idle_wkups", c_uint64),
        ("ri_interrupt_wkups", c_uint64),
        ("ri_pageins", c_uint64),
        ("ri_wired_size", c_uint64),
        ("ri_resident_size", c_uint64),
        ("ri_phys_footprint", c_uint64),
        ("ri_proc_start_abstime", c_uint64),
        ("ri_proc_exit_abstime", c_uint64),
        ("ri_child_user_time", c_uint64),
        ("ri_child_system_time", c_uint64),
        ("ri_child_pkg_idle_wkups", c_uint64),
        ("ri_child_interrupt_wkups", c_uint64),
        ("ri_child_pageins", c_uint64),
        ("ri_child_elapsed_abstime", c_uint64),
        ("ri_diskio_bytesread", c_uint64),
        ("ri_diskio_byteswritten", c_uint64),
        ("ri_cpu_time_qos_default", c_uint64),
        ("ri_cpu_time_qos_maintenance", c_uint64),
        ("ri_cpu_time_qos_background", c_uint64),
        ("ri_cpu_time_qos_utility", c_uint64),
        ("ri_cpu_time_qos_legacy", c_uint64),
        ("ri_cpu_time_qos_user_initiated", c_uint64),
        ("ri_cpu_time_qos_user_interactive", c_uint64),
        ("ri_billed_system_time", c_uint64),
        ("ri_serviced_system_time", c_uint64),
        ("ri_logical_writes", c_uint64),
        ("ri_lifetime_max_phys_footprint", c_uint64),
        ("ri_instructions", c_uint64),
        ("ri_cycles", c_uint64),
        ("ri_billed_energy", c_uint64),
        ("ri_serviced_energy", c_uint64),
        ("ri_interval_max_phys_footprint", c_uint64),
        ("ri_runnable_time", c_uint64),
    ]


class RusageInfoV5(RusageInfoV4):
    """rusage_info_v5: v4 plus ri_flags."""

    _fields_ = [("ri_flags", c_uint64)]


class RusageInfoV6(RusageInfoV5):
    """rusage_info_v6: v5 plus per-cluster times, energy and neural footprint."""

    _fields_ = [
        ("ri_user_ptime", c_uint64),
        ("ri_system_ptime", c_uint64),
        ("ri_pinstructions", c_uint64),
        ("ri_pcycles", c_uint64),
        ("ri_energy_nj", c_uint64),
        ("ri_penergy_nj", c_uint64),
        ("ri_secure_time_in_system", c_uint64),
        ("ri_secure_ptime_in_system", c_uint64),
        ("ri_neural_footprint", c_uint64),
        ("ri_lifetime_max_neural_footprint", c_uint64),
        ("ri_interval_max_neural_footprint", c_uint64),
        ("ri_reserved", c_uint64 * 9),
    ]


class ProcBSDInfo(Structure):
    """proc_bsdinfo from sys/proc_info.h.

    Used for the parent PID (pbi_ppid).
    """

    _fields_ = [
        ("pbi_flags", c_uint32),
        ("pbi_status", c_uint32),
        ("pbi_xstatus", c_uint32),
        ("pbi_pid", c_uint32),
        ("pbi_ppid", c_uint32),
        ("pbi_uid", c_uint32),
        ("pbi_gid", c_uint32),
        ("pbi_ruid", c_uint32),
        ("pbi_rgid", c_uint32),
        ("pbi_svuid", c_uint32),
        ("pbi_svgid", c_uint32),
        ("pbi_rfu_1", c_uint32),
        ("pbi_comm", c_char * MAXCOMLEN),
        ("pbi_name", c_char * (2 * MAXCOMLEN)),
        ("pbi_nfiles", c_uint32),
        ("pbi_pgid", c_uint32),
        ("pbi_pjobc", c_uint32),
        ("pbi_e_tdev", c_uint32),
        ("pbi_e_tpgid", c_uint32),
        ("pbi_nice", c_int32),
        ("pbi_start_tvsec", c_uint64),
        ("pbi_start_tvusec", c_uint64),
    ]


# ─────────────────────────────────────────────────────────────────────────────
# Library loading
# ─────────────────────────────────────────────────────────────────────────────


@cache
def _libproc() -> ctypes.CDLL:
    """Load libproc.dylib and declare the signatures used here.

    Raises:
        OSError: If the library is not available (non-macOS host).
    """
    lib = ctypes.CDLL("/usr/lib/libproc.dylib", use_errno=True)

    # int proc_pid_rusage(pid_t pid, int flavor, rusage_info_t *buffer)
    lib.proc_pid_rusage.argtypes = [c_int, c_int, ctypes.c_void_p]
    lib.proc_pid_rusage.restype = c_int

    # int proc_pidinfo(pid_t pid, int flavor, uint64_t arg, void *buffer, int buffersize)
    lib.proc_pidinfo.argtypes = [c_int, c_int, c_uint64, ctypes.c_void_p, c_int]
    lib.proc_pidinfo.restype = c_int

    # int proc_pidpath(int pid, void *buffer, uint32_t buffersize)
    lib.proc_pidpath.argtypes = [c_int, ctypes.c_void_p, c_uint32]
    lib.proc_pidpath.restype = c_int

    # int proc_listallpids(void *buffer, int buffersize)
    lib.proc_listallpids.argtypes = [ctypes.c_void_p, c_int]
    lib.proc_listallpids.restype = c_int

    return lib


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────


def list_all_pids() -> list[int]:
    """List all process IDs.

    The buffer is grown until the kernel returns fewer PIDs than it holds,
    since processes can appear between the sizing call and the real one.

    Returns:
        Positive PIDs currently on the system (empty list on failure).
    """
    lib = _libproc()
    capacity = max(lib.proc_listallpids(None, 0), 2048)

    while capacity <= MAX_PID_CAPACITY:
        buffer = (c_int * capacity)()
        count = lib.proc_listallpids(buffer, ctypes.sizeof(buffer))
        if count <= 0:
            return []
        if count < capacity:
            return [pid for pid in buffer[:count] if pid > 0]
        capacity *= 2

    return []


def get_phys_footprint(pid: int) -> tuple[int | None, int]:
    """Read the physical footprint of a process.

    Args:
        pid: Process ID

    Returns:
        (footprint_bytes, 0) on success, or (None, errno) from the last
        flavor attempted. EPERM means the process belongs to another user.
    """
    lib = _libproc()
    last_errno = 0
    for flavor in RUSAGE_INFO_FLAVORS:
        rusage = RusageInfoV6()
        ctypes.set_errno(0)
        if lib.proc_pid_rusage(pid, flavor, byref(rusage)) == 0:
            return rusage.ri_phys_footprint, 0
        last_errno = ctypes.get_errno()
    return None, last_errno


def is_permission_error(code: int) -> bool:
    """True if an errno from get_phys_footprint means access was denied."""
    return code == errno.EPERM


def get_bsd_info(pid: int) -> ProcBSDInfo | None:
    """Get BSD info for a process.

    Args:
        pid: Process ID

    Returns:
        ProcBSDInfo on success, None if process doesn't exist or permission denied.
    """
    info = ProcBSDInfo()
    size = ctypes.sizeof(info)
    result = _libproc().proc_pidinfo(pid, PROC_PIDTBSDINFO, 0, byref(info), size)
    return info if result == size else None


def get_parent_pid(pid: int) -> int | None:
    """Get the parent PID of a process, or None if unavailable."""
    info = get_bsd_info(pid)
    return int(info.pbi_ppid) if info is not None else None


def get_executable_path(pid: int) -> str | None:
    """Get the executable path of a process.

    Returns:
        Absolute path, or None if not found.
    """
    buffer = ctypes.create_string_buffer(PROC_PIDPATHINFO_MAXSIZE)
    length = _libproc().proc_pidpath(pid, buffer, PROC_PIDPATHINFO_MAXSIZE)
    if length <= 0:
        return None
    return buffer.value.decode("utf-8", errors="replace") or None
