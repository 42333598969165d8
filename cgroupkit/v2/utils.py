"""Parsing of cgroup v2 files and conversion of OCI resource settings."""

from __future__ import annotations

import io
import logging
import os
import re
import shutil
import time
from collections.abc import Iterable, Iterator

from cgroupkit.v1 import parse_uint as _parse_uint
from cgroupkit.v2.errors import CgroupError, InvalidFormatError
from cgroupkit.v2.resources import (
    CPU,
    IO,
    RDMA,
    HugeTlb,
    HugeTlbEntry,
    IOLimit,
    IOType,
    Memory,
    Pids,
    RDMAEntry,
    Resources,
    new_cpu_max,
)
from cgroupkit.v2.spec import LinuxResources
from cgroupkit.v2.stats import HugeTlbStat, IOEntry, RdmaEntry

logger = logging.getLogger(__name__)

CGROUP_PROCS = "cgroup.procs"
CGROUP_THREADS = "cgroup.threads"
DEFAULT_DIR_PERM = 0o755

_UINT64_MAX = (1 << 64) - 1
_UINT32_MAX = (1 << 32) - 1
_DIGITS = re.compile(r"[0-9]+")


def _lines(source: Iterable[str] | str) -> Iterator[str]:
    if isinstance(source, str):
        source = io.StringIO(source, newline="\n")
    for raw in source:
        line = raw[:-1] if raw.endswith("\n") else raw
        if line.endswith("\r"):
            line = line[:-1]
        yield line


def _strict_uint(text: str) -> int | None:
    if not _DIGITS.fullmatch(text):
        return None
    value = int(text)
    return value if value <= _UINT64_MAX else None


def _wrap(value: int, bits: int) -> int:
    return value % (1 << bits)


def _remove_all(path: str) -> None:
    if not os.path.lexists(path):
        return
    if os.path.isdir(path) and not os.path.islink(path):
        try:
            os.rmdir(path)
        except FileNotFoundError:
            return
        except OSError:
            shutil.rmtree(path)
        return
    os.unlink(path)


def remove(path: str | os.PathLike[str]) -> None:
    """Remove a cgroup path, retrying with an exponential delay."""
    path = os.fspath(path)
    delay = 0.01
    last_error: OSError | None = None
    for attempt in range(5):
        if attempt:
            time.sleep(delay)
            delay *= 2
        try:
            _remove_all(path)
            return
        except OSError as exc:
            last_error = exc
    raise OSError(f"cgroups: unable to remove path {path!r}: {last_error}") from last_error


def parse_cgroup_procs_file(path: str | os.PathLike[str]) -> list[int]:
    """Read the pids listed in a cgroup.procs file."""
    pids = []
    with open(path, encoding="utf-8", newline="\n") as handle:
        for line in _lines(handle):
            if not line:
                continue
            pid = _strict_uint(line)
            if pid is None:
                raise ValueError(f"parsing {line!r}: invalid syntax")
            pids.append(pid)
    return pids


def parse_uint(s: str, bit_size: int = 64) -> int:
    """Parse an unsigned decimal integer; negative numbers read as 0."""
    return _parse_uint(s, bit_size)


def parse_kv(raw: str) -> tuple[str, int | str]:
    """Parse a "key value" line; values that are not numbers stay strings."""
    parts = raw.split()
    if len(parts) != 2:
        raise InvalidFormatError()
    try:
        return parts[0], parse_uint(parts[1])
    except ValueError:
        return parts[0], parts[1]


def parse_cgroup_lines(lines: Iterable[str] | str) -> str:
    """Return the unified-hierarchy path from the lines of a /proc/PID/cgroup file."""
    for text in _lines(lines):
        parts = text.split(":", 2)
        if len(parts) < 3:
            raise InvalidFormatError(f"invalid cgroup entry: {text!r}")
        # e.g. "0::/user.slice/user-1001.slice/session-1.scope"
        if parts[0] == "0" and parts[1] == "":
            return parts[2]
    raise CgroupError("cgroup path not found")


def parse_cgroup_file(path: str | os.PathLike[str]) -> str:
    """Return the unified-hierarchy path recorded in a /proc/PID/cgroup file."""
    with open(path, encoding="utf-8", newline="\n") as handle:
        return parse_cgroup_lines(handle)


def to_resources(spec: LinuxResources) -> Resources:
    """Convert OCI (cgroup v1 style) resource settings to v2 resources."""
    resources = Resources()
    cpu = spec.cpu
    if cpu is not None:
        resources.cpu = CPU(cpus=cpu.cpus, mems=cpu.mems)
        if cpu.shares is not None:
            scaled = _wrap(_wrap(cpu.shares - 2, 64) * 9999, 64) // 262142
            resources.cpu.weight = _wrap(1 + scaled, 64)
        if cpu.period is not None:
            resources.cpu.max = new_cpu_max(cpu.quota, cpu.period)
    memory = spec.memory
    if memory is not None:
        resources.memory = Memory()
        if memory.swap is not None:
            resources.memory.swap = memory.swap
        if memory.limit is not None:
            resources.memory.max = memory.limit
        if memory.reservation is not None:
            resources.memory.low = memory.reservation
    if spec.hugepage_limits is not None:
        resources.hugetlb = HugeTlb(
            [HugeTlbEntry(limit.pagesize, limit.limit) for limit in spec.hugepage_limits]
        )
    if spec.pids is not None:
        resources.pids = Pids(max=spec.pids.limit)
    block_io = spec.block_io
    if block_io is not None:
        resources.io = IO()
        if block_io.weight is not None:
            # The weights are 16-bit, and so is the arithmetic.
            scaled = _wrap(_wrap(block_io.weight - 10, 16) * 9999, 16) // 990
            resources.io.bfq.weight = _wrap(1 + scaled, 16)
        throttles = (
            (IOType.READ_BPS, block_io.throttle_read_bps_device),
            (IOType.WRITE_BPS, block_io.throttle_write_bps_device),
            (IOType.READ_IOPS, block_io.throttle_read_iops_device),
            (IOType.WRITE_IOPS, block_io.throttle_write_iops_device),
        )
        for io_type, devices in throttles:
            resources.io.max.extend(
                IOLimit(io_type, device.major, device.minor, device.rate)
                for device in devices or []
            )
    if spec.rdma is not None:
        resources.rdma = RDMA()
        for device, value in spec.rdma.items():
            if device and value.hca_handles is not None and value.hca_objects is not None:
                resources.rdma.limit.append(
                    RDMAEntry(device, value.hca_handles, value.hca_objects)
                )
    return resources


def get_stat_file_content_uint64(file_path: str | os.PathLike[str]) -> int:
    """Read a single-value stat file; "max" reads as the largest uint64, failures as 0."""
    try:
        with open(file_path, encoding="utf-8") as handle:
            contents = handle.read()
    except OSError:
        return 0
    trimmed = contents.strip()
    if trimmed == "max":
        return _UINT64_MAX
    try:
        return parse_uint(trimmed)
    except ValueError:
        logger.error(
            "unable to parse %r as a uint from Cgroup file %r", contents, os.fspath(file_path)
        )
        return 0


def read_io_stats(path: str | os.PathLike[str]) -> list[IOEntry]:
    """Read per-device counters from io.stat in the group directory path."""
    usage: list[IOEntry] = []
    try:
        with open(os.path.join(path, "io.stat"), encoding="utf-8") as handle:
            data = handle.read()
    except OSError:
        return usage
    for line in data.split("\n"):
        parts = line.split(" ")
        if len(parts) < 2:
            continue
        majmin = parts[0].split(":")
        if len(majmin) != 2:
            continue
        major = _strict_uint(majmin[0])
        minor = _strict_uint(majmin[1])
        if major is None or minor is None:
            return usage
        entry = IOEntry(major=major, minor=minor)
        for item in parts[1:]:
            pair = item.split("=")
            if len(pair) != 2:
                continue
            value = _strict_uint(pair[1])
            if value is None:
                continue
            if pair[0] in ("rbytes", "wbytes", "rios", "wios"):
                setattr(entry, pair[0], value)
        usage.append(entry)
    return usage


def _parse_rdma_kv(raw: str, entry: RdmaEntry) -> None:
    parts = raw.split("=")
    if len(parts) != 2:
        return
    if parts[1] == "max":
        value = _UINT32_MAX
    else:
        try:
            value = parse_uint(parts[1], 32)
        except ValueError:
            return
    if parts[0] == "hca_handle":
        entry.hca_handles = value
    elif parts[0] == "hca_object":
        entry.hca_objects = value


def to_rdma_entries(lines: Iterable[str]) -> list[RdmaEntry]:
    """Parse rdma.current or rdma.max lines into entries."""
    entries = []
    for line in lines:
        parts = line.split()
        if len(parts) != 3:
            continue
        entry = RdmaEntry(device=parts[0])
        _parse_rdma_kv(parts[1], entry)
        _parse_rdma_kv(parts[2], entry)
        entries.append(entry)
    return entries


def rdma_stats(file_path: str | os.PathLike[str]) -> list[RdmaEntry]:
    """Read RDMA entries from a file, or none if it cannot be read."""
    try:
        with open(file_path, encoding="utf-8") as handle:
            data = handle.read()
    except OSError:
        return []
    return to_rdma_entries(data.split("\n"))


def read_hugetlb_stats(path: str | os.PathLike[str]) -> list[HugeTlbStat]:
    """Collect hugetlb usage and limits per page size from the group directory."""
    by_size: dict[str, HugeTlbStat] = {}
    try:
        names = sorted(os.listdir(path))
    except OSError:
        return []
    for name in names:
        if "hugetlb" not in name or not (name.endswith("max") or name.endswith("current")):
            continue
        pieces = name.split(".")
        if len(pieces) < 3:
            continue
        page_size = pieces[1]
        stat = by_size.get(page_size) or HugeTlbStat()
        stat.pagesize = page_size
        try:
            with open(os.path.join(path, name), encoding="utf-8") as handle:
                text = handle.read().strip()
        except OSError:
            continue
        value = _UINT64_MAX if text == "max" else _strict_uint(text)
        if value is None:
            continue
        if pieces[2] == "max":
            stat.max = value
        elif pieces[2] == "current":
            stat.current = value
        by_size[page_size] = stat
    return list(by_size.values())


def systemd_unit_from_path(path: str) -> str:
    """Return the last component of a cgroup path, which names its systemd unit."""
    return path.rsplit("/", 1)[-1]