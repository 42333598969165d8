"""Helpers for the legacy (v1) cgroup hierarchy."""

from __future__ import annotations

import io
import os
import re
import stat
import time
from collections.abc import Iterable, Iterator
from decimal import Decimal

_MOUNTINFO = "/proc/self/mountinfo"
_HUGEPAGES_DIR = "/sys/kernel/mm/hugepages"
_SIZE_UNITS = ["B", "KB", "MB", "GB", "TB", "PB"]
_BINARY_MULTIPLIERS = {
    "k": 1024,
    "m": 1024**2,
    "g": 1024**3,
    "t": 1024**4,
    "p": 1024**5,
}
_SIZE_PATTERN = re.compile(r"(\d+(?:\.\d+)*) ?([kKmMgGtTpP])?[iI]?[bB]?")
_UNSIGNED = re.compile(r"[0-9]+")
_SIGNED = re.compile(r"[+-][0-9]+")


class InvalidFormatError(ValueError):
    """A cgroup file did not have the expected format."""

    def __init__(self, message: str = "cgroups: parsing file with invalid format failed"):
        super().__init__(message)


class NoCgroupMountDestinationError(LookupError):
    """No cgroup mount carries the requested subsystem."""

    def __init__(self, message: str = "cgroups: cannot find cgroup mount destination"):
        super().__init__(message)


class MountPointNotExistError(LookupError):
    """No cgroup hierarchy is mounted."""

    def __init__(self, message: str = "cgroups: cgroup mountpoint does not exist"):
        super().__init__(message)


def _scan(lines: Iterable[str] | str) -> Iterator[str]:
    """Yield lines without their line terminator."""
    if isinstance(lines, str):
        lines = io.StringIO(lines, newline="\n")
    for raw in lines:
        line = raw[:-1] if raw.endswith("\n") else raw
        if line.endswith("\r"):
            line = line[:-1]
        yield line


def parse_uint(s: str, bit_size: int = 64) -> int:
    """Parse an unsigned decimal integer; negative numbers read as 0."""
    if _UNSIGNED.fullmatch(s):
        value = int(s)
        if value >= 1 << bit_size:
            raise ValueError(f"parsing {s!r}: value out of range")
        return value
    if _SIGNED.fullmatch(s) and int(s) < 0:
        return 0
    raise ValueError(f"parsing {s!r}: invalid syntax")


def parse_kv(raw: str) -> tuple[str, int]:
    """Parse a "key value" line with an unsigned value."""
    parts = raw.split()
    if len(parts) != 2:
        raise InvalidFormatError()
    return parts[0], parse_uint(parts[1])


def read_uint(path: str | os.PathLike[str]) -> int:
    """Read a file holding a single unsigned integer."""
    with open(path, encoding="utf-8") as handle:
        return parse_uint(handle.read().strip())


def parse_cgroup_unified(lines: Iterable[str] | str) -> tuple[dict[str, str], str]:
    """Parse /proc/<pid>/cgroup lines into subsystem paths and the unified path."""
    cgroups: dict[str, str] = {}
    unified = ""
    for text in _scan(lines):
        parts = text.split(":", 2)
        if len(parts) < 3:
            raise InvalidFormatError(f"invalid cgroup entry: {text!r}")
        for subsystem in parts[1].split(","):
            if subsystem:
                cgroups[subsystem] = parts[2]
            else:
                unified = parts[2]
    return cgroups, unified


def parse_cgroup_file_unified(path: str | os.PathLike[str]) -> tuple[dict[str, str], str]:
    """Parse a cgroup file, returning legacy subsystem paths and the unified path."""
    with open(path, encoding="utf-8", newline="\n") as handle:
        return parse_cgroup_unified(handle)


def parse_cgroup_file(path: str | os.PathLike[str]) -> dict[str, str]:
    """Parse a cgroup file into a mapping of subsystem to cgroup path."""
    cgroups, _ = parse_cgroup_file_unified(path)
    return cgroups


def _clean(path: str) -> str:
    """Lexically simplify a slash-separated path."""
    rooted = path.startswith("/")
    stack: list[str] = []
    for part in path.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if stack and stack[-1] != "..":
                stack.pop()
            elif not rooted:
                stack.append("..")
            continue
        stack.append(part)
    joined = "/".join(stack)
    if rooted:
        return "/" + joined
    return joined or "."


def _dir(path: str) -> str:
    return _clean(path[: path.rfind("/") + 1])


def clean_path(path: str) -> str:
    """Clean a path, confining relative paths so they cannot climb above root."""
    if not path:
        return ""
    path = _clean(path)
    if not path.startswith("/"):
        path = _clean("/" + path).lstrip("/") or "."
    return path


def _remove_all(path: str) -> None:
    try:
        info = os.lstat(path)
    except FileNotFoundError:
        return
    if not stat.S_ISDIR(info.st_mode):
        os.unlink(path)
        return
    try:
        os.rmdir(path)
        return
    except FileNotFoundError:
        return
    except OSError:
        pass
    with os.scandir(path) as entries:
        children = [entry.path for entry in entries]
    for child in children:
        _remove_all(child)
    os.rmdir(path)


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
    raise OSError(f"cgroups: unable to remove path {path!r}") from last_error


def ram_in_bytes(size: str) -> int:
    """Parse a human size such as "2048kB" using binary multipliers."""
    match = _SIZE_PATTERN.fullmatch(size)
    if match is None:
        raise ValueError(f"invalid size: {size!r}")
    value = float(match.group(1))
    prefix = (match.group(2) or "").lower()
    value *= _BINARY_MULTIPLIERS.get(prefix, 1)
    return int(value)


def _format_g(value: float) -> str:
    """Format a float with the shortest exact digits, %g style."""
    if value == 0:
        return "0"
    sign, digit_tuple, exponent = Decimal(repr(value)).normalize().as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    prefix = "-" if sign else ""
    point = len(digits) + exponent
    exp10 = point - 1
    if exp10 < -4 or exp10 >= 6:
        mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
        return f"{prefix}{mantissa}e{'+' if exp10 >= 0 else '-'}{abs(exp10):02d}"
    if point <= 0:
        return f"{prefix}0.{'0' * -point}{digits}"
    if point >= len(digits):
        return prefix + digits + "0" * (point - len(digits))
    return f"{prefix}{digits[:point]}.{digits[point:]}"


def custom_size(size: float) -> str:
    """Render a byte count as a hugetlb page size name such as "2MB"."""
    value = float(size)
    index = 0
    while value >= 1024.0 and index < len(_SIZE_UNITS) - 1:
        value /= 1024.0
        index += 1
    return f"{_format_g(value)}{_SIZE_UNITS[index]}"


def hugepage_sizes(directory: str | os.PathLike[str] = _HUGEPAGES_DIR) -> list[str]:
    """List the huge page sizes the kernel supports, named as hugetlb files are."""
    sizes = []
    for name in sorted(os.listdir(directory)):
        parts = name.split("-")
        if len(parts) < 2:
            raise InvalidFormatError(f"invalid hugepages entry: {name!r}")
        sizes.append(custom_size(ram_in_bytes(parts[1])))
    return sizes


def cgroup_destination(subsystem: str, mountinfo: str | os.PathLike[str] = _MOUNTINFO) -> str:
    """Return the root of the cgroup mount that carries subsystem."""
    with open(mountinfo, encoding="utf-8", newline="\n") as handle:
        for line in _scan(handle):
            fields = line.split(" ")
            if len(fields) < 10 or fields[-3] != "cgroup":
                continue
            if subsystem in fields[-1].split(","):
                return fields[3]
    raise NoCgroupMountDestinationError()


def v1_mount_point(mountinfo: str | os.PathLike[str] = _MOUNTINFO) -> str:
    """Return the directory under which the v1 hierarchies are mounted."""
    with open(mountinfo, encoding="utf-8", newline="\n") as handle:
        for line in _scan(handle):
            fields = line.split(" ")
            if len(fields) < 10:
                raise InvalidFormatError(f"mountinfo: bad entry {line!r}")
            if fields[-3] == "cgroup":
                return _dir(fields[4])
    raise MountPointNotExistError()