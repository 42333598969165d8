"""Resource settings for the unified (v2) hierarchy and the files they map to."""

from __future__ import annotations

import enum
import os
import re
from dataclasses import dataclass, field
from typing import Any, Iterator, Union

from cgroupkit.v2.errors import InvalidFormatError

DEFAULT_FILE_PERM = 0

_INT64_MAX = (1 << 63) - 1
_INT64_MIN = -(1 << 63)
_UINT64_MAX = (1 << 64) - 1
_SIGNED = re.compile(r"[+-]?[0-9]+")
_UNSIGNED = re.compile(r"\+?[0-9]+")

ValueData = Union[int, str, bytes]


@dataclass(frozen=True)
class Value:
    """A single setting: the file it lives in and the data to write there."""

    filename: str
    value: ValueData

    def _data(self) -> bytes:
        data = self.value
        if isinstance(data, bool):
            raise InvalidFormatError()
        if isinstance(data, int):
            return str(data).encode()
        if isinstance(data, (bytes, bytearray)):
            return bytes(data)
        if isinstance(data, str):
            return str.__str__(data).encode()
        raise InvalidFormatError()

    def write(self, path: str | os.PathLike[str], perm: int = DEFAULT_FILE_PERM) -> None:
        """Write the value into its file under the group directory path."""
        data = self._data()
        target = os.path.join(os.fspath(path), self.filename)
        fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, perm)
        with os.fdopen(fd, "wb", buffering=0) as handle:
            handle.write(data)


def write_values(path: str | os.PathLike[str], values: list[Value]) -> None:
    """Write every value into the group directory path, stopping at the first error."""
    for value in values:
        value.write(path, DEFAULT_FILE_PERM)


def _parse_int64(text: str) -> int:
    if not _SIGNED.fullmatch(text):
        return 0
    return max(_INT64_MIN, min(_INT64_MAX, int(text)))


def _parse_uint64(text: str) -> int:
    if not _UNSIGNED.fullmatch(text):
        return 0
    return min(_UINT64_MAX, int(text))


class CPUMax(str):
    """The contents of cpu.max: a quota (or "max") and a period."""

    def quota_and_period(self) -> tuple[int, int]:
        """Return the quota (max int64 when unbounded) and the period."""
        values = str(self).split(" ")
        if len(values) < 2:
            raise InvalidFormatError(f"invalid cpu.max value: {str(self)!r}")
        quota = _INT64_MAX if values[0] == "max" else _parse_int64(values[0])
        return quota, _parse_uint64(values[1])


def new_cpu_max(quota: int | None, period: int) -> CPUMax:
    """Build a cpu.max value; a missing quota means no limit."""
    limit = "max" if quota is None else str(quota)
    return CPUMax(f"{limit} {period}")


@dataclass
class CPU:
    """CPU and cpuset settings."""

    weight: int | None = None
    max: CPUMax | str = ""
    cpus: str = ""
    mems: str = ""

    def values(self) -> list[Value]:
        out = []
        if self.weight is not None:
            out.append(Value("cpu.weight", self.weight))
        if self.max:
            out.append(Value("cpu.max", CPUMax(self.max)))
        if self.cpus:
            out.append(Value("cpuset.cpus", self.cpus))
        if self.mems:
            out.append(Value("cpuset.mems", self.mems))
        return out


@dataclass
class Memory:
    """Memory settings, in bytes."""

    swap: int | None = None
    min: int | None = None
    max: int | None = None
    low: int | None = None
    high: int | None = None

    def values(self) -> list[Value]:
        settings = (
            ("memory.swap.max", self.swap),
            ("memory.min", self.min),
            ("memory.max", self.max),
            ("memory.low", self.low),
            ("memory.high", self.high),
        )
        return [Value(name, value) for name, value in settings if value is not None]


@dataclass
class Pids:
    """Process-count limit; zero leaves it alone, negative means unlimited."""

    max: int = 0

    def values(self) -> list[Value]:
        if self.max == 0:
            return []
        limit = str(self.max) if self.max > 0 else "max"
        return [Value("pids.max", limit)]


class IOType(str, enum.Enum):
    """Kinds of io.max limits."""

    READ_BPS = "rbps"
    WRITE_BPS = "wbps"
    READ_IOPS = "riops"
    WRITE_IOPS = "wiops"


@dataclass
class BFQ:
    """BFQ scheduler weight; zero leaves it alone."""

    weight: int = 0


@dataclass
class IOLimit:
    """One io.max line for a device."""

    type: IOType
    major: int
    minor: int
    rate: int

    def __str__(self) -> str:
        return f"{self.major}:{self.minor} {IOType(self.type).value}={self.rate}"


@dataclass
class IO:
    """Block I/O settings."""

    bfq: BFQ = field(default_factory=BFQ)
    max: list[IOLimit] = field(default_factory=list)

    def values(self) -> list[Value]:
        out = []
        if self.bfq.weight != 0:
            out.append(Value("io.bfq.weight", self.bfq.weight))
        out.extend(Value("io.max", str(entry)) for entry in self.max)
        return out


@dataclass
class RDMAEntry:
    """RDMA limits for one device."""

    device: str
    hca_handles: int
    hca_objects: int

    def __str__(self) -> str:
        return f"{self.device} hca_handle={self.hca_handles} hca_object={self.hca_objects}"


@dataclass
class RDMA:
    """RDMA settings."""

    limit: list[RDMAEntry] = field(default_factory=list)

    def values(self) -> list[Value]:
        return [Value("rdma.max", str(entry)) for entry in self.limit]


@dataclass
class HugeTlbEntry:
    """Limit for one huge page size, e.g. "2MB"."""

    hugepage_size: str
    limit: int


@dataclass
class HugeTlb:
    """Huge page limits."""

    entries: list[HugeTlbEntry] = field(default_factory=list)

    def __iter__(self) -> Iterator[HugeTlbEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def values(self) -> list[Value]:
        return [
            Value(f"hugetlb.{entry.hugepage_size}.max", entry.limit) for entry in self.entries
        ]


@dataclass
class Resources:
    """Resources for a cgroup in the unified hierarchy.

    An empty devices list means devices are not controlled.
    """

    cpu: CPU | None = None
    memory: Memory | None = None
    pids: Pids | None = None
    io: IO | None = None
    rdma: RDMA | None = None
    hugetlb: HugeTlb | None = None
    devices: list[Any] = field(default_factory=list)

    def _controllers(self) -> list[Any]:
        return [self.cpu, self.memory, self.pids, self.io, self.rdma, self.hugetlb]

    def values(self) -> list[Value]:
        """Return the file names and values to write to the hierarchy."""
        return [
            value
            for controller in self._controllers()
            if controller is not None
            for value in controller.values()
        ]

    def enabled_controllers(self) -> list[str]:
        """Return the names of the controllers that have settings."""
        names = []
        if self.cpu is not None:
            names += ["cpu", "cpuset"]
        if self.memory is not None:
            names.append("memory")
        if self.pids is not None:
            names.append("pids")
        if self.io is not None:
            names.append("io")
        if self.rdma is not None:
            names.append("rdma")
        if self.hugetlb is not None:
            names.append("hugetlb")
        return names