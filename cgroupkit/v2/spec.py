"""Linux resource descriptions in the shape of the OCI runtime specification."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class LinuxDeviceCgroup:
    """A device rule: type is "a", "b" or "c"; a major or minor of -1 matches any."""

    allow: bool = False
    type: str = ""
    major: int | None = None
    minor: int | None = None
    access: str = ""


@dataclass
class LinuxCPU:
    """CPU resource settings in cgroup v1 terms."""

    shares: int | None = None
    quota: int | None = None
    period: int | None = None
    realtime_runtime: int | None = None
    realtime_period: int | None = None
    cpus: str = ""
    mems: str = ""


@dataclass
class LinuxMemory:
    """Memory resource settings in bytes."""

    limit: int | None = None
    reservation: int | None = None
    swap: int | None = None
    kernel: int | None = None
    kernel_tcp: int | None = None
    swappiness: int | None = None
    disable_oom_killer: bool | None = None


@dataclass
class LinuxHugepageLimit:
    """Limit for one huge page size, such as "2MB"."""

    pagesize: str
    limit: int


@dataclass
class LinuxPids:
    """Maximum number of tasks; -1 means unlimited."""

    limit: int


@dataclass
class LinuxThrottleDevice:
    """A rate limit for one block device."""

    major: int
    minor: int
    rate: int


@dataclass
class LinuxWeightDevice:
    """A per-device block I/O weight."""

    major: int
    minor: int
    weight: int | None = None
    leaf_weight: int | None = None


@dataclass
class LinuxBlockIO:
    """Block I/O settings in cgroup v1 terms."""

    weight: int | None = None
    leaf_weight: int | None = None
    weight_device: list[LinuxWeightDevice] = field(default_factory=list)
    throttle_read_bps_device: list[LinuxThrottleDevice] = field(default_factory=list)
    throttle_write_bps_device: list[LinuxThrottleDevice] = field(default_factory=list)
    throttle_read_iops_device: list[LinuxThrottleDevice] = field(default_factory=list)
    throttle_write_iops_device: list[LinuxThrottleDevice] = field(default_factory=list)


@dataclass
class LinuxRdma:
    """RDMA limits for one device."""

    hca_handles: int | None = None
    hca_objects: int | None = None


@dataclass
class LinuxResources:
    """The resource section of a container's Linux configuration."""

    devices: list[LinuxDeviceCgroup] = field(default_factory=list)
    memory: LinuxMemory | None = None
    cpu: LinuxCPU | None = None
    pids: LinuxPids | None = None
    block_io: LinuxBlockIO | None = None
    hugepage_limits: list[LinuxHugepageLimit] | None = None
    rdma: dict[str, LinuxRdma] | None = None