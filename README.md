# cgroupkit

Python helpers for Linux control groups: parsing the files the kernel
exposes, describing resource limits, and writing them into a cgroup v2
(unified) group directory. It has no dependencies outside the standard
library.

## What is in it

### `cgroupkit.v1` — legacy hierarchy helpers

- `parse_cgroup_unified(lines)`, `parse_cgroup_file_unified(path)` and
  `parse_cgroup_file(path)` read `/proc/<pid>/cgroup` into a mapping of
  subsystem to path (and, for the unified variants, the v2 path as well).
- `cgroup_destination(subsystem, mountinfo)` and `v1_mount_point(mountinfo)`
  read `/proc/self/mountinfo`.
- `parse_uint`, `parse_kv`, `read_uint` parse the numeric files; negative
  numbers read as 0.
- `hugepage_sizes(directory)`, `ram_in_bytes(size)` and `custom_size(size)`
  turn the entries of `/sys/kernel/mm/hugepages` into names such as `2MB`.
- `clean_path(path)` and `remove(path)` (removal retried with a growing delay).
- Errors: `InvalidFormatError`, `NoCgroupMountDestinationError`,
  `MountPointNotExistError`.

### `cgroupkit.v2` — unified hierarchy

- `cgroupkit.v2.resources`: `Resources` made of `CPU`, `Memory`, `Pids`,
  `IO` (with `BFQ`, `IOLimit`, `IOType`), `RDMA` (`RDMAEntry`) and `HugeTlb`
  (`HugeTlbEntry`). `Resources.values()` lists the `Value`s (file name and
  data) to write; `Resources.enabled_controllers()` names the controllers in
  use. `write_values(path, values)` writes them into a group directory.
  `new_cpu_max(quota, period)` builds a `CPUMax`, whose
  `quota_and_period()` reads it back.
- `cgroupkit.v2.spec`: OCI-shaped resource descriptions (`LinuxResources`,
  `LinuxCPU`, `LinuxMemory`, `LinuxPids`, `LinuxBlockIO`, ...).
- `cgroupkit.v2.utils`: `to_resources(spec)` converts those to `Resources`
  (CPU shares to weight, block I/O weight to BFQ weight, and so on), plus
  readers for `cgroup.procs`, `io.stat`, `rdma.current`/`rdma.max`, hugetlb
  files and single-value stat files, and `parse_cgroup_file` /
  `parse_cgroup_lines` for the unified path of a process.
- `cgroupkit.v2.stats`: the `Metrics` dataclasses; `Metrics.to_dict()` gives
  a JSON-ready mapping without zero or unset fields.
- `cgroupkit.v2.state`: `State` (`FROZEN`, `THAWED`, ...) with the
  `cgroup.freeze` setting for it, and `fetch_state(path)`.
- `cgroupkit.v2.paths`: `verify_group_path(g)` raises
  `InvalidGroupPathError` unless `g` is a clean absolute path not under
  `/sys/fs/cgroup`; `nested_group_path(suffix)` and `pid_group_path(pid)`.
- `cgroupkit.v2.errors`: `CgroupError`, `InvalidFormatError`,
  `InvalidGroupPathError`.

## Example

    from cgroupkit.v2.resources import CPU, Memory, Pids, Resources, new_cpu_max, write_values
    from cgroupkit.v2.spec import LinuxCPU, LinuxResources
    from cgroupkit.v2.utils import to_resources

    resources = Resources(
        cpu=CPU(weight=100, max=new_cpu_max(10000, 8000)),
        memory=Memory(max=629145600),
        pids=Pids(max=1000),
    )
    print(resources.enabled_controllers())   # ['cpu', 'cpuset', 'memory', 'pids']
    write_values("/sys/fs/cgroup/my-group", resources.values())

    converted = to_resources(LinuxResources(cpu=LinuxCPU(quota=8000, period=10000)))
    print(converted.cpu.max)                 # 8000 10000

Writing into `/sys/fs/cgroup` needs root and a host with cgroup v2 mounted.

## What it does not do

The package describes and writes settings and reads what the kernel reports;
it does not manage groups as a whole. It does not create or delete groups,
enable controllers in `cgroup.subtree_control`, add, move or kill
processes, freeze or thaw a group, gather a complete `Metrics` from a group,
watch memory events, compile device rules into an eBPF filter, create
systemd units, or tell which cgroup mode the host runs. There is no
command-line tool.