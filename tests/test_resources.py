import os

import pytest

from cgroupkit.v2.errors import InvalidFormatError
from cgroupkit.v2.resources import (
    BFQ,
    CPU,
    IO,
    RDMA,
    CPUMax,
    HugeTlb,
    HugeTlbEntry,
    IOLimit,
    IOType,
    Memory,
    Pids,
    RDMAEntry,
    Resources,
    Value,
    new_cpu_max,
    write_values,
)


def _group_dir(tmp_path, names):
    for name in names:
        (tmp_path / name).write_text("")
    return tmp_path


def _read(path, name):
    return (path / name).read_text().strip()


def test_extract_quota_and_period():
    cpu_max = new_cpu_max(10000, 8000)
    assert cpu_max.quota_and_period() == (10000, 8000)


def test_extract_quota_and_period_unbounded():
    cpu_max = new_cpu_max(None, 8000)
    assert cpu_max == "max 8000"
    assert cpu_max.quota_and_period() == ((1 << 63) - 1, 8000)


def test_quota_and_period_malformed_raises():
    with pytest.raises(InvalidFormatError):
        CPUMax("10000").quota_and_period()


def test_cpu_values_written(tmp_path):
    names = ["cpu.weight", "cpu.max", "cpuset.cpus", "cpuset.mems"]
    group = _group_dir(tmp_path, names)
    cpu = CPU(weight=100, max=new_cpu_max(10000, 8000), cpus="0", mems="0")
    write_values(group, Resources(cpu=cpu).values())
    assert _read(group, "cpu.weight") == "100"
    assert _read(group, "cpu.max") == "10000 8000"
    assert _read(group, "cpuset.cpus") == "0"
    assert _read(group, "cpuset.mems") == "0"


def test_cpu_values_skip_unset():
    assert CPU(cpus="0-3").values() == [Value("cpuset.cpus", "0-3")]


def test_io_max_written(tmp_path):
    group = _group_dir(tmp_path, ["io.max"])
    io = IO(max=[IOLimit(type=IOType.READ_IOPS, major=8, minor=0, rate=120)])
    write_values(group, io.values())
    assert _read(group, "io.max") == "8:0 riops=120"


def test_io_values_with_weight():
    io = IO(bfq=BFQ(weight=100), max=[IOLimit(IOType.WRITE_BPS, 8, 16, 1024)])
    assert io.values() == [
        Value("io.bfq.weight", 100),
        Value("io.max", "8:16 wbps=1024"),
    ]


def test_memory_values_order():
    memory = Memory(max=629145600, swap=314572800, high=524288000)
    assert memory.values() == [
        Value("memory.swap.max", 314572800),
        Value("memory.max", 629145600),
        Value("memory.high", 524288000),
    ]


@pytest.mark.parametrize(
    "limit, expected",
    [(1000, [Value("pids.max", "1000")]), (-1, [Value("pids.max", "max")]), (0, [])],
)
def test_pids_values(limit, expected):
    assert Pids(max=limit).values() == expected


def test_rdma_values():
    rdma = RDMA(limit=[RDMAEntry("mlx5_1", 3, 4)])
    assert rdma.values() == [Value("rdma.max", "mlx5_1 hca_handle=3 hca_object=4")]


def test_hugetlb_values():
    hugetlb = HugeTlb([HugeTlbEntry("2MB", 1073741824)])
    assert hugetlb.values() == [Value("hugetlb.2MB.max", 1073741824)]


def test_enabled_controllers_order():
    resources = Resources(
        cpu=CPU(),
        memory=Memory(),
        pids=Pids(),
        io=IO(),
        rdma=RDMA(),
        hugetlb=HugeTlb(),
    )
    assert resources.enabled_controllers() == [
        "cpu",
        "cpuset",
        "memory",
        "pids",
        "io",
        "rdma",
        "hugetlb",
    ]


def test_empty_resources():
    assert Resources().values() == []
    assert Resources().enabled_controllers() == []


def test_resources_values_concatenated():
    resources = Resources(pids=Pids(max=5), memory=Memory(max=10))
    assert resources.values() == [Value("memory.max", 10), Value("pids.max", "5")]


def test_value_write_creates_with_perm(tmp_path):
    Value("cgroup.procs", b"42").write(tmp_path, 0o644)
    target = tmp_path / "cgroup.procs"
    assert target.read_bytes() == b"42"
    assert os.stat(target).st_mode & 0o777 == 0o644


def test_value_write_truncates(tmp_path):
    (tmp_path / "memory.max").write_text("123456789")
    Value("memory.max", 5).write(tmp_path, 0o644)
    assert _read(tmp_path, "memory.max") == "5"


def test_value_write_rejects_unknown_type(tmp_path):
    with pytest.raises(InvalidFormatError):
        Value("cpu.weight", 1.5).write(tmp_path, 0o644)


def test_write_values_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        write_values(tmp_path / "absent", [Value("pids.max", "max")])