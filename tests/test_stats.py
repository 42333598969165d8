import json

from cgroupkit.v2.stats import (
    CPUStat,
    HugeTlbStat,
    IOEntry,
    IOStat,
    MemoryEvents,
    MemoryStat,
    Metrics,
    PidsStat,
    RdmaEntry,
    RdmaStat,
)


def test_empty_metrics_encode_to_empty_mapping():
    assert Metrics().to_dict() == {}


def test_zero_fields_are_left_out():
    metrics = Metrics(pids=PidsStat(current=3))
    assert metrics.to_dict() == {"pids": {"current": 3}}


def test_nested_lists_are_encoded():
    metrics = Metrics(
        io=IOStat(usage=[IOEntry(major=8, minor=0, rbytes=1024)]),
        hugetlb=[HugeTlbStat(max=1073741824, pagesize="2MB")],
    )
    encoded = metrics.to_dict()
    assert encoded["io"] == {"usage": [{"major": 8, "rbytes": 1024}]}
    assert encoded["hugetlb"] == [{"max": 1073741824, "pagesize": "2MB"}]


def test_rdma_and_events_keys_are_snake_case():
    metrics = Metrics(
        rdma=RdmaStat(current=[RdmaEntry(device="mlx", hca_handles=2, hca_objects=5)]),
        memory_events=MemoryEvents(oom_kill=1),
    )
    encoded = metrics.to_dict()
    assert encoded["memory_events"] == {"oom_kill": 1}
    assert encoded["rdma"] == {
        "current": [{"device": "mlx", "hca_handles": 2, "hca_objects": 5}]
    }


def test_encoding_is_json_serialisable_and_round_trips():
    metrics = Metrics(
        cpu=CPUStat(usage_usec=10, user_usec=4, system_usec=6),
        memory=MemoryStat(usage=4096, swap_limit=(1 << 64) - 1),
    )
    encoded = metrics.to_dict()
    assert json.loads(json.dumps(encoded)) == encoded
    assert encoded["memory"]["swap_limit"] == (1 << 64) - 1
    assert encoded["cpu"] == {"usage_usec": 10, "user_usec": 4, "system_usec": 6}


def test_defaults_are_zero():
    memory = MemoryStat()
    assert memory.usage == 0
    assert memory.thp_collapse_alloc == 0
    assert RdmaStat().current == []