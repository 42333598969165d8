import pytest

from cgroupkit.v2.errors import InvalidFormatError
from cgroupkit.v2.resources import Value
from cgroupkit.v2.state import CGROUP_FREEZE, State, fetch_state


def test_frozen_values():
    assert State.FROZEN.values() == [Value(CGROUP_FREEZE, "1")]


def test_thawed_values():
    assert State.THAWED.values() == [Value(CGROUP_FREEZE, "0")]


def test_unknown_state_cannot_be_written(tmp_path):
    (value,) = State.UNKNOWN.values()
    assert value.filename == "cgroup.freeze"
    with pytest.raises(InvalidFormatError):
        value.write(tmp_path)


@pytest.mark.parametrize(
    "content, expected",
    [("1\n", State.FROZEN), ("0\n", State.THAWED), ("2\n", State.UNKNOWN)],
)
def test_fetch_state(tmp_path, content, expected):
    (tmp_path / "cgroup.freeze").write_text(content)
    assert fetch_state(tmp_path) is expected


def test_fetch_state_round_trip(tmp_path):
    (tmp_path / "cgroup.freeze").write_text("")
    for state in (State.FROZEN, State.THAWED):
        for value in state.values():
            value.write(tmp_path)
        assert fetch_state(tmp_path) is state


def test_fetch_state_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        fetch_state(tmp_path)