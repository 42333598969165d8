from unittest import mock

import pytest

from cgroupkit.v2 import paths
from cgroupkit.v2.errors import CgroupError, InvalidGroupPathError
from cgroupkit.v2.paths import nested_group_path, pid_group_path, verify_group_path


@pytest.mark.parametrize("group", ["/", "/foo", "/foo/bar"])
def test_verify_group_path_valid(group):
    assert verify_group_path(group) is None


@pytest.mark.parametrize(
    "group",
    ["", "/sys/fs/cgroup/foo", "/sys/fs/cgroup/unified/foo", "foo", "/foo/../bar"],
)
def test_verify_group_path_invalid(group):
    with pytest.raises(InvalidGroupPathError):
        verify_group_path(group)


def _proc(tmp_path, name, content):
    directory = tmp_path / name
    directory.mkdir()
    (directory / "cgroup").write_text(content)


def test_nested_group_path(tmp_path):
    _proc(tmp_path, "self", "0::/user.slice/user-1001.slice/session-1.scope\n")
    with mock.patch.object(paths, "_PROC_ROOT", str(tmp_path)):
        result = nested_group_path("child")
    assert result == "/user.slice/user-1001.slice/session-1.scope/child"


def test_pid_group_path(tmp_path):
    _proc(tmp_path, "123", "2:cpuset:/foo\n1:name=systemd:/\n0::/user.slice/x.scope\n")
    with mock.patch.object(paths, "_PROC_ROOT", str(tmp_path)):
        assert pid_group_path(123) == "/user.slice/x.scope"


def test_pid_group_path_without_unified_entry(tmp_path):
    _proc(tmp_path, "7", "2:cpuset:/foo\n1:name=systemd:/\n")
    with mock.patch.object(paths, "_PROC_ROOT", str(tmp_path)):
        with pytest.raises(CgroupError):
            pid_group_path(7)