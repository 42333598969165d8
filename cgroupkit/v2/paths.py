"""Group paths in the unified (v2) hierarchy."""

from __future__ import annotations

from cgroupkit.v2.errors import InvalidGroupPathError
from cgroupkit.v2.utils import parse_cgroup_file

_PROC_ROOT = "/proc"
_CGROUP_ROOT = "/sys/fs/cgroup"


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


def _join(*elements: str) -> str:
    """Join non-empty path elements with slashes and clean the result."""
    parts = [element for element in elements if element]
    if not parts:
        return ""
    return _clean("/".join(parts))


def nested_group_path(suffix: str) -> str:
    """Return a group path nested under the calling process's own cgroup."""
    path = parse_cgroup_file(f"{_PROC_ROOT}/self/cgroup")
    return _join(path, suffix)


def pid_group_path(pid: int) -> str:
    """Return the unified-hierarchy group path of a running process."""
    return parse_cgroup_file(f"{_PROC_ROOT}/{pid}/cgroup")


def verify_group_path(g: str) -> None:
    """Check that g is a clean absolute group path, such as "/user.slice/x.scope".

    The path must not start with the hierarchy's mount point. Whether it
    exists on the system is not checked.
    """
    if not g.startswith("/"):
        raise InvalidGroupPathError()
    if _clean(g) != g:
        raise InvalidGroupPathError()
    if g.startswith(_CGROUP_ROOT):
        raise InvalidGroupPathError()