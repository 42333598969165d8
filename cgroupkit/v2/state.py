"""Freezer state of a cgroup in the unified (v2) hierarchy."""

from __future__ import annotations

import enum
import os

from cgroupkit.v2.resources import Value

CGROUP_FREEZE = "cgroup.freeze"


class State(str, enum.Enum):
    """The freezer state of a cgroup."""

    UNKNOWN = ""
    THAWED = "thawed"
    FROZEN = "frozen"
    DELETED = "deleted"

    def values(self) -> list[Value]:
        """Return the setting that puts a cgroup into this state.

        Only FROZEN and THAWED carry data; writing any other state fails.
        """
        data = {State.FROZEN: "1", State.THAWED: "0"}.get(self)
        return [Value(CGROUP_FREEZE, data)]  # type: ignore[arg-type]


def fetch_state(path: str | os.PathLike[str]) -> State:
    """Read the freezer state of the group directory path."""
    with open(os.path.join(os.fspath(path), CGROUP_FREEZE), encoding="utf-8") as handle:
        current = handle.read().strip()
    if current == "1":
        return State.FROZEN
    if current == "0":
        return State.THAWED
    return State.UNKNOWN