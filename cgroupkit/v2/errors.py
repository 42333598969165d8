"""Errors raised when working with the unified (v2) hierarchy."""


class CgroupError(Exception):
    """Base class for cgroup v2 errors."""


class InvalidFormatError(CgroupError, ValueError):
    """A cgroup file did not have the expected format."""

    def __init__(self, message: str = "cgroups: parsing file with invalid format failed"):
        super().__init__(message)


class InvalidGroupPathError(CgroupError, ValueError):
    """A group path is not a clean absolute path inside the hierarchy."""

    def __init__(self, message: str = "cgroups: invalid group path"):
        super().__init__(message)