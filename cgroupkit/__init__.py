"""Linux control group helpers: cgroup v1 file parsing and cgroup v2 resource settings."""

__version__ = "0.1.0"