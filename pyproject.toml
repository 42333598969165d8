[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cgroupkit"
version = "0.1.0"
description = "Parse, describe and write Linux control group (cgroup v1 and v2) settings"
requires-python = ">=3.10"
dependencies = []
keywords = ["cgroups", "cgroup2", "linux", "containers", "resources", "oci"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System Kernels :: Linux",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["cgroupkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
