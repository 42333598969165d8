"""Resource settings, file parsing, statistics types and paths for the cgroup v2 unified hierarchy."""