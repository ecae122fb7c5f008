"""twinbench: compare two builds of the same executable, workload by workload."""

__version__ = "0.1.0"
