"""routestats: reduce per-instance request-log snapshots into chart-ready metrics."""

__version__ = "0.1.0"
