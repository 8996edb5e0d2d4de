"""
Performance counters collection for process trees.

- CounterStore: per-pid series, totals, moving averages and statistics
- CountersCollector: start/stop sampling state machine writing run artifacts
- RemoteCollector: the same collector hosted in a child process
"""

from .store import CounterStore, MOVING_AVERAGE_WINDOW
from .collector import (
    CollectorState,
    CollectorStateError,
    CountersCollector,
    collect_counters,
)
from .remote import CollectorHost, RemoteCollector, RemoteCollectorError

__all__ = [
    "CounterStore",
    "MOVING_AVERAGE_WINDOW",
    "CollectorState",
    "CollectorStateError",
    "CountersCollector",
    "collect_counters",
    "CollectorHost",
    "RemoteCollector",
    "RemoteCollectorError",
]
