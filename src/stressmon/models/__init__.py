"""
Data models used throughout stressmon.

Configuration Models:
- Caller options and resolved settings for stress runs and counter collection

Process Models:
- Process identity, instantaneous samples and per-pid counter series
- The Totals and WholeComputer pseudo-processes

Result Models:
- Stress run tallies and computed counter statistics

Message Models:
- Requests and responses for a collector running in a child process
"""

# Configuration models
from .config import (
    CountersOptions,
    CountersSettings,
    StressOptions,
    StressSettings,
    DEFAULT_COUNTERS_SETTINGS,
    DEFAULT_STRESS_SETTINGS,
)

# Process models
from .process import (
    CounterSeries,
    ProcessInfo,
    ProcessSample,
    TOTALS,
    WHOLE_COMPUTER,
)

# Result models
from .results import ComputedStatistics, StressResult

# Message models
from .messages import CollectorMessage, CollectorReply, CollectorResponse, MessageKind

__all__ = [
    # Configuration
    "CountersOptions",
    "CountersSettings",
    "StressOptions",
    "StressSettings",
    "DEFAULT_COUNTERS_SETTINGS",
    "DEFAULT_STRESS_SETTINGS",
    # Process
    "CounterSeries",
    "ProcessInfo",
    "ProcessSample",
    "TOTALS",
    "WHOLE_COMPUTER",
    # Results
    "ComputedStatistics",
    "StressResult",
    # Messages
    "CollectorMessage",
    "CollectorReply",
    "CollectorResponse",
    "MessageKind",
]
