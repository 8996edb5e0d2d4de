"""
Stress execution: the engine, the counters-aware orchestrator and the
decorators that attach them to async test functions.
"""

from .engine import PassThresholdError, StressEngine, StressError
from .orchestrator import StressOrchestrator
from .decorators import collect_perf_counters, stressify

__all__ = [
    "PassThresholdError",
    "StressEngine",
    "StressError",
    "StressOrchestrator",
    "collect_perf_counters",
    "stressify",
]
