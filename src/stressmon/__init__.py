"""
stressmon: stress-testing harness for async test methods with process-tree
performance counters.

The package is organized into specialized modules:
- config: Settings resolution from arguments, environment and defaults
- models: Data structures and type definitions
- validation: Input validation and error handling
- system: Process snapshots, process tree resolution and counter sampling
- counters: Counter aggregation, the collection state machine and the
  child-process collector
- stress: The stress engine, orchestrator and decorators
- storage: Artifact persistence
- plotter: Chart rendering
- cli: Command-line interface

Usage:
    From command line:
        stressmon collect --pid 1234 --duration 60 --name build
        stressmon show-config

    Programmatically:
        from stressmon import StressEngine, StressOptions
        engine = StressEngine(StressOptions(dop=4, iterations=20))
        result = await engine.run(my_async_test)
"""

# Main interfaces
from .stress import (
    PassThresholdError,
    StressEngine,
    StressError,
    StressOrchestrator,
    collect_perf_counters,
    stressify,
)
from .counters import (
    CollectorStateError,
    CounterStore,
    CountersCollector,
    RemoteCollector,
    collect_counters,
)

# Model classes for external use
from .models import (
    ComputedStatistics,
    CounterSeries,
    CountersOptions,
    ProcessInfo,
    ProcessSample,
    StressOptions,
    StressResult,
)

# Configuration
from .config import SuiteType, get_root_pid, get_suite_type

# Validation utilities
from .validation import ValidationError, ValidationErrors

# System utilities
from .system import get_children_tree, get_process_list

__version__ = "1.0.0"

__all__ = [
    # Main interfaces
    "PassThresholdError",
    "StressEngine",
    "StressError",
    "StressOrchestrator",
    "collect_perf_counters",
    "stressify",
    "CollectorStateError",
    "CounterStore",
    "CountersCollector",
    "RemoteCollector",
    "collect_counters",
    # Models
    "ComputedStatistics",
    "CounterSeries",
    "CountersOptions",
    "ProcessInfo",
    "ProcessSample",
    "StressOptions",
    "StressResult",
    # Configuration
    "SuiteType",
    "get_root_pid",
    "get_suite_type",
    # Validation
    "ValidationError",
    "ValidationErrors",
    # System utilities
    "get_children_tree",
    "get_process_list",
]
