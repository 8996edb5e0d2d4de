"""
Configuration data models.

Two layers exist for each settings group:

- The *options* dataclasses (StressOptions, CountersOptions) are what callers
  pass in. Every field is optional; None means "not specified here" and lets
  the next precedence level (environment, then built-in default) decide.
- The *settings* dataclasses (StressSettings, CountersSettings) are the
  fully resolved and validated values. They are frozen.
"""

import tempfile
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

# --- Stress limits and defaults ---

MAX_ITERATIONS = 1_000_000
MAX_RUNTIME = 72000  # seconds
MAX_DOP = 40
MAX_PASS_THRESHOLD = 1.0

# --- Counters limits ---

MAX_COLLECTION_INTERVAL_MS = 3600 * 1000  # one hour
# Gathering the process list typically takes a few seconds on a busy
# machine, so this should not go below ~5 seconds.
PROCESS_INFO_UPDATE_INTERVAL_MS = 10 * 1000


@dataclass
class StressOptions:
    """
    Caller-supplied stress options.

    runtime: seconds (fractional allowed) after which the run stops starting
        new iterations even if the iteration count is not exhausted.
    dop: number of concurrent iteration loops.
    iterations: iterations per loop.
    pass_threshold: fraction (0..1) of attempted iterations that must pass.
    """

    runtime: Optional[float] = None
    dop: Optional[int] = None
    iterations: Optional[int] = None
    pass_threshold: Optional[float] = None

    def merged_over(self, base: "StressSettings") -> Dict[str, Any]:
        """Return base's values with every non-None field of self applied."""
        merged = base.to_dict()
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                merged[f.name] = value
        return merged


@dataclass
class CountersOptions:
    """Caller-supplied counters collection options."""

    collection_interval_ms: Optional[int] = None
    include_moving_averages: Optional[bool] = None
    dump_to_file: Optional[bool] = None
    dump_to_chart: Optional[bool] = None
    output_directory: Optional[str] = None


@dataclass(frozen=True)
class StressSettings:
    """Resolved, validated stress settings."""

    runtime: float
    dop: int
    iterations: int
    pass_threshold: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "runtime": self.runtime,
            "dop": self.dop,
            "iterations": self.iterations,
            "pass_threshold": self.pass_threshold,
        }


@dataclass(frozen=True)
class CountersSettings:
    """Resolved, validated counters collection settings."""

    collection_interval_ms: int
    include_moving_averages: bool
    dump_to_file: bool
    dump_to_chart: bool
    output_directory: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "collection_interval_ms": self.collection_interval_ms,
            "include_moving_averages": self.include_moving_averages,
            "dump_to_file": self.dump_to_file,
            "dump_to_chart": self.dump_to_chart,
            "output_directory": self.output_directory,
        }


DEFAULT_STRESS_SETTINGS = StressSettings(
    runtime=7200.0,
    dop=4,
    iterations=50,
    pass_threshold=0.95,
)

DEFAULT_COUNTERS_SETTINGS = CountersSettings(
    collection_interval_ms=200,
    include_moving_averages=True,
    dump_to_file=True,
    dump_to_chart=True,
    output_directory=tempfile.gettempdir(),
)
