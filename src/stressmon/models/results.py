"""
Result data models.

StressResult is produced once per stress run. ComputedStatistics is the
summary computed from the Totals series when a counters collector stops; its
field names mirror what performance baselining tools ingest.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class StressResult:
    """
    Tally of one stress run.

    Invariant: num_passes + len(fails) + len(errors) equals the number of
    iterations attempted across all loops.
    """

    num_passes: int
    fails: List[AssertionError] = field(default_factory=list)
    errors: List[Exception] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.num_passes + len(self.fails) + len(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "num_passes": self.num_passes,
            "fails": [str(e) for e in self.fails],
            "errors": [str(e) for e in self.errors],
        }


@dataclass
class ComputedStatistics:
    """Summary statistics over the memory dimension of the Totals series."""

    elapsed_time: float
    metric_value: float
    iterations: List[float]
    ninety_fifth_percentile: float
    ninetieth_percentile: float
    fiftieth_percentile: float
    average: float
    primary_metric: str = "MemoryMetric"
    secondary_metric: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "elapsedTime": self.elapsed_time,
            "metricValue": self.metric_value,
            "iterations": list(self.iterations),
            "ninetyfifthPercentile": self.ninety_fifth_percentile,
            "ninetiethPercentile": self.ninetieth_percentile,
            "fiftiethPercentile": self.fiftieth_percentile,
            "average": self.average,
            "primaryMetric": self.primary_metric,
        }
        if self.secondary_metric is not None:
            data["secondaryMetric"] = self.secondary_metric
        return data
