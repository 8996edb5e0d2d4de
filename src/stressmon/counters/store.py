"""
Counter aggregation state.

CounterStore owns the per-pid raw series collected during a run and the
series derived from them when collection stops: the Totals series, 4-period
simple and exponential moving averages, and summary statistics over the
Totals memory series. Derived computations use Polars.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

import polars as pl

from ..models.process import (
    SERIES_FIELDS,
    TOTALS,
    VALUE_FIELDS,
    WHOLE_COMPUTER,
    CounterSeries,
    ProcessInfo,
    ProcessSample,
)
from ..models.results import ComputedStatistics

logger = logging.getLogger(__name__)

MOVING_AVERAGE_WINDOW = 4


def _value_at(seq: List[Any], index: int) -> float:
    if index < len(seq) and seq[index] is not None:
        return seq[index]
    return 0


class CounterStore:
    """
    Per-pid counter series plus their derived series and statistics.

    Keys are pids; the Totals (-1) and WholeComputer (0) pseudo-processes
    are keyed like any other process. Nothing is cleared between runs
    except by reset().
    """

    def __init__(self):
        self.collection: Dict[int, CounterSeries] = {}
        self.sma_collection: Dict[int, CounterSeries] = {}
        self.ema_collection: Dict[int, CounterSeries] = {}
        self.statistics: Optional[ComputedStatistics] = None

    def append_samples(self, samples: Iterable[ProcessSample]) -> None:
        """
        Fold one tick's samples into the collection.

        Must be called with a complete tick; every series touched grows by
        exactly one element per field.
        """
        for sample in samples:
            series = self.collection.get(sample.pid)
            if series is None:
                series = CounterSeries(pid=sample.pid, ppid=sample.ppid)
                self.collection[sample.pid] = series
            series.append(sample)

    def compute_totals(self, root_pid: int, tracked: Iterable[ProcessInfo]) -> CounterSeries:
        """
        Sum cpu, memory and ctime across the tracked processes per tick.

        The root pid's series provides the tick index and the elapsed and
        timestamp values; if the root was never sampled, the WholeComputer
        series is used instead. A tracked process with no value at some tick
        contributes 0 there.
        """
        frame = self.collection.get(root_pid) or self.collection.get(WHOLE_COMPUTER.pid)
        totals = CounterSeries(pid=TOTALS.pid, ppid=TOTALS.ppid)
        if frame is None:
            logger.warning("No samples recorded; Totals series is empty")
            for name in SERIES_FIELDS:
                totals.values[name] = []
            self.collection[TOTALS.pid] = totals
            return totals

        tracked_series = [
            self.collection[p.pid] for p in tracked
            if p.pid in self.collection and p.pid not in (TOTALS.pid, WHOLE_COMPUTER.pid)
        ]
        ticks = len(frame.timestamp)
        for name in VALUE_FIELDS:
            totals.values[name] = [
                sum(_value_at(series.get(name), i) for series in tracked_series)
                for i in range(ticks)
            ]
        totals.values["elapsed"] = list(frame.elapsed)
        totals.values["timestamp"] = list(frame.timestamp)
        self.collection[TOTALS.pid] = totals
        logger.debug(f"Computed totals over {len(tracked_series)} processes and {ticks} ticks")
        return totals

    def compute_moving_averages(self, window: int = MOVING_AVERAGE_WINDOW) -> None:
        """
        Derive simple and exponential moving averages for every series.

        The first window-1 positions have no defined average and are dropped
        from every field, elapsed and timestamp included, so indices stay
        aligned with the averaged values.
        """
        self.sma_collection = {}
        self.ema_collection = {}
        offset = window - 1
        for pid, series in self.collection.items():
            sma = CounterSeries(pid=series.pid, ppid=series.ppid)
            ema = CounterSeries(pid=series.pid, ppid=series.ppid)
            for name, seq in series.values.items():
                if name in VALUE_FIELDS:
                    values = pl.Series(name, seq, dtype=pl.Float64, strict=False)
                    sma.values[name] = values.rolling_mean(window_size=window)[offset:].to_list()
                    ema.values[name] = values.ewm_mean(span=window, adjust=False)[offset:].to_list()
                else:
                    sma.values[name] = list(seq[offset:])
                    ema.values[name] = list(seq[offset:])
            self.sma_collection[pid] = sma
            self.ema_collection[pid] = ema

    def compute_statistics(self) -> Optional[ComputedStatistics]:
        """
        Summarise the Totals memory series.

        Returns None when there is no Totals data to summarise.
        """
        totals = self.collection.get(TOTALS.pid)
        if totals is None or not totals.memory:
            logger.warning("No Totals data; skipping statistics")
            self.statistics = None
            return None

        memory = pl.Series("memory", totals.memory, dtype=pl.Float64, strict=False)
        p50, p90, p95 = (
            memory.quantile(q, interpolation="linear") for q in (0.5, 0.9, 0.95)
        )
        elapsed = totals.elapsed
        self.statistics = ComputedStatistics(
            elapsed_time=elapsed[-1] - elapsed[0],
            metric_value=p95,
            iterations=list(totals.memory),
            ninety_fifth_percentile=p95,
            ninetieth_percentile=p90,
            fiftieth_percentile=p50,
            average=memory.mean(),
        )
        return self.statistics

    def reset(self) -> None:
        self.collection.clear()
        self.sma_collection.clear()
        self.ema_collection.clear()
        self.statistics = None

    @staticmethod
    def collection_to_dict(collection: Dict[int, CounterSeries]) -> Dict[str, Any]:
        """JSON-ready form of a series map, keyed by pid as a string."""
        return {str(pid): series.to_dict() for pid, series in collection.items()}

    def samples_frame(self) -> pl.DataFrame:
        """
        Long-format table of the raw collection, one row per pid per tick.
        """
        rows: Dict[str, List[Any]] = {"pid": [], "ppid": [], "tick": []}
        for name in SERIES_FIELDS:
            rows[name] = []
        for series in self.collection.values():
            for i in range(len(series)):
                rows["pid"].append(series.pid)
                rows["ppid"].append(series.ppid)
                rows["tick"].append(i)
                for name in SERIES_FIELDS:
                    seq = series.get(name)
                    rows[name].append(seq[i] if i < len(seq) else None)
        schema = {"pid": pl.Int64, "ppid": pl.Int64, "tick": pl.Int64}
        schema.update({name: pl.Float64 for name in SERIES_FIELDS})
        return pl.DataFrame(rows, schema=schema, strict=False)
