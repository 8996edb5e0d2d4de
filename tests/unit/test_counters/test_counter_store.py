"""
Unit tests for CounterStore aggregation.
"""

import polars as pl
import pytest

from stressmon.counters.store import CounterStore
from stressmon.models.process import TOTALS, WHOLE_COMPUTER, ProcessInfo, ProcessSample


def sample(pid, ppid, memory, t, cpu=1.0, ctime=None):
    return ProcessSample(
        pid=pid, ppid=ppid, cpu=cpu, memory=memory, ctime=ctime,
        elapsed=t * 100, timestamp=1000 + t * 100,
    )


@pytest.fixture
def two_process_store():
    store = CounterStore()
    store.append_samples([sample(0, 0, 900, 0), sample(10, 1, 10, 0, ctime=1), sample(11, 10, 5, 0, ctime=2)])
    store.append_samples([sample(0, 0, 950, 1), sample(10, 1, 20, 1, ctime=3), sample(11, 10, 15, 1, ctime=4)])
    return store


TRACKED = [ProcessInfo(pid=10, ppid=1, name="root"), ProcessInfo(pid=11, ppid=10, name="child")]


@pytest.mark.unit
class TestAppendSamples:
    """Tests for folding samples into the collection."""

    def test_series_created_lazily_and_aligned(self, two_process_store):
        store = two_process_store
        assert set(store.collection) == {0, 10, 11}
        series = store.collection[10]
        assert series.ppid == 1
        assert series.memory == [10, 20]
        assert series.ctime == [1, 3]
        lengths = {len(seq) for seq in series.values.values()}
        assert lengths == {2}

    def test_new_pid_joins_mid_run(self, two_process_store):
        two_process_store.append_samples([sample(12, 10, 7, 2)])
        assert two_process_store.collection[12].memory == [7]
        assert two_process_store.collection[10].memory == [10, 20]


@pytest.mark.unit
class TestComputeTotals:
    """Tests for the Totals pseudo-process series."""

    def test_totals_sum_tracked_processes(self, two_process_store):
        totals = two_process_store.compute_totals(10, TRACKED)

        assert totals.pid == TOTALS.pid
        assert totals.ppid == TOTALS.ppid
        assert totals.memory == [15, 35]
        assert totals.cpu == [2.0, 2.0]
        assert totals.ctime == [3, 7]
        assert totals.timestamp == [1000, 1100]
        assert totals.elapsed == [0, 100]
        assert two_process_store.collection[TOTALS.pid] is totals

    def test_totals_are_idempotent(self, two_process_store):
        first = two_process_store.compute_totals(10, TRACKED).memory
        second = two_process_store.compute_totals(10, TRACKED).memory
        assert first == second == [15, 35]

    def test_missing_values_contribute_zero(self, two_process_store):
        store = two_process_store
        store.append_samples([sample(0, 0, 990, 2), sample(10, 1, 30, 2, ctime=5)])
        tracked = TRACKED + [ProcessInfo(pid=99, ppid=10, name="never-sampled")]

        totals = store.compute_totals(10, tracked)

        assert totals.memory == [15, 35, 30]
        assert totals.ctime == [3, 7, 5]

    def test_none_ctime_counts_as_zero(self):
        store = CounterStore()
        store.append_samples([sample(10, 1, 10, 0, ctime=None), sample(11, 10, 5, 0, ctime=2)])
        assert store.compute_totals(10, TRACKED).ctime == [2]

    def test_falls_back_to_whole_computer_index(self):
        store = CounterStore()
        store.append_samples([sample(0, 0, 900, 0), sample(11, 10, 5, 0)])
        store.append_samples([sample(0, 0, 900, 1), sample(11, 10, 6, 1)])

        totals = store.compute_totals(10, TRACKED)

        assert totals.memory == [5, 6]
        assert totals.timestamp == store.collection[WHOLE_COMPUTER.pid].timestamp

    def test_empty_store_gives_empty_totals(self):
        store = CounterStore()
        totals = store.compute_totals(10, TRACKED)
        assert totals.memory == []
        assert len(totals) == 0


@pytest.mark.unit
class TestMovingAverages:
    """Tests for 4-period simple and exponential moving averages."""

    @pytest.fixture
    def six_tick_store(self):
        store = CounterStore()
        for t, memory in enumerate([4, 8, 12, 16, 20, 24]):
            store.append_samples([sample(10, 1, memory, t, cpu=float(t), ctime=t)])
        return store

    def test_six_elements_yield_three(self, six_tick_store):
        six_tick_store.compute_moving_averages()

        for derived in (six_tick_store.sma_collection[10], six_tick_store.ema_collection[10]):
            assert len(derived.memory) == 3
            assert len(derived.cpu) == 3
            assert derived.elapsed == [300, 400, 500]
            assert derived.timestamp == [1300, 1400, 1500]

    def test_simple_moving_average_values(self, six_tick_store):
        six_tick_store.compute_moving_averages()
        assert six_tick_store.sma_collection[10].memory == pytest.approx([10.0, 14.0, 18.0])

    def test_exponential_moving_average_values(self, six_tick_store):
        six_tick_store.compute_moving_averages()
        # alpha = 2 / (4 + 1), seeded with the first value
        alpha = 0.4
        ema = [4.0]
        for x in [8, 12, 16, 20, 24]:
            ema.append(alpha * x + (1 - alpha) * ema[-1])
        assert six_tick_store.ema_collection[10].memory == pytest.approx(ema[3:])

    def test_short_series_yields_empty_averages(self):
        store = CounterStore()
        store.append_samples([sample(10, 1, 1, 0)])
        store.append_samples([sample(10, 1, 2, 1)])
        store.compute_moving_averages()
        assert store.sma_collection[10].memory == []
        assert store.ema_collection[10].timestamp == []

    def test_includes_totals_and_whole_computer(self, two_process_store):
        two_process_store.compute_totals(10, TRACKED)
        two_process_store.compute_moving_averages()
        assert TOTALS.pid in two_process_store.sma_collection
        assert WHOLE_COMPUTER.pid in two_process_store.ema_collection


@pytest.mark.unit
class TestStatistics:
    """Tests for statistics over the Totals memory series."""

    def test_statistics_from_totals(self):
        store = CounterStore()
        for t, memory in enumerate([10, 20, 30, 40, 50]):
            store.append_samples([sample(10, 1, memory, t)])
        store.compute_totals(10, TRACKED)

        stats = store.compute_statistics()

        assert stats.iterations == [10, 20, 30, 40, 50]
        assert stats.elapsed_time == 400
        assert stats.average == pytest.approx(30.0)
        assert stats.fiftieth_percentile == pytest.approx(30.0)
        assert stats.ninetieth_percentile == pytest.approx(46.0)
        assert stats.ninety_fifth_percentile == pytest.approx(48.0)
        assert stats.metric_value == stats.ninety_fifth_percentile
        assert stats.primary_metric == "MemoryMetric"
        assert store.statistics is stats

    def test_statistics_dict_keys(self, two_process_store):
        two_process_store.compute_totals(10, TRACKED)
        data = two_process_store.compute_statistics().to_dict()
        assert data["iterations"] == [15, 35]
        assert data["primaryMetric"] == "MemoryMetric"
        assert "secondaryMetric" not in data
        assert set(data) >= {"elapsedTime", "metricValue", "ninetyfifthPercentile",
                             "ninetiethPercentile", "fiftiethPercentile", "average"}

    def test_no_totals_gives_none(self):
        assert CounterStore().compute_statistics() is None


@pytest.mark.unit
class TestStoreExport:
    """Tests for reset and export helpers."""

    def test_reset_clears_everything(self, two_process_store):
        two_process_store.compute_totals(10, TRACKED)
        two_process_store.compute_moving_averages()
        two_process_store.compute_statistics()

        two_process_store.reset()

        assert two_process_store.collection == {}
        assert two_process_store.sma_collection == {}
        assert two_process_store.ema_collection == {}
        assert two_process_store.statistics is None

    def test_collection_to_dict(self, two_process_store):
        data = CounterStore.collection_to_dict(two_process_store.collection)
        assert set(data) == {"0", "10", "11"}
        assert data["10"]["pid"] == 10
        assert data["10"]["memory"] == [10, 20]

    def test_samples_frame_is_long_format(self, two_process_store):
        df = two_process_store.samples_frame()
        assert isinstance(df, pl.DataFrame)
        assert len(df) == 6
        assert df.columns[:3] == ["pid", "ppid", "tick"]
        row = df.filter((pl.col("pid") == 11) & (pl.col("tick") == 1))
        assert row["memory"].to_list() == [15.0]
