"""
Performance counters collection for a process tree.

CountersCollector runs two periodic loops on the event loop while it is
started: one refreshes the set of tracked processes from the process tree
rooted at a pid, the other samples counters for the tracked set and folds
the samples into a CounterStore. Each loop has an in-progress guard, so a
tick that fires while the previous one is still running is skipped rather
than queued. Blocking psutil work runs in the default executor and the
results are folded into the store back on the event loop, so two ticks'
writes never interleave.

Stopping the collector cancels both loops, waits for any tick in flight,
computes the derived series and statistics, and writes the enabled
artifacts concurrently.
"""

import asyncio
import logging
import os
from enum import Enum
from functools import partial
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Mapping, Optional, TypeVar

from ..config import get_root_pid, resolve_counters_settings, validate_collector_identity
from ..models.config import PROCESS_INFO_UPDATE_INTERVAL_MS, CountersOptions
from ..models.process import (
    FIELD_UNITS,
    TOTALS,
    VALUE_FIELDS,
    WHOLE_COMPUTER,
    CounterSeries,
    ProcessInfo,
)
from ..models.results import ComputedStatistics
from ..plotter import LineData, write_chart_to_file
from ..storage import DataStorage, create_storage
from ..system import ProcessSampler, get_children_tree
from ..validation import ErrorSeverity, ValidationErrors, handle_error
from .store import CounterStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CollectorStateError(AssertionError):
    """Raised when start() is called while collection timers are active."""


class CollectorState(Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


class CountersCollector:
    """
    Collects cpu and memory counters for a process tree.

    Args:
        name: Identifies every artifact this collector writes; must contain
            at least one [a-z0-9_] character
        pid: Root pid of the tracked tree; resolved from
            PerfPidForCollection or the current process when None
        include_parent: Track the subtree of pid's parent instead of pid's
        options: Counters options; unset fields come from the environment,
            then from defaults
        sampler: Counter sample source
        tree_resolver: Callable (pid, include_parent) -> list of ProcessInfo
        storage: Artifact storage backend
        environ: Environment mapping used for resolution (os.environ if None)
        process_info_interval_ms: Period of the tracked-set refresh loop

    Raises:
        ValidationErrors: If the name, pid or any resolved option is invalid
    """

    def __init__(
        self,
        name: str,
        pid: Optional[int] = None,
        include_parent: bool = True,
        options: Optional[CountersOptions] = None,
        sampler: Optional[ProcessSampler] = None,
        tree_resolver: Optional[Callable[[int, bool], List[ProcessInfo]]] = None,
        storage: Optional[DataStorage] = None,
        environ: Optional[Mapping[str, str]] = None,
        process_info_interval_ms: int = PROCESS_INFO_UPDATE_INTERVAL_MS,
    ):
        if pid is None:
            pid = get_root_pid(None, environ)

        errors = []
        try:
            validate_collector_identity(name, pid)
        except ValidationErrors as e:
            errors.extend(e.errors)
        try:
            self.settings = resolve_counters_settings(options, environ)
        except ValidationErrors as e:
            errors.extend(e.errors)
        if errors:
            raise ValidationErrors(errors, context="counters collector")

        self.name = name
        self.pid = int(pid)
        self.include_parent = include_parent
        self.process_info_interval_ms = process_info_interval_ms

        self.store = CounterStore()
        self.processes_to_track: List[ProcessInfo] = []
        self.state = CollectorState.STOPPED

        self._sampler = sampler or ProcessSampler()
        self._tree_resolver = tree_resolver or get_children_tree
        self._storage = storage or create_storage()

        self._refresh_timer: Optional[asyncio.Task] = None
        self._sample_timer: Optional[asyncio.Task] = None
        self._refresh_task: Optional[asyncio.Task] = None
        self._sample_task: Optional[asyncio.Task] = None
        self._refresh_in_progress = False
        self._sample_in_progress = False

    # --- Convenience accessors ---

    @property
    def collection_interval_ms(self) -> int:
        return self.settings.collection_interval_ms

    @property
    def include_moving_averages(self) -> bool:
        return self.settings.include_moving_averages

    @property
    def dump_to_file(self) -> bool:
        return self.settings.dump_to_file

    @property
    def dump_to_chart(self) -> bool:
        return self.settings.dump_to_chart

    @property
    def output_directory(self) -> str:
        return self.settings.output_directory

    @property
    def computed_statistics(self) -> Optional[ComputedStatistics]:
        return self.store.statistics

    @property
    def timers_active(self) -> bool:
        return self._refresh_timer is not None or self._sample_timer is not None

    # --- Lifecycle ---

    async def start(self) -> None:
        """
        Start collecting.

        The tracked process set is populated and one sample is taken before
        this returns. Failures of that initial refresh or sample propagate.

        Raises:
            CollectorStateError: If collection is already running; stop()
                must be called first
        """
        if self.timers_active or self.state != CollectorState.STOPPED:
            raise CollectorStateError(
                f"Counters collector '{self.name}' is already collecting; call stop() first"
            )
        self.state = CollectorState.STARTING
        logger.info(
            f"Starting counters collection '{self.name}' for pid {self.pid} "
            f"(include_parent={self.include_parent}, interval={self.collection_interval_ms}ms)"
        )
        try:
            self._refresh_task = asyncio.ensure_future(self._refresh_processes())
            await self._refresh_task
            self._refresh_timer = asyncio.ensure_future(
                self._run_timer(self.process_info_interval_ms, "_refresh_in_progress",
                                "_refresh_task", self._refresh_processes)
            )
            self._sample_task = asyncio.ensure_future(self._collect_sample())
            await self._sample_task
            self._sample_timer = asyncio.ensure_future(
                self._run_timer(self.collection_interval_ms, "_sample_in_progress",
                                "_sample_task", self._collect_sample)
            )
        except BaseException:
            await self._cancel_timers()
            self.state = CollectorState.STOPPED
            raise
        self.state = CollectorState.RUNNING

    async def stop(self) -> None:
        """
        Stop collecting and produce the derived data and artifacts.

        Safe to call when not started; in that case only the timers are
        cleared.
        """
        if self.state == CollectorState.STOPPED:
            await self._cancel_timers()
            return
        self.state = CollectorState.STOPPING
        try:
            await self._cancel_timers()
            await self._await_in_flight()
            self._sampler.clear()

            self.store.compute_totals(self.pid, self.processes_to_track)
            if self.include_moving_averages:
                self.store.compute_moving_averages()
            self.store.compute_statistics()

            await self._write_artifacts()
        finally:
            self.state = CollectorState.STOPPED
        logger.info(f"Stopped counters collection '{self.name}'")

    async def reset(self) -> None:
        """Stop any ongoing collection and clear all collected data."""
        await self.stop()
        self.store.reset()

    # --- Timers and ticks ---

    async def _run_timer(
        self,
        interval_ms: int,
        in_progress_attr: str,
        task_attr: str,
        tick: Callable[[], Awaitable[None]],
    ) -> None:
        while True:
            await asyncio.sleep(interval_ms / 1000)
            previous = getattr(self, task_attr)
            if getattr(self, in_progress_attr) or (previous is not None and not previous.done()):
                logger.debug(f"Skipping {tick.__name__} tick for '{self.name}': previous still running")
                # At most one tick in flight; wait for it to finish.
                if previous is not None and not previous.done():
                    await asyncio.wait({previous})
                continue
            setattr(self, task_attr, asyncio.ensure_future(self._guarded_tick(tick)))

    async def _guarded_tick(self, tick: Callable[[], Awaitable[None]]) -> None:
        try:
            await tick()
        except Exception as e:
            handle_error(e, f"{tick.__name__} tick of '{self.name}'",
                         severity=ErrorSeverity.WARNING, reraise=False, logger=logger)

    async def _refresh_processes(self) -> None:
        self._refresh_in_progress = True
        try:
            logger.debug(f"Refreshing tracked processes for '{self.name}'")
            loop = asyncio.get_running_loop()
            self.processes_to_track = await loop.run_in_executor(
                None, self._tree_resolver, self.pid, self.include_parent
            )
        finally:
            self._refresh_in_progress = False

    async def _collect_sample(self) -> None:
        self._sample_in_progress = True
        try:
            processes = list(self.processes_to_track)
            loop = asyncio.get_running_loop()
            samples = await loop.run_in_executor(None, self._sampler.sample, processes)
            # Folded on the loop in one step so a tick is never partially visible.
            self.store.append_samples(samples)
        finally:
            self._sample_in_progress = False

    async def _cancel_timers(self) -> None:
        timers = [t for t in (self._refresh_timer, self._sample_timer) if t is not None]
        self._refresh_timer = None
        self._sample_timer = None
        for timer in timers:
            timer.cancel()
        if timers:
            await asyncio.gather(*timers, return_exceptions=True)

    async def _await_in_flight(self) -> None:
        in_flight = [t for t in (self._refresh_task, self._sample_task)
                     if t is not None and not t.done()]
        if in_flight:
            logger.debug(f"Waiting for {len(in_flight)} in-flight tick(s) of '{self.name}'")
            await asyncio.gather(*in_flight, return_exceptions=True)
        self._refresh_task = None
        self._sample_task = None

    # --- Artifacts ---

    def output_file_name(self, proc: Optional[ProcessInfo] = None) -> str:
        """
        Base path for an artifact, without suffix.

        Per-process names are '<name>__<procName>_<pid>' for real processes
        and '<name>__<procName>' for the pseudo-processes. The first '.' of
        the file name is replaced by '_'.
        """
        file_name = self.name
        if proc is not None:
            if proc.pid > 0:
                file_name = f"{file_name}__{proc.name}_{proc.pid}"
            else:
                file_name = f"{file_name}__{proc.name}"
        return os.path.join(self.output_directory, file_name.replace(".", "_", 1))

    async def _run_blocking(self, func: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))

    async def _write_artifacts(self) -> None:
        base = self.output_file_name()
        writes = []
        if self.store.statistics is not None:
            writes.append(self._run_blocking(
                self._storage.save_json, self.store.statistics.to_dict(), f"{base}_statistics.json"
            ))
        if self.dump_to_file:
            writes.append(self._run_blocking(
                self._storage.save_json,
                CounterStore.collection_to_dict(self.store.collection), f"{base}_data.json"
            ))
            if self.include_moving_averages:
                writes.append(self._run_blocking(
                    self._storage.save_json,
                    CounterStore.collection_to_dict(self.store.sma_collection), f"{base}_sma_data.json"
                ))
                writes.append(self._run_blocking(
                    self._storage.save_json,
                    CounterStore.collection_to_dict(self.store.ema_collection), f"{base}_ema_data.json"
                ))
            writes.append(self._run_blocking(
                self._storage.save_json,
                [p.to_dict() for p in self.processes_to_track], f"{base}_processInfo.json"
            ))
            writes.append(self._run_blocking(
                self._storage.save_dataframe, self.store.samples_frame(), f"{base}_samples.parquet"
            ))
        if self.dump_to_chart:
            writes.extend(self._chart_writes())

        if not writes:
            return
        results = await asyncio.gather(*writes, return_exceptions=True)
        failures = [r for r in results if isinstance(r, BaseException)]
        for failure in failures:
            if not isinstance(failure, Exception):
                raise failure
            handle_error(failure, f"writing artifacts of '{self.name}'",
                         reraise=False, logger=logger)
        logger.info(
            f"Wrote {len(writes) - len(failures)} artifact group(s) for '{self.name}' "
            f"to {self.output_directory}"
        )

    def _chart_writes(self) -> List[Awaitable[Any]]:
        writes = []
        for proc in [WHOLE_COMPUTER, TOTALS, *self.processes_to_track]:
            base = self.output_file_name(proc)
            charts = [(f"{base}_chart.png", self.store.collection)]
            if self.include_moving_averages:
                charts.append((f"{base}_sma_chart.png", self.store.sma_collection))
                charts.append((f"{base}_ema_chart.png", self.store.ema_collection))
            for file, collection in charts:
                series = collection.get(proc.pid)
                if series is not None and len(series) > 0:
                    writes.append(self._run_blocking(self._write_chart, file, series))
        return writes

    @staticmethod
    def _write_chart(file: str, series: CounterSeries) -> Optional[bytes]:
        lines = [
            LineData(label=f"{key}({FIELD_UNITS[key]})", data=series.get(key))
            for key in series.values
            if key in VALUE_FIELDS
        ]
        return write_chart_to_file(
            series.timestamp,
            lines,
            file_type="png",
            start_timestamp=series.timestamp[0],
            x_axis_label=f"timestamp({FIELD_UNITS['timestamp']})",
            file=file,
            title=Path(file).stem,
        )


async def collect_counters(
    work: Callable[[], Awaitable[T]],
    name: str,
    pid: Optional[int] = None,
    include_parent: bool = True,
    options: Optional[CountersOptions] = None,
    **collector_kwargs: Any,
) -> T:
    """
    Run work while collecting counters for a process tree.

    The collector is stopped, and its artifacts written, even if work
    raises.
    """
    collector = CountersCollector(name, pid, include_parent, options, **collector_kwargs)
    await collector.start()
    try:
        return await work()
    finally:
        await collector.stop()
