"""
Instantaneous counter sampling with psutil.

ProcessSampler keeps one psutil.Process handle per pid between calls so that
cpu_percent() measures usage since the previous sample rather than
returning 0.0 every time. The calls are blocking; async callers run them in
an executor.
"""

import logging
import time
from typing import Dict, Iterable, List, Optional

import psutil

from ..models.process import WHOLE_COMPUTER, ProcessInfo, ProcessSample

logger = logging.getLogger(__name__)


class ProcessSampler:
    """Draws per-process and whole-machine counter samples."""

    def __init__(self):
        self._handles: Dict[int, psutil.Process] = {}

    def _handle(self, pid: int) -> psutil.Process:
        proc = self._handles.get(pid)
        if proc is None or not proc.is_running():
            proc = psutil.Process(pid)
            # Prime the cpu counter; the first reading is always 0.0.
            proc.cpu_percent(interval=None)
            self._handles[pid] = proc
        return proc

    def sample_process(self, info: ProcessInfo) -> Optional[ProcessSample]:
        """
        Sample one process.

        Returns None if the process exited or access was denied since the
        process list was taken.
        """
        try:
            proc = self._handle(info.pid)
            with proc.oneshot():
                cpu = proc.cpu_percent(interval=None)
                memory = proc.memory_info().rss
                times = proc.cpu_times()
                create_time = proc.create_time()
            now = time.time()
            return ProcessSample(
                pid=info.pid,
                ppid=info.ppid,
                cpu=cpu,
                memory=memory,
                ctime=(times.user + times.system) * 1000,
                elapsed=(now - create_time) * 1000,
                timestamp=now * 1000,
            )
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            self._handles.pop(info.pid, None)
            logger.debug(f"Skipping pid {info.pid}: no longer available")
            return None

    def sample_processes(self, processes: Iterable[ProcessInfo]) -> List[ProcessSample]:
        """Sample every process; pids that vanished are omitted."""
        samples = []
        for info in processes:
            sample = self.sample_process(info)
            if sample is not None:
                samples.append(sample)
        return samples

    def sample_whole_computer(self) -> ProcessSample:
        """Sample system-wide cpu and memory usage."""
        now = time.time()
        vm = psutil.virtual_memory()
        return ProcessSample(
            pid=WHOLE_COMPUTER.pid,
            ppid=WHOLE_COMPUTER.ppid,
            cpu=psutil.cpu_percent(interval=None),
            memory=vm.total - vm.available,
            elapsed=(now - psutil.boot_time()) * 1000,
            timestamp=now * 1000,
        )

    def sample(self, processes: Iterable[ProcessInfo]) -> List[ProcessSample]:
        """One full tick: the whole-machine sample followed by per-process samples."""
        return [self.sample_whole_computer(), *self.sample_processes(processes)]

    def clear(self) -> None:
        """Drop cached process handles."""
        self._handles.clear()
