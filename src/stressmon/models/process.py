"""
Process and counter sample data models.

ProcessInfo identifies a tracked process, ProcessSample is one instantaneous
counter reading for a pid, and CounterSeries is the time-ordered history of
readings for one pid. Two pseudo-processes, TOTALS and WHOLE_COMPUTER, live
outside the real pid space and are keyed exactly like real processes.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Non-identifier fields of a sample, in the order they are recorded.
SERIES_FIELDS = ("cpu", "memory", "ctime", "elapsed", "timestamp")

# Fields that are averaged; elapsed/timestamp are only truncated for alignment.
VALUE_FIELDS = ("cpu", "memory", "ctime")

FIELD_UNITS = {
    "cpu": "%",
    "memory": "bytes",
    "ctime": "ms",
    "elapsed": "ms",
    "timestamp": "ms",
}


@dataclass(frozen=True)
class ProcessInfo:
    """Identity of a process in the tracked tree."""

    pid: int
    ppid: int
    name: str
    exe: Optional[str] = None
    cmdline: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"pid": self.pid, "ppid": self.ppid, "name": self.name}
        if self.exe is not None:
            data["exe"] = self.exe
        if self.cmdline is not None:
            data["cmdline"] = self.cmdline
        return data


# Sum across every tracked real process.
TOTALS = ProcessInfo(pid=-1, ppid=-1, name="Totals of all Tracked Processes")
# System-wide counters.
WHOLE_COMPUTER = ProcessInfo(pid=0, ppid=0, name="Whole Computer")


@dataclass
class ProcessSample:
    """
    One instantaneous counter reading.

    cpu is a percentage (may exceed 100 on multi-core machines), memory is in
    bytes, ctime is cumulative user+system time in ms (None when the
    platform cannot report it), elapsed is ms since the process (or the
    machine, for WHOLE_COMPUTER) started and timestamp is ms since the epoch.
    """

    pid: int
    ppid: int
    cpu: float
    memory: float
    elapsed: float
    timestamp: float
    ctime: Optional[float] = None


@dataclass
class CounterSeries:
    """
    Time-ordered counter history for one pid.

    Field sequences are created lazily on first append, so a series only
    carries the fields it has actually received.
    """

    pid: int
    ppid: int
    values: Dict[str, List[Any]] = field(default_factory=dict)

    def append(self, sample: ProcessSample) -> None:
        for name in SERIES_FIELDS:
            self.values.setdefault(name, []).append(getattr(sample, name))

    def get(self, name: str) -> List[Any]:
        """Return the sequence for a field, or an empty list if never recorded."""
        return self.values.get(name, [])

    @property
    def cpu(self) -> List[Any]:
        return self.get("cpu")

    @property
    def memory(self) -> List[Any]:
        return self.get("memory")

    @property
    def ctime(self) -> List[Any]:
        return self.get("ctime")

    @property
    def elapsed(self) -> List[Any]:
        return self.get("elapsed")

    @property
    def timestamp(self) -> List[Any]:
        return self.get("timestamp")

    def __len__(self) -> int:
        return len(self.timestamp)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"pid": self.pid, "ppid": self.ppid}
        for name, seq in self.values.items():
            data[name] = list(seq)
        return data
