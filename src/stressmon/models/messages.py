"""
Messages exchanged with a counters collector running in a child process.

Requests are a tagged union discriminated by ``kind``; the child never has to
guess a message's shape from the keys it happens to carry.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .config import CountersOptions


class MessageKind(Enum):
    CONSTRUCT = "construct"
    START = "start"
    STOP = "stop"


class CollectorResponse(Enum):
    CONSTRUCTION_DONE = "construction_done"
    START_DONE = "start_done"
    STOP_DONE = "stop_done"
    ERROR = "error"


@dataclass(frozen=True)
class CollectorMessage:
    """
    A request sent to the collector process.

    Only CONSTRUCT messages carry the collector arguments; START and STOP
    carry nothing but their kind. skip_current keeps the collector process
    itself out of the tracked tree.
    """

    kind: MessageKind
    name: Optional[str] = None
    pid: Optional[int] = None
    include_parent: bool = True
    skip_current: bool = True
    options: Optional[CountersOptions] = None

    @classmethod
    def construct(cls, name: str, pid: int, include_parent: bool = True,
                  skip_current: bool = True,
                  options: Optional[CountersOptions] = None) -> "CollectorMessage":
        return cls(MessageKind.CONSTRUCT, name=name, pid=pid,
                   include_parent=include_parent, skip_current=skip_current,
                   options=options)

    @classmethod
    def start(cls) -> "CollectorMessage":
        return cls(MessageKind.START)

    @classmethod
    def stop(cls) -> "CollectorMessage":
        return cls(MessageKind.STOP)


@dataclass(frozen=True)
class CollectorReply:
    """A response from the collector process, with error text when it failed."""

    response: CollectorResponse
    detail: Optional[str] = None
