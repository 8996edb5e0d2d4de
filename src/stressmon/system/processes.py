"""
Process list snapshots and process tree resolution.

The tree resolver is a pure function of a flat process snapshot; when no
snapshot is supplied, a fresh one is taken with psutil.
"""

import logging
import math
from collections import defaultdict
from typing import Any, Dict, List, Optional

import psutil

from ..models.process import ProcessInfo

logger = logging.getLogger(__name__)


class ProcessTreeError(Exception):
    """Base class for process tree resolution failures."""


class InvalidPidError(ProcessTreeError, ValueError):
    """Raised when a pid is missing or not an integer."""


class ProcessNotFoundError(ProcessTreeError, LookupError):
    """Raised when a pid is absent from the process snapshot."""


def _check_pid(pid: Any) -> int:
    if pid is None or isinstance(pid, bool):
        raise InvalidPidError(f"Invalid pid:<{pid}>")
    if isinstance(pid, float):
        if math.isnan(pid) or not pid.is_integer():
            raise InvalidPidError(f"Invalid pid:<{pid}>")
        return int(pid)
    if not isinstance(pid, int):
        raise InvalidPidError(f"Invalid pid:<{pid}>")
    return pid


def get_process_list() -> List[ProcessInfo]:
    """
    Take a snapshot of every process on the system.

    Processes that exit or deny access while being listed are skipped.
    """
    processes: List[ProcessInfo] = []
    for proc in psutil.process_iter(["pid", "ppid", "name", "exe", "cmdline"]):
        try:
            info = proc.info
            cmdline = info.get("cmdline")
            processes.append(
                ProcessInfo(
                    pid=info["pid"],
                    ppid=info.get("ppid") or 0,
                    name=info.get("name") or "",
                    exe=info.get("exe") or None,
                    cmdline=" ".join(cmdline) if cmdline else None,
                )
            )
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            continue
    logger.debug(f"Process snapshot contains {len(processes)} processes")
    return processes


def find_process(pid: Any, process_list: Optional[List[ProcessInfo]] = None) -> ProcessInfo:
    """
    Return the single ProcessInfo for pid.

    Raises:
        InvalidPidError: If pid is not an integer
        ProcessNotFoundError: Unless exactly one process in the snapshot has pid
    """
    pid = _check_pid(pid)
    if process_list is None:
        process_list = get_process_list()
    matches = [p for p in process_list if p.pid == pid]
    if len(matches) != 1:
        raise ProcessNotFoundError(
            f"Unexpected number of processes matching pid:<{pid}> found: {len(matches)}"
        )
    return matches[0]


def get_parent_pid(pid: Any, process_list: Optional[List[ProcessInfo]] = None) -> int:
    """Return the parent pid of pid as recorded in the snapshot."""
    return find_process(pid, process_list).ppid


def get_parent(pid: Any, process_list: Optional[List[ProcessInfo]] = None) -> ProcessInfo:
    """Return the ProcessInfo of pid's parent."""
    if process_list is None:
        process_list = get_process_list()
    return find_process(get_parent_pid(pid, process_list), process_list)


def get_children_tree(
    pid: Any,
    include_parent: bool = True,
    process_list: Optional[List[ProcessInfo]] = None
) -> List[ProcessInfo]:
    """
    Return the flat list of processes in the subtree rooted at pid.

    When include_parent is set and pid's parent is not 0, the subtree of the
    parent is returned instead, so siblings of pid are included too. The
    returned list contains the root itself; its order is unspecified.

    Args:
        pid: Root process id
        include_parent: Whether to widen the tree to pid's parent
        process_list: Pre-fetched snapshot; a fresh one is taken if None

    Returns:
        Every process reachable from the root, root included

    Raises:
        InvalidPidError: If pid is not an integer
        ProcessNotFoundError: If the root is absent from the snapshot
    """
    root_pid = _check_pid(pid)
    if process_list is None:
        process_list = get_process_list()

    if include_parent:
        ppid = get_parent_pid(root_pid, process_list)
        if ppid != 0:
            logger.debug(f"Widening tree of pid {root_pid} to its parent {ppid}")
            root_pid = ppid

    children: Dict[int, List[ProcessInfo]] = defaultdict(list)
    root: Optional[ProcessInfo] = None
    for proc in process_list:
        children[proc.ppid].append(proc)
        if proc.pid == root_pid:
            root = proc

    if root is None:
        raise ProcessNotFoundError(f"No process found for pid:<{root_pid}>")

    tree: List[ProcessInfo] = []
    seen = set()
    to_visit = [root]
    while to_visit:
        proc = to_visit.pop()
        if proc.pid in seen:
            continue
        seen.add(proc.pid)
        tree.append(proc)
        to_visit.extend(children.get(proc.pid, ()))

    logger.debug(f"Process tree for pid {root_pid} has {len(tree)} processes")
    return tree
