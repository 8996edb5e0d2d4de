"""
System interaction: process snapshots, process tree resolution and counter
sampling via psutil.
"""

# Process tree
from .processes import (
    InvalidPidError,
    ProcessNotFoundError,
    ProcessTreeError,
    find_process,
    get_children_tree,
    get_parent,
    get_parent_pid,
    get_process_list,
)

# Sampling
from .sampling import ProcessSampler

__all__ = [
    # Process tree
    "InvalidPidError",
    "ProcessNotFoundError",
    "ProcessTreeError",
    "find_process",
    "get_children_tree",
    "get_parent",
    "get_parent_pid",
    "get_process_list",
    # Sampling
    "ProcessSampler",
]
