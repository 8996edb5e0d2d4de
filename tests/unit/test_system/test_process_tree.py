"""
Unit tests for process tree resolution over a synthetic process snapshot.
"""

from unittest.mock import Mock, patch

import psutil
import pytest

from stressmon.models.process import ProcessInfo
from stressmon.system import (
    InvalidPidError,
    ProcessNotFoundError,
    find_process,
    get_children_tree,
    get_parent,
    get_parent_pid,
    get_process_list,
)


def pids(processes):
    return {p.pid for p in processes}


@pytest.mark.unit
class TestGetChildrenTree:
    """Test cases for subtree resolution."""

    def test_subtree_without_parent(self, process_tree):
        tree = get_children_tree(200, include_parent=False, process_list=process_tree)
        assert pids(tree) == {200, 300, 400, 500}

    def test_subtree_widened_to_parent(self, process_tree):
        """Siblings of the root are included when the parent is used."""
        tree = get_children_tree(200, include_parent=True, process_list=process_tree)
        assert pids(tree) == {100, 200, 250, 300, 400, 500}

    def test_parent_zero_keeps_root(self, process_tree):
        tree = get_children_tree(1, include_parent=True, process_list=process_tree)
        assert pids(tree) == {p.pid for p in process_tree}

    def test_leaf(self, process_tree):
        tree = get_children_tree(500, include_parent=False, process_list=process_tree)
        assert [p.pid for p in tree] == [500]

    def test_no_duplicates(self, process_tree):
        tree = get_children_tree(100, include_parent=False, process_list=process_tree)
        assert len(tree) == len(pids(tree))

    def test_self_parented_process_does_not_loop(self):
        snapshot = [ProcessInfo(pid=5, ppid=5, name="odd"), ProcessInfo(pid=6, ppid=5, name="kid")]
        tree = get_children_tree(5, include_parent=False, process_list=snapshot)
        assert pids(tree) == {5, 6}

    @pytest.mark.parametrize("bad", [None, "200", 2.5, float("nan"), True])
    def test_invalid_pid(self, process_tree, bad):
        with pytest.raises(InvalidPidError, match="Invalid pid"):
            get_children_tree(bad, process_list=process_tree)

    def test_integral_float_pid_accepted(self, process_tree):
        tree = get_children_tree(300.0, include_parent=False, process_list=process_tree)
        assert pids(tree) == {300, 500}

    def test_unknown_pid(self, process_tree):
        with pytest.raises(ProcessNotFoundError, match="No process found for pid:<12345>"):
            get_children_tree(12345, include_parent=False, process_list=process_tree)

    def test_unknown_pid_with_parent_lookup(self, process_tree):
        with pytest.raises(ProcessNotFoundError):
            get_children_tree(12345, include_parent=True, process_list=process_tree)

    def test_not_found_is_lookup_error(self, process_tree):
        with pytest.raises(LookupError):
            get_children_tree(12345, include_parent=False, process_list=process_tree)


@pytest.mark.unit
class TestParentLookup:
    """Test cases for parent and single-process lookups."""

    def test_find_process(self, process_tree):
        assert find_process(250, process_tree).name == "sibling"

    def test_find_process_requires_exactly_one(self, process_tree):
        duplicated = process_tree + [ProcessInfo(pid=250, ppid=1, name="dup")]
        with pytest.raises(ProcessNotFoundError, match="found: 2"):
            find_process(250, duplicated)
        with pytest.raises(ProcessNotFoundError, match="found: 0"):
            find_process(999, process_tree)

    def test_parent(self, process_tree):
        assert get_parent_pid(500, process_tree) == 300
        assert get_parent(500, process_tree).name == "child-a"


@pytest.mark.unit
class TestProcessSnapshot:
    """Test cases for psutil-backed process listing."""

    def test_snapshot_maps_psutil_info(self):
        proc_ok = Mock()
        proc_ok.info = {"pid": 10, "ppid": 1, "name": "python", "exe": "/usr/bin/python",
                        "cmdline": ["python", "-m", "x"]}
        proc_sparse = Mock()
        proc_sparse.info = {"pid": 11, "ppid": None, "name": None, "exe": "", "cmdline": []}

        with patch("stressmon.system.processes.psutil.process_iter",
                   return_value=[proc_ok, proc_sparse]):
            snapshot = get_process_list()

        assert snapshot[0] == ProcessInfo(pid=10, ppid=1, name="python",
                                          exe="/usr/bin/python", cmdline="python -m x")
        assert snapshot[1] == ProcessInfo(pid=11, ppid=0, name="")

    def test_vanished_processes_skipped(self):
        class Vanished:
            @property
            def info(self):
                raise psutil.NoSuchProcess(12)

        gone = Vanished()
        alive = Mock()
        alive.info = {"pid": 13, "ppid": 1, "name": "alive"}

        with patch("stressmon.system.processes.psutil.process_iter", return_value=[gone, alive]):
            snapshot = get_process_list()

        assert [p.pid for p in snapshot] == [13]


@pytest.mark.integration
class TestLiveProcessTree:
    """Checks against the real process table."""

    def test_current_process_is_in_its_own_tree(self):
        import os
        tree = get_children_tree(os.getpid(), include_parent=False)
        assert os.getpid() in pids(tree)
