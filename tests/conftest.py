"""
Pytest configuration and shared fixtures for the stressmon test suite.

This module provides common fixtures, fakes for the psutil-backed
collaborators, and marker registration for all test modules.
"""

import shutil
import sys
import tempfile
from pathlib import Path
from typing import List

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from stressmon.models.process import ProcessInfo, ProcessSample  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


ENV_VARS = [
    "CountersCollectionIntervalMs",
    "CountersIncludeMovingAverages",
    "CountersDumpToFile",
    "CountersDumpToChart",
    "CountersOutputDirectory",
    "StressRuntime",
    "StressDop",
    "StressIterations",
    "StressPassThreshold",
    "PerfPidForCollection",
    "SuiteType",
]


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove every stressmon environment variable for the duration of a test."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def process_tree() -> List[ProcessInfo]:
    """
    Synthetic process snapshot:

        1 init
        └── 100 shell
            ├── 200 root
            │   ├── 300 child-a
            │   │   └── 500 grandchild
            │   └── 400 child-b
            └── 250 sibling
        900 unrelated (parent 1)
    """
    return [
        ProcessInfo(pid=1, ppid=0, name="init"),
        ProcessInfo(pid=100, ppid=1, name="shell"),
        ProcessInfo(pid=200, ppid=100, name="root"),
        ProcessInfo(pid=250, ppid=100, name="sibling"),
        ProcessInfo(pid=300, ppid=200, name="child-a"),
        ProcessInfo(pid=400, ppid=200, name="child-b"),
        ProcessInfo(pid=500, ppid=300, name="grandchild"),
        ProcessInfo(pid=900, ppid=1, name="unrelated"),
    ]


class FakeSampler:
    """
    Deterministic stand-in for ProcessSampler.

    Each call to sample() produces one tick: memory for pid p at tick t is
    p * 10 + t, cpu is 1.0, timestamps advance by 100ms per tick.
    """

    def __init__(self):
        self.ticks = 0
        self.cleared = False
        self.calls: List[List[int]] = []

    def sample(self, processes):
        t = self.ticks
        self.ticks += 1
        pids = [p.pid for p in processes]
        self.calls.append(pids)
        timestamp = 1_000_000 + t * 100
        samples = [
            ProcessSample(pid=0, ppid=0, cpu=5.0, memory=1000 + t, elapsed=t * 100, timestamp=timestamp)
        ]
        for p in processes:
            samples.append(
                ProcessSample(
                    pid=p.pid, ppid=p.ppid, cpu=1.0, memory=p.pid * 10 + t,
                    ctime=float(t), elapsed=t * 100, timestamp=timestamp,
                )
            )
        return samples

    def clear(self):
        self.cleared = True


@pytest.fixture
def fake_sampler():
    return FakeSampler()
