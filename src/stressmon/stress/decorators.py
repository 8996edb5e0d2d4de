"""
Decorators attaching stress and counters behaviour to async test functions.

    @stressify(StressOptions(dop=4, iterations=20))
    async def test_open_connection(self):
        ...

stressify only wraps when SuiteType resolves to Stress, so the same test
runs once in integration suites and under stress in stress suites.
collect_perf_counters always wraps.
"""

import functools
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional

from ..config import SuiteType, get_suite_type
from ..counters import collect_counters
from ..models.config import CountersOptions, StressOptions
from .orchestrator import StressOrchestrator

logger = logging.getLogger(__name__)


def _counters_name(func: Callable[..., Any]) -> str:
    return func.__qualname__.replace(".", "_")


def stressify(
    options: Optional[StressOptions] = None,
    collect_counters: bool = True,
    root_pid: Optional[int] = None,
    orchestrator: Optional[StressOrchestrator] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Callable[[Callable[..., Awaitable[Any]]], Callable[..., Awaitable[Any]]]:
    """
    Run the decorated coroutine function under stress in stress suites.

    The wrapper returns the StressResult of the run. Outside stress suites
    the function is returned unchanged.

    Args:
        options: Per-call stress options
        collect_counters: Collect counters for the duration of the run
        root_pid: Root pid for counters collection
        orchestrator: Orchestrator to use; one is created on first call if None
        environ: Environment mapping used to read SuiteType
    """
    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        suite_type = get_suite_type(environ)
        if suite_type is not SuiteType.STRESS:
            logger.debug(f"Not stressifying {func.__qualname__}: SuiteType is {suite_type.value}")
            return func

        runner = {"orchestrator": orchestrator}

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            if runner["orchestrator"] is None:
                runner["orchestrator"] = StressOrchestrator(environ=environ)
            return await runner["orchestrator"].run(
                func,
                args,
                kwargs,
                options=options,
                function_name=func.__name__,
                collect_counters=collect_counters,
                counters_name=_counters_name(func),
                root_pid=root_pid,
            )

        return wrapper

    return decorator


def collect_perf_counters(
    name: Optional[str] = None,
    pid: Optional[int] = None,
    include_parent: bool = True,
    options: Optional[CountersOptions] = None,
) -> Callable[[Callable[..., Awaitable[Any]]], Callable[..., Awaitable[Any]]]:
    """Collect counters for a process tree while the decorated coroutine runs."""
    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            return await collect_counters(
                lambda: func(*args, **kwargs),
                name or _counters_name(func),
                pid,
                include_parent,
                options,
            )

        return wrapper

    return decorator
