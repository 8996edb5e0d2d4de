"""
Stress runs with counters collected for exactly their duration.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Sequence

from ..config import get_root_pid
from ..counters import CountersCollector
from ..models.config import CountersOptions, StressOptions
from ..models.results import StressResult
from .engine import StressEngine

logger = logging.getLogger(__name__)


class StressOrchestrator:
    """
    Wraps StressEngine.run in an optional counters collector start/stop pair.

    Args:
        engine: Engine to run; a new one resolved from the environment if None
        collector_factory: Callable building a collector from
            (name, pid, include_parent, options)
        environ: Environment mapping for the default engine and the root pid
    """

    def __init__(
        self,
        engine: Optional[StressEngine] = None,
        collector_factory: Callable[..., Any] = CountersCollector,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.engine = engine or StressEngine(environ=environ)
        self.collector_factory = collector_factory
        self.environ = environ
        self.last_collector: Optional[Any] = None

    async def run(
        self,
        work: Callable[..., Awaitable[Any]],
        args: Sequence[Any] = (),
        kwargs: Optional[Dict[str, Any]] = None,
        options: Optional[StressOptions] = None,
        function_name: Optional[str] = None,
        collect_counters: bool = True,
        counters_name: Optional[str] = None,
        root_pid: Optional[int] = None,
        include_parent: bool = True,
        counters_options: Optional[CountersOptions] = None,
    ) -> StressResult:
        """
        Run a stress test, collecting counters around it when requested.

        The counters collector targets root_pid, else PerfPidForCollection,
        else the current process, and is stopped even if the run fails.
        """
        name = function_name or getattr(work, "__qualname__", repr(work))
        if not collect_counters:
            return await self.engine.run(work, args, kwargs, options, name)

        pid = get_root_pid(root_pid, self.environ)
        collector = self.collector_factory(
            counters_name or name.replace(".", "_"), pid, include_parent, counters_options
        )
        self.last_collector = collector
        logger.debug(f"Collecting counters for pid {pid} while stressing {name}")
        await collector.start()
        try:
            return await self.engine.run(work, args, kwargs, options, name)
        finally:
            await collector.stop()
