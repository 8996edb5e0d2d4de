"""
Concurrent stress execution.

StressEngine runs an async unit of work repeatedly in ``dop`` concurrent
loops on the running event loop, bounded by an iteration count per loop and
by a wall-clock deadline, and judges the run against a pass threshold.

The deadline is cooperative: when it expires a shared flag is set, and each
loop checks it before starting an iteration and after the zero-delay yield
that follows every successful one. Work that is in flight when the deadline
expires is never cancelled.

Per-iteration outcomes are classified as passes, fails (AssertionError) or
errors (any other Exception, wrapped in StressError). None of them stop the
run. An exception that is not an Exception subclass, such as cancellation,
aborts the whole run: the sibling loops are cancelled and the exception
propagates.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from ..config import merge_stress_settings, resolve_stress_settings
from ..models.config import StressOptions, StressSettings
from ..models.results import StressResult

logger = logging.getLogger(__name__)


class StressError(Exception):
    """
    Wraps a non-assertion error raised by one stress iteration.

    The original exception is kept as ``inner`` and as ``__cause__``, and
    its message and traceback are carried over.
    """

    code = "ERR_STRESS"

    def __init__(self, error: Any = None):
        if isinstance(error, BaseException):
            message = str(error)
        elif isinstance(error, str):
            message = error
        else:
            message = "unknown stress error"
        super().__init__(message)
        self.inner = error
        if isinstance(error, BaseException):
            self.__cause__ = error
            self.__traceback__ = error.__traceback__


class PassThresholdError(AssertionError):
    """Raised when a run's pass fraction falls below its pass threshold."""

    def __init__(self, function_name: str, args: Sequence[Any],
                 expected_percent: float, actual_percent: float):
        self.function_name = function_name
        self.args_repr = ",".join(repr(a) for a in args)
        self.expected_percent = expected_percent
        self.actual_percent = actual_percent
        super().__init__(
            f"Call Stressified: {function_name}({self.args_repr}) failed with an expected "
            f"pass percent of {expected_percent}, actual pass percent is: {actual_percent}"
        )


class StressEngine:
    """
    Runs a unit of work under stress.

    Args:
        options: Instance defaults; unset fields come from the environment
            (StressRuntime, StressDop, StressIterations, StressPassThreshold),
            then from built-in defaults
        environ: Environment mapping used for resolution (os.environ if None)

    Raises:
        ValidationErrors: If any resolved setting is invalid
    """

    def __init__(self, options: Optional[StressOptions] = None,
                 environ: Optional[Mapping[str, str]] = None):
        self.settings: StressSettings = resolve_stress_settings(options, environ)

    @property
    def runtime(self) -> float:
        return self.settings.runtime

    @property
    def dop(self) -> int:
        return self.settings.dop

    @property
    def iterations(self) -> int:
        return self.settings.iterations

    @property
    def pass_threshold(self) -> float:
        return self.settings.pass_threshold

    async def run(
        self,
        work: Callable[..., Awaitable[Any]],
        args: Sequence[Any] = (),
        kwargs: Optional[Dict[str, Any]] = None,
        options: Optional[StressOptions] = None,
        function_name: Optional[str] = None,
    ) -> StressResult:
        """
        Stress ``work(*args, **kwargs)``.

        Args:
            work: Async callable; bind its context (e.g. self) beforehand
            args: Positional arguments for every invocation
            kwargs: Keyword arguments for every invocation
            options: Per-call overrides merged over the instance settings
            function_name: Name used in logs and the threshold failure

        Returns:
            StressResult with the pass count, fails and errors

        Raises:
            PassThresholdError: If passes < pass_threshold * attempted
            ValidationErrors: If the per-call overrides are invalid
        """
        settings = merge_stress_settings(self.settings, options)
        kwargs = kwargs or {}
        name = function_name or getattr(work, "__qualname__", repr(work))

        num_passes = 0
        fails: List[AssertionError] = []
        errors: List[Exception] = []
        timed_out = settings.runtime <= 0

        logger.info(
            f"Running stress on {name} with runtime={settings.runtime}s, dop={settings.dop}, "
            f"iterations={settings.iterations}, pass_threshold={settings.pass_threshold}"
        )

        def flag_timeout() -> None:
            nonlocal timed_out
            timed_out = True
            logger.debug(f"Stress on {name}: {settings.runtime}s runtime expired")

        loop = asyncio.get_running_loop()
        timer = loop.call_later(settings.runtime, flag_timeout)

        async def iteration_loop(thread: int) -> None:
            nonlocal num_passes
            for i in range(settings.iterations):
                if timed_out:
                    logger.debug(f"{name} thread-{thread}: timed out before iteration {i}")
                    break
                try:
                    await work(*args, **kwargs)
                except AssertionError as e:
                    fails.append(e)
                    logger.warning(f"{name} thread-{thread} iteration {i} failed: {e}")
                    continue
                except Exception as e:
                    errors.append(StressError(e))
                    logger.warning(f"{name} thread-{thread} iteration {i} errored: {e!r}")
                    continue
                num_passes += 1
                logger.debug(f"{name} thread-{thread} iteration {i} passed")
                # Let the deadline timer and sibling loops run.
                await asyncio.sleep(0)
                if timed_out:
                    logger.debug(f"{name} thread-{thread}: timed out after iteration {i}")
                    break

        tasks = [asyncio.ensure_future(iteration_loop(t)) for t in range(settings.dop)]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            logger.error(f"Fatal error while stressing {name}; aborting run", exc_info=True)
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        finally:
            timer.cancel()

        result = StressResult(num_passes=num_passes, fails=fails, errors=errors)
        total = result.total
        logger.info(
            f"Stress on {name} finished: {num_passes} passed, {len(fails)} failed, "
            f"{len(errors)} errored"
        )
        # A run that attempted nothing passes vacuously.
        if total > 0 and num_passes < settings.pass_threshold * total:
            raise PassThresholdError(
                name, args, settings.pass_threshold * 100, num_passes * 100 / total
            )
        return result
