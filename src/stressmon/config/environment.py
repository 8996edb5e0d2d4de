"""
Environment variable lookups.

Every tunable resolves with precedence explicit argument -> environment
variable -> built-in default. An unset variable and one set to the empty
string are both treated as absent.
"""

import logging
import os
from enum import Enum
from typing import Any, Mapping, Optional

from ..validation import TRUE_TOKENS

logger = logging.getLogger(__name__)

# Counters tunables
COUNTERS_COLLECTION_INTERVAL_MS = "CountersCollectionIntervalMs"
COUNTERS_INCLUDE_MOVING_AVERAGES = "CountersIncludeMovingAverages"
COUNTERS_DUMP_TO_FILE = "CountersDumpToFile"
COUNTERS_DUMP_TO_CHART = "CountersDumpToChart"
COUNTERS_OUTPUT_DIRECTORY = "CountersOutputDirectory"

# Stress tunables
STRESS_RUNTIME = "StressRuntime"
STRESS_DOP = "StressDop"
STRESS_ITERATIONS = "StressIterations"
STRESS_PASS_THRESHOLD = "StressPassThreshold"

PERF_PID_FOR_COLLECTION = "PerfPidForCollection"
SUITE_TYPE = "SuiteType"


class SuiteType(Enum):
    """Kind of test suite the current process is running."""
    INTEGRATION = "Integration"
    PERF = "Perf"
    STRESS = "Stress"


def read_env(name: str, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Return the value of an environment variable, or None if unset or empty."""
    env = os.environ if environ is None else environ
    value = env.get(name)
    if value is None or value == "":
        return None
    return value


def resolve_value(
    explicit: Any,
    env_name: str,
    default: Any,
    environ: Optional[Mapping[str, str]] = None
) -> Any:
    """
    Pick the first present value among the explicit argument, the
    environment variable and the default. The result is not validated.
    """
    if explicit is not None:
        return explicit
    from_env = read_env(env_name, environ)
    if from_env is not None:
        logger.debug(f"Using {env_name}={from_env!r} from environment")
        return from_env
    return default


def get_boolean(value: Any, default: bool = False) -> bool:
    """
    Interpret value as a boolean token.

    None and the empty string return default; real booleans pass through;
    otherwise the value is true only if it is one of TRUE_TOKENS.
    """
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_TOKENS


def get_suite_type(environ: Optional[Mapping[str, str]] = None) -> SuiteType:
    """Resolve SuiteType case-insensitively, defaulting to Integration."""
    raw = read_env(SUITE_TYPE, environ)
    if raw is None:
        return SuiteType.INTEGRATION
    token = raw.strip().lower()
    for suite_type in SuiteType:
        if suite_type.value.lower() == token:
            return suite_type
    logger.debug(f"Unknown {SUITE_TYPE} {raw!r}, using {SuiteType.INTEGRATION.value}")
    return SuiteType.INTEGRATION


def get_root_pid(pid: Optional[int] = None, environ: Optional[Mapping[str, str]] = None) -> int:
    """
    Resolve the root pid for counter collection.

    An explicit pid wins, then PerfPidForCollection when it parses as an
    integer, then the current process id.
    """
    if pid is not None:
        return int(pid)
    raw = read_env(PERF_PID_FOR_COLLECTION, environ)
    if raw is not None:
        try:
            return int(raw.strip())
        except ValueError:
            logger.warning(
                f"Ignoring non-integer {PERF_PID_FOR_COLLECTION}={raw!r}"
            )
    return os.getpid()
