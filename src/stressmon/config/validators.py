"""
Settings resolution and validation.

Each resolver walks every field, picks its value by precedence and validates
it. Field errors are collected and raised together as one ValidationErrors,
so a caller sees every problem at once and never gets a partially valid
settings object.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..models.config import (
    DEFAULT_COUNTERS_SETTINGS,
    DEFAULT_STRESS_SETTINGS,
    MAX_COLLECTION_INTERVAL_MS,
    MAX_DOP,
    MAX_ITERATIONS,
    MAX_PASS_THRESHOLD,
    MAX_RUNTIME,
    CountersOptions,
    CountersSettings,
    StressOptions,
    StressSettings,
)
from ..validation import (
    ValidationError,
    ValidationErrors,
    validate_boolean,
    validate_float,
    validate_integer,
    validate_name_pattern,
    validate_non_empty_string,
)
from . import environment as env

logger = logging.getLogger(__name__)


def _stress_validators() -> Dict[str, Callable[[Any], Any]]:
    return {
        "runtime": lambda v: validate_float(
            v, min_value=0, max_value=MAX_RUNTIME, field_name="runtime"
        ),
        "dop": lambda v: validate_integer(
            v, min_value=1, max_value=MAX_DOP, field_name="dop"
        ),
        "iterations": lambda v: validate_integer(
            v, min_value=0, max_value=MAX_ITERATIONS, field_name="iterations"
        ),
        "pass_threshold": lambda v: validate_float(
            v, min_value=0, max_value=MAX_PASS_THRESHOLD, field_name="pass_threshold"
        ),
    }


def _validate_fields(
    raw_values: Dict[str, Any],
    validators: Dict[str, Callable[[Any], Any]],
    context: str
) -> Dict[str, Any]:
    validated: Dict[str, Any] = {}
    errors: List[ValidationError] = []
    for name, validator in validators.items():
        try:
            validated[name] = validator(raw_values[name])
        except ValidationError as e:
            errors.append(e)
    if errors:
        aggregate = ValidationErrors(errors, context=context)
        logger.error(str(aggregate))
        raise aggregate
    return validated


def resolve_stress_settings(
    options: Optional[StressOptions] = None,
    environ: Optional[Mapping[str, str]] = None
) -> StressSettings:
    """
    Resolve stress settings from options, the environment and defaults.

    Args:
        options: Caller options; None fields fall through
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated StressSettings

    Raises:
        ValidationErrors: If any field is non-numeric or out of range
    """
    options = options or StressOptions()
    defaults = DEFAULT_STRESS_SETTINGS
    raw = {
        "runtime": env.resolve_value(options.runtime, env.STRESS_RUNTIME, defaults.runtime, environ),
        "dop": env.resolve_value(options.dop, env.STRESS_DOP, defaults.dop, environ),
        "iterations": env.resolve_value(
            options.iterations, env.STRESS_ITERATIONS, defaults.iterations, environ
        ),
        "pass_threshold": env.resolve_value(
            options.pass_threshold, env.STRESS_PASS_THRESHOLD, defaults.pass_threshold, environ
        ),
    }
    return StressSettings(**_validate_fields(raw, _stress_validators(), "stress settings"))


def merge_stress_settings(base: StressSettings, overrides: Optional[StressOptions]) -> StressSettings:
    """
    Apply per-call overrides on top of already resolved settings.

    Overrides are validated the same way as constructor options.
    """
    if overrides is None:
        return base
    merged = overrides.merged_over(base)
    return StressSettings(**_validate_fields(merged, _stress_validators(), "stress run options"))


def resolve_counters_settings(
    options: Optional[CountersOptions] = None,
    environ: Optional[Mapping[str, str]] = None
) -> CountersSettings:
    """
    Resolve counters collection settings from options, the environment and
    defaults.

    Raises:
        ValidationErrors: If any field fails validation
    """
    options = options or CountersOptions()
    defaults = DEFAULT_COUNTERS_SETTINGS
    raw = {
        "collection_interval_ms": env.resolve_value(
            options.collection_interval_ms, env.COUNTERS_COLLECTION_INTERVAL_MS,
            defaults.collection_interval_ms, environ
        ),
        "include_moving_averages": env.resolve_value(
            options.include_moving_averages, env.COUNTERS_INCLUDE_MOVING_AVERAGES,
            defaults.include_moving_averages, environ
        ),
        "dump_to_file": env.resolve_value(
            options.dump_to_file, env.COUNTERS_DUMP_TO_FILE, defaults.dump_to_file, environ
        ),
        "dump_to_chart": env.resolve_value(
            options.dump_to_chart, env.COUNTERS_DUMP_TO_CHART, defaults.dump_to_chart, environ
        ),
        "output_directory": env.resolve_value(
            options.output_directory, env.COUNTERS_OUTPUT_DIRECTORY,
            defaults.output_directory, environ
        ),
    }
    validators = {
        "collection_interval_ms": lambda v: validate_integer(
            v, min_value=0, max_value=MAX_COLLECTION_INTERVAL_MS,
            field_name="collection_interval_ms"
        ),
        "include_moving_averages": lambda v: validate_boolean(
            v, field_name="include_moving_averages"
        ),
        "dump_to_file": lambda v: validate_boolean(v, field_name="dump_to_file"),
        "dump_to_chart": lambda v: validate_boolean(v, field_name="dump_to_chart"),
        "output_directory": lambda v: validate_non_empty_string(
            v, field_name="output_directory"
        ),
    }
    return CountersSettings(**_validate_fields(raw, validators, "counters settings"))


def validate_collector_identity(name: Any, pid: Any) -> None:
    """
    Validate a collector's name and root pid together.

    Raises:
        ValidationErrors: If the name has no [a-z0-9_] character or the pid
            is not a non-negative integer
    """
    _validate_fields(
        {"name": name, "pid": pid},
        {
            "name": lambda v: validate_name_pattern(v, field_name="name"),
            "pid": lambda v: validate_integer(v, min_value=0, field_name="pid"),
        },
        "counters collector",
    )
