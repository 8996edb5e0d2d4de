"""
Configuration resolution for the stressmon package.

Settings come from explicit arguments, then environment variables, then
built-in defaults, and are validated as a whole.
"""

from .environment import (
    SuiteType,
    get_boolean,
    get_root_pid,
    get_suite_type,
    read_env,
    resolve_value,
)
from .validators import (
    merge_stress_settings,
    resolve_counters_settings,
    resolve_stress_settings,
    validate_collector_identity,
)

__all__ = [
    "SuiteType",
    "get_boolean",
    "get_root_pid",
    "get_suite_type",
    "read_env",
    "resolve_value",
    "merge_stress_settings",
    "resolve_counters_settings",
    "resolve_stress_settings",
    "validate_collector_identity",
]
