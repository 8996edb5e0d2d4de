"""
Command-line interface for stressmon.

Subcommands:
- collect: collect performance counters for a process tree for a fixed
  duration and write the usual artifacts
- show-config: print the stress and counters settings resolved from the
  environment and built-in defaults
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from ..config import get_root_pid, get_suite_type, resolve_counters_settings, resolve_stress_settings
from ..counters import CountersCollector
from ..models.config import CountersOptions
from ..validation import ValidationError, ValidationErrors, handle_cli_error, validate_float

# --- Logging Setup ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stressmon",
        description="Collect performance counters for process trees.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    collect = subparsers.add_parser(
        "collect", help="Collect counters for a process tree for a fixed duration."
    )
    collect.add_argument(
        "--pid",
        type=int,
        help="Root pid of the tree. Defaults to PerfPidForCollection, then this process.",
    )
    collect.add_argument(
        "--duration", type=str, required=True, help="Seconds to collect for."
    )
    collect.add_argument(
        "--name", type=str, required=True, help="Name used for all generated files."
    )
    collect.add_argument(
        "--no-parent",
        action="store_true",
        help="Track only the subtree of --pid, not of its parent.",
    )
    collect.add_argument(
        "--interval-ms", type=str, help="Sampling interval in milliseconds."
    )
    collect.add_argument("--output-dir", type=str, help="Directory for generated files.")
    collect.add_argument(
        "--no-charts", action="store_true", help="Do not render charts."
    )
    collect.add_argument(
        "--no-moving-averages",
        action="store_true",
        help="Do not compute moving averages.",
    )

    subparsers.add_parser(
        "show-config", help="Print the resolved stress and counters settings."
    )
    return parser


async def run_collection(
    collector: CountersCollector, duration: float
) -> CountersCollector:
    """Collect with collector for duration seconds; the collector is always stopped."""
    await collector.start()
    try:
        await asyncio.sleep(duration)
    finally:
        await collector.stop()
    return collector


def _collect(args: argparse.Namespace) -> None:
    try:
        duration = validate_float(args.duration, min_value=0, field_name="--duration")
        options = CountersOptions(
            collection_interval_ms=args.interval_ms,
            output_directory=args.output_dir,
            dump_to_chart=False if args.no_charts else None,
            include_moving_averages=False if args.no_moving_averages else None,
        )
        collector = CountersCollector(
            args.name, get_root_pid(args.pid), not args.no_parent, options
        )
    except (ValidationError, ValidationErrors) as e:
        handle_cli_error(e, "argument validation", exit_code=2, logger=logger)

    try:
        asyncio.run(run_collection(collector, duration))
    except KeyboardInterrupt:
        logger.warning("Collection interrupted")
        sys.exit(130)
    except Exception as e:
        handle_cli_error(e, "counters collection", exit_code=1, logger=logger)

    stats = collector.computed_statistics
    if stats is not None:
        logger.info(
            f"Collected {len(stats.iterations)} samples over {stats.elapsed_time:.0f}ms; "
            f"p95 memory {stats.ninety_fifth_percentile:.0f} bytes, "
            f"average {stats.average:.0f} bytes"
        )
    logger.info(f"Artifacts written to: {collector.output_directory}")


def _show_config() -> None:
    try:
        stress = resolve_stress_settings()
        counters = resolve_counters_settings()
    except ValidationErrors as e:
        handle_cli_error(e, "configuration", exit_code=1, logger=logger)
    print(json.dumps(
        {
            "suite_type": get_suite_type().value,
            "root_pid": get_root_pid(),
            "stress": stress.to_dict(),
            "counters": counters.to_dict(),
        },
        indent=2,
    ))


def main_cli(argv: Optional[List[str]] = None) -> None:
    """Main command-line entry point."""
    args = build_parser().parse_args(argv)
    if args.command == "collect":
        _collect(args)
    elif args.command == "show-config":
        _show_config()


if __name__ == "__main__":
    main_cli()
