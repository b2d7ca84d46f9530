# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Final

from dotenv import load_dotenv

from regionfix.app import check_region_references, fix_region_references, list_valid_regions
from regionfix.config import ConfigurationError, configure_logging, get_reconcile_settings
from regionfix.domain import ReconciliationAbortedError, RegionFixError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from regionfix.config import ReconcileSettings
    from regionfix.domain import Region, RegionId

EXIT_OK: Final[int] = 0
EXIT_FATAL: Final[int] = 1
EXIT_USAGE: Final[int] = 2
EXIT_PARTIAL: Final[int] = 3

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Repair dangling region references in a local commerce database"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="TOML file with a [regionfix] or [tool.regionfix] table",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    fix = subparsers.add_parser("fix", help="Rewrite dangling region references")
    fix.add_argument(
        "--seed",
        action="append",
        default=[],
        metavar="REGION_ID",
        help="Region id known to be dangling (repeatable, adds to discovered ids)",
    )
    fix.add_argument(
        "--replacement",
        type=str,
        metavar="REGION_ID",
        help="Region id to point references at (defaults to automatic selection)",
    )
    fix.add_argument(
        "--currency",
        type=str,
        help="Preferred currency code for automatic selection (empty string disables it)",
    )
    fix.add_argument(
        "--no-discover",
        action="store_true",
        help="Only reconcile seeded ids instead of scanning referencing tables",
    )
    fix.add_argument(
        "--dry-run",
        action="store_true",
        help="Count affected rows without modifying the database",
    )
    fix.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop at the first table whose update fails",
    )
    fix.add_argument(
        "--interactive",
        action="store_true",
        help="Prompt for the dangling region id and the replacement region",
    )

    subparsers.add_parser("check", help="Count dangling region references per table")
    subparsers.add_parser("regions", help="List valid regions")

    return parser.parse_args(list(argv))


def _prompt_dangling_id(read: Callable[[str], str] | None = None) -> RegionId:
    value = (read or input)(
        "Enter the region id that needs to be replaced (e.g. reg_01JVK89Q8PEA1EMJS7FPBN12VF): "
    ).strip()
    if not value:
        raise ValueError("No region id provided")
    return value


def _prompt_replacement(
    regions: Sequence[Region],
    read: Callable[[str], str] | None = None,
) -> RegionId:
    print("Available regions:")
    for index, region in enumerate(regions, start=1):
        print(f"{index}. {region.describe()}")
    selection = (read or input)("Enter the number of the region to use as replacement: ").strip()
    try:
        index = int(selection) - 1
    except ValueError as exc:
        raise ValueError(f"Invalid selection: {selection!r}") from exc
    if not 0 <= index < len(regions):
        raise ValueError(f"Invalid selection: {selection!r}")
    return regions[index].id


def _load_settings(args: argparse.Namespace) -> ReconcileSettings:
    settings = get_reconcile_settings(args.config)
    currency = getattr(args, "currency", None)
    if currency is not None:
        settings = replace(settings, preferred_currency=currency.strip().lower() or None)
    return settings


def _run_fix(args: argparse.Namespace, settings: ReconcileSettings) -> int:
    seeds: list[RegionId] = [seed.strip() for seed in args.seed if seed.strip()]
    discover = not args.no_discover
    choose_replacement = None
    if args.interactive:
        seeds = [_prompt_dangling_id()]
        discover = False
        if args.replacement is None:
            choose_replacement = _prompt_replacement

    try:
        report = fix_region_references(
            settings=settings,
            seed_ids=seeds,
            replacement_id=args.replacement,
            choose_replacement=choose_replacement,
            discover=discover,
            dry_run=args.dry_run,
            continue_on_error=False if args.fail_fast else None,
        )
    except ReconciliationAbortedError as exc:
        for line in exc.report.summary_lines():
            print(line)
        raise

    for line in report.summary_lines():
        print(line)
    return EXIT_PARTIAL if report.failures else EXIT_OK


def _run_check(settings: ReconcileSettings) -> int:
    report = check_region_references(settings=settings)
    for line in report.summary_lines():
        print(line)
    return EXIT_OK if report.is_clean else EXIT_PARTIAL


def _run_regions(settings: ReconcileSettings) -> int:
    regions = list_valid_regions(settings=settings)
    if not regions:
        print("No valid regions found")
        return EXIT_FATAL
    for region in regions:
        print(region.describe())
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.verbose:
            configure_logging(level=logging.DEBUG, force=True)
        settings = _load_settings(parsed_args)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(EXIT_USAGE)

    try:
        if parsed_args.command == "fix":
            code = _run_fix(parsed_args, settings)
        elif parsed_args.command == "check":
            code = _run_check(settings)
        elif parsed_args.command == "regions":
            code = _run_regions(settings)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except (ValueError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(EXIT_USAGE)
    except RegionFixError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(EXIT_FATAL)
    except Exception:
        log.exception("Fatal error during region reconciliation")
        sys.exit(EXIT_FATAL)

    sys.exit(code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console-script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
