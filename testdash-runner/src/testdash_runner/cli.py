"""Command-line interface for testdash.

Lists suites, simulates their execution, and shows execution history with
filters, drill-down and aggregate statistics.

Usage:
    # List the suite catalog
    testdash suites

    # Filter execution history
    testdash results --author "Alice Johnson" --status failed

    # Drill into one execution
    testdash show run-001 --status failed --expand test-002

    # Simulate running two suites concurrently
    testdash run smoke hotfix --tick-ms 100
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
import sys
from datetime import timedelta
from pathlib import Path

from testdash_core.errors import TestdashError
from testdash_core.filters import ALL, RecordQuery, filter_records
from testdash_core.store import RecordStore
from testdash_core.types.execution import ExecutionCompleted, ExecutionState
from testdash_core.types.results import ExecutionRecord
from testdash_core.views import ResultsViewState, build_results_view

from testdash_runner.config import DashboardConfig, load_dashboard_config
from testdash_runner.history import HistoryRecorder
from testdash_runner.models import (
    CompletionModel,
    ExecutionStateModel,
    RecordModel,
    ResultsViewModel,
    SuiteModel,
)
from testdash_runner.simulator import ExecutionSimulator

logger = logging.getLogger(__name__)


def setup_logging(level: str = "WARNING") -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _record_row(record: ExecutionRecord) -> str:
    s = record.summary
    return (
        f"{record.id:<14} {record.status.value:<8} {record.timestamp:%Y-%m-%d %H:%M}  "
        f"{record.suite_name:<20} {record.author:<16} {record.duration:>8}  "
        f"{s.passed}/{s.total} passed, {s.failed} failed, {s.skipped} skipped"
    )


def cmd_suites(args: argparse.Namespace, config: DashboardConfig, store: RecordStore) -> int:
    """List the suite catalog."""
    if args.json:
        for suite in config.suites:
            print(SuiteModel.from_suite(suite).model_dump_json())
        return 0

    print(f"{config.title}: {len(config.suites)} suites")
    for suite in config.suites:
        print(
            f"  {suite.id:<14} {suite.priority.value:<7} {suite.test_count:>4} tests  "
            f"{suite.estimated_duration:>8}  {suite.name}"
        )
        if suite.tags:
            print(f"  {'':<14} tags: {', '.join(sorted(suite.tags))}")
    return 0


def cmd_results(args: argparse.Namespace, config: DashboardConfig, store: RecordStore) -> int:
    """List execution history matching the filters."""
    query = RecordQuery(
        text=args.text,
        status=args.status,
        category=args.category,
        author=args.author,
    )
    records = sorted(
        filter_records(store.records, query), key=lambda r: r.timestamp, reverse=True
    )

    if args.json:
        for record in records:
            print(RecordModel.from_record(record).model_dump_json())
        return 0

    print(f"Test run history ({len(records)} results)")
    for record in records:
        print(f"  {_record_row(record)}")
    return 0


def cmd_show(args: argparse.Namespace, config: DashboardConfig, store: RecordStore) -> int:
    """Show one execution with its charts and drill-down list."""
    record = store.get(args.record_id)
    state = ResultsViewState(
        selected_record_id=record.id,
        search_text=args.text or "",
        test_status=args.status or ALL,
        test_category=args.category or ALL,
        expanded_test_id=args.expand,
        top_n=args.top,
    )
    view = build_results_view(
        store.records, state, timeline_window=timedelta(minutes=args.window_minutes)
    )

    if args.json:
        print(ResultsViewModel.from_view(view).model_dump_json(indent=2))
        return 0

    print(_record_row(record))
    print("\nStatus distribution:")
    for item in view.status:
        print(f"  {item.status.value:<8} {item.count:>4}  {item.percent:5.1f}%")

    print("\nTests by category:")
    for category, count in view.categories.items():
        print(f"  {category:<20} {count:>4}")

    print("\nSlowest tests:")
    for name, seconds in view.slowest:
        print(f"  {seconds:8.1f}s  {name}")

    print("\nExecution timeline:")
    for window in view.timeline:
        print(f"  {window.label:<14} passed {window.passed:>4}  failed {window.failed:>4}")

    print(f"\nTest results ({len(view.tests)}):")
    for test in view.tests:
        print(f"  {test.status.value:<8} {test.duration:>7}  {test.name} [{test.category}]")
        if view.expanded is not None and test.id == view.expanded.id:
            if test.error:
                print(f"      Error: {test.error}")
            if test.stack_trace:
                for line in test.stack_trace.splitlines():
                    print(f"      {line}")
    return 0


async def _run_suites(
    args: argparse.Namespace, config: DashboardConfig, store: RecordStore
) -> list[tuple[ExecutionCompleted, ExecutionRecord | None]]:
    seeded = random.Random(args.seed) if args.seed is not None else None
    tick_ms = args.tick_ms if args.tick_ms is not None else config.simulator.tick_interval_ms
    simulator = ExecutionSimulator(
        config.suites,
        tick_interval=tick_ms / 1000.0,
        max_increment=config.simulator.max_increment,
        random_source=seeded,
    )
    recorder = HistoryRecorder(store, config.suites_by_id, random_source=seeded)
    completions: list[tuple[ExecutionCompleted, ExecutionRecord | None]] = []

    def on_progress(state: ExecutionState) -> None:
        if args.json:
            print(ExecutionStateModel.from_state(state).model_dump_json())
        else:
            label = "Running..." if state.running else "Done"
            print(f"  {state.suite_id:<14} {label} {state.percent}%")

    def on_complete(event: ExecutionCompleted) -> None:
        completions.append((event, recorder(event)))

    simulator.add_progress_listener(on_progress)
    simulator.add_completion_listener(on_complete)

    try:
        for suite_id in args.suite_ids:
            await simulator.start(suite_id)
        await simulator.wait_all()
    finally:
        await simulator.shutdown()
    return completions


def cmd_run(args: argparse.Namespace, config: DashboardConfig, store: RecordStore) -> int:
    """Simulate running suites to completion and record their results."""
    completions = asyncio.run(_run_suites(args, config, store))

    for event, record in completions:
        if args.json:
            print(CompletionModel.from_event(event, record).model_dump_json())
        elif record is not None:
            suite = config.get_suite(event.suite_id)
            name = suite.name if suite else event.suite_id
            print(f"{name} finished: {_record_row(record)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description="testdash test-execution dashboard CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config", "-c", type=Path,
        help="Dashboard catalog YAML (default: bundled demo catalog)"
    )
    parser.add_argument("--json", action="store_true", help="Print JSON instead of text")
    parser.add_argument(
        "--log-level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("suites", help="List the suite catalog")

    results_parser = subparsers.add_parser("results", help="List execution history")
    results_parser.add_argument("--text", help="Search suite name or author")
    results_parser.add_argument(
        "--status", choices=["all", "passed", "failed", "skipped"], help="Filter by status"
    )
    results_parser.add_argument("--category", help="Only records with a test in this category")
    results_parser.add_argument("--author", help="Filter by author")

    show_parser = subparsers.add_parser("show", help="Show one execution in detail")
    show_parser.add_argument("record_id", help="Execution record id")
    show_parser.add_argument("--text", help="Search test name or category")
    show_parser.add_argument(
        "--status", choices=["all", "passed", "failed", "skipped"], help="Filter tests by status"
    )
    show_parser.add_argument("--category", help="Filter tests by category")
    show_parser.add_argument("--expand", metavar="TEST_ID", help="Show error details of a test")
    show_parser.add_argument(
        "--top", type=int, default=10, help="Entries in the slowest-tests ranking (default: 10)"
    )
    show_parser.add_argument(
        "--window-minutes", type=float, default=60.0,
        help="Timeline window size in minutes (default: 60)"
    )

    run_parser = subparsers.add_parser("run", help="Simulate running suites")
    run_parser.add_argument("suite_ids", nargs="+", metavar="SUITE_ID", help="Suites to run")
    run_parser.add_argument(
        "--tick-ms", type=int,
        help="Milliseconds between progress ticks (default: from catalog)"
    )
    run_parser.add_argument("--seed", type=int, help="Seed for reproducible progress")

    return parser


COMMANDS = {
    "suites": cmd_suites,
    "results": cmd_results,
    "show": cmd_show,
    "run": cmd_run,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    setup_logging(args.log_level)

    try:
        config = load_dashboard_config(args.config)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    store = RecordStore(config.records)
    logger.debug("Running %s with %d stored records", args.command, len(store))
    try:
        return COMMANDS[args.command](args, config, store)
    except TestdashError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
