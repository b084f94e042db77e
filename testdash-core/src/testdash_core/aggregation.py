"""Aggregation engine for execution results.

This module derives chart-ready statistics from execution records: status
distribution, category distribution, duration rankings and pass/fail counts
over time windows. Every function is pure and total over well-formed
records. Malformed numeric fields degrade to documented sentinels instead
of raising.

Functions:
    summarize_status: Stored status counts of a record.
    status_distribution: Status counts with percentages for one record.
    group_by_category: Test count per category.
    top_n_by_duration: Slowest tests.
    distribution_over_windows: Pass/fail counts per fixed time window.
    check_record_integrity: Disagreements between stored and derived fields.
"""

from __future__ import annotations

import math
import warnings
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Sequence

from testdash_core.errors import MalformedDurationWarning
from testdash_core.types.common import TestStatus
from testdash_core.types.results import (
    ExecutionRecord,
    TestCase,
    derive_status,
    recompute_summary,
)

OTHER_CATEGORY = "Other"
"""Bucket for tests with an empty or missing category."""

DEFAULT_TOP_N = 10

MAX_TIMELINE_WINDOWS = 1000
"""Largest contiguous timeline; sparser timelines keep only populated windows."""

__all__ = [
    "DEFAULT_TOP_N",
    "MAX_TIMELINE_WINDOWS",
    "OTHER_CATEGORY",
    "StatusSlice",
    "TimeWindow",
    "check_record_integrity",
    "derive_status",
    "distribution_over_windows",
    "group_by_category",
    "recompute_summary",
    "status_distribution",
    "summarize_status",
    "top_n_by_duration",
]


@dataclass(frozen=True)
class StatusSlice:
    """One slice of the status distribution chart.

    Attributes:
        status: The status this slice counts.
        count: Number of tests with that status.
        percent: Share of the record's total, 0 to 100.
    """

    status: TestStatus
    count: int
    percent: float


@dataclass(frozen=True)
class TimeWindow:
    """Pass/fail counts of the records that fall into one time window.

    Attributes:
        label: Offset label relative to the first window (e.g. "0-5min").
        start: Inclusive window start (UTC).
        end: Exclusive window end (UTC).
        passed: Passed tests summed over the window's records.
        failed: Failed tests summed over the window's records.
    """

    label: str
    start: datetime
    end: datetime
    passed: int = 0
    failed: int = 0


def summarize_status(record: ExecutionRecord) -> dict[str, int]:
    """Return the stored status counts of a record.

    Args:
        record: The execution record.

    Returns:
        Mapping with "passed", "failed" and "skipped" counts.
    """
    return {
        "passed": record.summary.passed,
        "failed": record.summary.failed,
        "skipped": record.summary.skipped,
    }


def status_distribution(record: ExecutionRecord) -> list[StatusSlice]:
    """Return the status distribution of a record for the pie chart.

    Args:
        record: The execution record.

    Returns:
        One slice per status in passed, failed, skipped order. Percentages
        are 0 when the record has no tests.
    """
    total = record.summary.total
    slices = []
    for status in (TestStatus.PASSED, TestStatus.FAILED, TestStatus.SKIPPED):
        count = record.summary.count(status)
        percent = (count * 100.0 / total) if total else 0.0
        slices.append(StatusSlice(status=status, count=count, percent=percent))
    return slices


def group_by_category(tests: Iterable[TestCase]) -> dict[str, int]:
    """Count tests per category.

    Tests with an empty category are counted under OTHER_CATEGORY.

    Args:
        tests: Tests to group.

    Returns:
        Mapping of category to count. Counts sum to the number of tests.
    """
    counts: dict[str, int] = {}
    for test in tests:
        category = test.category if (test.category or "").strip() else OTHER_CATEGORY
        counts[category] = counts.get(category, 0) + 1
    return counts


def top_n_by_duration(
    tests: Sequence[TestCase], n: int = DEFAULT_TOP_N
) -> list[tuple[str, float]]:
    """Rank tests by duration, slowest first.

    Durations are parsed to seconds. An unparsable duration emits a
    MalformedDurationWarning, counts as 0 seconds, and sorts after every
    other test with the same value. Remaining ties keep input order.

    Args:
        tests: Tests to rank.
        n: Maximum number of entries.

    Returns:
        Up to ``min(n, len(tests))`` (name, seconds) pairs.
    """
    if n <= 0:
        return []

    ranked: list[tuple[float, bool, str]] = []
    for test in tests:
        seconds = test.seconds
        malformed = seconds is None or math.isnan(seconds)
        if malformed:
            warnings.warn(
                f"Unparsable duration {test.duration!r} for test {test.id}; using 0s",
                MalformedDurationWarning,
                stacklevel=2,
            )
            seconds = 0.0
        ranked.append((float(seconds), malformed, test.name))

    ranked.sort(key=lambda item: (-item[0], item[1]))
    return [(name, seconds) for seconds, _, name in ranked[:n]]


def _offset(origin: datetime, seconds: float) -> datetime:
    try:
        return origin + timedelta(seconds=seconds)
    except OverflowError:
        return datetime.max.replace(tzinfo=origin.tzinfo)


def _window_unit(size_seconds: float) -> tuple[float, str]:
    if size_seconds % 3600 == 0:
        return 3600.0, "h"
    if size_seconds % 60 == 0:
        return 60.0, "min"
    return 1.0, "s"


def distribution_over_windows(
    records: Iterable[ExecutionRecord],
    window_size: timedelta | float,
) -> list[TimeWindow]:
    """Bucket pass/fail counts into fixed, sequential time windows.

    The first window starts at the earliest record timestamp. Windows
    between the first and last record are emitted with zero counts when no
    record falls into them, as long as the span needs at most
    MAX_TIMELINE_WINDOWS windows. Beyond that only the windows holding
    records are emitted. Window ends past the largest representable
    datetime are clamped to it.

    Args:
        records: Records to bucket, in any order.
        window_size: Window length as a timedelta or in seconds.

    Returns:
        Windows in chronological order. Empty when there are no records or
        the window size is not a positive finite number, or is too small to
        index the records' span.
    """
    if isinstance(window_size, timedelta):
        size = window_size.total_seconds()
    else:
        try:
            size = float(window_size)
        except (TypeError, ValueError):
            return []
    items = list(records)
    if not items or not math.isfinite(size) or size <= 0:
        return []

    origin = min(record.timestamp for record in items)
    span = max(record.timestamp for record in items) - origin
    if not math.isfinite(span.total_seconds() / size):
        return []

    passed: dict[int, int] = {}
    failed: dict[int, int] = {}
    for record in items:
        index = int((record.timestamp - origin).total_seconds() // size)
        passed[index] = passed.get(index, 0) + record.summary.passed
        failed[index] = failed.get(index, 0) + record.summary.failed

    last = max(passed)
    if last < MAX_TIMELINE_WINDOWS:
        indices: Iterable[int] = range(last + 1)
    else:
        indices = sorted(passed)

    divisor, unit = _window_unit(size)
    windows = []
    for index in indices:
        low = index * size / divisor
        high = (index + 1) * size / divisor
        windows.append(
            TimeWindow(
                label=f"{low:g}-{high:g}{unit}",
                start=_offset(origin, index * size),
                end=_offset(origin, (index + 1) * size),
                passed=passed.get(index, 0),
                failed=failed.get(index, 0),
            )
        )
    return windows


def check_record_integrity(record: ExecutionRecord) -> list[str]:
    """List the ways a record's stored fields disagree with its tests.

    Args:
        record: The execution record.

    Returns:
        Human-readable issues; empty for a consistent record.
    """
    issues = []
    derived = derive_status(record.tests)
    if record.status != derived:
        issues.append(
            f"record {record.id}: stored status {record.status.value} "
            f"but tests imply {derived.value}"
        )
    recomputed = recompute_summary(record.tests)
    if record.summary != recomputed:
        issues.append(
            f"record {record.id}: stored summary {record.summary.to_dict()} "
            f"but tests count {recomputed.to_dict()}"
        )
    return issues
