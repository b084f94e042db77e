"""Execution result types.

This module provides the immutable records that make up the execution
history: individual test outcomes, their per-record summary counts and the
execution record itself. Records are created once (seeded from
configuration or synthesized from a simulated run) and never mutated.

Classes:
    TestCase: Outcome of a single test within an execution.
    Summary: Status counts of an execution.
    ExecutionRecord: A completed run of a suite with its test outcomes.

Functions:
    derive_status: Overall status implied by a sequence of tests.
    recompute_summary: Summary counts implied by a sequence of tests.

Example:
    >>> record = ExecutionRecord.from_tests(
    ...     record_id="run-002",
    ...     suite_name="Smoke Tests",
    ...     timestamp=datetime(2024, 1, 15, 9, 15, tzinfo=timezone.utc),
    ...     duration="8m 32s",
    ...     author="Bob Smith",
    ...     tests=(TestCase("smoke-001", "Homepage Load", TestStatus.PASSED, "1.2s", "UI"),),
    ... )
    >>> record.status
    <TestStatus.PASSED: 'passed'>
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Sequence

from testdash_core.types.common import TestStatus, duration_seconds


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO 8601 timestamp into a timezone-aware UTC datetime.

    Naive values are assumed to be UTC. A trailing "Z" is accepted.

    Args:
        value: ISO 8601 text or a datetime.

    Returns:
        A timezone-aware datetime in UTC.

    Raises:
        ValueError: If the text is not a valid ISO 8601 timestamp.
    """
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True)
class TestCase:
    """Outcome of a single test within an execution record.

    Attributes:
        id: Identifier, unique within its execution record.
        name: Human-readable test name.
        status: Test outcome.
        duration: Elapsed time as recorded (e.g. "2.5s"). Kept as text;
            unparsable values are tolerated and only degrade when aggregated.
        category: Free-text grouping label (may be empty).
        error: Failure message, usually only present when failed.
        stack_trace: Opaque failure trace text.
    """

    __test__ = False

    id: str
    name: str
    status: TestStatus
    duration: str = "0s"
    category: str = ""
    error: str | None = None
    stack_trace: str | None = None

    def __post_init__(self) -> None:
        """Validate the test case."""
        if not self.id:
            raise ValueError("TestCase id must not be empty")
        object.__setattr__(self, "status", TestStatus(self.status))
        seconds = duration_seconds(self.duration)
        if seconds is not None and seconds < 0:
            raise ValueError(f"TestCase {self.id} has negative duration: {self.duration}")

    @property
    def seconds(self) -> float | None:
        """Return the duration in seconds, or None if unparsable."""
        return duration_seconds(self.duration)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary.

        Returns:
            Dictionary with all test fields; absent optional fields are omitted.
        """
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "duration": self.duration,
            "category": self.category,
        }
        if self.error is not None:
            data["error"] = self.error
        if self.stack_trace is not None:
            data["stack_trace"] = self.stack_trace
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TestCase:
        """Deserialize from a dictionary.

        Both ``stack_trace`` and ``stackTrace`` keys are accepted.

        Args:
            data: Dictionary with test fields.

        Returns:
            A TestCase instance.
        """
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", data["id"])),
            status=TestStatus(data["status"]),
            duration=str(data.get("duration", "0s")),
            category=str(data.get("category") or ""),
            error=data.get("error"),
            stack_trace=data.get("stack_trace", data.get("stackTrace")),
        )


@dataclass(frozen=True)
class Summary:
    """Status counts of an execution record.

    Attributes:
        total: Number of tests.
        passed: Number of passed tests.
        failed: Number of failed tests.
        skipped: Number of skipped tests.
    """

    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0

    def __post_init__(self) -> None:
        """Validate the counts."""
        for name in ("total", "passed", "failed", "skipped"):
            if getattr(self, name) < 0:
                raise ValueError(f"Summary.{name} must be non-negative")
        if self.passed + self.failed + self.skipped != self.total:
            raise ValueError(
                f"Summary counts do not add up: {self.passed} + {self.failed} + "
                f"{self.skipped} != {self.total}"
            )

    def count(self, status: TestStatus) -> int:
        """Return the count for a status."""
        return {
            TestStatus.PASSED: self.passed,
            TestStatus.FAILED: self.failed,
            TestStatus.SKIPPED: self.skipped,
        }[TestStatus(status)]

    def to_dict(self) -> dict[str, int]:
        """Return the summary as a dictionary."""
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Summary:
        """Deserialize from a dictionary."""
        return cls(
            total=int(data["total"]),
            passed=int(data.get("passed", 0)),
            failed=int(data.get("failed", 0)),
            skipped=int(data.get("skipped", 0)),
        )


def recompute_summary(tests: Iterable[TestCase]) -> Summary:
    """Count test outcomes.

    Args:
        tests: Tests to count.

    Returns:
        Summary whose total equals the number of tests.
    """
    counts = {status: 0 for status in TestStatus}
    for test in tests:
        counts[test.status] += 1
    return Summary(
        total=sum(counts.values()),
        passed=counts[TestStatus.PASSED],
        failed=counts[TestStatus.FAILED],
        skipped=counts[TestStatus.SKIPPED],
    )


def derive_status(tests: Iterable[TestCase]) -> TestStatus:
    """Return the overall status implied by a set of tests.

    Any failure makes the execution FAILED. Otherwise a single pass makes it
    PASSED. A non-empty set where every test was skipped is SKIPPED, and an
    empty set is PASSED.

    Args:
        tests: Tests of one execution.

    Returns:
        The derived execution status.
    """
    statuses = {test.status for test in tests}
    if TestStatus.FAILED in statuses:
        return TestStatus.FAILED
    if statuses == {TestStatus.SKIPPED}:
        return TestStatus.SKIPPED
    return TestStatus.PASSED


@dataclass(frozen=True)
class ExecutionRecord:
    """A completed run of a test suite.

    The stored ``status`` and ``summary`` are authoritative. They are
    expected to match ``derive_status(tests)`` and ``recompute_summary(tests)``;
    a mismatch is reported by the record store as a data-integrity warning
    rather than rejected.

    Attributes:
        id: Unique record identifier.
        suite_name: Name of the suite that was executed.
        status: Overall outcome.
        timestamp: UTC instant the execution was recorded.
        duration: Elapsed time text (e.g. "42m 15s").
        author: Who triggered the execution.
        summary: Status counts.
        tests: Ordered test outcomes.
    """

    id: str
    suite_name: str
    status: TestStatus
    timestamp: datetime
    duration: str
    author: str
    summary: Summary
    tests: tuple[TestCase, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        """Validate the record."""
        if not self.id:
            raise ValueError("ExecutionRecord id must not be empty")
        object.__setattr__(self, "status", TestStatus(self.status))
        object.__setattr__(self, "timestamp", parse_timestamp(self.timestamp))
        object.__setattr__(self, "tests", tuple(self.tests))
        seen: set[str] = set()
        for test in self.tests:
            if test.id in seen:
                raise ValueError(f"Duplicate test id in record {self.id}: {test.id}")
            seen.add(test.id)

    @classmethod
    def from_tests(
        cls,
        record_id: str,
        suite_name: str,
        tests: Sequence[TestCase],
        timestamp: datetime,
        duration: str,
        author: str,
        status: TestStatus | None = None,
    ) -> ExecutionRecord:
        """Create a record whose summary (and, by default, status) come from its tests.

        Args:
            record_id: Unique record identifier.
            suite_name: Name of the executed suite.
            tests: Ordered test outcomes.
            timestamp: When the execution was recorded.
            duration: Elapsed time text.
            author: Who triggered the execution.
            status: Explicit status; derived from the tests when omitted.

        Returns:
            A consistent ExecutionRecord.
        """
        return cls(
            id=record_id,
            suite_name=suite_name,
            status=status if status is not None else derive_status(tests),
            timestamp=timestamp,
            duration=duration,
            author=author,
            summary=recompute_summary(tests),
            tests=tuple(tests),
        )

    def get_test(self, test_id: str) -> TestCase | None:
        """Find a test by ID.

        Args:
            test_id: The test identifier.

        Returns:
            TestCase if found, None otherwise.
        """
        for test in self.tests:
            if test.id == test_id:
                return test
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary.

        Returns:
            Dictionary with all record fields; the timestamp is ISO 8601.
        """
        return {
            "id": self.id,
            "suite_name": self.suite_name,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "duration": self.duration,
            "author": self.author,
            "summary": self.summary.to_dict(),
            "tests": [test.to_dict() for test in self.tests],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExecutionRecord:
        """Deserialize from a dictionary.

        ``summary`` and ``status`` are optional and computed from ``tests``
        when absent.

        Args:
            data: Dictionary with record fields.

        Returns:
            An ExecutionRecord instance.
        """
        tests = tuple(TestCase.from_dict(t) for t in data.get("tests", []))
        summary_data = data.get("summary")
        summary = Summary.from_dict(summary_data) if summary_data else recompute_summary(tests)
        status = data.get("status")
        return cls(
            id=str(data["id"]),
            suite_name=str(data.get("suite_name", data.get("suiteName", ""))),
            status=TestStatus(status) if status else derive_status(tests),
            timestamp=parse_timestamp(data["timestamp"]),
            duration=str(data.get("duration", "0s")),
            author=str(data.get("author", "")),
            summary=summary,
            tests=tests,
        )
