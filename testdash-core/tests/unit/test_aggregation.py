"""Tests for the aggregation engine."""

import warnings
from datetime import datetime, timedelta, timezone

import pytest

from testdash_core.aggregation import (
    MAX_TIMELINE_WINDOWS,
    OTHER_CATEGORY,
    check_record_integrity,
    distribution_over_windows,
    group_by_category,
    status_distribution,
    summarize_status,
    top_n_by_duration,
)
from testdash_core.errors import MalformedDurationWarning
from testdash_core.types import ExecutionRecord, Summary, TestCase, TestStatus, recompute_summary

BASE = datetime(2024, 1, 15, 7, 0, tzinfo=timezone.utc)


def _record(record_id: str, minutes: float, passed: int, failed: int) -> ExecutionRecord:
    tests = [TestCase(f"{record_id}-p{i}", "P", TestStatus.PASSED) for i in range(passed)]
    tests += [TestCase(f"{record_id}-f{i}", "F", TestStatus.FAILED) for i in range(failed)]
    return ExecutionRecord.from_tests(
        record_id=record_id,
        suite_name="Suite",
        tests=tests,
        timestamp=BASE + timedelta(minutes=minutes),
        duration="1m 0s",
        author="Alice Johnson",
    )


class TestSummarizeStatus:
    """Tests for summarize_status."""

    def test_matches_recomputation(self, records: list[ExecutionRecord]) -> None:
        """Test stored counts never diverge from the tests in valid fixtures."""
        for record in records:
            summary = recompute_summary(record.tests)
            assert summarize_status(record) == {
                "passed": summary.passed,
                "failed": summary.failed,
                "skipped": summary.skipped,
            }

    def test_pass_through(self) -> None:
        record = ExecutionRecord(
            id="r",
            suite_name="S",
            status=TestStatus.PASSED,
            timestamp=BASE,
            duration="1s",
            author="x",
            summary=Summary(total=245, passed=230, failed=12, skipped=3),
        )
        assert summarize_status(record) == {"passed": 230, "failed": 12, "skipped": 3}


class TestStatusDistribution:
    """Tests for status_distribution."""

    def test_percentages(self, records: list[ExecutionRecord]) -> None:
        slices = status_distribution(records[0])
        assert [s.status for s in slices] == [
            TestStatus.PASSED,
            TestStatus.FAILED,
            TestStatus.SKIPPED,
        ]
        assert [s.count for s in slices] == [3, 2, 1]
        assert slices[0].percent == pytest.approx(50.0)
        assert sum(s.percent for s in slices) == pytest.approx(100.0)

    def test_empty_record(self) -> None:
        record = ExecutionRecord.from_tests("r", "S", [], BASE, "0s", "x")
        assert all(s.count == 0 and s.percent == 0.0 for s in status_distribution(record))


class TestGroupByCategory:
    """Tests for group_by_category."""

    def test_counts(self, regression_tests: tuple[TestCase, ...]) -> None:
        counts = group_by_category(regression_tests)
        assert counts == {
            "Authentication": 1,
            "Infrastructure": 1,
            "API": 2,
            "UI": 1,
            "Notifications": 1,
        }
        assert sum(counts.values()) == len(regression_tests)

    def test_missing_category_goes_to_other(self) -> None:
        tests = [
            TestCase("a", "A", TestStatus.PASSED, category=""),
            TestCase("b", "B", TestStatus.PASSED, category="  "),
            TestCase("c", "C", TestStatus.PASSED, category="API"),
        ]
        assert group_by_category(tests) == {OTHER_CATEGORY: 2, "API": 1}

    def test_empty(self) -> None:
        assert group_by_category([]) == {}


class TestTopNByDuration:
    """Tests for top_n_by_duration."""

    def test_unparsable_sorts_last(self) -> None:
        tests = [
            TestCase("a", "A", TestStatus.PASSED, "2.5s"),
            TestCase("b", "B", TestStatus.PASSED, "10.5s"),
            TestCase("c", "C", TestStatus.PASSED, "bad"),
        ]
        with pytest.warns(MalformedDurationWarning):
            assert top_n_by_duration(tests, 2) == [("B", 10.5), ("A", 2.5)]

    def test_unparsable_counts_as_zero(self) -> None:
        tests = [
            TestCase("c", "C", TestStatus.PASSED, "bad"),
            TestCase("z", "Z", TestStatus.SKIPPED, "0s"),
        ]
        with pytest.warns(MalformedDurationWarning):
            assert top_n_by_duration(tests, 5) == [("Z", 0.0), ("C", 0.0)]

    def test_slowest_first(self, regression_tests: tuple[TestCase, ...]) -> None:
        ranking = top_n_by_duration(regression_tests, 3)
        assert ranking == [
            ("Email Notification Service", 10.5),
            ("Database Connection Test", 5.2),
            ("Search Functionality", 4.1),
        ]

    def test_ties_keep_input_order(self) -> None:
        tests = [TestCase(str(i), f"T{i}", TestStatus.PASSED, "1s") for i in range(4)]
        assert [name for name, _ in top_n_by_duration(tests, 4)] == ["T0", "T1", "T2", "T3"]

    def test_length_bounded(self, regression_tests: tuple[TestCase, ...]) -> None:
        assert len(top_n_by_duration(regression_tests, 100)) == len(regression_tests)
        assert top_n_by_duration(regression_tests, 0) == []
        assert top_n_by_duration(regression_tests, -1) == []

    def test_float_syntax_durations(self) -> None:
        """Test durations written in any float syntax rank by their value."""
        tests = [
            TestCase("a", "A", TestStatus.PASSED, ".5s"),
            TestCase("b", "B", TestStatus.PASSED, "1e1s"),
            TestCase("c", "C", TestStatus.PASSED, "+2s"),
        ]
        with warnings.catch_warnings():
            warnings.simplefilter("error", MalformedDurationWarning)
            assert top_n_by_duration(tests, 3) == [("B", 10.0), ("C", 2.0), ("A", 0.5)]

    def test_parses_compound_units(self) -> None:
        tests = [
            TestCase("a", "A", TestStatus.PASSED, "1m 5s"),
            TestCase("b", "B", TestStatus.PASSED, "500ms"),
        ]
        assert top_n_by_duration(tests) == [("A", 65.0), ("B", 0.5)]

    def test_no_warning_for_valid_durations(self, regression_tests: tuple[TestCase, ...]) -> None:
        with warnings.catch_warnings():
            warnings.simplefilter("error", MalformedDurationWarning)
            top_n_by_duration(regression_tests)


class TestDistributionOverWindows:
    """Tests for distribution_over_windows."""

    def test_buckets_by_timestamp(self) -> None:
        records = [
            _record("r1", 0, passed=2, failed=1),
            _record("r2", 3, passed=1, failed=0),
            _record("r3", 12, passed=0, failed=2),
        ]
        windows = distribution_over_windows(records, timedelta(minutes=5))
        assert [w.label for w in windows] == ["0-5min", "5-10min", "10-15min"]
        assert [(w.passed, w.failed) for w in windows] == [(3, 1), (0, 0), (0, 2)]
        assert windows[0].start == BASE
        assert windows[0].end == BASE + timedelta(minutes=5)

    def test_input_order_irrelevant(self) -> None:
        records = [_record("r3", 70, 1, 0), _record("r1", 0, 0, 1)]
        windows = distribution_over_windows(records, timedelta(hours=1))
        assert [w.label for w in windows] == ["0-1h", "1-2h"]
        assert [(w.passed, w.failed) for w in windows] == [(0, 1), (1, 0)]

    def test_seconds_window_size(self) -> None:
        records = [_record("r1", 0, 1, 0), _record("r2", 1.5, 1, 0)]
        windows = distribution_over_windows(records, 45)
        assert [w.label for w in windows] == ["0-45s", "45-90s", "90-135s"]
        assert [w.passed for w in windows] == [1, 0, 1]

    def test_window_boundary_belongs_to_next(self) -> None:
        records = [_record("r1", 0, 1, 0), _record("r2", 5, 0, 1)]
        windows = distribution_over_windows(records, timedelta(minutes=5))
        assert [(w.passed, w.failed) for w in windows] == [(1, 0), (0, 1)]

    def test_counts_preserved(self, records: list[ExecutionRecord]) -> None:
        windows = distribution_over_windows(records, timedelta(minutes=30))
        assert sum(w.passed for w in windows) == sum(r.summary.passed for r in records)
        assert sum(w.failed for w in windows) == sum(r.summary.failed for r in records)

    def test_empty_and_invalid(self, records: list[ExecutionRecord]) -> None:
        assert distribution_over_windows([], timedelta(minutes=5)) == []
        assert distribution_over_windows(records, 0) == []
        assert distribution_over_windows(records, timedelta(minutes=-5)) == []

    @pytest.mark.parametrize("size", [float("inf"), float("-inf"), float("nan"), "wide", None])
    def test_non_finite_or_malformed_size(
        self, records: list[ExecutionRecord], size: object
    ) -> None:
        assert distribution_over_windows(records, size) == []  # type: ignore[arg-type]

    @pytest.mark.parametrize("size", [1e12, 1e15, 1e300])
    def test_huge_size_clamps_end(self, size: float) -> None:
        windows = distribution_over_windows([_record("r1", 0, 2, 1)], size)
        assert len(windows) == 1
        assert windows[0].start == BASE
        assert windows[0].end.year == datetime.max.year
        assert (windows[0].passed, windows[0].failed) == (2, 1)

    def test_tiny_size_keeps_populated_windows(self) -> None:
        """Test a span needing too many windows emits only the populated ones."""
        records = [_record("r1", 0, 1, 0), _record("r2", 60, 0, 1)]
        windows = distribution_over_windows(records, 1e-9)
        assert len(windows) == 2
        assert [(w.passed, w.failed) for w in windows] == [(1, 0), (0, 1)]
        assert windows[0].start == BASE
        assert windows[0].start < windows[1].start

    def test_contiguous_up_to_limit(self) -> None:
        records = [_record("r1", 0, 1, 0), _record("r2", MAX_TIMELINE_WINDOWS - 1, 1, 0)]
        windows = distribution_over_windows(records, 60)
        assert len(windows) == MAX_TIMELINE_WINDOWS

    def test_sparse_beyond_limit(self) -> None:
        records = [_record("r1", 0, 1, 0), _record("r2", MAX_TIMELINE_WINDOWS, 1, 0)]
        windows = distribution_over_windows(records, 60)
        last = MAX_TIMELINE_WINDOWS
        assert [w.label for w in windows] == ["0-1min", f"{last}-{last + 1}min"]

    def test_subnormal_size(self) -> None:
        records = [_record("r1", 0, 1, 0), _record("r2", 60, 0, 1)]
        assert distribution_over_windows(records, 5e-324) == []


class TestCheckRecordIntegrity:
    """Tests for check_record_integrity."""

    def test_consistent(self, records: list[ExecutionRecord]) -> None:
        for record in records:
            assert check_record_integrity(record) == []

    def test_status_mismatch(self, regression_tests: tuple[TestCase, ...]) -> None:
        record = ExecutionRecord.from_tests(
            "r", "S", regression_tests, BASE, "1s", "x", status=TestStatus.PASSED
        )
        issues = check_record_integrity(record)
        assert len(issues) == 1
        assert "stored status passed" in issues[0]

    def test_summary_mismatch(self) -> None:
        record = ExecutionRecord(
            id="r",
            suite_name="S",
            status=TestStatus.PASSED,
            timestamp=BASE,
            duration="1s",
            author="x",
            summary=Summary(total=2, passed=2),
            tests=(TestCase("a", "A", TestStatus.PASSED),),
        )
        issues = check_record_integrity(record)
        assert len(issues) == 1
        assert "stored summary" in issues[0]
