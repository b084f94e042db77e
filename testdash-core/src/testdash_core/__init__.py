"""Core library for the testdash test-execution dashboard.

This package provides the execution result data model and the pure engines
that derive dashboard views from it. It has no external dependencies
(stdlib-only) and serves as the base layer for testdash-runner.

Key components:
    - Types: TestCase, ExecutionRecord, Summary, TestSuiteDescriptor,
      ExecutionState and the TestStatus/Priority enumerations.
    - Store: Append-only in-memory RecordStore.
    - Filters: filter_records / filter_tests with RecordQuery / TestQuery.
    - Aggregation: status, category, duration and time-window statistics.
    - Views: ResultsViewState and build_results_view for the results screen.
    - Errors: Exception and warning hierarchy.

Example:
    >>> from testdash_core import RecordStore, filter_records, top_n_by_duration
    >>> store = RecordStore(records)
    >>> failed = filter_records(store.records, {"status": "failed"})
    >>> slowest = top_n_by_duration(failed[0].tests, 5)
"""

from testdash_core.aggregation import (
    DEFAULT_TOP_N,
    OTHER_CATEGORY,
    StatusSlice,
    TimeWindow,
    check_record_integrity,
    distribution_over_windows,
    group_by_category,
    status_distribution,
    summarize_status,
    top_n_by_duration,
)
from testdash_core.errors import (
    AlreadyRunningError,
    DataIntegrityWarning,
    DuplicateRecordError,
    MalformedDurationWarning,
    StateError,
    TestdashError,
    UnknownRecordError,
    UnknownSuiteError,
)
from testdash_core.filters import (
    RecordQuery,
    TestQuery,
    distinct_authors,
    distinct_categories,
    filter_records,
    filter_tests,
)
from testdash_core.store import RecordStore
from testdash_core.types import (
    ExecutionCompleted,
    ExecutionRecord,
    ExecutionState,
    Priority,
    Summary,
    TestCase,
    TestStatus,
    TestSuiteDescriptor,
    derive_status,
    duration_seconds,
    format_duration,
    recompute_summary,
)
from testdash_core.views import ResultsView, ResultsViewState, build_results_view

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Types
    "ExecutionCompleted",
    "ExecutionRecord",
    "ExecutionState",
    "Priority",
    "Summary",
    "TestCase",
    "TestStatus",
    "TestSuiteDescriptor",
    "derive_status",
    "duration_seconds",
    "format_duration",
    "recompute_summary",
    # Store
    "RecordStore",
    # Filters
    "RecordQuery",
    "TestQuery",
    "distinct_authors",
    "distinct_categories",
    "filter_records",
    "filter_tests",
    # Aggregation
    "DEFAULT_TOP_N",
    "OTHER_CATEGORY",
    "StatusSlice",
    "TimeWindow",
    "check_record_integrity",
    "distribution_over_windows",
    "group_by_category",
    "status_distribution",
    "summarize_status",
    "top_n_by_duration",
    # Views
    "ResultsView",
    "ResultsViewState",
    "build_results_view",
    # Errors
    "AlreadyRunningError",
    "DataIntegrityWarning",
    "DuplicateRecordError",
    "MalformedDurationWarning",
    "StateError",
    "TestdashError",
    "UnknownRecordError",
    "UnknownSuiteError",
]
