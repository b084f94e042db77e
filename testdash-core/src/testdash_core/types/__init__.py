"""Core data types for testdash.

Submodules:
    common: Enumerations (TestStatus, Priority) and duration text helpers
    results: Execution history types (TestCase, Summary, ExecutionRecord)
    suite: Catalog types (TestSuiteDescriptor)
    execution: Ephemeral run types (ExecutionState, ExecutionCompleted)

All types are exported from this package for convenience.
"""

from testdash_core.types.common import Priority, TestStatus, duration_seconds, format_duration
from testdash_core.types.execution import (
    PROGRESS_MAX,
    PROGRESS_MIN,
    ExecutionCompleted,
    ExecutionState,
)
from testdash_core.types.results import (
    ExecutionRecord,
    Summary,
    TestCase,
    derive_status,
    parse_timestamp,
    recompute_summary,
)
from testdash_core.types.suite import TestSuiteDescriptor

__all__ = [
    # Common
    "Priority",
    "TestStatus",
    "duration_seconds",
    "format_duration",
    # Results
    "ExecutionRecord",
    "Summary",
    "TestCase",
    "derive_status",
    "parse_timestamp",
    "recompute_summary",
    # Catalog
    "TestSuiteDescriptor",
    # Execution
    "PROGRESS_MAX",
    "PROGRESS_MIN",
    "ExecutionCompleted",
    "ExecutionState",
]
