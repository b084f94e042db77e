"""Exception and warning types for testdash-core.

This module defines the exception hierarchy used throughout the testdash
dashboard. All testdash exceptions inherit from TestdashError, allowing
consumers to catch all framework-specific errors with a single except clause.

Exception hierarchy:
    TestdashError (base)
    +-- StateError: Execution state machine violations
    |   +-- AlreadyRunningError: Suite started while already running
    +-- UnknownSuiteError: Suite id missing from the catalog
    +-- UnknownRecordError: Execution record id missing from the store
    +-- DuplicateRecordError: Execution record id already in the store

Warnings (non-fatal, emitted with ``warnings.warn``):
    MalformedDurationWarning: Duration text could not be parsed
    DataIntegrityWarning: Stored record fields disagree with its tests
"""


class TestdashError(Exception):
    """Base exception for all testdash errors.

    This is the root of the testdash exception hierarchy. Catch this to handle
    any framework-specific error.
    """

    __test__ = False


class StateError(TestdashError):
    """Raised for invalid execution state transitions."""


class AlreadyRunningError(StateError):
    """Raised when starting a suite that is already running.

    This is recoverable: callers usually ignore the request or queue it
    until the current run finishes.
    """

    def __init__(self, suite_id: str) -> None:
        super().__init__(f"Suite is already running: {suite_id}")
        self.suite_id = suite_id


class UnknownSuiteError(TestdashError):
    """Raised when a command references a suite id that is not catalogued."""

    def __init__(self, suite_id: str) -> None:
        super().__init__(f"Unknown suite: {suite_id}")
        self.suite_id = suite_id


class UnknownRecordError(TestdashError):
    """Raised when an execution record id is not in the record store."""

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Unknown execution record: {record_id}")
        self.record_id = record_id


class DuplicateRecordError(TestdashError):
    """Raised when appending a record whose id is already stored.

    The record store is append-only; an existing record is never replaced.
    """

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Execution record already exists: {record_id}")
        self.record_id = record_id


class MalformedDurationWarning(UserWarning):
    """Emitted when a duration string cannot be parsed.

    Aggregations fall back to the 0-seconds sentinel and continue.
    """


class DataIntegrityWarning(UserWarning):
    """Emitted when a record's stored status or summary disagrees with its tests.

    The stored fields stay authoritative.
    """
