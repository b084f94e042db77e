"""Pydantic models for the testdash View Layer boundary.

These models serialize core outputs (catalog entries, execution history,
derived views and progress snapshots) into JSON-ready structures for
whatever renders them. The CLI prints them with ``--json``.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from testdash_core.aggregation import StatusSlice, TimeWindow
from testdash_core.types.execution import ExecutionCompleted, ExecutionState
from testdash_core.types.results import ExecutionRecord, TestCase
from testdash_core.types.suite import TestSuiteDescriptor
from testdash_core.views import ResultsView


class SuiteModel(BaseModel):
    """A catalogued suite.

    Attributes:
        id: Unique suite identifier.
        name: Human-readable display name.
        description: What the suite covers.
        test_count: Number of tests.
        estimated_duration: Expected run time text.
        priority: high, medium or low.
        tags: Sorted labels.
        running: True if a simulated run is in flight.
        progress: Current progress when running.
    """

    id: str
    name: str
    description: str = ""
    test_count: int = 0
    estimated_duration: str = ""
    priority: str
    tags: list[str] = Field(default_factory=list)
    running: bool = False
    progress: float | None = None

    @classmethod
    def from_suite(
        cls, suite: TestSuiteDescriptor, state: ExecutionState | None = None
    ) -> SuiteModel:
        """Build from a descriptor and its optional live state."""
        return cls(
            id=suite.id,
            name=suite.name,
            description=suite.description,
            test_count=suite.test_count,
            estimated_duration=suite.estimated_duration,
            priority=suite.priority.value,
            tags=sorted(suite.tags),
            running=state is not None and state.running,
            progress=state.progress if state is not None else None,
        )


class OutcomeModel(BaseModel):
    """A single test outcome."""

    id: str
    name: str
    status: str
    duration: str
    category: str = ""
    error: str | None = None
    stack_trace: str | None = None

    @classmethod
    def from_test(cls, test: TestCase) -> OutcomeModel:
        """Build from a core TestCase."""
        return cls(**test.to_dict())


class SummaryModel(BaseModel):
    """Status counts of an execution."""

    total: int
    passed: int
    failed: int
    skipped: int


class RecordModel(BaseModel):
    """An execution record row of the history list.

    Attributes:
        id: Record identifier.
        suite_name: Executed suite.
        status: Overall status.
        timestamp: UTC instant.
        duration: Elapsed time text.
        author: Who ran it.
        summary: Status counts.
        tests: Test outcomes; omitted from history rows.
    """

    id: str
    suite_name: str
    status: str
    timestamp: datetime
    duration: str
    author: str
    summary: SummaryModel
    tests: list[OutcomeModel] | None = None

    @classmethod
    def from_record(cls, record: ExecutionRecord, include_tests: bool = False) -> RecordModel:
        """Build from a core ExecutionRecord."""
        return cls(
            id=record.id,
            suite_name=record.suite_name,
            status=record.status.value,
            timestamp=record.timestamp,
            duration=record.duration,
            author=record.author,
            summary=SummaryModel(**record.summary.to_dict()),
            tests=[OutcomeModel.from_test(t) for t in record.tests] if include_tests else None,
        )


class StatusSliceModel(BaseModel):
    """One slice of the status distribution."""

    status: str
    count: int
    percent: float

    @classmethod
    def from_slice(cls, item: StatusSlice) -> StatusSliceModel:
        """Build from a core StatusSlice."""
        return cls(status=item.status.value, count=item.count, percent=round(item.percent, 1))


class DurationEntryModel(BaseModel):
    """One entry of the duration ranking."""

    name: str
    seconds: float


class TimeWindowModel(BaseModel):
    """Pass/fail counts of one timeline window."""

    label: str
    start: datetime
    end: datetime
    passed: int
    failed: int

    @classmethod
    def from_window(cls, window: TimeWindow) -> TimeWindowModel:
        """Build from a core TimeWindow."""
        return cls(
            label=window.label,
            start=window.start,
            end=window.end,
            passed=window.passed,
            failed=window.failed,
        )


class ResultsViewModel(BaseModel):
    """The complete results screen.

    Attributes:
        history: Filtered history rows, newest first.
        authors: Author filter options.
        selected: The record shown in detail.
        status: Status distribution of the selected record.
        categories: Test count per category of the selected record.
        slowest: Duration ranking of the selected record.
        timeline: Pass/fail counts over time across the history.
        category_options: Drill-down category filter options.
        tests: Drill-down test list.
        expanded_test_id: The expanded test, if any.
    """

    history: list[RecordModel]
    authors: list[str]
    selected: RecordModel | None = None
    status: list[StatusSliceModel] = Field(default_factory=list)
    categories: dict[str, int] = Field(default_factory=dict)
    slowest: list[DurationEntryModel] = Field(default_factory=list)
    timeline: list[TimeWindowModel] = Field(default_factory=list)
    category_options: list[str] = Field(default_factory=list)
    tests: list[OutcomeModel] = Field(default_factory=list)
    expanded_test_id: str | None = None

    @classmethod
    def from_view(cls, view: ResultsView) -> ResultsViewModel:
        """Build from a core ResultsView."""
        return cls(
            history=[RecordModel.from_record(r) for r in view.history],
            authors=view.authors,
            selected=RecordModel.from_record(view.selected) if view.selected else None,
            status=[StatusSliceModel.from_slice(s) for s in view.status],
            categories=view.categories,
            slowest=[DurationEntryModel(name=n, seconds=s) for n, s in view.slowest],
            timeline=[TimeWindowModel.from_window(w) for w in view.timeline],
            category_options=view.category_options,
            tests=[OutcomeModel.from_test(t) for t in view.tests],
            expanded_test_id=view.expanded.id if view.expanded else None,
        )


class ExecutionStateModel(BaseModel):
    """Progress snapshot of a running suite."""

    suite_id: str
    progress: float
    percent: int
    running: bool

    @classmethod
    def from_state(cls, state: ExecutionState) -> ExecutionStateModel:
        """Build from a core ExecutionState."""
        return cls(
            suite_id=state.suite_id,
            progress=state.progress,
            percent=state.percent,
            running=state.running,
        )


class CompletionModel(BaseModel):
    """Completion notification of a simulated run.

    Attributes:
        suite_id: The suite that finished.
        started_at: Run start (UTC).
        finished_at: Run end (UTC).
        ticks: Number of progress ticks.
        record_id: History record appended for the run, if any.
    """

    suite_id: str
    started_at: datetime
    finished_at: datetime
    ticks: int
    record_id: str | None = None

    @classmethod
    def from_event(
        cls, event: ExecutionCompleted, record: ExecutionRecord | None = None
    ) -> CompletionModel:
        """Build from a completion notification and its recorded history entry."""
        return cls(
            suite_id=event.suite_id,
            started_at=event.started_at,
            finished_at=event.finished_at,
            ticks=event.ticks,
            record_id=record.id if record else None,
        )
