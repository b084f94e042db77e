"""Derived views for the results screen.

The View Layer owns its UI state (search term, filter selections, selected
record, expanded row) as an immutable ResultsViewState and passes it to
build_results_view, which returns everything the results screen renders.
Nothing here holds state between calls.

Example:
    >>> state = ResultsViewState(author="Alice Johnson")
    >>> view = build_results_view(store.records, state)
    >>> state = state.toggle_expanded(view.tests[0].id)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import timedelta
from typing import Sequence

from testdash_core.aggregation import (
    DEFAULT_TOP_N,
    StatusSlice,
    TimeWindow,
    distribution_over_windows,
    group_by_category,
    status_distribution,
    top_n_by_duration,
)
from testdash_core.filters import (
    ALL,
    RecordQuery,
    TestQuery,
    distinct_authors,
    distinct_categories,
    filter_records,
    filter_tests,
)
from testdash_core.types.results import ExecutionRecord, TestCase

DEFAULT_TIMELINE_WINDOW = timedelta(hours=1)


@dataclass(frozen=True)
class ResultsViewState:
    """UI state of the results screen.

    Attributes:
        author: History filter by author ("all" for everyone).
        record_text: History search text.
        record_status: History filter by record status.
        selected_record_id: Record shown in detail; None selects the first
            record of the filtered history.
        search_text: Drill-down search text (test name or category).
        test_status: Drill-down filter by test status.
        test_category: Drill-down filter by category.
        expanded_test_id: Test whose error details are expanded.
        top_n: Number of entries in the duration ranking.
    """

    author: str = ALL
    record_text: str = ""
    record_status: str = ALL
    selected_record_id: str | None = None
    search_text: str = ""
    test_status: str = ALL
    test_category: str = ALL
    expanded_test_id: str | None = None
    top_n: int = DEFAULT_TOP_N

    def select(self, record_id: str | None) -> ResultsViewState:
        """Select a record; collapses any expanded test."""
        return replace(self, selected_record_id=record_id, expanded_test_id=None)

    def toggle_expanded(self, test_id: str) -> ResultsViewState:
        """Expand a test, or collapse it if it is already expanded."""
        expanded = None if self.expanded_test_id == test_id else test_id
        return replace(self, expanded_test_id=expanded)

    @property
    def record_query(self) -> RecordQuery:
        """Return the history filter as a query."""
        return RecordQuery.from_mapping(
            {"text": self.record_text, "status": self.record_status, "author": self.author}
        )

    @property
    def test_query(self) -> TestQuery:
        """Return the drill-down filter as a query."""
        return TestQuery.from_mapping(
            {"text": self.search_text, "status": self.test_status, "category": self.test_category}
        )


@dataclass(frozen=True)
class ResultsView:
    """Everything the results screen renders for one state.

    Attributes:
        history: Records matching the history filters, newest first.
        authors: Options for the author filter.
        selected: The record shown in detail, if any.
        status: Status distribution of the selected record.
        categories: Test count per category of the selected record.
        slowest: Duration ranking of the selected record.
        timeline: Pass/fail counts over time across the history.
        category_options: Options for the drill-down category filter.
        tests: Selected record's tests matching the drill-down filters.
        expanded: The expanded test, if it is among ``tests``.
    """

    history: list[ExecutionRecord]
    authors: list[str]
    selected: ExecutionRecord | None = None
    status: list[StatusSlice] = field(default_factory=list)
    categories: dict[str, int] = field(default_factory=dict)
    slowest: list[tuple[str, float]] = field(default_factory=list)
    timeline: list[TimeWindow] = field(default_factory=list)
    category_options: list[str] = field(default_factory=list)
    tests: list[TestCase] = field(default_factory=list)
    expanded: TestCase | None = None


def _select(
    records: Sequence[ExecutionRecord],
    history: Sequence[ExecutionRecord],
    record_id: str | None,
) -> ExecutionRecord | None:
    if record_id is not None:
        for record in records:
            if record.id == record_id:
                return record
    return history[0] if history else None


def build_results_view(
    records: Sequence[ExecutionRecord],
    state: ResultsViewState | None = None,
    *,
    timeline_window: timedelta = DEFAULT_TIMELINE_WINDOW,
) -> ResultsView:
    """Compute the results screen from the record history and UI state.

    Args:
        records: Record history snapshot.
        state: UI state; defaults to an unfiltered view.
        timeline_window: Window size of the timeline chart.

    Returns:
        The rendered view data.
    """
    state = state or ResultsViewState()
    history = sorted(
        filter_records(records, state.record_query),
        key=lambda r: r.timestamp,
        reverse=True,
    )
    selected = _select(records, history, state.selected_record_id)
    view = ResultsView(
        history=history,
        authors=distinct_authors(records),
        selected=selected,
        timeline=distribution_over_windows(history, timeline_window),
    )
    if selected is None:
        return view

    tests = filter_tests(selected.tests, state.test_query)
    expanded = next((t for t in tests if t.id == state.expanded_test_id), None)
    return replace(
        view,
        status=status_distribution(selected),
        categories=group_by_category(selected.tests),
        slowest=top_n_by_duration(selected.tests, state.top_n),
        category_options=distinct_categories(selected.tests),
        tests=tests,
        expanded=expanded,
    )
