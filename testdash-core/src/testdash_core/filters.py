"""Filter engine for execution records and test cases.

Filters are pure functions: given a sequence and a query they return the
matching elements in their original relative order. They never raise for
a malformed query. A field of the wrong type is treated as "no
constraint".

Query semantics:
    text: Case-insensitive substring match. Records match on suite name or
        author, tests match on name or category. Empty or absent matches all.
    status, category, author: Exact equality. The value "all" or an absent
        value matches all.

All supplied predicates are ANDed; an empty query is the identity.

Example:
    >>> failed = filter_records(records, {"status": "failed"})
    >>> auth = filter_tests(record.tests, TestQuery(text="auth"))
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from testdash_core.types.results import ExecutionRecord, TestCase

ALL = "all"


def _text_field(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def _choice_field(value: Any) -> str | None:
    if isinstance(value, str) and value and value != ALL:
        return value
    return None


@dataclass(frozen=True)
class RecordQuery:
    """Predicates applied to execution records.

    Attributes:
        text: Substring searched in suite name and author.
        status: Required record status.
        category: Category that at least one test of the record must carry.
        author: Required author.
    """

    text: str | None = None
    status: str | None = None
    category: str | None = None
    author: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> RecordQuery:
        """Build a query from a loosely typed mapping.

        Unknown keys are ignored and malformed values become no constraint.
        """
        if not isinstance(data, Mapping):
            return cls()
        return cls(
            text=_text_field(data.get("text")),
            status=_choice_field(data.get("status")),
            category=_choice_field(data.get("category")),
            author=_choice_field(data.get("author")),
        )

    @property
    def is_empty(self) -> bool:
        """Return True if the query constrains nothing."""
        return not any(
            (
                _text_field(self.text),
                _choice_field(self.status),
                _choice_field(self.category),
                _choice_field(self.author),
            )
        )


@dataclass(frozen=True)
class TestQuery:
    """Predicates applied to test cases within one record.

    Attributes:
        text: Substring searched in test name and category.
        status: Required test status.
        category: Required category.
    """

    __test__ = False

    text: str | None = None
    status: str | None = None
    category: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> TestQuery:
        """Build a query from a loosely typed mapping."""
        if not isinstance(data, Mapping):
            return cls()
        return cls(
            text=_text_field(data.get("text")),
            status=_choice_field(data.get("status")),
            category=_choice_field(data.get("category")),
        )

    @property
    def is_empty(self) -> bool:
        """Return True if the query constrains nothing."""
        return not any(
            (
                _text_field(self.text),
                _choice_field(self.status),
                _choice_field(self.category),
            )
        )


def _as_record_query(query: RecordQuery | Mapping[str, Any] | None) -> RecordQuery:
    if isinstance(query, RecordQuery):
        return query
    return RecordQuery.from_mapping(query)


def _as_test_query(query: TestQuery | Mapping[str, Any] | None) -> TestQuery:
    if isinstance(query, TestQuery):
        return query
    return TestQuery.from_mapping(query)


def _contains(haystacks: Iterable[str | None], needle: str) -> bool:
    lowered = needle.lower()
    return any(lowered in (h or "").lower() for h in haystacks)


def record_matches(record: ExecutionRecord, query: RecordQuery) -> bool:
    """Return True if a record satisfies every predicate of the query."""
    text = _text_field(query.text)
    if text is not None and not _contains((record.suite_name, record.author), text):
        return False
    status = _choice_field(query.status)
    if status is not None and record.status != status:
        return False
    author = _choice_field(query.author)
    if author is not None and record.author != author:
        return False
    category = _choice_field(query.category)
    if category is not None and not any(t.category == category for t in record.tests):
        return False
    return True


def case_matches(test: TestCase, query: TestQuery) -> bool:
    """Return True if a test satisfies every predicate of the query."""
    text = _text_field(query.text)
    if text is not None and not _contains((test.name, test.category), text):
        return False
    status = _choice_field(query.status)
    if status is not None and test.status != status:
        return False
    category = _choice_field(query.category)
    if category is not None and test.category != category:
        return False
    return True


def filter_records(
    records: Sequence[ExecutionRecord],
    query: RecordQuery | Mapping[str, Any] | None = None,
) -> list[ExecutionRecord]:
    """Return the records matching a query, in input order.

    Args:
        records: Records to filter.
        query: Query object, mapping with the same keys, or None.

    Returns:
        New list with the matching records.
    """
    q = _as_record_query(query)
    if q.is_empty:
        return list(records)
    return [record for record in records if record_matches(record, q)]


def filter_tests(
    tests: Sequence[TestCase],
    query: TestQuery | Mapping[str, Any] | None = None,
) -> list[TestCase]:
    """Return the tests matching a query, in input order.

    Args:
        tests: Tests to filter.
        query: Query object, mapping with the same keys, or None.

    Returns:
        New list with the matching tests.
    """
    q = _as_test_query(query)
    if q.is_empty:
        return list(tests)
    return [test for test in tests if case_matches(test, q)]


def distinct_authors(records: Iterable[ExecutionRecord]) -> list[str]:
    """Return each author once, in first-seen order."""
    return list(dict.fromkeys(record.author for record in records))


def distinct_categories(tests: Iterable[TestCase]) -> list[str]:
    """Return each test category once, in first-seen order."""
    return list(dict.fromkeys(test.category for test in tests))
