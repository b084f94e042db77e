"""In-memory record store for execution history.

The store is append-only: records are added once and never replaced or
mutated. Readers always work on an immutable tuple snapshot, so a record
appended while a view is being computed never changes that view.
"""

from __future__ import annotations

import logging
import warnings
from typing import Iterable, Iterator

from testdash_core.aggregation import check_record_integrity
from testdash_core.errors import DataIntegrityWarning, DuplicateRecordError, UnknownRecordError
from testdash_core.types.results import ExecutionRecord

logger = logging.getLogger(__name__)


class RecordStore:
    """Append-only catalog of execution records.

    Args:
        records: Initial (seed) records, in insertion order.
        check_integrity: Emit a DataIntegrityWarning for records whose stored
            status or summary disagrees with their tests.

    Example:
        store = RecordStore(config.records)
        store.append(record)
        failed = filter_records(store.records, {"status": "failed"})
    """

    def __init__(
        self,
        records: Iterable[ExecutionRecord] = (),
        *,
        check_integrity: bool = True,
    ) -> None:
        self._records: tuple[ExecutionRecord, ...] = ()
        self._index: dict[str, ExecutionRecord] = {}
        self._check_integrity = check_integrity
        for record in records:
            self.append(record)

    @property
    def records(self) -> tuple[ExecutionRecord, ...]:
        """Return a snapshot of all records in insertion order."""
        return self._records

    def newest_first(self) -> list[ExecutionRecord]:
        """Return the records ordered by timestamp, newest first.

        Records with equal timestamps keep insertion order.
        """
        return sorted(self._records, key=lambda r: r.timestamp, reverse=True)

    def append(self, record: ExecutionRecord) -> None:
        """Add a record to the history.

        Args:
            record: The record to add.

        Raises:
            DuplicateRecordError: If a record with the same id exists.
        """
        if record.id in self._index:
            raise DuplicateRecordError(record.id)

        if self._check_integrity:
            for issue in check_record_integrity(record):
                warnings.warn(issue, DataIntegrityWarning, stacklevel=2)

        self._index[record.id] = record
        self._records = self._records + (record,)
        logger.debug("Stored execution record %s (%s)", record.id, record.status.value)

    def get(self, record_id: str) -> ExecutionRecord:
        """Return a record by id.

        Args:
            record_id: The record identifier.

        Returns:
            The matching record.

        Raises:
            UnknownRecordError: If no record has that id.
        """
        record = self._index.get(record_id)
        if record is None:
            raise UnknownRecordError(record_id)
        return record

    def find(self, record_id: str) -> ExecutionRecord | None:
        """Return a record by id, or None if absent."""
        return self._index.get(record_id)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._index

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ExecutionRecord]:
        return iter(self._records)
