"""Execution history recording for simulated runs.

A HistoryRecorder is registered as a completion listener on the
ExecutionSimulator. For every completed run it synthesizes an
ExecutionRecord with randomized test outcomes and appends it to the
RecordStore, so finished runs show up in the results views.
"""

from __future__ import annotations

import logging
import random
import uuid
from typing import Mapping

from testdash_core.store import RecordStore
from testdash_core.types.common import TestStatus, format_duration
from testdash_core.types.execution import ExecutionCompleted
from testdash_core.types.results import ExecutionRecord, TestCase
from testdash_core.types.suite import TestSuiteDescriptor

from testdash_runner.simulator import RandomSource

logger = logging.getLogger(__name__)

DEFAULT_AUTHOR = "Simulator"
DEFAULT_FAILURE_RATE = 0.05
DEFAULT_SKIP_RATE = 0.02


def build_simulated_record(
    suite: TestSuiteDescriptor,
    event: ExecutionCompleted,
    random_source: RandomSource,
    *,
    author: str = DEFAULT_AUTHOR,
    failure_rate: float = DEFAULT_FAILURE_RATE,
    skip_rate: float = DEFAULT_SKIP_RATE,
    record_id: str | None = None,
) -> ExecutionRecord:
    """Synthesize the execution record of a completed simulated run.

    One test is generated per ``suite.test_count``. Categories cycle through
    the suite's tags (sorted), or use the suite name when it has none. The
    record's status and summary are derived from the generated tests.

    Args:
        suite: The suite that ran.
        event: Completion notification of the run.
        random_source: Source of outcome rolls and test durations.
        author: Author recorded on the execution.
        failure_rate: Probability that a test fails.
        skip_rate: Probability that a test is skipped.
        record_id: Record id; a random "sim-" id when omitted.

    Returns:
        A consistent ExecutionRecord timestamped at the completion time.
    """
    categories = sorted(suite.tags) or [suite.name]
    tests = []
    for index in range(suite.test_count):
        roll = random_source.uniform(0.0, 1.0)
        test_id = f"{suite.id}-{index + 1:03d}"
        name = f"{suite.name} #{index + 1}"
        category = categories[index % len(categories)]
        if roll < failure_rate:
            tests.append(
                TestCase(
                    id=test_id,
                    name=name,
                    status=TestStatus.FAILED,
                    duration=f"{random_source.uniform(0.1, 10.0):.1f}s",
                    category=category,
                    error="Simulated failure",
                )
            )
        elif roll < failure_rate + skip_rate:
            tests.append(
                TestCase(
                    id=test_id, name=name, status=TestStatus.SKIPPED, duration="0s", category=category
                )
            )
        else:
            tests.append(
                TestCase(
                    id=test_id,
                    name=name,
                    status=TestStatus.PASSED,
                    duration=f"{random_source.uniform(0.1, 5.0):.1f}s",
                    category=category,
                )
            )

    return ExecutionRecord.from_tests(
        record_id=record_id or f"sim-{uuid.uuid4().hex[:8]}",
        suite_name=suite.name,
        tests=tests,
        timestamp=event.finished_at,
        duration=format_duration(event.elapsed_seconds),
        author=author,
    )


class HistoryRecorder:
    """Completion listener that appends simulated runs to a record store.

    Args:
        store: Store receiving the synthesized records.
        suites: Catalog used to look up the completed suite.
        random_source: Source of outcome rolls; defaults to ``random.Random()``.
        author: Author recorded on every synthesized execution.
        failure_rate: Probability that a generated test fails.
        skip_rate: Probability that a generated test is skipped.
    """

    def __init__(
        self,
        store: RecordStore,
        suites: Mapping[str, TestSuiteDescriptor],
        *,
        random_source: RandomSource | None = None,
        author: str = DEFAULT_AUTHOR,
        failure_rate: float = DEFAULT_FAILURE_RATE,
        skip_rate: float = DEFAULT_SKIP_RATE,
    ) -> None:
        if not 0.0 <= failure_rate <= 1.0 or not 0.0 <= skip_rate <= 1.0:
            raise ValueError("failure_rate and skip_rate must be within [0, 1]")
        self._store = store
        self._suites = dict(suites)
        self._random = random_source if random_source is not None else random.Random()
        self._author = author
        self._failure_rate = failure_rate
        self._skip_rate = skip_rate
        self._recorded: list[ExecutionRecord] = []

    @property
    def recorded(self) -> list[ExecutionRecord]:
        """Return the records appended by this recorder, oldest first."""
        return list(self._recorded)

    def __call__(self, event: ExecutionCompleted) -> ExecutionRecord | None:
        suite = self._suites.get(event.suite_id)
        if suite is None:
            logger.warning("Completed run for uncatalogued suite %s not recorded", event.suite_id)
            return None

        record = build_simulated_record(
            suite,
            event,
            self._random,
            author=self._author,
            failure_rate=self._failure_rate,
            skip_rate=self._skip_rate,
        )
        self._store.append(record)
        self._recorded.append(record)
        logger.info(
            "Recorded %s for %s: %s (%d/%d passed)",
            record.id,
            suite.name,
            record.status.value,
            record.summary.passed,
            record.summary.total,
        )
        return record
