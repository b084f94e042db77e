"""Simulated suite execution for testdash-runner.

The simulator runs one background asyncio task per started suite. Each task
advances its suite's progress on a fixed tick by a random increment until
it reaches 100%, then drops the suite's live state and notifies completion
listeners exactly once. Suites run concurrently and independently. Nothing
is executed for real.

State machine per suite:

    Idle --start()--> Running --progress reaches 100--> Idle (+ completion)
                      Running --stop()-----------------> Idle (no completion)
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, Iterable, Protocol

from testdash_core.errors import AlreadyRunningError, UnknownSuiteError
from testdash_core.types.execution import (
    PROGRESS_MAX,
    PROGRESS_MIN,
    ExecutionCompleted,
    ExecutionState,
)
from testdash_core.types.suite import TestSuiteDescriptor

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL = 0.5
DEFAULT_MAX_INCREMENT = 15.0


class RandomSource(Protocol):
    """Source of progress increments. ``random.Random`` satisfies it."""

    def uniform(self, a: float, b: float) -> float:
        """Return a random number between a and b."""
        ...


ProgressListener = Callable[[ExecutionState], None]
CompletionListener = Callable[[ExecutionCompleted], None]
SleepFunction = Callable[[float], Awaitable[None]]
Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _Run:
    """Mutable bookkeeping for one in-flight run. Owned by its tick task."""

    suite_id: str
    started_at: datetime
    progress: float = PROGRESS_MIN
    ticks: int = 0
    task: asyncio.Task[None] | None = None

    def state(self) -> ExecutionState:
        return ExecutionState(
            suite_id=self.suite_id,
            progress=self.progress,
            running=self.progress < PROGRESS_MAX,
        )


class ExecutionSimulator:
    """Runs simulated suite executions with progress feedback.

    Args:
        suites: Catalog of suites that may be started.
        tick_interval: Seconds between progress ticks.
        max_increment: Upper bound of the per-tick progress increment.
        random_source: Increment source; defaults to a new ``random.Random``.
        sleep: Awaitable used to wait between ticks.
        clock: Returns the current UTC time for completion notifications.

    Example:
        simulator = ExecutionSimulator(config.suites)
        simulator.add_completion_listener(recorder)
        await simulator.start("smoke")
        await simulator.wait("smoke")
    """

    def __init__(
        self,
        suites: Iterable[TestSuiteDescriptor],
        *,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        max_increment: float = DEFAULT_MAX_INCREMENT,
        random_source: RandomSource | None = None,
        sleep: SleepFunction = asyncio.sleep,
        clock: Clock = _utcnow,
    ) -> None:
        if tick_interval < 0:
            raise ValueError("tick_interval must be non-negative")
        if max_increment <= 0:
            raise ValueError("max_increment must be positive")

        self._suites = {suite.id: suite for suite in suites}
        self._tick_interval = tick_interval
        self._max_increment = max_increment
        self._random = random_source if random_source is not None else random.Random()
        self._sleep = sleep
        self._clock = clock

        self._runs: dict[str, _Run] = {}
        self._lock = asyncio.Lock()
        self._progress_listeners: list[ProgressListener] = []
        self._completion_listeners: list[CompletionListener] = []

    @property
    def suites(self) -> list[TestSuiteDescriptor]:
        """Return the catalogued suites in catalog order."""
        return list(self._suites.values())

    def get_suite(self, suite_id: str) -> TestSuiteDescriptor:
        """Return a catalogued suite.

        Raises:
            UnknownSuiteError: If the suite id is not catalogued.
        """
        suite = self._suites.get(suite_id)
        if suite is None:
            raise UnknownSuiteError(suite_id)
        return suite

    def add_progress_listener(self, listener: ProgressListener) -> None:
        """Register a callback for every progress update, including the final 100%."""
        self._progress_listeners.append(listener)

    def add_completion_listener(self, listener: CompletionListener) -> None:
        """Register a callback invoked once per run that reaches 100%."""
        self._completion_listeners.append(listener)

    def is_running(self, suite_id: str) -> bool:
        """Return True if the suite has a run in flight."""
        return suite_id in self._runs

    def get_state(self, suite_id: str) -> ExecutionState | None:
        """Return the suite's progress snapshot, or None if it is idle."""
        run = self._runs.get(suite_id)
        return run.state() if run is not None else None

    def snapshot(self) -> dict[str, ExecutionState]:
        """Return progress snapshots of every running suite."""
        return {suite_id: run.state() for suite_id, run in self._runs.items()}

    async def start(self, suite_id: str) -> ExecutionState:
        """Start a simulated run in a background task.

        Args:
            suite_id: Catalogued suite to run.

        Returns:
            The initial 0% state.

        Raises:
            UnknownSuiteError: If the suite id is not catalogued.
            AlreadyRunningError: If the suite is already running.
        """
        async with self._lock:
            suite = self.get_suite(suite_id)
            if suite_id in self._runs:
                raise AlreadyRunningError(suite_id)

            run = _Run(suite_id=suite_id, started_at=self._clock())
            self._runs[suite_id] = run
            run.task = asyncio.create_task(self._tick_loop(run), name=f"testdash-run-{suite_id}")

        logger.info("Started %s (%d tests)", suite.name, suite.test_count)
        state = run.state()
        self._notify_progress(state)
        return state

    async def stop(self, suite_id: str) -> bool:
        """Cancel a run without emitting a completion notification.

        Args:
            suite_id: Catalogued suite to stop.

        Returns:
            True if a run was stopped, False if the suite was idle.

        Raises:
            UnknownSuiteError: If the suite id is not catalogued.
        """
        async with self._lock:
            self.get_suite(suite_id)
            run = self._runs.pop(suite_id, None)

        if run is None:
            return False
        if run.task is not None:
            run.task.cancel()
            await asyncio.wait([run.task])
        logger.info("Stopped %s at %.1f%%", suite_id, run.progress)
        return True

    async def wait(self, suite_id: str) -> None:
        """Wait for the suite's current run to finish or be stopped."""
        run = self._runs.get(suite_id)
        if run is not None and run.task is not None:
            await asyncio.wait([run.task])

    async def wait_all(self) -> None:
        """Wait for every current run to finish or be stopped."""
        tasks = [run.task for run in self._runs.values() if run.task is not None]
        if tasks:
            await asyncio.wait(tasks)

    async def shutdown(self) -> None:
        """Stop every running suite."""
        for suite_id in list(self._runs):
            await self.stop(suite_id)

    async def _tick_loop(self, run: _Run) -> None:
        """Advance one run until it completes (runs in background task).

        A tick that raises ends the run without a completion notification
        and returns the suite to idle.
        """
        try:
            while True:
                await self._sleep(self._tick_interval)
                if self._runs.get(run.suite_id) is not run:
                    return
                if self._advance(run):
                    return
        except Exception:
            logger.exception("Tick process failed for %s at %.1f%%", run.suite_id, run.progress)
        finally:
            if self._runs.get(run.suite_id) is run:
                del self._runs[run.suite_id]

    def _advance(self, run: _Run) -> bool:
        """Apply one tick. Returns True when the run completed on this tick."""
        increment = max(0.0, self._random.uniform(0.0, self._max_increment))
        run.progress = min(PROGRESS_MAX, run.progress + increment)
        run.ticks += 1
        assert PROGRESS_MIN <= run.progress <= PROGRESS_MAX, "progress left [0, 100]"
        logger.debug("Tick %d for %s: %.1f%%", run.ticks, run.suite_id, run.progress)

        if run.progress < PROGRESS_MAX:
            self._notify_progress(run.state())
            return False

        del self._runs[run.suite_id]
        self._notify_progress(run.state())
        event = ExecutionCompleted(
            suite_id=run.suite_id,
            started_at=run.started_at,
            finished_at=self._clock(),
            ticks=run.ticks,
        )
        logger.info("Completed %s after %d ticks", run.suite_id, run.ticks)
        self._notify_completion(event)
        return True

    def _notify_progress(self, state: ExecutionState) -> None:
        for listener in list(self._progress_listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Progress listener failed for %s", state.suite_id)

    def _notify_completion(self, event: ExecutionCompleted) -> None:
        for listener in list(self._completion_listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Completion listener failed for %s", event.suite_id)
