"""Tests for the execution simulator."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable
from unittest.mock import AsyncMock, MagicMock

import pytest

from testdash_core.errors import AlreadyRunningError, UnknownSuiteError
from testdash_core.types import ExecutionCompleted, ExecutionState, Priority, TestSuiteDescriptor
from testdash_runner.simulator import ExecutionSimulator

T0 = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


class SequenceRandom:
    """Random source returning preset values; the last value repeats."""

    def __init__(self, values: Iterable[float]) -> None:
        self._values = list(values)
        self._index = 0

    def uniform(self, a: float, b: float) -> float:
        value = self._values[min(self._index, len(self._values) - 1)]
        self._index += 1
        return value


class TickGate:
    """Sleep replacement that blocks each tick until released."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[None] = asyncio.Queue()

    async def sleep(self, _interval: float) -> None:
        await self._queue.get()

    async def release(self, ticks: int = 1) -> None:
        for _ in range(ticks):
            self._queue.put_nowait(None)
        await settle()


async def settle() -> None:
    """Let background tick tasks run until they block again."""
    for _ in range(10):
        await asyncio.sleep(0)


def make_clock(step: timedelta = timedelta(seconds=2)):
    now = [T0]

    def clock() -> datetime:
        current = now[0]
        now[0] = current + step
        return current

    return clock


@pytest.fixture
def suites() -> list[TestSuiteDescriptor]:
    """Two catalogued suites."""
    return [
        TestSuiteDescriptor(id="smoke", name="Smoke Tests", test_count=32, priority=Priority.HIGH),
        TestSuiteDescriptor(id="hotfix", name="Hotfix Tests", test_count=18),
    ]


class Recorder:
    """Collects progress and completion notifications."""

    def __init__(self, simulator: ExecutionSimulator) -> None:
        self.states: list[ExecutionState] = []
        self.completions: list[ExecutionCompleted] = []
        simulator.add_progress_listener(self.states.append)
        simulator.add_completion_listener(self.completions.append)

    def progress(self, suite_id: str) -> list[float]:
        return [s.progress for s in self.states if s.suite_id == suite_id]


class TestExecutionSimulator:
    """Tests for ExecutionSimulator."""

    @pytest.mark.asyncio
    async def test_exact_trajectory(self, suites: list[TestSuiteDescriptor]) -> None:
        """Test progress follows the random source and is clamped at 100."""
        simulator = ExecutionSimulator(
            suites,
            tick_interval=0,
            random_source=SequenceRandom([10.0, 30.0, 45.0, 20.0]),
            clock=make_clock(),
        )
        recorder = Recorder(simulator)

        initial = await simulator.start("smoke")
        assert initial == ExecutionState("smoke", 0.0, running=True)
        await simulator.wait("smoke")

        assert recorder.progress("smoke") == [0.0, 10.0, 40.0, 85.0, 100.0]
        assert recorder.states[-1].running is False
        assert all(s.running for s in recorder.states[:-1])
        assert len(recorder.completions) == 1
        event = recorder.completions[0]
        assert event.suite_id == "smoke"
        assert event.ticks == 4
        assert event.started_at == T0
        assert event.elapsed_seconds == 2.0
        assert not simulator.is_running("smoke")
        assert simulator.get_state("smoke") is None

    @pytest.mark.asyncio
    async def test_progress_monotonic(self, suites: list[TestSuiteDescriptor]) -> None:
        """Test negative increments never move progress backwards."""
        simulator = ExecutionSimulator(
            suites, tick_interval=0, random_source=SequenceRandom([5.0, -3.0, 0.0, 60.0])
        )
        recorder = Recorder(simulator)
        await simulator.start("hotfix")
        await simulator.wait("hotfix")

        trajectory = recorder.progress("hotfix")
        assert trajectory == sorted(trajectory)
        assert trajectory[-1] == 100.0
        assert all(0.0 <= p <= 100.0 for p in trajectory)

    @pytest.mark.asyncio
    async def test_start_twice(self, suites: list[TestSuiteDescriptor]) -> None:
        gate = TickGate()
        simulator = ExecutionSimulator(suites, sleep=gate.sleep, random_source=SequenceRandom([10.0]))
        await simulator.start("smoke")

        with pytest.raises(AlreadyRunningError) as exc_info:
            await simulator.start("smoke")
        assert exc_info.value.suite_id == "smoke"
        await simulator.shutdown()

    @pytest.mark.asyncio
    async def test_restart_after_completion(self, suites: list[TestSuiteDescriptor]) -> None:
        simulator = ExecutionSimulator(suites, tick_interval=0, random_source=SequenceRandom([50.0]))
        recorder = Recorder(simulator)

        await simulator.start("smoke")
        await simulator.wait("smoke")
        await simulator.start("smoke")
        await simulator.wait("smoke")

        assert [e.suite_id for e in recorder.completions] == ["smoke", "smoke"]

    @pytest.mark.asyncio
    async def test_unknown_suite(self, suites: list[TestSuiteDescriptor]) -> None:
        simulator = ExecutionSimulator(suites)
        with pytest.raises(UnknownSuiteError):
            await simulator.start("nope")
        with pytest.raises(UnknownSuiteError):
            await simulator.stop("nope")
        assert simulator.snapshot() == {}

    @pytest.mark.asyncio
    async def test_ticks_gate_progress(self, suites: list[TestSuiteDescriptor]) -> None:
        gate = TickGate()
        simulator = ExecutionSimulator(
            suites, sleep=gate.sleep, random_source=SequenceRandom([12.5])
        )
        await simulator.start("smoke")
        await settle()
        assert simulator.get_state("smoke") == ExecutionState("smoke", 0.0)

        await gate.release(2)
        state = simulator.get_state("smoke")
        assert state is not None
        assert state.progress == 25.0
        assert state.running
        await simulator.shutdown()

    @pytest.mark.asyncio
    async def test_stop_emits_no_completion(self, suites: list[TestSuiteDescriptor]) -> None:
        gate = TickGate()
        simulator = ExecutionSimulator(suites, sleep=gate.sleep, random_source=SequenceRandom([30.0]))
        recorder = Recorder(simulator)

        await simulator.start("smoke")
        await gate.release(1)
        assert await simulator.stop("smoke") is True
        assert not simulator.is_running("smoke")

        await gate.release(5)
        assert recorder.completions == []
        assert recorder.progress("smoke") == [0.0, 30.0]

    @pytest.mark.asyncio
    async def test_stop_idle(self, suites: list[TestSuiteDescriptor]) -> None:
        simulator = ExecutionSimulator(suites)
        assert await simulator.stop("smoke") is False

    @pytest.mark.asyncio
    async def test_concurrent_suites_independent(self, suites: list[TestSuiteDescriptor]) -> None:
        """Test two running suites each complete exactly once with their own progress."""
        simulator = ExecutionSimulator(suites, tick_interval=0, random_source=SequenceRandom([25.0]))
        recorder = Recorder(simulator)

        await simulator.start("smoke")
        await simulator.start("hotfix")
        assert set(simulator.snapshot()) == {"smoke", "hotfix"}
        await simulator.wait_all()

        assert recorder.progress("smoke") == [0.0, 25.0, 50.0, 75.0, 100.0]
        assert recorder.progress("hotfix") == [0.0, 25.0, 50.0, 75.0, 100.0]
        assert sorted(e.suite_id for e in recorder.completions) == ["hotfix", "smoke"]
        assert all(e.ticks == 4 for e in recorder.completions)
        assert simulator.snapshot() == {}

    @pytest.mark.asyncio
    async def test_stop_one_of_two(self, suites: list[TestSuiteDescriptor]) -> None:
        gate = TickGate()
        simulator = ExecutionSimulator(suites, sleep=gate.sleep, random_source=SequenceRandom([10.0]))
        await simulator.start("smoke")
        await simulator.start("hotfix")

        await simulator.stop("hotfix")
        assert simulator.is_running("smoke")
        assert not simulator.is_running("hotfix")
        await simulator.shutdown()
        assert simulator.snapshot() == {}

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_stop_run(
        self, suites: list[TestSuiteDescriptor]
    ) -> None:
        simulator = ExecutionSimulator(suites, tick_interval=0, random_source=SequenceRandom([60.0]))

        def broken(state: ExecutionState) -> None:
            raise RuntimeError("listener bug")

        simulator.add_progress_listener(broken)
        recorder = Recorder(simulator)
        await simulator.start("smoke")
        await simulator.wait("smoke")

        assert recorder.progress("smoke") == [0.0, 60.0, 100.0]
        assert len(recorder.completions) == 1

    @pytest.mark.asyncio
    async def test_mocked_collaborators(self, suites: list[TestSuiteDescriptor]) -> None:
        """Test increments are drawn from [0, max_increment] and completion fires once."""
        random_source = MagicMock()
        random_source.uniform.return_value = 40.0
        sleep = AsyncMock()
        on_complete = MagicMock()
        simulator = ExecutionSimulator(
            suites,
            tick_interval=0.25,
            max_increment=40.0,
            random_source=random_source,
            sleep=sleep,
        )
        simulator.add_completion_listener(on_complete)

        await simulator.start("hotfix")
        await simulator.wait("hotfix")

        random_source.uniform.assert_called_with(0.0, 40.0)
        assert random_source.uniform.call_count == 3
        sleep.assert_awaited_with(0.25)
        on_complete.assert_called_once()
        assert on_complete.call_args.args[0].ticks == 3

    @pytest.mark.asyncio
    async def test_failed_tick_returns_suite_to_idle(
        self, suites: list[TestSuiteDescriptor], caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test a tick that raises ends the run without completion and frees the suite."""
        random_source = MagicMock()
        random_source.uniform.side_effect = [10.0, RuntimeError("entropy exhausted")]
        simulator = ExecutionSimulator(suites, tick_interval=0, random_source=random_source)
        recorder = Recorder(simulator)

        with caplog.at_level(logging.ERROR, logger="testdash_runner.simulator"):
            await simulator.start("smoke")
            await simulator.wait("smoke")

        assert simulator.snapshot() == {}
        assert not simulator.is_running("smoke")
        assert recorder.completions == []
        assert recorder.progress("smoke") == [0.0, 10.0]
        assert "Tick process failed for smoke" in caplog.text

        random_source.uniform.side_effect = None
        random_source.uniform.return_value = 100.0
        restarted = await simulator.start("smoke")
        assert restarted.progress == 0.0
        await simulator.wait("smoke")
        assert len(recorder.completions) == 1

    def test_get_suite(self, suites: list[TestSuiteDescriptor]) -> None:
        simulator = ExecutionSimulator(suites)
        assert simulator.get_suite("hotfix").name == "Hotfix Tests"
        assert [s.id for s in simulator.suites] == ["smoke", "hotfix"]
        with pytest.raises(UnknownSuiteError):
            simulator.get_suite("nope")

    @pytest.mark.parametrize(
        "kwargs", [{"tick_interval": -1.0}, {"max_increment": 0.0}]
    )
    def test_invalid_settings(self, suites: list[TestSuiteDescriptor], kwargs: dict) -> None:
        with pytest.raises(ValueError):
            ExecutionSimulator(suites, **kwargs)
