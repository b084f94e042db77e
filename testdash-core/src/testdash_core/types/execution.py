"""Ephemeral execution state types.

An ExecutionState describes a simulated run that is currently in flight.
It exists only while the suite is running and is dropped from the live
state mapping when the run completes or is stopped.

Classes:
    ExecutionState: Progress snapshot of a running suite.
    ExecutionCompleted: Notification that a run reached 100%.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

PROGRESS_MIN = 0.0
PROGRESS_MAX = 100.0


@dataclass(frozen=True)
class ExecutionState:
    """Progress snapshot of a running suite.

    Attributes:
        suite_id: The running suite.
        progress: Completion percentage in [0, 100].
        running: True while the tick process is active.
    """

    suite_id: str
    progress: float = PROGRESS_MIN
    running: bool = True

    def __post_init__(self) -> None:
        """Validate the progress range."""
        if not PROGRESS_MIN <= self.progress <= PROGRESS_MAX:
            raise ValueError(f"progress must be within [0, 100], got {self.progress}")

    @property
    def percent(self) -> int:
        """Return progress rounded to a whole percentage for display."""
        return int(round(self.progress))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary."""
        return {
            "suite_id": self.suite_id,
            "progress": self.progress,
            "running": self.running,
        }


@dataclass(frozen=True)
class ExecutionCompleted:
    """Completion notification for a simulated run.

    Emitted exactly once per run that reaches 100%. Stopped runs never
    produce one.

    Attributes:
        suite_id: The suite that finished.
        started_at: When the run was started (UTC).
        finished_at: When progress reached 100 (UTC).
        ticks: Number of ticks it took.
    """

    suite_id: str
    started_at: datetime
    finished_at: datetime
    ticks: int

    @property
    def elapsed_seconds(self) -> float:
        """Return the wall-clock duration of the run."""
        return (self.finished_at - self.started_at).total_seconds()
