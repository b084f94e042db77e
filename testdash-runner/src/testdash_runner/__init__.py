"""Simulated execution and catalog tooling for testdash.

This package drives the dashboard core: it loads the suite catalog and
seed history from YAML, simulates suite execution with progress feedback,
records finished runs into the execution history, and exposes everything
through pydantic models and the ``testdash`` command line.

Example:
    testdash run smoke hotfix --tick-ms 100
"""

from testdash_runner.config import (
    DashboardConfig,
    SimulatorConfig,
    load_dashboard_config,
    parse_dashboard_config,
)
from testdash_runner.history import HistoryRecorder, build_simulated_record
from testdash_runner.models import (
    CompletionModel,
    ExecutionStateModel,
    OutcomeModel,
    RecordModel,
    ResultsViewModel,
    SuiteModel,
)
from testdash_runner.simulator import ExecutionSimulator, RandomSource

__all__ = [
    # Config
    "DashboardConfig",
    "SimulatorConfig",
    "load_dashboard_config",
    "parse_dashboard_config",
    # Simulator
    "ExecutionSimulator",
    "RandomSource",
    # History
    "HistoryRecorder",
    "build_simulated_record",
    # Models
    "CompletionModel",
    "ExecutionStateModel",
    "OutcomeModel",
    "RecordModel",
    "ResultsViewModel",
    "SuiteModel",
]
