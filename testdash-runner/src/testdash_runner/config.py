"""Dashboard catalog configuration loading for testdash-runner.

A catalog file ties together the simulator settings, the suites that can be
executed, and the seed execution history into a single YAML file. A demo
catalog ships with the package and is used when no path is given.

Example YAML:
    dashboard:
      title: "Test Execution Dashboard"

    simulator:
      tick_interval_ms: 500
      max_increment: 15

    suites:
      - id: "smoke"
        name: "Smoke Tests"
        description: "Basic functionality tests to verify core features"
        test_count: 32
        estimated_duration: "8 min"
        priority: high
        tags: [smoke, quick, essential]

    records:
      - id: "run-002"
        suite_name: "Smoke Tests"
        status: passed
        timestamp: "2024-01-15T09:15:00Z"
        duration: "8m 32s"
        author: "Bob Smith"
        tests:
          - id: "smoke-001"
            name: "Homepage Load Test"
            status: passed
            duration: "1.2s"
            category: "UI"
"""

from __future__ import annotations

import importlib.resources
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from testdash_core.types.results import ExecutionRecord
from testdash_core.types.suite import TestSuiteDescriptor

logger = logging.getLogger(__name__)

DEMO_CONFIG_NAME = "demo.yaml"
DEFAULT_TITLE = "Test Execution Dashboard"


@dataclass(frozen=True)
class SimulatorConfig:
    """Execution simulator settings.

    Attributes:
        tick_interval_ms: Milliseconds between progress ticks.
        max_increment: Upper bound of the random per-tick progress increment.
    """

    tick_interval_ms: int = 500
    max_increment: float = 15.0

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.tick_interval_ms < 0:
            raise ValueError("simulator.tick_interval_ms must be non-negative")
        if self.max_increment <= 0:
            raise ValueError("simulator.max_increment must be positive")

    @property
    def tick_interval(self) -> float:
        """Return the tick interval in seconds."""
        return self.tick_interval_ms / 1000.0


@dataclass(frozen=True)
class DashboardConfig:
    """Complete dashboard catalog.

    Attributes:
        title: Dashboard title shown by the View Layer.
        simulator: Simulator settings.
        suites: Executable suites, in catalog order.
        records: Seed execution history, in file order.
        source_path: File the catalog was loaded from, if any.
    """

    title: str = DEFAULT_TITLE
    simulator: SimulatorConfig = field(default_factory=SimulatorConfig)
    suites: list[TestSuiteDescriptor] = field(default_factory=list)
    records: list[ExecutionRecord] = field(default_factory=list)
    source_path: Path | None = None

    def get_suite(self, suite_id: str) -> TestSuiteDescriptor | None:
        """Find a suite by ID.

        Args:
            suite_id: The suite identifier.

        Returns:
            TestSuiteDescriptor if found, None otherwise.
        """
        for suite in self.suites:
            if suite.id == suite_id:
                return suite
        return None

    @property
    def suites_by_id(self) -> dict[str, TestSuiteDescriptor]:
        """Return the suites keyed by id."""
        return {suite.id: suite for suite in self.suites}


def _parse_suites(suites_data: Any) -> list[TestSuiteDescriptor]:
    if not isinstance(suites_data, list):
        raise ValueError("suites must be a list")

    suites: list[TestSuiteDescriptor] = []
    seen: set[str] = set()
    for i, suite_data in enumerate(suites_data):
        if not isinstance(suite_data, dict):
            raise ValueError(f"suites[{i}] must be a mapping")
        if not suite_data.get("id"):
            raise ValueError(f"Missing required field: suites[{i}].id")
        try:
            suite = TestSuiteDescriptor.from_dict(suite_data)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"suites[{i}]: {exc}") from exc
        if suite.id in seen:
            raise ValueError(f"Duplicate suite id: {suite.id}")
        seen.add(suite.id)
        suites.append(suite)
    return suites


def _parse_records(records_data: Any) -> list[ExecutionRecord]:
    if not isinstance(records_data, list):
        raise ValueError("records must be a list")

    records: list[ExecutionRecord] = []
    seen: set[str] = set()
    for i, record_data in enumerate(records_data):
        if not isinstance(record_data, dict):
            raise ValueError(f"records[{i}] must be a mapping")
        for required in ("id", "timestamp"):
            if not record_data.get(required):
                raise ValueError(f"Missing required field: records[{i}].{required}")
        tests_data = record_data.get("tests", [])
        if not isinstance(tests_data, list) or not all(isinstance(t, dict) for t in tests_data):
            raise ValueError(f"records[{i}].tests must be a list of mappings")
        for j, test_data in enumerate(tests_data):
            for required in ("id", "status"):
                if not test_data.get(required):
                    raise ValueError(f"Missing required field: records[{i}].tests[{j}].{required}")
        try:
            record = ExecutionRecord.from_dict(record_data)
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"records[{i}]: {exc}") from exc
        if record.id in seen:
            raise ValueError(f"Duplicate record id: {record.id}")
        seen.add(record.id)
        records.append(record)
    return records


def parse_dashboard_config(data: Any, source_path: Path | None = None) -> DashboardConfig:
    """Build a DashboardConfig from parsed YAML data.

    Args:
        data: The parsed YAML document.
        source_path: File the data came from, recorded on the config.

    Returns:
        Parsed DashboardConfig.

    Raises:
        ValueError: If the data is not a mapping or a field is invalid.
    """
    if not isinstance(data, dict):
        raise ValueError("Dashboard config must be a YAML mapping")

    dashboard_data = data.get("dashboard") or {}
    if not isinstance(dashboard_data, dict):
        raise ValueError("dashboard must be a mapping")
    title = str(dashboard_data.get("title", DEFAULT_TITLE))

    simulator_data = data.get("simulator") or {}
    if not isinstance(simulator_data, dict):
        raise ValueError("simulator must be a mapping")
    try:
        simulator = SimulatorConfig(
            tick_interval_ms=int(simulator_data.get("tick_interval_ms", 500)),
            max_increment=float(simulator_data.get("max_increment", 15.0)),
        )
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid simulator settings: {exc}") from exc

    suites = _parse_suites(data.get("suites", []))
    records = _parse_records(data.get("records", []))

    return DashboardConfig(
        title=title,
        simulator=simulator,
        suites=suites,
        records=records,
        source_path=source_path,
    )


def load_dashboard_config(path: str | Path | None = None) -> DashboardConfig:
    """Load a dashboard catalog from a YAML file.

    Args:
        path: Path to the catalog YAML file. The bundled demo catalog is
            loaded when omitted.

    Returns:
        Parsed DashboardConfig.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ValueError: If required fields are missing or invalid.
    """
    if path is None:
        resource = importlib.resources.files("testdash_runner") / "configs" / DEMO_CONFIG_NAME
        with importlib.resources.as_file(resource) as demo_path:
            return load_dashboard_config(demo_path)

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Dashboard config not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    config = parse_dashboard_config(data, source_path=path)
    logger.info(
        "Loaded %d suites and %d records from %s",
        len(config.suites),
        len(config.records),
        path,
    )
    return config
