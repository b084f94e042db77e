"""Root conftest.py for the testdash monorepo.

This provides shared pytest configuration and fixtures across all packages.
"""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from _pytest.config import Config

# Add all package src directories to path for imports
PROJECT_ROOT = Path(__file__).parent
for pkg_dir in PROJECT_ROOT.glob("testdash-*/src"):
    if str(pkg_dir) not in sys.path:
        sys.path.insert(0, str(pkg_dir))

from testdash_core.types import ExecutionRecord, TestCase, TestStatus  # noqa: E402


def pytest_configure(config: Config) -> None:
    """Register custom markers.

    Args:
        config: pytest configuration object.
    """
    config.addinivalue_line(
        "markers",
        "slow: Slow-running test",
    )


def pytest_report_header(config: Config) -> list[str]:
    """Add a project line to the pytest header."""
    return ["testdash monorepo test suite"]


@pytest.fixture
def regression_tests() -> tuple[TestCase, ...]:
    """Tests of a failed regression run."""
    return (
        TestCase("test-001", "User Authentication Flow", TestStatus.PASSED, "2.5s", "Authentication"),
        TestCase(
            "test-002",
            "Database Connection Test",
            TestStatus.FAILED,
            "5.2s",
            "Infrastructure",
            error="Connection timeout after 5000ms",
            stack_trace="Error: Connection timeout\n  at Database.connect (database.js:45)",
        ),
        TestCase("test-003", "API Response Validation", TestStatus.PASSED, "1.8s", "API"),
        TestCase("test-004", "UI Button Click Handler", TestStatus.SKIPPED, "0s", "UI"),
        TestCase(
            "test-006",
            "Email Notification Service",
            TestStatus.FAILED,
            "10.5s",
            "Notifications",
            error="SMTP server unreachable",
        ),
        TestCase("test-009", "Search Functionality", TestStatus.PASSED, "4.1s", "API"),
    )


@pytest.fixture
def records(regression_tests: tuple[TestCase, ...]) -> list[ExecutionRecord]:
    """A small execution history, newest first."""
    return [
        ExecutionRecord.from_tests(
            record_id="run-001",
            suite_name="Regression Tests",
            tests=regression_tests,
            timestamp=datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
            duration="42m 15s",
            author="Alice Johnson",
        ),
        ExecutionRecord.from_tests(
            record_id="run-002",
            suite_name="Smoke Tests",
            tests=(
                TestCase("smoke-001", "Homepage Load Test", TestStatus.PASSED, "1.2s", "UI"),
                TestCase("smoke-002", "Login Page Accessibility", TestStatus.PASSED, "0.8s", "Authentication"),
                TestCase("smoke-003", "API Health Check", TestStatus.PASSED, "0.5s", "API"),
            ),
            timestamp=datetime(2024, 1, 15, 9, 15, tzinfo=timezone.utc),
            duration="8m 32s",
            author="Bob Smith",
        ),
        ExecutionRecord.from_tests(
            record_id="run-004",
            suite_name="Integration Tests",
            tests=(
                TestCase(
                    "int-001",
                    "Third Party API Integration",
                    TestStatus.FAILED,
                    "8.2s",
                    "API",
                    error="Rate limit exceeded",
                ),
                TestCase("int-002", "Database Migration Test", TestStatus.PASSED, "12.5s", "Database"),
            ),
            timestamp=datetime(2024, 1, 15, 7, 30, tzinfo=timezone.utc),
            duration="15m 45s",
            author="Alice Johnson",
        ),
    ]
