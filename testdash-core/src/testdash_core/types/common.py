"""Common types used across testdash modules.

This module provides the enumerations shared by the result and catalog
types, plus the duration text helpers used by both the data model and the
aggregation engine.

Classes:
    TestStatus: Outcome of a single test or of a whole execution.
    Priority: Declared priority of a catalogued suite.

Functions:
    duration_seconds: Parse duration text ("2.5s", "42m 15s") to seconds.
    format_duration: Render seconds as compact duration text.
"""

from __future__ import annotations

import math
import re
from enum import Enum


class TestStatus(str, Enum):
    """Outcome of a test case or execution record.

    Attributes:
        PASSED: The test ran and passed.
        FAILED: The test ran and failed.
        SKIPPED: The test did not run.
    """

    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class Priority(str, Enum):
    """Declared priority of a test suite.

    Attributes:
        HIGH: Run before every deployment.
        MEDIUM: Run on a regular schedule.
        LOW: Run on demand.
    """

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


_UNIT_SECONDS = {
    "ms": 0.001,
    "s": 1.0,
    "sec": 1.0,
    "m": 60.0,
    "min": 60.0,
    "h": 3600.0,
}

_NUMBER = r"\+?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?"
_BARE_NUMBER_RE = re.compile(rf"^{_NUMBER}$")
_PART_RE = re.compile(rf"({_NUMBER})\s*(ms|sec|min|h|m|s)", re.IGNORECASE)
_COMPOUND_RE = re.compile(rf"^(?:{_NUMBER}\s*(?:ms|sec|min|h|m|s)\s*)+$", re.IGNORECASE)


def duration_seconds(value: str | float | int | None) -> float | None:
    """Parse a duration into seconds.

    Accepts the formats found in execution records: a single value with a
    unit suffix ("2.5s", "500ms", "8 min"), a compound value ("42m 15s",
    "1h 2m"), or a bare number of seconds. Numbers follow float syntax (".5s",
    "1e1s", "+2s"). A leading minus sign is parsed so callers can reject
    negative durations. Overflowing values are unparsable.

    Args:
        value: Duration text or a number of seconds.

    Returns:
        The duration in seconds, or None if the value cannot be parsed.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        seconds = float(value)
        return seconds if math.isfinite(seconds) else None
    if not isinstance(value, str):
        return None

    text = value.strip()
    sign = 1.0
    if text.startswith("-"):
        sign = -1.0
        text = text[1:].lstrip()
    if not text:
        return None

    if _BARE_NUMBER_RE.match(text):
        total = float(text)
    elif _COMPOUND_RE.match(text):
        total = 0.0
        for number, unit in _PART_RE.findall(text):
            total += float(number) * _UNIT_SECONDS[unit.lower()]
    else:
        return None
    return sign * total if math.isfinite(total) else None


def format_duration(seconds: float) -> str:
    """Render a number of seconds as compact duration text.

    Args:
        seconds: Non-negative duration in seconds.

    Returns:
        Text such as "8m 32s" or "2.5s".

    Example:
        >>> format_duration(512)
        '8m 32s'
    """
    if seconds < 60:
        return f"{round(seconds, 1):g}s"
    whole = int(round(seconds))
    hours, rest = divmod(whole, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    return f"{minutes}m {secs}s"
