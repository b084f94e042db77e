"""Test suite catalog types.

A TestSuiteDescriptor is read-only reference data describing a suite that
can be executed. Descriptors come from the catalog configuration; they are
never produced by an execution.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from testdash_core.types.common import Priority


@dataclass(frozen=True)
class TestSuiteDescriptor:
    """A catalogued, executable group of tests.

    Attributes:
        id: Unique suite identifier (e.g. "smoke").
        name: Human-readable suite name.
        description: What the suite covers.
        test_count: Number of tests in the suite.
        estimated_duration: Expected run time as display text (e.g. "8 min").
        priority: Declared priority.
        tags: Free-form labels.
    """

    __test__ = False

    id: str
    name: str
    description: str = ""
    test_count: int = 0
    estimated_duration: str = ""
    priority: Priority = Priority.MEDIUM
    tags: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        """Validate the descriptor."""
        if not self.id:
            raise ValueError("TestSuiteDescriptor id must not be empty")
        if self.test_count < 0:
            raise ValueError(f"Suite {self.id} has negative test_count")
        object.__setattr__(self, "priority", Priority(self.priority))
        object.__setattr__(self, "tags", frozenset(self.tags))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary. Tags are sorted for stable output."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "test_count": self.test_count,
            "estimated_duration": self.estimated_duration,
            "priority": self.priority.value,
            "tags": sorted(self.tags),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TestSuiteDescriptor:
        """Deserialize from a dictionary."""
        tags: Iterable[str] = data.get("tags") or ()
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", data["id"])),
            description=str(data.get("description", "")),
            test_count=int(data.get("test_count", data.get("testCount", 0))),
            estimated_duration=str(
                data.get("estimated_duration", data.get("estimatedDuration", ""))
            ),
            priority=Priority(data.get("priority", Priority.MEDIUM.value)),
            tags=frozenset(str(tag) for tag in tags),
        )
