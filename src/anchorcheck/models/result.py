"""Check outcome models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

import httpx


if TYPE_CHECKING:
    from anchorcheck.models.definition import TestDefinition


class TestStatus(Enum):
    """Outcome of one test definition within a suite run."""

    __test__ = False  # Prevent pytest from collecting this as a test class

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class Failure:
    """A check completed and found the server in violation.

    Attributes
    ----------
    mode
        Catalog key of the failure mode, e.g. ``NO_HTTPS``.
    name
        Human-readable failure type.
    message
        Rendered description.
    expected, actual
        Optional values compared by the check.
    """

    mode: str
    name: str
    message: str
    expected: Any = None
    actual: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "name": self.name,
            "message": self.message,
            "expected": self.expected,
            "actual": self.actual,
        }


@dataclass(eq=False)
class NetworkCall:
    """One outbound request and the response it received, kept for diagnostics."""

    request: httpx.Request
    response: httpx.Response | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.request.method,
            "url": str(self.request.url),
            "status_code": self.response.status_code if self.response is not None else None,
        }


@dataclass
class Result:
    """What a single check invocation produced."""

    failure: Failure | None = None
    network_calls: list[NetworkCall] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.failure is None


@dataclass(frozen=True)
class TestRun:
    """Record of one executed or skipped test definition."""

    __test__ = False  # Prevent pytest from collecting this as a test class

    definition: TestDefinition
    status: TestStatus
    run_id: UUID
    result: Result | None = None
    skipped_because: TestDefinition | None = None
    duration_ms: float = 0.0

    @property
    def failure(self) -> Failure | None:
        return self.result.failure if self.result is not None else None

    @property
    def group(self) -> str:
        return self.definition.group

    @property
    def sep(self) -> int:
        return self.definition.sep

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "sep": self.definition.sep,
            "group": self.definition.group,
            "assertion": self.definition.assertion,
            "status": self.status.value,
            "duration_ms": round(self.duration_ms, 3),
            "failure": self.failure.to_dict() if self.failure else None,
            "skipped_because": self.skipped_because.full_name if self.skipped_because else None,
            "network_calls": [c.to_dict() for c in self.result.network_calls] if self.result else [],
        }
