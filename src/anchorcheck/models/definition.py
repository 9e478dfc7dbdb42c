"""Declarative test definition."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from anchorcheck.config import RunConfig
    from anchorcheck.context import CheckContext
    from anchorcheck.failures import FailureKind
    from anchorcheck.models.result import Result


Check = Callable[["RunConfig", "CheckContext"], Awaitable["Result"]]


@dataclass(frozen=True)
class ContextContract:
    """Slot names a test reads from its dependencies and writes for its dependents."""

    expects: tuple[str, ...] = ()
    provides: tuple[str, ...] = ()


@dataclass(frozen=True, eq=False)
class TestDefinition:
    """A single compliance check and everything the engine needs to schedule it.

    Definitions compare and hash by identity so the graph can reference them
    directly.

    Attributes
    ----------
    assertion
        What the test asserts; unique within its suite.
    sep
        Number of the SEP (protocol) the test belongs to.
    group
        Reporting sub-category inside the suite.
    check
        Coroutine function performing the verification.
    dependencies
        Tests that must pass before this one runs.
    context
        Expected and provided context slots.
    failure_modes
        Catalog of failure kinds, generic kinds included.
    success_message
        Shown for passing tests in verbose output.
    """

    __test__ = False  # Prevent pytest from collecting this as a test class

    assertion: str
    sep: int
    group: str
    check: Check
    dependencies: tuple[TestDefinition, ...] = ()
    context: ContextContract = field(default_factory=ContextContract)
    failure_modes: Mapping[str, FailureKind] = field(default_factory=dict)
    success_message: str | None = None

    @property
    def full_name(self) -> str:
        return f"SEP-{self.sep} › {self.group} › {self.assertion}"

    def __repr__(self) -> str:
        return f"TestDefinition({self.full_name!r})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "assertion": self.assertion,
            "sep": self.sep,
            "group": self.group,
            "dependencies": [d.full_name for d in self.dependencies],
            "expects": list(self.context.expects),
            "provides": list(self.context.provides),
        }
