"""Exception hierarchy for anchorcheck.

Configuration errors are raised while a suite is being planned and abort the
run before any check executes. Everything that goes wrong inside a check is
reported as a `Failure` instead and never surfaces as one of these.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from anchorcheck.models.definition import TestDefinition


class AnchorCheckError(Exception):
    """Base class for all anchorcheck errors."""


class ConfigurationError(AnchorCheckError):
    """A suite is malformed and cannot be executed.

    Attributes
    ----------
    definitions
        The test definitions responsible for the error.
    """

    def __init__(self, message: str, definitions: Sequence[TestDefinition] = ()) -> None:
        super().__init__(message)
        self.definitions = tuple(definitions)


class CyclicDependencyError(ConfigurationError):
    """Declared dependencies contain a cycle."""

    def __init__(self, cycle: Sequence[TestDefinition]) -> None:
        path = " -> ".join(d.full_name for d in [*cycle, cycle[0]])
        super().__init__(f"Dependency cycle detected: {path}", cycle)
        self.cycle = tuple(cycle)


class DuplicateTestError(ConfigurationError):
    """Two definitions in one suite share an assertion."""


class UnresolvedSlotError(ConfigurationError):
    """An expects slot is not provided by any transitive dependency."""

    def __init__(self, definition: TestDefinition, slot: str, reason: str) -> None:
        super().__init__(f"{definition.full_name}: cannot resolve expected slot '{slot}' ({reason})", [definition])
        self.definition = definition
        self.slot = slot


class AmbiguousSlotError(ConfigurationError):
    """More than one definition in a suite provides the same slot."""

    def __init__(self, slot: str, providers: Sequence[TestDefinition]) -> None:
        names = ", ".join(p.full_name for p in providers)
        super().__init__(f"Slot '{slot}' is provided by more than one test: {names}", providers)
        self.slot = slot


class UnknownSuiteError(ConfigurationError):
    """No suite is registered for the requested SEP."""


class InternalInvariantError(AnchorCheckError):
    """The engine reached a state the planner should have made impossible."""


class UndeclaredSlotError(AnchorCheckError):
    """A check wrote to a context slot it does not declare in `provides`."""


class UnknownFailureModeError(AnchorCheckError):
    """A check referenced a failure mode missing from its catalog."""
