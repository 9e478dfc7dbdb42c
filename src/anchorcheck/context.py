"""Per-run context exchange between tests."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any
from uuid import UUID

import httpx

from anchorcheck.errors import InternalInvariantError, UndeclaredSlotError, UnknownFailureModeError
from anchorcheck.failures import make_failure
from anchorcheck.models.result import Failure


if TYPE_CHECKING:
    from anchorcheck.models.definition import TestDefinition


class ContextStore:
    """Values provided by tests during one suite run.

    Entries are keyed by ``(run_id, definition)`` so a definition shared by
    several concurrent runs never sees another run's values.
    """

    def __init__(self, run_id: UUID) -> None:
        self.run_id = run_id
        self._values: dict[tuple[UUID, TestDefinition], dict[str, Any]] = {}

    def record(self, definition: TestDefinition, values: Mapping[str, Any]) -> None:
        self._values[(self.run_id, definition)] = dict(values)

    def has(self, definition: TestDefinition, slot: str) -> bool:
        return slot in self._values.get((self.run_id, definition), {})

    def lookup(self, provider: TestDefinition, slot: str) -> Any:
        """Return the value ``provider`` recorded for ``slot``.

        Raises
        ------
        InternalInvariantError
            If the provider never recorded the slot.
        """
        try:
            return self._values[(self.run_id, provider)][slot]
        except KeyError:
            msg = f"No value recorded for slot '{slot}' by {provider.full_name}"
            raise InternalInvariantError(msg) from None

    def values_for(self, definition: TestDefinition) -> Mapping[str, Any]:
        return MappingProxyType(self._values.get((self.run_id, definition), {}))


@dataclass
class CheckContext:
    """Everything a check receives besides the run configuration.

    Attributes
    ----------
    definition
        The definition being executed.
    expects
        Read-only values resolved from dependencies, keyed by slot name.
    client
        HTTP client shared by the suite run.
    run_id
        Identifier of the suite run.
    provides
        Values this check hands to its dependents. Only declared slots may be set.
    """

    definition: TestDefinition
    expects: Mapping[str, Any]
    client: httpx.AsyncClient
    run_id: UUID
    provides: dict[str, Any] = field(default_factory=dict)

    def provide(self, slot: str, value: Any) -> None:
        if slot not in self.definition.context.provides:
            msg = f"{self.definition.full_name} does not declare '{slot}' in provides"
            raise UndeclaredSlotError(msg)
        self.provides[slot] = value

    def failure(
        self,
        mode: str,
        args: Mapping[str, Any] | None = None,
        *,
        expected: Any = None,
        actual: Any = None,
    ) -> Failure:
        """Render the failure mode ``mode`` from this definition's catalog."""
        try:
            kind = self.definition.failure_modes[mode]
        except KeyError:
            msg = f"{self.definition.full_name} has no failure mode '{mode}'"
            raise UnknownFailureModeError(msg) from None
        return make_failure(mode, kind, args, expected=expected, actual=actual)
