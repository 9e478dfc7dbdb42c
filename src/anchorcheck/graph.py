"""Dependency graph construction and execution ordering."""

from __future__ import annotations

import heapq
import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

from anchorcheck.errors import (
    AmbiguousSlotError,
    CyclicDependencyError,
    DuplicateTestError,
    UnresolvedSlotError,
)
from anchorcheck.models.definition import TestDefinition


logger = logging.getLogger(__name__)


class _Mark(Enum):
    VISITING = "visiting"
    VISITED = "visited"


@dataclass(frozen=True)
class ExecutionPlan:
    """A validated, deterministically ordered suite.

    Attributes
    ----------
    order
        Definitions in topological order; ties keep declaration order.
    providers
        For every ``(definition, expected slot)`` the definition providing it.
    """

    order: tuple[TestDefinition, ...]
    providers: Mapping[tuple[TestDefinition, str], TestDefinition]

    def __iter__(self) -> Iterator[TestDefinition]:
        return iter(self.order)

    def __len__(self) -> int:
        return len(self.order)

    def provider_of(self, definition: TestDefinition, slot: str) -> TestDefinition:
        return self.providers[(definition, slot)]


def build_plan(definitions: Sequence[TestDefinition]) -> ExecutionPlan:
    """Validate a suite and compute its execution order.

    Dependencies that are not listed (for example a SEP-1 test required by a
    SEP-24 test) are pulled in and scheduled before their dependents.

    Raises
    ------
    DuplicateTestError
        If a definition appears twice or two definitions of the same SEP share
        an assertion.
    CyclicDependencyError
        If dependencies contain a cycle.
    AmbiguousSlotError
        If two definitions provide the same slot name.
    UnresolvedSlotError
        If an expected slot is not provided by a transitive dependency.
    """
    nodes = _collect(definitions)
    _check_acyclic(nodes)
    order = _topological_order(nodes)
    providers = _resolve_slots(order)
    logger.debug("Planned %d tests (%d declared)", len(order), len(definitions))
    return ExecutionPlan(order=tuple(order), providers=providers)


def _collect(definitions: Sequence[TestDefinition]) -> list[TestDefinition]:
    """Declared definitions followed by any undeclared dependencies, breadth first."""
    nodes: list[TestDefinition] = []
    seen: set[TestDefinition] = set()
    names: dict[tuple[int, str], TestDefinition] = {}

    for definition in definitions:
        if definition in seen:
            raise DuplicateTestError(f"{definition.full_name} is listed more than once", [definition])
        seen.add(definition)
        nodes.append(definition)

    index = 0
    while index < len(nodes):
        for dep in nodes[index].dependencies:
            if dep not in seen:
                seen.add(dep)
                nodes.append(dep)
        index += 1

    for node in nodes:
        key = (node.sep, node.assertion)
        if key in names:
            raise DuplicateTestError(f"Assertion '{node.assertion}' is defined twice in SEP-{node.sep}", [names[key], node])
        names[key] = node
    return nodes


def _check_acyclic(nodes: list[TestDefinition]) -> None:
    """Depth-first search with an explicit stack; ``path`` mirrors the stack."""
    marks: dict[TestDefinition, _Mark] = {}

    for root in nodes:
        if root in marks:
            continue
        marks[root] = _Mark.VISITING
        path: list[TestDefinition] = [root]
        stack: list[tuple[TestDefinition, Iterator[TestDefinition]]] = [(root, iter(root.dependencies))]
        while stack:
            node, deps = stack[-1]
            dep = next(deps, None)
            if dep is None:
                stack.pop()
                path.pop()
                marks[node] = _Mark.VISITED
                continue
            mark = marks.get(dep)
            if mark is _Mark.VISITED:
                continue
            if mark is _Mark.VISITING:
                raise CyclicDependencyError(path[path.index(dep):])
            marks[dep] = _Mark.VISITING
            path.append(dep)
            stack.append((dep, iter(dep.dependencies)))


def _topological_order(nodes: list[TestDefinition]) -> list[TestDefinition]:
    """Kahn's algorithm, always releasing the earliest declared ready node."""
    position = {node: i for i, node in enumerate(nodes)}
    dependents: dict[TestDefinition, list[TestDefinition]] = {node: [] for node in nodes}
    indegree: dict[TestDefinition, int] = {}
    for node in nodes:
        unique_deps = set(node.dependencies)
        indegree[node] = len(unique_deps)
        for dep in unique_deps:
            dependents[dep].append(node)

    ready = [position[node] for node in nodes if indegree[node] == 0]
    heapq.heapify(ready)
    order: list[TestDefinition] = []
    while ready:
        node = nodes[heapq.heappop(ready)]
        order.append(node)
        for dependent in dependents[node]:
            indegree[dependent] -= 1
            if indegree[dependent] == 0:
                heapq.heappush(ready, position[dependent])
    return order


def _resolve_slots(order: list[TestDefinition]) -> dict[tuple[TestDefinition, str], TestDefinition]:
    owners: dict[str, TestDefinition] = {}
    for node in order:
        for slot in node.context.provides:
            if slot in owners and owners[slot] is not node:
                raise AmbiguousSlotError(slot, [owners[slot], node])
            owners[slot] = node

    ancestors: dict[TestDefinition, set[TestDefinition]] = {}
    for node in order:
        reachable: set[TestDefinition] = set()
        for dep in node.dependencies:
            reachable.add(dep)
            reachable |= ancestors[dep]
        ancestors[node] = reachable

    providers: dict[tuple[TestDefinition, str], TestDefinition] = {}
    for node in order:
        for slot in node.context.expects:
            owner = owners.get(slot)
            if owner is None:
                raise UnresolvedSlotError(node, slot, "no test provides it")
            if owner not in ancestors[node]:
                raise UnresolvedSlotError(node, slot, f"provided by {owner.full_name}, which is not a dependency")
            providers[(node, slot)] = owner
    return providers
