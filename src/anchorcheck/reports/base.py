"""Reporter interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from anchorcheck.graph import ExecutionPlan
    from anchorcheck.models.result import TestRun
    from anchorcheck.runner import RunEnvironment, RunResult


class Reporter(ABC):
    """Receives run events from the `Runner`.

    ``on_test_complete`` is called once per planned test, skipped ones
    included, in execution order.
    """

    async def on_no_tests_found(self) -> None:
        """No suite contained any test."""

    async def on_run_start(self, plans: Mapping[str, ExecutionPlan], environment: RunEnvironment) -> None:
        """All suites were planned; checks are about to run."""

    @abstractmethod
    async def on_test_complete(self, test_run: TestRun) -> None:
        """A test finished or was skipped."""

    @abstractmethod
    async def on_run_complete(self, run_result: RunResult) -> None:
        """Every suite finished."""

    async def on_tracing_enabled(self, output_path: Path) -> None:
        """Spans were written to ``output_path``."""
