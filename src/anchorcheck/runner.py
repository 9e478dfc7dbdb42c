"""Execution engine for conformance suites."""

from __future__ import annotations

import asyncio
import logging
import platform
import socket
import sys
import time
from collections.abc import AsyncIterator, Callable, Mapping, Sequence
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from types import MappingProxyType
from typing import Any
from uuid import UUID, uuid4

import httpx
from opentelemetry.trace import StatusCode

from anchorcheck.config import RunConfig
from anchorcheck.context import CheckContext, ContextStore
from anchorcheck.failures import GENERIC_FAILURES, UNEXPECTED_ERROR, make_failure
from anchorcheck.graph import ExecutionPlan, build_plan
from anchorcheck.http import HttpSettings, build_client
from anchorcheck.models.definition import TestDefinition
from anchorcheck.models.result import Result, TestRun, TestStatus
from anchorcheck.reports.base import Reporter
from anchorcheck.stats import Stats, compute_stats
from anchorcheck.tracing import get_tracer, init_tracing
from anchorcheck.version import __version__


logger = logging.getLogger(__name__)

ClientFactory = Callable[[], AbstractAsyncContextManager[httpx.AsyncClient]]

_OUTCOME_RANK = {TestStatus.FAILED: 0, TestStatus.PASSED: 1, TestStatus.SKIPPED: 2}


@dataclass
class RunEnvironment:
    """Metadata about the environment where checks were executed."""

    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    end_time: datetime | None = None
    python_version: str = field(default_factory=lambda: sys.version.split()[0])
    platform: str = field(default_factory=platform.platform)
    hostname: str = field(default_factory=socket.gethostname)
    anchorcheck_version: str = __version__

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "python_version": self.python_version,
            "platform": self.platform,
            "hostname": self.hostname,
            "anchorcheck_version": self.anchorcheck_version,
        }


@dataclass
class SuiteRun:
    """All runs produced by one suite."""

    name: str
    plan: ExecutionPlan
    run_id: UUID = field(default_factory=uuid4)
    runs: list[TestRun] = field(default_factory=list)
    duration_ms: float = 0

    @property
    def stats(self) -> Stats:
        return compute_stats(self.runs)


@dataclass
class RunResult:
    """Result of running one or more suites."""

    suite_runs: list[SuiteRun] = field(default_factory=list)
    total_duration_ms: float = 0
    environment: RunEnvironment = field(default_factory=RunEnvironment)

    @property
    def runs(self) -> list[TestRun]:
        return [run for suite_run in self.suite_runs for run in suite_run.runs]

    @property
    def stats(self) -> Stats:
        """Stats over distinct definitions.

        A test shared by several suites counts once, with its worst outcome:
        failed over passed over skipped.
        """
        distinct: dict[TestDefinition, TestRun] = {}
        for run in self.runs:
            kept = distinct.get(run.definition)
            if kept is None or _OUTCOME_RANK[run.status] < _OUTCOME_RANK[kept.status]:
                distinct[run.definition] = run
        return compute_stats(distinct.values())

    @property
    def ok(self) -> bool:
        return self.stats.ok


class Runner:
    """Runs suites of test definitions against a server.

    Within a suite, checks run one at a time in plan order. Separate suites
    share nothing but the `RunConfig` and may run concurrently.

    Examples:
        runner = Runner(reporters=[ConsoleReporter()])
        result = await runner.run_suites({"SEP-24": sep24.tests}, config)

        # Suites concurrently, two at a time
        runner = Runner(concurrency=2)
        result = await runner.run_suites(suites, config)
    """

    def __init__(
        self,
        reporters: Sequence[Reporter] | None = None,
        *,
        concurrency: int = 1,
        http_settings: HttpSettings | None = None,
        client_factory: ClientFactory | None = None,
        enable_tracing: bool = False,
        trace_output: Path | str | None = None,
    ) -> None:
        self.reporters = list(reporters or [])
        self.concurrency = max(concurrency, 1)
        self._client_factory = client_factory or (lambda: build_client(http_settings))
        self.enable_tracing = enable_tracing
        self.trace_output = Path(trace_output) if trace_output else Path("traces.jsonl")

    async def run(self, definitions: Sequence[TestDefinition], config: RunConfig, *, name: str = "suite") -> RunResult:
        """Run a single suite."""
        return await self.run_suites({name: definitions}, config)

    async def run_suites(self, suites: Mapping[str, Sequence[TestDefinition]], config: RunConfig) -> RunResult:
        """Plan every suite, then run them.

        Raises
        ------
        ConfigurationError
            If any suite is malformed. Raised before any check executes.
        """
        plans = {name: build_plan(definitions) for name, definitions in suites.items()}
        run_result = RunResult()

        if self.enable_tracing:
            init_tracing(output_path=self.trace_output)

        if not any(plans.values()):
            await self._notify("on_no_tests_found")
            run_result.environment.end_time = datetime.now(UTC)
            return run_result

        await self._notify("on_run_start", plans, run_result.environment)

        start = time.perf_counter()
        suite_runs = [SuiteRun(name=name, plan=plan) for name, plan in plans.items()]
        if self.concurrency == 1 or len(suite_runs) == 1:
            for suite_run in suite_runs:
                await self._run_suite(suite_run, config)
        else:
            semaphore = asyncio.Semaphore(self.concurrency)

            async def run_one(suite_run: SuiteRun) -> None:
                async with semaphore:
                    await self._run_suite(suite_run, config)

            await asyncio.gather(*(run_one(s) for s in suite_runs))

        run_result.suite_runs = suite_runs
        run_result.total_duration_ms = (time.perf_counter() - start) * 1000
        run_result.environment.end_time = datetime.now(UTC)

        await self._notify("on_run_complete", run_result)
        if self.enable_tracing:
            await self._notify("on_tracing_enabled", self.trace_output)
        return run_result

    async def _run_suite(self, suite_run: SuiteRun, config: RunConfig) -> None:
        start = time.perf_counter()
        async for test_run in self.stream(suite_run.plan, config, run_id=suite_run.run_id):
            suite_run.runs.append(test_run)
            await self._notify("on_test_complete", test_run)
        suite_run.duration_ms = (time.perf_counter() - start) * 1000

    async def stream(
        self,
        plan: ExecutionPlan,
        config: RunConfig,
        *,
        run_id: UUID | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> AsyncIterator[TestRun]:
        """Execute ``plan`` and yield each `TestRun` as soon as it completes.

        Args:
            plan: Validated suite.
            config: Shared run configuration.
            run_id: Identifier of this suite run; generated if omitted.
            client: HTTP client to use; one is created and closed if omitted.
        """
        run_id = run_id or uuid4()
        if client is None:
            async with self._client_factory() as owned:
                async for test_run in self._walk(plan, config, run_id, owned):
                    yield test_run
        else:
            async for test_run in self._walk(plan, config, run_id, client):
                yield test_run

    async def _walk(
        self,
        plan: ExecutionPlan,
        config: RunConfig,
        run_id: UUID,
        client: httpx.AsyncClient,
    ) -> AsyncIterator[TestRun]:
        store = ContextStore(run_id)
        statuses: dict[TestDefinition, TestStatus] = {}

        for definition in plan:
            blocker = next((d for d in definition.dependencies if statuses[d] is not TestStatus.PASSED), None)
            if blocker is not None:
                logger.info("Skipping %s: %s did not pass", definition.full_name, blocker.full_name)
                statuses[definition] = TestStatus.SKIPPED
                yield TestRun(definition=definition, status=TestStatus.SKIPPED, run_id=run_id, skipped_because=blocker)
                continue

            expects = {slot: store.lookup(plan.provider_of(definition, slot), slot) for slot in definition.context.expects}
            ctx = CheckContext(definition=definition, expects=MappingProxyType(expects), client=client, run_id=run_id)
            test_run = await self._execute(definition, config, ctx)
            store.record(definition, ctx.provides)
            statuses[definition] = test_run.status
            yield test_run

    async def _execute(self, definition: TestDefinition, config: RunConfig, ctx: CheckContext) -> TestRun:
        """Invoke one check, converting anything it raises into a failure."""
        tracer = get_tracer()
        start = time.perf_counter()
        with tracer.start_as_current_span(f"check.sep{definition.sep}.{definition.assertion}") as span:
            span.set_attribute("check.group", definition.group)
            try:
                result = await definition.check(config, ctx)
                if not isinstance(result, Result):
                    raise TypeError(f"check returned {type(result).__name__}, expected Result")
            except Exception as e:
                logger.warning("Unexpected error in %s", definition.full_name, exc_info=True)
                span.record_exception(e)
                result = Result(
                    failure=make_failure(
                        UNEXPECTED_ERROR,
                        GENERIC_FAILURES[UNEXPECTED_ERROR],
                        {"error": f"{type(e).__name__}: {e}"},
                    )
                )

            if result.passed:
                missing = [s for s in definition.context.provides if s not in ctx.provides]
                if missing:
                    result.failure = make_failure(
                        UNEXPECTED_ERROR,
                        GENERIC_FAILURES[UNEXPECTED_ERROR],
                        {"error": f"test passed without providing {', '.join(missing)}"},
                    )

            status = TestStatus.PASSED if result.passed else TestStatus.FAILED
            duration = (time.perf_counter() - start) * 1000
            span.set_attribute("check.status", status.value)
            span.set_attribute("check.duration_ms", duration)
            for call in result.network_calls:
                span.add_event(
                    "network_call",
                    {
                        "http.method": call.request.method,
                        "http.url": str(call.request.url),
                        "http.status_code": call.response.status_code if call.response is not None else -1,
                    },
                )
            if result.failure is not None:
                span.set_status(StatusCode.ERROR, result.failure.name)

        return TestRun(definition=definition, status=status, run_id=ctx.run_id, result=result, duration_ms=duration)

    async def _notify(self, hook: str, *args: Any) -> None:
        for reporter in self.reporters:
            await getattr(reporter, hook)(*args)

