"""Console reporter for anchorcheck output using Rich."""

from __future__ import annotations

import json
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx
from rich.console import Console, Group, RenderableType
from rich.markup import escape
from rich.padding import Padding
from rich.panel import Panel
from rich.pretty import Pretty
from rich.text import Text

from anchorcheck.models.result import Failure, NetworkCall, TestRun, TestStatus
from anchorcheck.reports.base import Reporter


if TYPE_CHECKING:
    from anchorcheck.graph import ExecutionPlan
    from anchorcheck.runner import RunEnvironment, RunResult
    from anchorcheck.stats import Stats


_STATUS_CONFIG: dict[TestStatus, tuple[str, str, str]] = {
    TestStatus.PASSED: ("✓", "green", "PASSED"),
    TestStatus.FAILED: ("✗", "red", "FAILED"),
    TestStatus.SKIPPED: ("-", "yellow", "SKIPPED"),
}


class ConsoleReporter(Reporter):
    """Reporter that prints test runs as they complete.

    Verbosity:
        -1 prints failures and the summary only, 0 adds one line per executed
        test, 1 adds skipped tests, success descriptions and network calls.
    """

    def __init__(self, console: Console | None = None, verbosity: int = 0) -> None:
        self.console = console or Console(file=sys.__stdout__)
        self.verbosity = verbosity

    def _print_section_header(self, title: str) -> None:
        width = self.console.width
        header_title = f" {title} "
        fill = max(width - len(header_title), 0)
        left = fill // 2
        right = fill - left
        self.console.print("=" * left + header_title + "=" * right)

    async def on_no_tests_found(self) -> None:
        self.console.print("[yellow]No tests found.[/yellow]")

    async def on_run_start(self, plans: Mapping[str, ExecutionPlan], environment: RunEnvironment) -> None:
        if self.verbosity < 0:
            return
        self._print_section_header("ANCHORCHECK RUN STARTS")
        self.console.print(
            f"platform {environment.platform} -- python {environment.python_version} "
            f"-- anchorcheck {environment.anchorcheck_version}"
        )
        total = sum(len(plan) for plan in plans.values())
        suites = ", ".join(plans)
        self.console.print(f"[bold]Planned {total} tests[/bold] ({suites})\n")

    async def on_test_complete(self, test_run: TestRun) -> None:
        status = test_run.status
        if status is TestStatus.SKIPPED:
            if self.verbosity >= 1:
                self._print_skipped(test_run)
            return
        if status is TestStatus.PASSED and self.verbosity < 0:
            return

        symbol, color, _ = _STATUS_CONFIG[status]
        duration = f"[dim]({test_run.duration_ms:.1f}ms)[/dim]"
        self.console.print(f"[bold {color}]{symbol} {escape(test_run.definition.full_name)}[/bold {color}] {duration}")

        if test_run.failure is not None:
            self.console.print(Padding(self._build_failure_panel(test_run.failure), (0, 0, 0, 2)))
        elif self.verbosity >= 1 and test_run.definition.success_message:
            self.console.print(Padding(Text(test_run.definition.success_message, style="dim"), (0, 0, 0, 2)))

        if self.verbosity >= 1 and test_run.result and test_run.result.network_calls:
            self.console.print(Padding(self._build_network_calls(test_run.result.network_calls), (0, 0, 0, 2)))

    def _print_skipped(self, test_run: TestRun) -> None:
        symbol, color, _ = _STATUS_CONFIG[TestStatus.SKIPPED]
        reason = test_run.skipped_because.full_name if test_run.skipped_because else "dependency"
        self.console.print(
            f"[{color}]{symbol} {escape(test_run.definition.full_name)}[/{color}] "
            f"[dim]skipped ({escape(reason)} did not pass)[/dim]"
        )

    def _build_failure_panel(self, failure: Failure) -> Panel:
        lines: list[RenderableType] = [
            Text("Failure Type:", style="bold"),
            Padding(Text(failure.name), (0, 0, 1, 2)),
            Text("Description:", style="bold"),
            Padding(Text(failure.message), (0, 0, 0, 2)),
        ]
        if failure.expected is not None and failure.actual is not None:
            lines.append(Padding(Text(f"Expected: {failure.expected}\nReceived: '{failure.actual}'"), (1, 0, 0, 2)))
        return Panel(
            Group(*lines),
            title=failure.mode,
            title_align="left",
            border_style="red",
            expand=True,
            padding=(1, 1),
        )

    def _build_network_calls(self, calls: list[NetworkCall]) -> RenderableType:
        parts: list[RenderableType] = [Text("Network Calls:", style="bold")]
        for call in calls:
            request = call.request
            parts.append(Text("Request:", style="bold"))
            parts.append(Padding(Text(f"{request.method} {request.url}"), (0, 0, 0, 2)))
            parts.extend(self._headers_block(request.headers))
            body = self._request_body(request)
            if body is not None:
                parts.append(Padding(Group(Text("Body:"), body), (0, 0, 0, 2)))

            parts.append(Text("Response:", style="bold"))
            response = call.response
            if response is None:
                parts.append(Padding(Text("No response returned."), (0, 0, 1, 2)))
                continue
            parts.append(Padding(Text(f"Status Code: {response.status_code}"), (0, 0, 0, 2)))
            parts.extend(self._headers_block(response.headers))
            parts.append(Padding(Group(Text("Body:"), self._response_body(response)), (0, 0, 1, 2)))
        return Group(*parts)

    def _headers_block(self, headers: httpx.Headers) -> list[RenderableType]:
        if not headers:
            return []
        text = "\n".join(f"{key}: {value}" for key, value in headers.items())
        return [Padding(Group(Text("Headers:"), Padding(Text(text), (0, 0, 0, 2))), (0, 0, 0, 2))]

    def _request_body(self, request: httpx.Request) -> RenderableType | None:
        content_type = request.headers.get("content-type", "")
        if "multipart/form-data" in content_type:
            return Padding(Text("<multipart form data>", style="dim"), (0, 0, 0, 2))
        try:
            content = request.content
        except httpx.RequestNotRead:
            return Padding(Text("<streamed body>", style="dim"), (0, 0, 0, 2))
        if not content:
            return None
        return Padding(self._decode(content, content_type), (0, 0, 0, 2))

    def _response_body(self, response: httpx.Response) -> RenderableType:
        try:
            content = response.content
        except httpx.ResponseNotRead:
            return Padding(Text("<body not read>", style="dim"), (0, 0, 0, 2))
        return Padding(self._decode(content, response.headers.get("content-type", "")), (0, 0, 0, 2))

    def _decode(self, content: bytes, content_type: str) -> RenderableType:
        text = content.decode("utf-8", errors="replace")
        if "json" in content_type:
            try:
                data: Any = json.loads(text)
            except ValueError:
                return Text(text)
            return Pretty(data, expand_all=True)
        return Text(text)

    async def on_run_complete(self, run_result: RunResult) -> None:
        self.console.print()
        self._print_section_header("SUMMARY")
        self._print_stats(run_result.stats, run_result.total_duration_ms)

    def _print_stats(self, stats: Stats, duration_ms: float) -> None:
        if stats.groups:
            parts = []
            if stats.groups_failed:
                parts.append(f"[red]{stats.groups_failed} failed[/red]")
            if stats.groups_passed:
                parts.append(f"[green]{stats.groups_passed} passed[/green]")
            parts.append(f"{len(stats.groups)} total")
            self.console.print("Groups:      " + ", ".join(parts))

        parts = []
        if stats.failed:
            parts.append(f"[red]{stats.failed} failed[/red]")
        if stats.passed:
            parts.append(f"[green]{stats.passed} passed[/green]")
        parts.append(f"{stats.total} total")
        if stats.skipped:
            parts.append(f"[yellow]{stats.skipped} skipped[/yellow]")
        self.console.print("Tests:       " + ", ".join(parts))
        self.console.print(f"Time:        {duration_ms / 1000:.3f}s")

    async def on_tracing_enabled(self, output_path: Path) -> None:
        if output_path.exists():
            self.console.print(
                f"[dim]Tracing written to {output_path} ({output_path.stat().st_size} bytes)[/dim]"
            )
