"""JSON report writer."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO

from anchorcheck.reports.base import Reporter


if TYPE_CHECKING:
    from anchorcheck.models.result import TestRun
    from anchorcheck.runner import RunResult


class JsonReporter(Reporter):
    """Writes the whole run as a single JSON document once it completes."""

    def __init__(self, output_path: Path | str | None = None, *, stream: TextIO | None = None) -> None:
        self.output_path = Path(output_path) if output_path else None
        self.stream = stream or sys.stdout
        self.document: dict[str, Any] | None = None

    async def on_test_complete(self, test_run: TestRun) -> None:
        pass

    async def on_run_complete(self, run_result: RunResult) -> None:
        stats = run_result.stats
        self.document = {
            "ok": stats.ok,
            "environment": run_result.environment.to_dict(),
            "total_duration_ms": round(run_result.total_duration_ms, 3),
            "stats": stats.to_dict(),
            "suites": [
                {
                    "name": suite_run.name,
                    "run_id": str(suite_run.run_id),
                    "stats": suite_run.stats.to_dict(),
                    "plan": [d.to_dict() for d in suite_run.plan],
                    "runs": [r.to_dict() for r in suite_run.runs],
                }
                for suite_run in run_result.suite_runs
            ],
        }
        text = json.dumps(self.document, indent=2, default=str) + "\n"
        if self.output_path is None:
            self.stream.write(text)
            return
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path.write_text(text, encoding="utf-8")
