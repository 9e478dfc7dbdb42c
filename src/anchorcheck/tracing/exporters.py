"""Streaming file exporter for check spans.

Each finished span becomes one JSON line, written as soon as the span ends so
an interrupted run still leaves the spans of every completed check on disk.
"""

import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult


logger = logging.getLogger(__name__)


class StreamingFileSpanExporter(SpanExporter):
    """Appends finished spans to a JSONL file."""

    def __init__(self, output_path: Path | str) -> None:
        self.output_path = Path(output_path)
        self.reset(self.output_path)

    def reset(self, output_path: Path | str) -> None:
        """Point the exporter at ``output_path`` and truncate it."""
        self.output_path = Path(output_path)
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path.write_text("")

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        try:
            with self.output_path.open("a", encoding="utf-8") as f:
                for span in spans:
                    f.write(json.dumps(self._span_to_dict(span), default=str) + "\n")
        except OSError:
            logger.exception("Failed to write spans to %s", self.output_path)
            return SpanExportResult.FAILURE
        return SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        """Nothing to release; the file is reopened per batch."""

    def _span_to_dict(self, span: ReadableSpan) -> dict[str, Any]:
        duration_ms = None
        if span.start_time is not None and span.end_time is not None:
            duration_ms = (span.end_time - span.start_time) / 1_000_000
        return {
            "traceId": format(span.context.trace_id, "032x"),
            "spanId": format(span.context.span_id, "016x"),
            "parentSpanId": format(span.parent.span_id, "016x") if span.parent else None,
            "name": span.name,
            "durationMs": duration_ms,
            "status": span.status.status_code.name if span.status else "UNSET",
            "attributes": dict(span.attributes or {}),
            "events": [{"name": e.name, "attributes": dict(e.attributes or {})} for e in span.events],
        }
