"""Lifecycle management for OpenTelemetry tracing.

Sets up a private tracer provider with the streaming file exporter. Until
`init_tracing` is called every tracer handed out is a no-op, so checks and the
request helper can open spans unconditionally.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor

from anchorcheck.tracing.exporters import StreamingFileSpanExporter


_exporter: StreamingFileSpanExporter | None = None
_provider: TracerProvider | None = None


def init_tracing(
    *,
    service_name: str = "anchorcheck",
    output_path: Path | str = "traces.jsonl",
) -> Path:
    """Start exporting spans to ``output_path`` as JSON lines.

    Calling it again redirects the exporter to the new path.
    """
    global _exporter, _provider

    if _provider is not None and _exporter is not None:
        _exporter.reset(output_path)
        return _exporter.output_path

    _exporter = StreamingFileSpanExporter(output_path)
    _provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    _provider.add_span_processor(SimpleSpanProcessor(_exporter))
    return _exporter.output_path


def is_tracing_enabled() -> bool:
    return _provider is not None


def shutdown_tracing() -> None:
    """Flush and drop the provider; later tracers are no-ops again."""
    global _exporter, _provider
    if _provider is not None:
        _provider.shutdown()
    _provider = None
    _exporter = None


def get_tracer(name: str = "anchorcheck") -> trace.Tracer:
    """Get a tracer bound to the anchorcheck provider, or a no-op tracer."""
    if _provider is None:
        return trace.NoOpTracer()
    return _provider.get_tracer(name)


def clear_traces() -> None:
    """Truncate the trace file."""
    if _exporter is not None:
        _exporter.reset(_exporter.output_path)


@contextmanager
def trace_step(name: str, attributes: dict[str, Any] | None = None) -> Iterator[trace.Span]:
    """Open a span nested under the current one."""
    tracer = get_tracer()
    with tracer.start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                span.set_attribute(key, value)
        yield span
