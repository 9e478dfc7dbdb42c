from anchorcheck.tracing.lifecycle import (
    clear_traces,
    get_tracer,
    init_tracing,
    is_tracing_enabled,
    shutdown_tracing,
    trace_step,
)

__all__ = [
    "clear_traces",
    "get_tracer",
    "init_tracing",
    "is_tracing_enabled",
    "shutdown_tracing",
    "trace_step",
]
