from .config import TracingConfig, load_config
from .tracing import (
    SpanFactory,
    TraceInfo,
    TracingContextManager,
    TracingRuntime,
    add_span_event,
    end_span,
    initialize_tracing,
    set_span_status,
)

__all__ = [
    # Config
    "TracingConfig",
    "load_config",
    # Tracing
    "TracingContextManager",
    "TraceInfo",
    "SpanFactory",
    "TracingRuntime",
    "initialize_tracing",
    # Span helpers
    "add_span_event",
    "set_span_status",
    "end_span",
]
