"""OpenTelemetry tracing for the goal-seeking chat backend.

Submodules:
- context: TracingContextManager, the facade over the active context
- span_builders: SpanFactory for conversation, agent, validation and
  goal-seeking spans
- diagnostics: debug logging around span creation
- helpers: None-safe span event, status and end helpers
- exporter: console, Zipkin, OTLP and Cloud Trace exporters
- tracer: provider creation and process bootstrap
- demo: diagnostic trace generator
"""

from goaltrace.tracing.context import TraceInfo, TracingContextManager
from goaltrace.tracing.exporter import (
    LoggingSpanExporter,
    create_console_exporter,
    create_trace_exporter,
    setup_cloud_trace_exporter,
    setup_otel_exporter,
    setup_zipkin_exporter,
)
from goaltrace.tracing.helpers import add_span_event, end_span, set_span_status
from goaltrace.tracing.span_builders import SpanFactory
from goaltrace.tracing.tracer import (
    TracingRuntime,
    create_span_processors,
    create_test_span,
    create_tracer_provider,
    initialize_tracing,
    instrument_libraries,
)

__all__ = [
    "TraceInfo",
    "TracingContextManager",
    "SpanFactory",
    "add_span_event",
    "set_span_status",
    "end_span",
    "LoggingSpanExporter",
    "create_console_exporter",
    "create_trace_exporter",
    "setup_cloud_trace_exporter",
    "setup_otel_exporter",
    "setup_zipkin_exporter",
    "TracingRuntime",
    "create_span_processors",
    "create_test_span",
    "create_tracer_provider",
    "initialize_tracing",
    "instrument_libraries",
]
