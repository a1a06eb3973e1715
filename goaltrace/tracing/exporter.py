"""Span exporters: console, Zipkin, OTLP and Cloud Trace, with export logging."""

import importlib
import logging
from typing import Optional, Sequence

from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
    OTLPSpanExporter,
)
from opentelemetry.exporter.zipkin.json import ZipkinExporter
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import (
    ConsoleSpanExporter,
    SpanExporter,
    SpanExportResult,
)

from goaltrace.config import Exporter, TracingConfig
from goaltrace.exceptions import TracingSetupError
from goaltrace.tracing.context import format_span_id, format_trace_id

logger = logging.getLogger("goaltrace")

CLOUD_TRACE_MODULE = "opentelemetry.exporter.cloud_trace"
CLOUD_TRACE_ENDPOINT = "cloudtrace.googleapis.com"


def create_console_exporter() -> ConsoleSpanExporter:
    logger.debug("🔍 Adding console exporter for debugging")
    return ConsoleSpanExporter()


def setup_otel_exporter(endpoint: str) -> OTLPSpanExporter:
    """Setup OpenTelemetry OTLP exporter.

    Args:
        endpoint: The OTLP endpoint URL

    Returns:
        Configured OTLPSpanExporter instance
    """
    return OTLPSpanExporter(
        endpoint=endpoint,
        insecure=True,
    )


def setup_zipkin_exporter(endpoint: str) -> ZipkinExporter:
    """Setup a Zipkin JSON exporter posting to ``endpoint``."""
    return ZipkinExporter(endpoint=endpoint)


def setup_cloud_trace_exporter() -> SpanExporter:
    """Setup a Google Cloud Trace exporter using application default credentials.

    Raises:
        ImportError: The optional Cloud Trace exporter package is missing
        TracingSetupError: The exporter could not be created, usually for
            lack of credentials
    """
    module = importlib.import_module(CLOUD_TRACE_MODULE)
    try:
        return module.CloudTraceSpanExporter()
    except Exception as e:
        raise TracingSetupError(
            f"Cannot create Cloud Trace exporter: {e}",
            "Set GOOGLE_APPLICATION_CREDENTIALS or choose another"
            " TRACING_EXPORTER.",
        ) from e


class LoggingSpanExporter(SpanExporter):
    """Delegating exporter that logs every batch before and after export."""

    def __init__(
        self,
        exporter: SpanExporter,
        endpoint: Optional[str] = None,
        label: str = "EXPORT",
    ):
        """Initialize the wrapper.

        Args:
            exporter: The exporter doing the actual work
            endpoint: Destination shown in the log lines
            label: Short exporter name shown in the log lines
        """
        self.exporter = exporter
        self.endpoint = endpoint or "console"
        self.label = label

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        logger.debug(
            f"🔍 {self.label} EXPORT: Attempting to send {len(spans)} spans "
            f"to {self.endpoint}"
        )
        for index, span in enumerate(spans, start=1):
            span_context = span.get_span_context()
            logger.debug(
                f"  📊 Span {index}: {span.name} "
                f"trace={format_trace_id(span_context.trace_id)} "
                f"span={format_span_id(span_context.span_id)} "
                f"status={span.status.status_code.name}"
            )

        result = self.exporter.export(spans)
        if result == SpanExportResult.SUCCESS:
            logger.debug(
                f"🔍 {self.label} EXPORT: Sent {len(spans)} spans to "
                f"{self.endpoint}"
            )
        else:
            logger.warning(
                f"{self.label} export of {len(spans)} spans to "
                f"{self.endpoint} failed"
            )
        return result

    def shutdown(self) -> None:
        self.exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return self.exporter.force_flush(timeout_millis)


def create_trace_exporter(config: TracingConfig) -> LoggingSpanExporter:
    """Create the primary exporter selected by the configuration.

    Cloud Trace needs the optional ``opentelemetry-exporter-gcp-trace``
    package; without it spans go to Zipkin instead.
    """
    logger.debug(f"🔍 Tracing exporter: {config.exporter.value}")
    selected = config.exporter

    if selected == Exporter.CLOUDTRACE:
        try:
            exporter: SpanExporter = setup_cloud_trace_exporter()
            logger.info("🔗 Using Google Cloud Trace exporter (ADC credentials)")
            return LoggingSpanExporter(
                exporter, endpoint=CLOUD_TRACE_ENDPOINT, label="CLOUDTRACE"
            )
        except ImportError:
            logger.warning(
                "⚠️ Cloud Trace exporter not available. Falling back to Zipkin."
            )
            selected = Exporter.ZIPKIN

    if selected == Exporter.OTLP:
        logger.info(f"🔗 Using OTLP exporter: {config.otlp_endpoint}")
        exporter = setup_otel_exporter(config.otlp_endpoint)
        endpoint: Optional[str] = config.otlp_endpoint
    elif selected == Exporter.CONSOLE:
        logger.info("🔗 Using console exporter as primary exporter")
        exporter = ConsoleSpanExporter()
        endpoint = None
    else:
        logger.info(f"🔗 Using Zipkin exporter: {config.zipkin_endpoint}")
        exporter = setup_zipkin_exporter(config.zipkin_endpoint)
        endpoint = config.zipkin_endpoint

    return LoggingSpanExporter(
        exporter, endpoint=endpoint, label=selected.value.upper()
    )
