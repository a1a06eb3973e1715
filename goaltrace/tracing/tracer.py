"""OpenTelemetry tracer provider creation and process bootstrap."""

import importlib
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from opentelemetry import propagate, trace
from opentelemetry.baggage.propagation import W3CBaggagePropagator
from opentelemetry.propagators.composite import CompositePropagator
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SimpleSpanProcessor,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import ALWAYS_ON
from opentelemetry.trace import Status, StatusCode
from opentelemetry.trace.propagation.tracecontext import (
    TraceContextTextMapPropagator,
)

from goaltrace.config import Processor, TracingConfig
from goaltrace.error_handler import handle_error
from goaltrace.exceptions import TracingSetupError
from goaltrace.tracing.context import TracingContextManager
from goaltrace.tracing.exporter import (
    create_console_exporter,
    create_trace_exporter,
)
from goaltrace.tracing.span_builders import SpanFactory

logger = logging.getLogger("goaltrace")

# Instrumentation name -> "module:InstrumentorClass"
INSTRUMENTORS = {
    "urllib3": "opentelemetry.instrumentation.urllib3:URLLib3Instrumentor",
    "requests": "opentelemetry.instrumentation.requests:RequestsInstrumentor",
    "flask": "opentelemetry.instrumentation.flask:FlaskInstrumentor",
    "celery": "opentelemetry.instrumentation.celery:CeleryInstrumentor",
    "logging": "opentelemetry.instrumentation.logging:LoggingInstrumentor",
}


def _create_processor(
    exporter: SpanExporter, config: TracingConfig
) -> SpanProcessor:
    if config.processor == Processor.BATCH:
        return BatchSpanProcessor(exporter)
    return SimpleSpanProcessor(exporter)


def create_span_processors(config: TracingConfig) -> list[SpanProcessor]:
    """Build the console processor (if enabled) and the primary one."""
    processors: list[SpanProcessor] = []

    if config.console_export:
        logger.debug("🔍 Adding console span processor for debugging")
        processors.append(
            _create_processor(create_console_exporter(), config)
        )

    logger.debug("🔍 Adding span processor for primary exporter")
    processors.append(_create_processor(create_trace_exporter(config), config))
    return processors


def create_tracer_provider(config: TracingConfig) -> TracerProvider:
    """Create a provider sampling every trace, with processors attached.

    Args:
        config: The tracing configuration

    Returns:
        The configured TracerProvider
    """
    logger.debug(
        f"🔍 Creating tracer provider with service name: {config.service_name}"
    )
    logger.debug("🔍 Configuring 100% trace sampling (ALWAYS_ON)")
    resource = Resource.create(
        {
            SERVICE_NAME: config.service_name,
            SERVICE_VERSION: config.service_version,
        }
    )
    provider = TracerProvider(resource=resource, sampler=ALWAYS_ON)
    for processor in create_span_processors(config):
        provider.add_span_processor(processor)
    return provider


def _load_instrumentor(name: str) -> Any:
    target = INSTRUMENTORS.get(name)
    if target is None:
        raise TracingSetupError(
            f"Unknown instrumentation: {name}",
            f"Choose one of: {', '.join(sorted(INSTRUMENTORS))}.",
        )
    module_name, class_name = target.split(":")
    module = importlib.import_module(module_name)
    return getattr(module, class_name)()


def instrument_libraries(
    config: TracingConfig, tracer_provider: Optional[TracerProvider] = None
) -> list[Any]:
    """Activate the enabled instrumentations.

    Instrumentation packages are optional; missing ones are skipped, and
    so are names no instrumentor is registered for.

    Returns:
        The instrumentor instances that were activated
    """
    active = []
    for name, enabled in config.instrumentations.items():
        if not enabled:
            logger.debug(f"Instrumentation '{name}' disabled")
            continue
        try:
            instrumentor = _load_instrumentor(name)
        except TracingSetupError as e:
            handle_error(e)
            continue
        except ImportError as e:
            logger.info(f"Instrumentation '{name}' not installed: {e}")
            continue
        instrumentor.instrument(tracer_provider=tracer_provider)
        logger.debug(f"🔍 Instrumentation '{name}' enabled")
        active.append(instrumentor)
    return active


def create_test_span(tracer: trace.Tracer, service_name: str) -> bool:
    """Emit one diagnostic span to check the pipeline is wired.

    Returns:
        True when the span was created and ended
    """
    try:
        logger.debug("🔍 Creating test span...")
        span = tracer.start_span("tracer_initialization_test")
        now_ms = int(time.time() * 1000)
        span.set_attributes(
            {
                "test.type": "initialization",
                "test.timestamp": now_ms,
                "service.name": service_name,
            }
        )
        span.add_event(
            "tracer_initialization_completed", {"timestamp": now_ms}
        )
        span.set_status(Status(StatusCode.OK))
        span.end()
    except Exception as e:
        logger.error(f"❌ Failed to create test span: {e}")
        return False
    logger.info("✅ Test span created successfully")
    return True


@dataclass
class TracingRuntime:
    """Everything tracing-related one process holds on to."""

    context_manager: TracingContextManager
    span_factory: SpanFactory
    provider: Optional[TracerProvider] = None
    instrumentors: list[Any] = field(default_factory=list)

    @property
    def enabled(self) -> bool:
        return self.provider is not None

    def shutdown(self) -> None:
        """Flush pending spans and undo instrumentation, best effort."""
        for instrumentor in self.instrumentors:
            try:
                instrumentor.uninstrument()
            except Exception as e:
                logger.warning(f"Failed to uninstrument {instrumentor}: {e}")
        self.instrumentors = []

        if self.provider is None:
            return
        try:
            self.provider.force_flush()
            self.provider.shutdown()
        except Exception as e:
            logger.warning(f"Failed to flush spans on shutdown: {e}")


def _discard(provider: Optional[TracerProvider]) -> None:
    if provider is None:
        return
    try:
        provider.shutdown()
    except Exception as e:
        logger.warning(f"Failed to shut down abandoned provider: {e}")


def _noop_runtime(config: TracingConfig) -> TracingRuntime:
    context_manager = TracingContextManager(
        trace.NoOpTracerProvider(),
        service_name=config.service_name,
        service_version=config.service_version,
    )
    return TracingRuntime(
        context_manager=context_manager,
        span_factory=SpanFactory(context_manager),
    )


def initialize_tracing(
    config: TracingConfig, set_global: bool = True
) -> TracingRuntime:
    """Build and start the tracing pipeline for this process.

    Failures are logged, never raised: the returned runtime then wraps a
    no-op provider so callers keep working without trace data. The globals
    are only installed once the whole pipeline is up.

    Args:
        config: The tracing configuration
        set_global: Also install the provider and the W3C propagators as
            the OpenTelemetry globals

    Returns:
        The runtime holding the context manager and span factory
    """
    provider = None
    try:
        logger.info("🔍 Starting OpenTelemetry initialization...")
        provider = create_tracer_provider(config)
        instrumentors = instrument_libraries(config, provider)
        if set_global:
            trace.set_tracer_provider(provider)
            propagate.set_global_textmap(
                CompositePropagator(
                    [TraceContextTextMapPropagator(), W3CBaggagePropagator()]
                )
            )
    except TracingSetupError as e:
        handle_error(e)
        _discard(provider)
        return _noop_runtime(config)
    except Exception as e:
        logger.error(f"❌ Error initializing OpenTelemetry tracing: {e}")
        logger.debug("Stack trace:", exc_info=True)
        _discard(provider)
        return _noop_runtime(config)

    context_manager = TracingContextManager(
        provider,
        service_name=config.service_name,
        service_version=config.service_version,
    )
    runtime = TracingRuntime(
        context_manager=context_manager,
        span_factory=SpanFactory(context_manager),
        provider=provider,
        instrumentors=instrumentors,
    )
    logger.info("✅ OpenTelemetry tracing initialized successfully")

    create_test_span(
        provider.get_tracer("test-tracer", "1.0.0"), config.service_name
    )
    return runtime
