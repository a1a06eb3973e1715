"""Shared fixtures: an SDK provider recording spans in memory."""

import logging

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import (
    InMemorySpanExporter,
)

from goaltrace.config import DEFAULT_INSTRUMENTATIONS, TracingConfig
from goaltrace.tracing.context import TracingContextManager
from goaltrace.tracing.span_builders import SpanFactory


@pytest.fixture
def span_exporter():
    return InMemorySpanExporter()


@pytest.fixture
def tracer_provider(span_exporter):
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    yield provider
    provider.shutdown()


@pytest.fixture
def context_manager(tracer_provider):
    return TracingContextManager(tracer_provider)


@pytest.fixture
def span_factory(context_manager):
    return SpanFactory(context_manager)


@pytest.fixture
def quiet_config():
    """Console-only config with every instrumentation switched off."""
    return TracingConfig(
        exporter="console",
        console_export=False,
        instrumentations={name: False for name in DEFAULT_INSTRUMENTATIONS},
    )


@pytest.fixture(autouse=True)
def reset_goaltrace_logger():
    """Undo init_logger so caplog keeps seeing goaltrace records."""
    log = logging.getLogger("goaltrace")
    yield
    log.handlers.clear()
    log.propagate = True
    log.setLevel(logging.NOTSET)
