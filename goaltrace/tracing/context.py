"""Tracing context management on top of the OpenTelemetry context API.

``TracingContextManager`` is the only component that touches the active-span
mechanism directly. Build one per process and pass it to whatever needs
tracing; the span factories and the log filter all go through it.

OpenTelemetry keeps the active context in a ``contextvars`` variable, so it
survives ``await`` continuations inside a task. Plain threads and callbacks
scheduled from elsewhere start with a fresh context, which is what
``bind_trace_to_function`` is for.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, TypeVar

from opentelemetry import context as otel_context
from opentelemetry import propagate, trace
from opentelemetry.context import Context
from opentelemetry.trace import Link, SpanContext, SpanKind, Status, StatusCode

logger = logging.getLogger("goaltrace")

T = TypeVar("T")

TRACER_NAME = "ai-goal-seeking-system"
TRACER_VERSION = "1.0.0"

# Base attributes a caller can never override
PROTECTED_ATTRIBUTES = ("service.name", "service.version")

# Caller-facing correlation fields and the attribute they land on
CORRELATION_ATTRIBUTES = {
    "user_id": "user.id",
    "userId": "user.id",
    "conversation_id": "conversation.id",
    "conversationId": "conversation.id",
    "agent_type": "agent.type",
    "agentType": "agent.type",
    "operation": "operation.name",
}


@dataclass(frozen=True)
class TraceInfo:
    """Identifiers of the currently active span."""

    trace_id: str
    span_id: str
    trace_flags: int
    is_remote: bool = False


def format_trace_id(trace_id: int) -> str:
    return format(trace_id, "032x")


def format_span_id(span_id: int) -> str:
    return format(span_id, "016x")


def _attribute_value(value: Any) -> Any:
    """Coerce a value into something the SDK accepts as an attribute."""
    if isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, (list, tuple)) and all(
        isinstance(v, (str, bool, int, float)) for v in value
    ):
        return list(value)
    return str(value)


class TracingContextManager:
    """Facade over the OpenTelemetry active context for one process."""

    def __init__(
        self,
        tracer_provider: Optional[trace.TracerProvider] = None,
        service_name: str = "ai-goal-seeking-backend",
        service_version: str = "1.0.0",
    ):
        """Initialize the manager.

        Args:
            tracer_provider: Provider to take the tracer from; the global
                provider is used when omitted
            service_name: Value of the ``service.name`` base attribute
            service_version: Value of the ``service.version`` base attribute
        """
        provider = tracer_provider or trace.get_tracer_provider()
        self.tracer = provider.get_tracer(TRACER_NAME, TRACER_VERSION)
        self.service_name = service_name
        self.service_version = service_version

    def get_current_trace_info(self) -> Optional[TraceInfo]:
        """Return identifiers of the active span, or None if there is none."""
        try:
            span_context = trace.get_current_span().get_span_context()
        except Exception as e:
            logger.debug(f"Could not read active span: {e}")
            return None
        if not span_context.is_valid:
            return None
        return TraceInfo(
            trace_id=format_trace_id(span_context.trace_id),
            span_id=format_span_id(span_context.span_id),
            trace_flags=int(span_context.trace_flags),
            is_remote=span_context.is_remote,
        )

    def get_current_span_context(self) -> Optional[SpanContext]:
        span_context = trace.get_current_span().get_span_context()
        return span_context if span_context.is_valid else None

    def _start_span(self, name: str, **kwargs) -> trace.Span:
        try:
            return self.tracer.start_span(name, **kwargs)
        except Exception as e:
            logger.warning(f"Failed to start span '{name}': {e}")
            return trace.INVALID_SPAN

    def create_child_span(
        self, name: str, parent_context: Optional[Context] = None
    ) -> trace.Span:
        """Start a span under ``parent_context``, or under the active one."""
        return self._start_span(name, context=parent_context)

    def create_root_span(
        self, name: str, attributes: Optional[Mapping[str, Any]] = None
    ) -> trace.Span:
        """Start a new trace, ignoring whatever span is currently active."""
        span = self._start_span(
            name,
            context=Context(),
            kind=SpanKind.SERVER,
            attributes=dict(attributes) if attributes else None,
        )
        span_context = span.get_span_context()
        logger.debug(
            f"🔍 TRACE: Created root span '{name}' with trace ID: "
            f"{format_trace_id(span_context.trace_id)}, "
            f"span ID: {format_span_id(span_context.span_id)}"
        )
        return span

    def create_linked_span(
        self, name: str, links: Sequence[SpanContext]
    ) -> trace.Span:
        """Start a span that references other traces by link."""
        return self._start_span(
            name,
            kind=SpanKind.SERVER,
            links=[Link(link) for link in links],
        )

    def _record_trace_attributes(self, span: trace.Span) -> None:
        trace_info = self.get_current_trace_info()
        if not trace_info:
            return
        try:
            span.set_attributes(
                {
                    "trace.id": trace_info.trace_id,
                    "span.id": trace_info.span_id,
                    "trace.flags": str(trace_info.trace_flags),
                }
            )
        except Exception as e:
            logger.warning(f"Failed to tag span with trace info: {e}")

    @staticmethod
    def _mark_failed(span: trace.Span, error: BaseException) -> None:
        try:
            span.set_status(
                Status(StatusCode.ERROR, str(error) or type(error).__name__)
            )
            span.record_exception(error)
        except Exception as e:
            logger.warning(f"Failed to record exception on span: {e}")

    @staticmethod
    def _mark_ok(span: trace.Span) -> None:
        try:
            span.set_status(Status(StatusCode.OK))
        except Exception as e:
            logger.warning(f"Failed to set span status: {e}")

    def with_span(self, span: trace.Span, fn: Callable[[trace.Span], T]) -> T:
        """Run ``fn(span)`` with ``span`` active, then end the span.

        The span gets an OK status when ``fn`` returns. When it raises, the
        exception is recorded, the status is set to ERROR with the error
        message and the same exception propagates once the span is ended.
        """
        token = otel_context.attach(trace.set_span_in_context(span))
        try:
            self._record_trace_attributes(span)
            result = fn(span)
            self._mark_ok(span)
            return result
        except BaseException as error:
            self._mark_failed(span, error)
            raise
        finally:
            span.end()
            otel_context.detach(token)

    async def with_span_async(
        self, span: trace.Span, fn: Callable[[trace.Span], Awaitable[T]]
    ) -> T:
        """Async counterpart of ``with_span``.

        The context stays attached across every ``await`` inside ``fn``.
        """
        token = otel_context.attach(trace.set_span_in_context(span))
        try:
            self._record_trace_attributes(span)
            result = await fn(span)
            self._mark_ok(span)
            return result
        except BaseException as error:
            self._mark_failed(span, error)
            raise
        finally:
            span.end()
            otel_context.detach(token)

    def with_context(
        self, ctx: Optional[Context], fn: Callable[[], T]
    ) -> T:
        """Run ``fn`` with ``ctx`` as the active context."""
        token = otel_context.attach(
            ctx if ctx is not None else otel_context.get_current()
        )
        try:
            return fn()
        finally:
            otel_context.detach(token)

    async def with_context_async(
        self, ctx: Optional[Context], fn: Callable[[], Awaitable[T]]
    ) -> T:
        token = otel_context.attach(
            ctx if ctx is not None else otel_context.get_current()
        )
        try:
            return await fn()
        finally:
            otel_context.detach(token)

    def extract_context_from_headers(
        self, headers: Mapping[str, str]
    ) -> Context:
        """Read a remote context out of incoming headers."""
        try:
            return propagate.extract(headers)
        except Exception as e:
            logger.warning(f"Failed to extract trace context: {e}")
            return otel_context.get_current()

    def inject_context_into_headers(
        self, headers: Optional[dict[str, str]] = None
    ) -> dict[str, str]:
        """Write the active context into outgoing headers and return them."""
        if headers is None:
            headers = {}
        try:
            propagate.inject(headers)
        except Exception as e:
            logger.warning(f"Failed to inject trace context: {e}")
        return headers

    def bind_trace_to_function(
        self, fn: Callable[..., Any], span: Optional[trace.Span] = None
    ) -> Callable[..., Any]:
        """Bind ``fn`` to the current context, or to ``span``'s context.

        The returned wrapper re-attaches the captured context on every call,
        whichever thread or callback ends up invoking it.
        """
        captured = otel_context.get_current()
        if span is not None:
            captured = trace.set_span_in_context(span, captured)

        if asyncio.iscoroutinefunction(fn):

            @wraps(fn)
            async def async_wrapper(*args, **kwargs):
                token = otel_context.attach(captured)
                try:
                    return await fn(*args, **kwargs)
                finally:
                    otel_context.detach(token)

            return async_wrapper

        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = otel_context.attach(captured)
            try:
                return fn(*args, **kwargs)
            finally:
                otel_context.detach(token)

        return wrapper

    @staticmethod
    def create_span_name(
        service: str, operation: str, details: Optional[str] = None
    ) -> str:
        if details:
            return f"{service}.{operation}.{details}"
        return f"{service}.{operation}"

    def standard_attributes(
        self, attributes: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Build the attribute set ``add_standard_attributes`` applies."""
        merged: dict[str, Any] = {
            "service.name": self.service_name,
            "service.version": self.service_version,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        for key, value in attributes.items():
            if value is None:
                continue
            key = CORRELATION_ATTRIBUTES.get(key, key)
            if key in PROTECTED_ATTRIBUTES:
                continue
            merged[key] = _attribute_value(value)
        return merged

    def add_standard_attributes(
        self, span: trace.Span, attributes: Mapping[str, Any]
    ) -> None:
        """Tag ``span`` with the base attributes and correlation fields."""
        try:
            span.set_attributes(self.standard_attributes(attributes))
        except Exception as e:
            logger.warning(f"Failed to add standard attributes: {e}")

    def log_current_trace(self, operation: str) -> None:
        trace_info = self.get_current_trace_info()
        if trace_info:
            logger.debug(
                f"🔍 TRACE [{operation}]: trace={trace_info.trace_id}, "
                f"span={trace_info.span_id}, flags={trace_info.trace_flags}"
            )
        else:
            logger.debug(f"🔍 TRACE [{operation}]: No active trace context")
