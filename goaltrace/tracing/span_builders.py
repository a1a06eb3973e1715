"""Span factories for the chat backend's domain operations."""

from typing import Any, Mapping, Optional

from opentelemetry import trace

from goaltrace.tracing.context import TracingContextManager
from goaltrace.tracing.diagnostics import log_trace_context

# Goal-seeking user state fields and their fallbacks
USER_STATE_DEFAULTS = {
    "state": "unknown",
    "engagement": 0,
    "satisfaction": 0,
}


def _user_state_field(user_state: Any, key: str) -> Any:
    """Read ``key`` from a mapping or an object, None when absent."""
    if user_state is None:
        return None
    if isinstance(user_state, Mapping):
        return user_state.get(key)
    return getattr(user_state, key, None)


class SpanFactory:
    """Creates correctly named and tagged spans for the chat backend.

    Spans are started under the active context and are not ended; the
    caller owns them (usually through ``TracingContextManager.with_span``).
    """

    def __init__(self, context_manager: TracingContextManager):
        """Initialize the factory.

        Args:
            context_manager: The process-wide tracing context manager
        """
        self.context_manager = context_manager

    @property
    def tracer(self) -> trace.Tracer:
        return self.context_manager.tracer

    @log_trace_context
    def create_conversation_span(
        self,
        conversation_id: str,
        operation: str,
        user_id: Optional[str] = None,
    ) -> trace.Span:
        """Entry span for a conversation operation (``conversation.<op>``)."""
        name = self.context_manager.create_span_name("conversation", operation)
        span = self.tracer.start_span(
            name,
            kind=trace.SpanKind.SERVER,
            attributes={
                "conversation.id": conversation_id,
                "conversation.operation": operation,
            },
        )
        self.context_manager.add_standard_attributes(
            span,
            {
                "conversation_id": conversation_id,
                "user_id": user_id,
                "operation": name,
            },
        )
        return span

    @log_trace_context
    def create_agent_span(
        self,
        agent_type: str,
        operation: str,
        conversation_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> trace.Span:
        """Span for an agent operation (``agent.<type>.<op>``)."""
        name = self.context_manager.create_span_name(
            "agent", f"{agent_type}.{operation}"
        )
        attributes = {
            "agent.type": agent_type,
            "agent.operation": operation,
        }
        if conversation_id:
            attributes["conversation.id"] = conversation_id

        span = self.tracer.start_span(
            name, kind=trace.SpanKind.INTERNAL, attributes=attributes
        )
        self.context_manager.add_standard_attributes(
            span,
            {
                "agent_type": agent_type,
                "conversation_id": conversation_id,
                "user_id": user_id,
                "operation": name,
            },
        )
        return span

    @log_trace_context
    def create_validation_span(
        self,
        conversation_id: str,
        agent_type: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> trace.Span:
        """Span for response validation (``validation.validate_response``)."""
        name = self.context_manager.create_span_name(
            "validation", "validate_response"
        )
        attributes = {
            "conversation.id": conversation_id,
            "validation.operation": "validate_response",
        }
        if agent_type:
            attributes["agent.type"] = agent_type

        span = self.tracer.start_span(
            name, kind=trace.SpanKind.INTERNAL, attributes=attributes
        )
        self.context_manager.add_standard_attributes(
            span,
            {
                "conversation_id": conversation_id,
                "agent_type": agent_type,
                "user_id": user_id,
                "operation": name,
            },
        )
        return span

    @log_trace_context
    def create_goal_seeking_span(
        self,
        conversation_id: str,
        user_state: Any,
        user_id: Optional[str] = None,
    ) -> trace.Span:
        """Span for a goal-seeking pass (``goal_seeking.process``).

        ``user_state`` may be a mapping, an object with ``state``,
        ``engagement`` and ``satisfaction`` attributes, or None.
        """
        name = self.context_manager.create_span_name("goal_seeking", "process")
        state = {
            key: _user_state_field(user_state, key)
            for key in USER_STATE_DEFAULTS
        }

        span = self.tracer.start_span(
            name,
            kind=trace.SpanKind.INTERNAL,
            attributes={
                "conversation.id": conversation_id,
                "goal_seeking.operation": "process",
                **{
                    f"user.{key}": state[key] or default
                    for key, default in USER_STATE_DEFAULTS.items()
                },
            },
        )
        self.context_manager.add_standard_attributes(
            span,
            {
                "conversation_id": conversation_id,
                "user_id": user_id,
                "operation": name,
                **{f"user.{key}": value for key, value in state.items()},
            },
        )
        return span
