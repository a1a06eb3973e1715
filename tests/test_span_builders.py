"""Tests for the domain span factories."""

import logging
from dataclasses import dataclass

import pytest
from opentelemetry import trace
from opentelemetry.trace import SpanKind, StatusCode


def finish(span, span_exporter):
    span.end()
    return span_exporter.get_finished_spans()[-1]


class TestConversationSpan:
    def test_name_kind_and_attributes(self, span_factory, span_exporter):
        """Conversation spans are SERVER spans with conversation attributes."""
        span = span_factory.create_conversation_span(
            "conv123", "process_message", "user123"
        )
        finished = finish(span, span_exporter)

        assert finished.name == "conversation.process_message"
        assert finished.kind == SpanKind.SERVER
        assert finished.attributes["conversation.id"] == "conv123"
        assert finished.attributes["conversation.operation"] == "process_message"
        assert finished.attributes["user.id"] == "user123"
        assert finished.attributes["operation.name"] == (
            "conversation.process_message"
        )
        assert finished.attributes["service.name"] == "ai-goal-seeking-backend"

    def test_user_id_is_optional(self, span_factory, span_exporter):
        """No user attribute is set without a user id."""
        finished = finish(
            span_factory.create_conversation_span("conv1", "create"),
            span_exporter,
        )
        assert "user.id" not in finished.attributes

    @pytest.mark.parametrize(
        "conversation_id",
        ["", "org/team/conv-1", "c" * 5000, "conv 42"],
    )
    def test_conversation_id_recorded_verbatim(
        self, span_factory, context_manager, span_exporter, conversation_id
    ):
        """Unusual conversation ids pass through unchanged and still trace."""
        span = span_factory.create_conversation_span(
            conversation_id, "process_message", "user123"
        )
        context_manager.with_span(span, lambda s: None)
        finished = span_exporter.get_finished_spans()[0]

        assert finished.name == "conversation.process_message"
        assert finished.attributes["conversation.id"] == conversation_id
        assert finished.status.status_code == StatusCode.OK


class TestAgentSpan:
    def test_joke_agent_scenario(
        self, span_factory, context_manager, span_exporter
    ):
        """An agent span for the joke agent traces end to end."""
        span = span_factory.create_agent_span(
            "joke", "process_message", "conv123", "user123"
        )
        context_manager.with_span(span, lambda s: None)
        finished = span_exporter.get_finished_spans()[0]

        assert finished.name == "agent.joke.process_message"
        assert finished.kind == SpanKind.INTERNAL
        assert finished.attributes["agent.type"] == "joke"
        assert finished.attributes["agent.operation"] == "process_message"
        assert finished.attributes["conversation.id"] == "conv123"
        assert finished.attributes["user.id"] == "user123"
        assert finished.status.status_code == StatusCode.OK

    def test_without_conversation(self, span_factory, span_exporter):
        """Agent spans work without a conversation."""
        finished = finish(
            span_factory.create_agent_span("trivia", "search"), span_exporter
        )
        assert "conversation.id" not in finished.attributes

    @pytest.mark.parametrize(
        "agent_type",
        ["", "support/tech", "x" * 5000, "dnd master"],
    )
    def test_agent_type_embedded_verbatim(
        self, span_factory, span_exporter, agent_type
    ):
        """Unusual agent types pass through unchanged."""
        span = span_factory.create_agent_span(agent_type, "op", "c/1")
        finished = finish(span, span_exporter)
        assert finished.name == f"agent.{agent_type}.op"
        assert finished.attributes["agent.type"] == agent_type
        assert finished.attributes["conversation.id"] == "c/1"

    def test_child_of_active_conversation(
        self, span_factory, context_manager, span_exporter
    ):
        """Agent spans nest under the active conversation."""
        conversation = span_factory.create_conversation_span("conv1", "chat")

        def run(_):
            agent = span_factory.create_agent_span("joke", "generate", "conv1")
            agent.end()

        context_manager.with_span(conversation, run)
        spans = {s.name: s for s in span_exporter.get_finished_spans()}
        assert spans["agent.joke.generate"].parent.span_id == (
            spans["conversation.chat"].context.span_id
        )


class TestValidationSpan:
    def test_without_agent_type(self, span_factory, span_exporter):
        """Validation spans omit optional fields."""
        finished = finish(
            span_factory.create_validation_span("conv123"), span_exporter
        )

        assert finished.name == "validation.validate_response"
        assert finished.kind == SpanKind.INTERNAL
        assert finished.attributes["conversation.id"] == "conv123"
        assert finished.attributes["validation.operation"] == "validate_response"
        assert "agent.type" not in finished.attributes
        assert "user.id" not in finished.attributes

    def test_with_agent_type(self, span_factory, span_exporter):
        """Validation spans record optional fields when given."""
        finished = finish(
            span_factory.create_validation_span("conv123", "joke", "u1"),
            span_exporter,
        )
        assert finished.attributes["agent.type"] == "joke"
        assert finished.attributes["user.id"] == "u1"


@dataclass
class UserState:
    state: str
    engagement: float
    satisfaction: float


class TestGoalSeekingSpan:
    def test_missing_user_state_falls_back_to_defaults(
        self, span_factory, span_exporter
    ):
        """Goal-seeking spans default the user state."""
        finished = finish(
            span_factory.create_goal_seeking_span("conv1", None), span_exporter
        )

        assert finished.name == "goal_seeking.process"
        assert finished.kind == SpanKind.INTERNAL
        assert finished.attributes["goal_seeking.operation"] == "process"
        assert finished.attributes["user.state"] == "unknown"
        assert finished.attributes["user.engagement"] == 0
        assert finished.attributes["user.satisfaction"] == 0

    def test_reads_mapping(self, span_factory, span_exporter):
        """User state can be a mapping."""
        finished = finish(
            span_factory.create_goal_seeking_span(
                "conv1",
                {"state": "engaged", "engagement": 0.8, "satisfaction": 0.6},
                "u1",
            ),
            span_exporter,
        )
        assert finished.attributes["user.state"] == "engaged"
        assert finished.attributes["user.engagement"] == 0.8
        assert finished.attributes["user.satisfaction"] == 0.6
        assert finished.attributes["user.id"] == "u1"

    def test_reads_object_attributes(self, span_factory, span_exporter):
        """User state can be an object with attributes."""
        finished = finish(
            span_factory.create_goal_seeking_span(
                "conv1", UserState("bored", 0.1, 0.2)
            ),
            span_exporter,
        )
        assert finished.attributes["user.state"] == "bored"
        assert finished.attributes["user.engagement"] == 0.1

    def test_partial_state_keeps_defaults(self, span_factory, span_exporter):
        """Missing user state fields keep their defaults."""
        finished = finish(
            span_factory.create_goal_seeking_span("conv1", {"state": "idle"}),
            span_exporter,
        )
        assert finished.attributes["user.state"] == "idle"
        assert finished.attributes["user.engagement"] == 0
        assert finished.attributes["user.satisfaction"] == 0


class TestFactoryDiagnostics:
    def test_logs_active_trace(self, span_factory, caplog):
        """Factories log the trace they created."""
        with caplog.at_level(logging.DEBUG, logger="goaltrace"):
            span = span_factory.create_validation_span("conv1")
            span.end()
        assert "🔍 TRACE [validation.validate_response]" in caplog.text

    def test_tracing_failure_returns_invalid_span(
        self, span_factory, monkeypatch, caplog
    ):
        """A broken tracer yields a non-recording span."""
        def explode(*args, **kwargs):
            raise RuntimeError("tracer broken")

        monkeypatch.setattr(span_factory.context_manager.tracer, "start_span", explode)

        with caplog.at_level(logging.WARNING, logger="goaltrace"):
            span = span_factory.create_agent_span("joke", "op")

        assert span is trace.INVALID_SPAN
        assert not span.is_recording()
        assert "tracer broken" in caplog.text
