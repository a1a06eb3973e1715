"""Diagnostic trace generator.

Emits a handful of representative traces (simple, conversation, agent,
failing, nested and timer-bound) so an operator can check the exporter
backend end to end.
"""

import asyncio
import logging

from goaltrace.tracing.helpers import add_span_event, end_span, set_span_status
from goaltrace.tracing.tracer import TracingRuntime

logger = logging.getLogger("goaltrace")


class DemoFailure(RuntimeError):
    """Raised on purpose inside the failing demo trace."""


async def _simple_trace(runtime: TracingRuntime, scale: float) -> None:
    span = runtime.context_manager.create_root_span(
        "test_trace_simple", {"test.type": "simple"}
    )
    add_span_event(span, "test_event_start")
    await asyncio.sleep(0.1 * scale)
    add_span_event(span, "test_event_complete")
    set_span_status(span, True)
    end_span(span)
    logger.info("✅ Simple test trace completed")


async def _conversation_trace(runtime: TracingRuntime, scale: float) -> None:
    await asyncio.sleep(0.5 * scale)
    manager = runtime.context_manager
    span = runtime.span_factory.create_conversation_span(
        "test-conversation-123", "test_flow", user_id="test-user-456"
    )

    async def flow(span):
        add_span_event(span, "conversation_test_start")
        await asyncio.sleep(0.2 * scale)
        validation = runtime.span_factory.create_validation_span(
            "test-conversation-123", agent_type="general"
        )
        manager.with_span(
            validation,
            lambda s: add_span_event(s, "validation_passed", {"score": 0.9}),
        )
        add_span_event(span, "conversation_test_complete")

    await manager.with_span_async(span, flow)
    logger.info("✅ Conversation test trace completed")


async def _agent_trace(runtime: TracingRuntime, scale: float) -> None:
    await asyncio.sleep(1.0 * scale)
    span = runtime.span_factory.create_agent_span(
        "test_agent", "test_processing", "test-conversation-789"
    )

    async def process(span):
        span.set_attribute("test.message_length", 25)
        add_span_event(span, "agent_test_start")
        await asyncio.sleep(0.15 * scale)
        add_span_event(span, "agent_classification", {"classified_as": "general"})
        goal = runtime.span_factory.create_goal_seeking_span(
            "test-conversation-789",
            {"state": "engaged", "engagement": 0.8, "satisfaction": 0.7},
        )
        runtime.context_manager.with_span(goal, lambda s: None)
        await asyncio.sleep(0.1 * scale)
        add_span_event(span, "agent_response_generated", {"response_length": 150})

    await runtime.context_manager.with_span_async(span, process)
    logger.info("✅ Agent test trace completed")


async def _error_trace(runtime: TracingRuntime, scale: float) -> None:
    await asyncio.sleep(1.5 * scale)
    span = runtime.context_manager.create_root_span(
        "test_trace_error",
        {"test.type": "error_simulation", "test.will_fail": True},
    )

    async def fail(span):
        add_span_event(span, "error_test_start")
        await asyncio.sleep(0.075 * scale)
        raise DemoFailure("Simulated error for testing")

    try:
        await runtime.context_manager.with_span_async(span, fail)
    except DemoFailure:
        logger.info("✅ Error test trace completed")


async def _nested_trace(runtime: TracingRuntime, scale: float) -> None:
    await asyncio.sleep(2.0 * scale)
    manager = runtime.context_manager
    parent = manager.create_root_span(
        "test_trace_nested_parent",
        {"test.type": "nested_operation", "test.has_children": True},
    )

    async def children(parent):
        add_span_event(parent, "nested_test_parent_start")
        for number in (1, 2):
            await asyncio.sleep(0.1 * scale)
            child = manager.create_child_span(
                f"test_trace_nested_child_{number}"
            )
            child.set_attributes(
                {"test.type": "child_operation", "test.child_number": number}
            )
            manager.with_span(
                child,
                lambda s, n=number: add_span_event(s, f"child_{n}_processing"),
            )
        add_span_event(parent, "nested_test_parent_complete")

    await manager.with_span_async(parent, children)
    logger.info("✅ Nested test traces completed")


async def _timer_trace(runtime: TracingRuntime, scale: float) -> None:
    manager = runtime.context_manager
    span = manager.create_root_span("test_trace_timer_callback")
    done = asyncio.get_running_loop().create_future()

    def on_timer():
        info = manager.get_current_trace_info()
        add_span_event(
            span,
            "timer_fired",
            {"observed.trace_id": info.trace_id if info else "none"},
        )
        set_span_status(span, True)
        end_span(span)
        done.set_result(info)

    # The timer is scheduled outside the span's context; binding restores it
    callback = manager.bind_trace_to_function(on_timer, span)
    asyncio.get_running_loop().call_later(0.3 * scale, callback)
    await done
    logger.info("✅ Timer-bound test trace completed")


async def generate_demo_traces(
    runtime: TracingRuntime, delay_scale: float = 1.0
) -> None:
    """Generate the diagnostic traces concurrently.

    Args:
        runtime: The initialized tracing runtime
        delay_scale: Multiplier for the simulated processing delays
    """
    logger.info("🔍 Generating test traces for debugging...")
    await asyncio.gather(
        _simple_trace(runtime, delay_scale),
        _conversation_trace(runtime, delay_scale),
        _agent_trace(runtime, delay_scale),
        _error_trace(runtime, delay_scale),
        _nested_trace(runtime, delay_scale),
        _timer_trace(runtime, delay_scale),
    )
    logger.info("🔍 Test trace generation complete")
