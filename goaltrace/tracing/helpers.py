"""None-safe helpers for annotating and closing spans."""

import time
from typing import Optional

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from opentelemetry.util.types import Attributes


def add_span_event(
    span: Optional[trace.Span], name: str, attributes: Attributes = None
) -> None:
    """Add an event stamped with the current time in epoch milliseconds."""
    if span is None:
        return
    span.add_event(
        name, {"timestamp": int(time.time() * 1000), **(attributes or {})}
    )


def set_span_status(
    span: Optional[trace.Span], success: bool, message: Optional[str] = None
) -> None:
    if span is None:
        return
    if success:
        span.set_status(Status(StatusCode.OK))
    else:
        span.set_status(
            Status(StatusCode.ERROR, message or "Operation failed")
        )


def end_span(span: Optional[trace.Span], attributes: Attributes = None) -> None:
    """Set the final attributes, if any, and end the span."""
    if span is None:
        return
    if attributes:
        span.set_attributes(attributes)
    span.end()
