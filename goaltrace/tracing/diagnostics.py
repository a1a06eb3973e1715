"""Diagnostic logging around span creation.

Span factories stay focused on naming and tagging; this decorator adds the
debug trace line and keeps tracing failures away from the caller.
"""

import logging
from functools import wraps
from typing import Callable

from opentelemetry import trace

logger = logging.getLogger("goaltrace")


def log_trace_context(
    func: Callable[..., trace.Span],
) -> Callable[..., trace.Span]:
    """Log the active trace after ``func`` creates a span.

    ``func`` must be a method of an object exposing ``context_manager``. If
    it raises, the failure is logged and the non-recording ``INVALID_SPAN``
    is returned instead.
    """

    @wraps(func)
    def wrapper(self, *args, **kwargs) -> trace.Span:
        try:
            span = func(self, *args, **kwargs)
        except Exception as e:
            logger.warning(f"Failed to create span in {func.__name__}: {e}")
            return trace.INVALID_SPAN
        self.context_manager.log_current_trace(
            getattr(span, "name", func.__name__)
        )
        return span

    return wrapper
