"""Logging configuration for goaltrace.

This module provides centralized logging setup with colored level names and
the active trace identifiers stamped on every record.
"""

import logging
import sys
from typing import Optional

from colorama import Fore, Style, init

from goaltrace.config import TracingConfig
from goaltrace.tracing.context import TracingContextManager

# Initialize colorama for cross-platform colored output
init(autoreset=True)

logger = logging.getLogger("goaltrace")

NO_TRACE = "-"


class ColoredFormatter(logging.Formatter):
    """Custom formatter that adds colors to log levels."""

    COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.BLUE,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }

    def format(self, record):
        original_format = super().format(record)

        color = self.COLORS.get(record.levelno, "")

        # Colorize only the level name: time, name, level, message
        if color:
            parts = original_format.split(" - ", 3)
            if len(parts) >= 3:
                parts[2] = f"{color}{parts[2]}{Style.RESET_ALL}"
                return " - ".join(parts)

        return original_format


class TraceContextFilter(logging.Filter):
    """Stamp ``trace_id`` and ``span_id`` of the active span on records."""

    def __init__(
        self, context_manager: Optional[TracingContextManager] = None
    ):
        super().__init__()
        self.context_manager = context_manager

    def filter(self, record: logging.LogRecord) -> bool:
        trace_info = (
            self.context_manager.get_current_trace_info()
            if self.context_manager
            else None
        )
        record.trace_id = trace_info.trace_id if trace_info else NO_TRACE
        record.span_id = trace_info.span_id if trace_info else NO_TRACE
        return True


def init_logger(
    config: TracingConfig,
    context_manager: Optional[TracingContextManager] = None,
):
    """Initialize the logger with colored output on stdout."""
    log_level = config.log_level
    logger.setLevel(log_level)

    # Clear any existing handlers to avoid duplicates
    logger.handlers.clear()

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(log_level)
    stream_handler.addFilter(TraceContextFilter(context_manager))

    formatter = ColoredFormatter(
        "%(asctime)s - %(name)s - %(levelname)s - "
        "[trace=%(trace_id)s span=%(span_id)s] %(message)s"
    )
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    # Prevent duplicate logs from propagating to root logger
    logger.propagate = False


def bind_trace_context(context_manager: TracingContextManager) -> None:
    """Point the handlers' trace filters at ``context_manager``.

    Logging comes up before the tracing runtime, so the manager is attached
    once the runtime exists.
    """
    for handler in logger.handlers:
        for log_filter in handler.filters:
            if isinstance(log_filter, TraceContextFilter):
                log_filter.context_manager = context_manager
