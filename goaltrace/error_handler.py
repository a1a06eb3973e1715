"""Reporting of goaltrace errors at the CLI and bootstrap seams."""

import logging
import sys

from goaltrace.exceptions import (
    ConfigurationError,
    GoaltraceError,
    TracingSetupError,
)

logger = logging.getLogger("goaltrace")


def handle_error(error: Exception, exit_on_error: bool = False) -> None:
    """Log ``error`` with a hint matching its category.

    Configuration errors point at ``goaltrace doctor``. Setup errors say
    that the process keeps running without exporting spans.

    Args:
        error: The exception that was raised
        exit_on_error: If True, exit the program after logging the error
    """
    if isinstance(error, ConfigurationError):
        logger.error(f"❌ Invalid tracing configuration: {error}")
        logger.info("Run 'goaltrace doctor' to inspect the tracing config")
    elif isinstance(error, TracingSetupError):
        logger.error(f"❌ Tracing setup failed: {error}")
        logger.warning("Continuing without exporting spans")
    elif isinstance(error, GoaltraceError):
        logger.error(f"{error}")
    else:
        logger.error(f"❌ Unexpected tracing error: {error}")
        logger.debug("Stack trace:", exc_info=True)

    if exit_on_error:
        sys.exit(1)
