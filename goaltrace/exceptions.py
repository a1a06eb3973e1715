"""Custom exception classes for goaltrace.

Tracing must never break the host application, so these errors are raised
only at the configuration and bootstrap seams, where they are caught and
logged.
"""


class GoaltraceError(Exception):
    """Base exception class for all goaltrace errors."""

    def __init__(self, message: str, suggestion: str = ""):
        """Initialize the exception.

        Args:
            message: The error message describing what went wrong
            suggestion: Optional suggestion for how to fix the problem
        """
        self.message = message
        self.suggestion = suggestion
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return a formatted error message with suggestion if available."""
        if self.suggestion:
            return f"{self.message}{'.' if not self.message.endswith('.') else ''} {self.suggestion}"
        return self.message


class ConfigurationError(GoaltraceError):
    """Raised when the tracing configuration is invalid or unreadable."""

    pass


class TracingSetupError(GoaltraceError):
    """Raised when the exporter pipeline cannot be assembled."""

    pass
