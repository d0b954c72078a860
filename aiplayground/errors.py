"""
Error handling for AI Playground.

Provides:
- Custom exception types for transport, provider and parse failures
- The terminal stream rejection carrying the {status, message} payload
- Error boundary wrapper used by the platform layer
- User-friendly error messages
"""

import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    LOW = "low"           # Skippable, the stream continues
    MEDIUM = "medium"     # The current stream is aborted
    HIGH = "high"         # The provider cannot be used at all


class ErrorCategory(Enum):
    """Categories of errors for better handling."""
    CONFIGURATION = "configuration"
    NETWORK = "network"
    API = "api"
    PARSE = "parse"
    USER_INPUT = "user_input"
    INTERNAL = "internal"
    UNKNOWN = "unknown"


@dataclass
class ErrorContext:
    """Context information about an error."""
    category: ErrorCategory
    severity: ErrorSeverity
    operation: str
    user_message: str
    technical_message: str
    original_exception: Optional[Exception] = None
    traceback_str: Optional[str] = None
    metadata: dict = field(default_factory=dict)


class PlaygroundError(Exception):
    """Base exception for AI Playground errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        user_message: Optional[str] = None,
        provider: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.user_message = user_message or message
        self.provider = provider


class ConfigurationError(PlaygroundError):
    """Missing credentials, unknown providers and similar setup problems."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            severity=kwargs.pop("severity", ErrorSeverity.HIGH),
            **kwargs
        )


class TransportError(PlaygroundError):
    """The connection could not be established or dropped mid-stream."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.NETWORK,
            severity=kwargs.pop("severity", ErrorSeverity.MEDIUM),
            **kwargs
        )


class ProviderError(PlaygroundError):
    """The provider answered with an error payload."""

    def __init__(self, message: str, status_code: Optional[int] = None, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.API,
            severity=kwargs.pop("severity", ErrorSeverity.MEDIUM),
            **kwargs
        )
        self.status_code = status_code


class ParseError(PlaygroundError):
    """A chunk could not be decoded into a frame."""

    def __init__(self, message: str, chunk: Any = None, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.PARSE,
            severity=kwargs.pop("severity", ErrorSeverity.LOW),
            **kwargs
        )
        self.chunk = chunk


class StreamRejected(PlaygroundError):
    """A stream ended in an error; no final text was delivered."""

    status = "error"

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=kwargs.pop("category", ErrorCategory.API),
            severity=kwargs.pop("severity", ErrorSeverity.MEDIUM),
            **kwargs
        )

    def to_dict(self) -> dict[str, str]:
        """Return the rejection payload."""
        return {"status": self.status, "message": self.message}


class ErrorBoundary:
    """
    Error boundary for wrapping operations with graceful error handling.

    Usage:
        with ErrorBoundary("chat_completion", on_error=report) as boundary:
            run_stream()

        if boundary.has_error:
            print(boundary.error_context.user_message)
    """

    def __init__(
        self,
        operation: str,
        on_error: Optional[Callable[[ErrorContext], None]] = None,
        show_technical_details: bool = False,
    ):
        self.operation = operation
        self.on_error = on_error
        self.show_technical_details = show_technical_details
        self.error_context: Optional[ErrorContext] = None

    @property
    def has_error(self) -> bool:
        """Check if an error occurred."""
        return self.error_context is not None

    def __enter__(self) -> "ErrorBoundary":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is None:
            return False

        # Interpreter exits are not ours to swallow
        if not issubclass(exc_type, Exception):
            return False

        self.error_context = self._exception_to_context(exc_val, exc_tb)

        if self.on_error:
            self.on_error(self.error_context)

        return True

    def _exception_to_context(self, exc: Exception, exc_tb) -> ErrorContext:
        """Convert an exception to an ErrorContext."""
        category = ErrorCategory.UNKNOWN
        severity = ErrorSeverity.MEDIUM
        user_message = str(exc)

        if isinstance(exc, PlaygroundError):
            category = exc.category
            severity = exc.severity
            user_message = exc.user_message

        elif isinstance(exc, ConnectionError):
            category = ErrorCategory.NETWORK
            user_message = "Network connection error. Please check your internet connection."

        elif isinstance(exc, TimeoutError):
            category = ErrorCategory.NETWORK
            user_message = "The provider took too long to respond."

        elif isinstance(exc, (KeyError, ValueError)):
            category = ErrorCategory.USER_INPUT
            severity = ErrorSeverity.LOW

        traceback_str = None
        if self.show_technical_details:
            traceback_str = "".join(traceback.format_exception(type(exc), exc, exc_tb))

        return ErrorContext(
            category=category,
            severity=severity,
            operation=self.operation,
            user_message=user_message,
            technical_message=str(exc),
            original_exception=exc,
            traceback_str=traceback_str
        )


def format_error_for_user(context: ErrorContext) -> str:
    """
    Format an error context for display in a conversation.

    Args:
        context: The error context

    Returns:
        Message text, prefixed the way chat error messages are shown
    """
    return f"Error: {context.user_message}"


def format_error_for_log(context: ErrorContext) -> str:
    """
    Format an error context for logging.

    Args:
        context: The error context

    Returns:
        Formatted log message
    """
    lines = [
        f"[{context.severity.value.upper()}] {context.category.value}: {context.operation}",
        f"  Message: {context.technical_message}",
    ]

    if context.traceback_str:
        lines.append(f"  Traceback:\n{context.traceback_str}")

    return "\n".join(lines)
