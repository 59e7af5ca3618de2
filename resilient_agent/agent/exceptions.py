"""
Exceptions for the resilient agent layer.

Call-time failures are `AgentError` subclasses split into two buckets:
`TransientAgentError` (worth retrying) and `PermanentAgentError` (not).
Construction-time problems raise `ConfigurationError` instead and never
surface from a `complete` call.
"""

from typing import Optional


class AgentError(Exception):
    """Base exception for all agent call failures."""

    transient = False

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        """
        Initialize the error with a message and the underlying cause.

        Parameters:
            message (str): Human-readable description of the failure.
            original_error (Optional[BaseException]): The exception raised by the transport or SDK, kept for diagnostics.
        """
        self.original_error = original_error
        super().__init__(message)


class TransientAgentError(AgentError):
    """Raised for failures that may succeed if retried (timeouts, rate limits, 5xx)."""

    transient = True


class PermanentAgentError(AgentError):
    """Raised for failures that retrying cannot fix (auth, malformed request)."""

    def __init__(
        self,
        message: str,
        original_error: Optional[BaseException] = None,
        status_code: Optional[int] = None,
    ):
        """
        Initialize the error, optionally recording the HTTP status that caused it.

        Parameters:
            message (str): Human-readable description of the failure.
            original_error (Optional[BaseException]): Underlying cause, if any.
            status_code (Optional[int]): HTTP status code returned by the provider.
        """
        self.status_code = status_code
        super().__init__(message, original_error)


class NoValidAgentsError(PermanentAgentError):
    """Raised when every member of a tracked pool has exceeded its failure limit."""

    def __init__(self, total: int):
        self.total = total
        super().__init__(f"No valid agents available (0 of {total} under failure limit)")


class ConfigurationError(ValueError):
    """Raised at construction time when a policy, pool, or config is invalid."""

    pass


class CallCancelledError(Exception):
    """Raised when a caller cancels a call while it waits between attempts."""

    def __init__(self, attempt: int = 0):
        self.attempt = attempt
        super().__init__(f"Call cancelled after {attempt} attempt(s)")


def is_transient(error: AgentError) -> bool:
    """
    Default retry predicate: retry transient errors only.

    Parameters:
        error (AgentError): The failure raised by the wrapped agent.

    Returns:
        bool: `True` if the error is classified as transient.
    """
    return error.transient


def error_for_status(
    status_code: int,
    message: str,
    original_error: Optional[BaseException] = None,
) -> AgentError:
    """
    Map an HTTP status code onto the transient/permanent taxonomy.

    408, 429 and every 5xx are transient; everything else is permanent.

    Parameters:
        status_code (int): HTTP status code returned by the provider.
        message (str): Error text to carry on the resulting exception.
        original_error (Optional[BaseException]): Underlying cause, if any.

    Returns:
        AgentError: A `TransientAgentError` or `PermanentAgentError` ready to raise.
    """
    text = f"HTTP {status_code}: {message}"
    if status_code in (408, 429) or 500 <= status_code < 600:
        return TransientAgentError(text, original_error)
    return PermanentAgentError(text, original_error, status_code=status_code)
