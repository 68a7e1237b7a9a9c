"""
Custom exceptions for the cube export pipeline with structured error context.

Every exception carries a context dictionary so that failures can be logged
with enough information to tell which cube, page and endpoint were involved.

Exception Hierarchy:
    ExportException (base)
    ├── APIError
    │   ├── AuthenticationError
    │   ├── RateLimitError
    │   ├── TransportError
    │   └── UpstreamError
    ├── FilesystemError
    ├── CheckpointError
    ├── ConfigurationError
    └── RetryableError / NonRetryableError (mixins)
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class ExportException(Exception):
    """
    Root of every failure raised while exporting cubes.

    The runner records ``to_dict()`` of whatever reaches it as the cube's
    result, so ``context`` should name the cube and, where known, the page
    index and offset being fetched, the endpoint or the output path.

    Attributes:
        message: What went wrong, in one line
        context: Keys such as cube, page, offset, api_url or path
        original_exception: Lower-level error this one wraps, if any
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Render as `<Type>: message | Context: k=v, ... | Caused by: ...`"""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Shape stored in ExportResult.error and logged as error_context"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Retry Strategy Mixins
# ============================================================================

class RetryableError(ExportException):
    """
    Mixin for errors caused by a transient upstream condition.

    Only the "Continue wait" signal is retried automatically by the API
    client; other retryable errors are surfaced so the caller can decide.
    """
    pass


class NonRetryableError(ExportException):
    """
    Mixin for errors that repeating the same request cannot fix.

    Use this for permanent errors like:
    - Rejected credentials (HTTP 401, 403)
    - Malformed queries or unknown cubes
    - Unexpected response payloads
    """
    pass


# ============================================================================
# API Errors
# ============================================================================

class APIError(ExportException):
    """
    The login, meta or load endpoint could not be used.

    Context should include:
        - api_url: Login, meta or load URL that was called
        - status_code: HTTP status, when a response arrived
        - response_body: First 500 characters of an unexpected body
        - offset, limit: Window of the load query, for load failures
    """
    pass


class AuthenticationError(NonRetryableError, APIError):
    """Credentials rejected or no token returned. Fatal for the whole run."""
    pass


class RateLimitError(RetryableError, APIError):
    """
    The upstream kept answering "Continue wait" past the retry policy limit.

    Never raised under the default (unbounded) retry policy.
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        attempts: Optional[int] = None
    ):
        super().__init__(message, context, original_exception)
        self.attempts = attempts
        if attempts is not None:
            self.context["attempts"] = attempts


class TransportError(RetryableError, APIError):
    """Timeouts and network-level failures talking to the API."""
    pass


class UpstreamError(NonRetryableError, APIError):
    """HTTP error status or an application-level error in the response body."""
    pass


# ============================================================================
# Local Errors
# ============================================================================

class FilesystemError(NonRetryableError):
    """
    A cube directory could not be created or a page file could not be written.

    Context should include:
        - path: The path being written
        - operation: mkdir, write, replace or scan
    """
    pass


class CheckpointError(NonRetryableError):
    """
    A checkpoint read from or about to be written to latest-data-date-time.txt
    is not a timestamp.

    Context should include:
        - cube: Name of the cube
        - path: Path of the checkpoint file
        - checkpoint_value: The value that failed to parse
    """
    pass


class ConfigurationError(NonRetryableError):
    """Invalid or missing settings, such as absent credentials."""
    pass
