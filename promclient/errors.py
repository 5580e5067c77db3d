"""
Exceptions raised by the Prometheus query client.

Every error carries the name of the operation that failed (``query``,
``query_range`` or ``metrics``) when one applies, so that callers can report
a useful message without wrapping the exception themselves.
"""

from typing import Optional


class PrometheusClientError(Exception):
    """Base exception for all client errors."""

    def __init__(self, message: str, operation: Optional[str] = None):
        if operation:
            message = f"{operation}: {message}"
        super().__init__(message)
        self.operation = operation


class ConfigError(PrometheusClientError):
    """Raised when the endpoint or client configuration is invalid."""

    def __init__(self, message: str, errors: Optional[list[str]] = None,
                 operation: Optional[str] = None):
        super().__init__(message, operation=operation)
        self.errors = errors or []


class TransportError(PrometheusClientError):
    """Raised when the request could not be sent or the body not read."""

    def __init__(self, message: str, cause: Optional[BaseException] = None,
                 operation: Optional[str] = None):
        super().__init__(message, operation=operation)
        self.cause = cause


class ConnectionFailedError(TransportError):
    """Raised when connecting to Prometheus fails."""
    pass


class RequestTimeoutError(TransportError):
    """Raised when the request deadline elapses."""
    pass


class ProtocolError(PrometheusClientError):
    """Raised on a non-2xx HTTP status or a body that is not JSON."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 response_body: Optional[str] = None,
                 operation: Optional[str] = None):
        super().__init__(message, operation=operation)
        self.status_code = status_code
        self.response_body = response_body


class DecodeError(PrometheusClientError):
    """Raised when a JSON body does not have the expected structure."""
    pass


class ApiError(PrometheusClientError):
    """
    Raised when Prometheus answers with ``status: error``.

    Attributes:
        kind: The ``errorType`` from the envelope (e.g. ``bad_data``)
        message: The ``error`` message from the envelope
    """

    def __init__(self, kind: str, message: str, operation: Optional[str] = None):
        super().__init__(f"ErrorType: {kind}, Error: {message}", operation=operation)
        self.kind = kind
        self.message = message


class ApiStatusError(ProtocolError, ApiError):
    """
    Raised on a non-2xx response whose body is a ``status: error`` envelope.

    Prometheus answers rejected queries with 400, 422 or 503 and an error
    envelope, so this is both a ProtocolError and an ApiError.
    """

    def __init__(self, kind: str, message: str, status_code: int,
                 response_body: Optional[str] = None,
                 operation: Optional[str] = None):
        PrometheusClientError.__init__(
            self,
            f"HTTP {status_code}: ErrorType: {kind}, Error: {message}",
            operation=operation,
        )
        self.status_code = status_code
        self.response_body = response_body
        self.kind = kind
        self.message = message
