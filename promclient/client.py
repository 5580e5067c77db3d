"""
Prometheus HTTP API client.

This module provides a small synchronous client for the Prometheus query API:
instant queries (/api/v1/query), range queries (/api/v1/query_range) and
metric name listing (/api/v1/metrics).

Example:
    >>> with PrometheusClient("http://localhost:9090", timeout=10.0) as client:
    ...     response = client.query("up")
    ...     print(response.to_text())
"""

import logging
import time
from typing import Optional

import httpx

from .decoder import (
    decode_metrics_response,
    decode_query_range_response,
    decode_query_response,
    parse_json,
)
from .errors import (
    ApiStatusError,
    ConfigError,
    ConnectionFailedError,
    ProtocolError,
    RequestTimeoutError,
    TransportError,
)
from .models import MatrixResponse, QueryResponse

QUERY_PATH = "/api/v1/query"
QUERY_RANGE_PATH = "/api/v1/query_range"
METRICS_PATH = "/api/v1/metrics"

DEFAULT_TIMEOUT = 30.0


def parse_endpoint(endpoint: str) -> httpx.URL:
    """
    Parse an endpoint string into an absolute http(s) URL.

    Raises:
        ConfigError: If the endpoint is not an absolute http or https URL
    """
    if not isinstance(endpoint, str) or not endpoint:
        raise ConfigError(f"Invalid endpoint {endpoint!r}: must be a non-empty string")
    try:
        url = httpx.URL(endpoint)
    except (httpx.InvalidURL, TypeError) as e:
        raise ConfigError(f"Invalid endpoint {endpoint!r}: {e}") from e
    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigError(f"Invalid endpoint {endpoint!r}: expected an absolute http(s) URL")
    return url


def build_url(endpoint: str, path: str, params: Optional[dict[str, str]] = None) -> httpx.URL:
    """
    Build the URL of an API call.

    Trailing slashes are stripped from the endpoint path before ``path`` is
    appended. Each parameter replaces any value already present for its key
    in the endpoint's query string; other parameters are kept as they are.

    Args:
        endpoint: Base URL of the Prometheus API
        path: Fixed API sub-path, e.g. ``/api/v1/query``
        params: Operation parameters

    Returns:
        The request URL
    """
    url = parse_endpoint(endpoint)
    url = url.copy_with(path=url.path.rstrip("/") + path)
    for key, value in (params or {}).items():
        url = url.copy_set_param(key, value)
    return url


def _format_unsigned(value: int, name: str) -> str:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer number of seconds, got {value!r}")
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return str(value)


class PrometheusClient:
    """
    Client for executing queries against the Prometheus API.

    The client holds only its endpoint and a pooled ``httpx.Client``; it keeps
    no per-request state and can be shared between threads.

    Attributes:
        endpoint: Base URL of the Prometheus API, as given
        timeout: Deadline in seconds for a whole request, from connecting
            until the body is read
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = DEFAULT_TIMEOUT,
        *,
        logger: Optional[logging.Logger] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            endpoint: Base URL of the Prometheus instance (e.g., http://localhost:9090)
            timeout: Request timeout in seconds (default: 30.0)
            logger: Logger receiving request URLs and response bodies at
                DEBUG level (default: the ``promclient.client`` logger)
            transport: Optional httpx transport, mainly for testing

        Raises:
            ConfigError: If the endpoint or timeout is invalid
        """
        parse_endpoint(endpoint)
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigError(f"Invalid timeout {timeout!r}: must be a positive number of seconds")

        self.endpoint = endpoint
        self.timeout = float(timeout)
        self._logger = logger or logging.getLogger(__name__)
        self._client = httpx.Client(timeout=httpx.Timeout(self.timeout), transport=transport)

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._client.close()

    def __enter__(self) -> "PrometheusClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"PrometheusClient(endpoint={self.endpoint!r}, timeout={self.timeout})"

    # =========================================================================
    # Transport
    # =========================================================================

    def _get(self, url: httpx.URL, operation: str) -> bytes:
        """
        Issue a GET and read the full body within the request deadline.

        Raises:
            RequestTimeoutError: If the deadline elapses
            ConnectionFailedError: If the connection cannot be established
            TransportError: On any other I/O failure
            ProtocolError: If the HTTP status is outside 2xx
        """
        self._logger.debug(f"URL: {url}")
        deadline = time.monotonic() + self.timeout

        try:
            with self._client.stream("GET", url) as response:
                chunks = []
                for chunk in response.iter_bytes():
                    self._check_deadline(deadline, url, operation)
                    chunks.append(chunk)
                body = b"".join(chunks)
            # connect and headers alone may have used up the deadline
            self._check_deadline(deadline, url, operation)
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(
                f"request to {url.path} timed out after {self.timeout}s",
                cause=e,
                operation=operation,
            ) from e
        except httpx.ConnectError as e:
            raise ConnectionFailedError(
                f"failed to connect to Prometheus at {self.endpoint}: {e}",
                cause=e,
                operation=operation,
            ) from e
        except httpx.TransportError as e:
            raise TransportError(
                f"error accessing {url.path}: {e}",
                cause=e,
                operation=operation,
            ) from e

        self._logger.debug(f"Resp: {body.decode('utf-8', errors='replace')}")

        if not response.is_success:
            raise self._status_error(response.status_code, body, operation)
        return body

    def _check_deadline(self, deadline: float, url: httpx.URL, operation: str) -> None:
        if time.monotonic() > deadline:
            raise RequestTimeoutError(
                f"request to {url.path} timed out after {self.timeout}s",
                operation=operation,
            )

    @staticmethod
    def _status_error(status_code: int, body: bytes, operation: str) -> ProtocolError:
        """Build the error for a non-2xx response, keeping any API error it carries."""
        text = body.decode("utf-8", errors="replace")
        response_body = text[:500] if text else None
        try:
            envelope = parse_json(body, operation)
        except ProtocolError:
            envelope = None
        if isinstance(envelope, dict) and envelope.get("status") == "error":
            return ApiStatusError(
                kind=str(envelope.get("errorType", "")),
                message=str(envelope.get("error", "")),
                status_code=status_code,
                response_body=response_body,
                operation=operation,
            )
        return ProtocolError(
            f"HTTP {status_code}",
            status_code=status_code,
            response_body=response_body,
            operation=operation,
        )

    # =========================================================================
    # Query Endpoints
    # =========================================================================

    def query(self, expr: str) -> QueryResponse:
        """
        Perform an instant query via /api/v1/query.

        Args:
            expr: PromQL expression

        Returns:
            ScalarResponse, VectorResponse or MatrixResponse depending on the
            result type reported by the server

        Raises:
            ApiError: If Prometheus rejects the query
            DecodeError: If the response has an unexpected structure
            ProtocolError: On a non-2xx status or a non-JSON body
            TransportError: If the request fails or times out

        Example:
            >>> response = client.query("sum(up)")
            >>> response.to_text()
            '3'
        """
        url = build_url(self.endpoint, QUERY_PATH, {"query": expr})
        body = self._get(url, "query")
        return decode_query_response(body)

    def query_range(self, expr: str, end: float, range_seconds: int, step: int) -> MatrixResponse:
        """
        Perform a range query via /api/v1/query_range.

        Args:
            expr: PromQL expression
            end: Evaluation end as a UNIX timestamp in seconds
            range_seconds: Length of the evaluated interval in seconds
            step: Resolution step width in seconds

        Returns:
            MatrixResponse with one series per result

        Raises:
            ValueError: If range_seconds or step is not a non-negative integer
            ApiError: If Prometheus rejects the query
            DecodeError: If the result is not a matrix or is malformed
            ProtocolError: On a non-2xx status or a non-JSON body
            TransportError: If the request fails or times out
        """
        params = {
            "query": expr,
            "end": f"{float(end):f}",
            "range": _format_unsigned(range_seconds, "range_seconds"),
            "step": _format_unsigned(step, "step"),
        }
        url = build_url(self.endpoint, QUERY_RANGE_PATH, params)
        body = self._get(url, "query_range")
        return decode_query_range_response(body)

    def metrics(self) -> list[str]:
        """
        List the metric names known to the server via /api/v1/metrics.

        Returns:
            Metric names in server order (possibly empty)

        Raises:
            DecodeError: If the body is not an array of strings
            ProtocolError: On a non-2xx status or a non-JSON body
            TransportError: If the request fails or times out
        """
        url = build_url(self.endpoint, METRICS_PATH)
        body = self._get(url, "metrics")
        return decode_metrics_response(body)
