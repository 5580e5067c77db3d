"""
Client library for the Prometheus HTTP query API.

Modules:
- client: PrometheusClient with query, query_range and metrics
- decoder: response envelope decoding
- models: typed results with text and CSV rendering
- config: YAML configuration for the client and the CLI
- errors: exception hierarchy
"""

import logging

__version__ = "0.1.0"

from .client import PrometheusClient, build_url
from .errors import (
    ApiError,
    ApiStatusError,
    ConfigError,
    ConnectionFailedError,
    DecodeError,
    PrometheusClientError,
    ProtocolError,
    RequestTimeoutError,
    TransportError,
)
from .models import (
    MatrixResponse,
    MatrixSeries,
    Metric,
    QueryResponse,
    ResultType,
    Sample,
    ScalarResponse,
    VectorEntry,
    VectorResponse,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Client
    "PrometheusClient",
    "build_url",
    # Results
    "QueryResponse",
    "ScalarResponse",
    "VectorResponse",
    "VectorEntry",
    "MatrixResponse",
    "MatrixSeries",
    "Metric",
    "Sample",
    "ResultType",
    # Errors
    "PrometheusClientError",
    "ConfigError",
    "TransportError",
    "ConnectionFailedError",
    "RequestTimeoutError",
    "ProtocolError",
    "DecodeError",
    "ApiError",
    "ApiStatusError",
]
