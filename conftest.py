"""
Pytest configuration and fixtures for the Prometheus query client tests.

HTTP traffic is served by httpx.MockTransport, so no Prometheus server is
needed.
"""

import json
from typing import Any, Callable

import httpx
import pytest
from hypothesis import settings, Verbosity

# Configure Hypothesis profiles
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,
)

settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.verbose,
    deadline=None,
)

settings.register_profile(
    "dev",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)


def pytest_configure(config):
    """Configure pytest with custom settings."""
    # Load the default hypothesis profile
    settings.load_profile("default")


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


def json_transport(payload: Any, status_code: int = 200) -> RecordingTransport:
    """Build a transport answering every request with ``payload`` as JSON."""
    body = payload if isinstance(payload, (str, bytes)) else json.dumps(payload)
    return RecordingTransport(lambda request: httpx.Response(status_code, content=body))


@pytest.fixture
def prometheus_url() -> str:
    """Endpoint used by the client under test."""
    return "http://prometheus.test:9090"


@pytest.fixture
def make_transport() -> Callable[..., RecordingTransport]:
    """Factory fixture for canned JSON transports."""
    return json_transport
