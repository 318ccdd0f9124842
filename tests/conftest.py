"""
Pytest configuration and shared fixtures for CWE Toolkit tests.
"""

import json
import tempfile
import time
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
import requests

from cwe_toolkit.api.client import CWEAPIClient
from cwe_toolkit.core.node import CWENode
from cwe_toolkit.fetcher.data_fetcher import DataFetcher
from cwe_toolkit.http.client import RetryingHTTPClient
from cwe_toolkit.http.rate_limiter import RateLimiter

TEST_BASE_URL = "https://cwe.test/api/v1"


def make_response(
    request: requests.PreparedRequest, status: int, content: bytes
) -> requests.Response:
    """Build a fully consumed response as ``Session.send`` would return it."""
    response = requests.Response()
    response.status_code = status
    response._content = content
    response._content_consumed = True
    response.headers["Content-Type"] = "application/json"
    response.encoding = "utf-8"
    response.url = request.url
    response.request = request
    return response


class FakeSession(requests.Session):
    """Session answering from a route table instead of the network.

    Routes map a path below the base URL to one of:

    - ``(status, payload)``: payload is JSON-encoded
    - ``bytes``: raw body with status 200
    - an exception instance, raised from ``send``
    - a callable taking the prepared request and returning any of the above
    - a list of the above, consumed one per call (the last one repeats)

    Unknown paths answer 404.
    """

    def __init__(self, base_url: str = TEST_BASE_URL):
        super().__init__()
        self.base_url = base_url
        self.routes: dict[str, Any] = {}
        self.calls: list[dict[str, Any]] = []

    def add(self, path: str, result: Any) -> None:
        self.routes[f"{self.base_url}{path}"] = result

    def add_json(self, path: str, payload: Any, status: int = 200) -> None:
        self.add(path, (status, payload))

    def calls_to(self, path: str) -> list[dict[str, Any]]:
        url = f"{self.base_url}{path}"
        return [call for call in self.calls if call["url"] == url]

    def send(self, request: requests.PreparedRequest, **kwargs: Any) -> requests.Response:
        body = request.body
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.calls.append(
            {
                "method": request.method,
                "url": request.url,
                "body": body,
                "headers": dict(request.headers),
                "time": time.monotonic(),
            }
        )

        if request.url not in self.routes:
            return make_response(request, 404, b'{"error": "not found"}')

        result = self.routes[request.url]
        if isinstance(result, list):
            result = result.pop(0) if len(result) > 1 else result[0]
        if isinstance(result, BaseException):
            raise result
        if callable(result):
            result = result(request)
        if isinstance(result, bytes):
            return make_response(request, 200, result)

        status, payload = result
        return make_response(request, status, json.dumps(payload).encode("utf-8"))


def weakness(number: int, name: str = "", **fields: Any) -> dict[str, Any]:
    """Return an entity payload in the shape served by the entity endpoints."""
    data: dict[str, Any] = {"ID": str(number), "Name": name or f"Weakness {number}"}
    data.update(fields)
    return data


@pytest.fixture
def temp_dir() -> Generator[Path]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_session() -> FakeSession:
    """Return a session with an empty route table."""
    return FakeSession()


@pytest.fixture
def http_client(fake_session: FakeSession) -> RetryingHTTPClient:
    """Return a transport with pacing and retry delays disabled."""
    return RetryingHTTPClient(
        session=fake_session,
        rate_limiter=RateLimiter(0),
        max_retries=2,
        retry_delay=0,
    )


@pytest.fixture
def api_client(http_client: RetryingHTTPClient) -> CWEAPIClient:
    """Return an API client bound to the fake session."""
    return CWEAPIClient(base_url=TEST_BASE_URL, http_client=http_client)


@pytest.fixture
def fetcher(api_client: CWEAPIClient) -> DataFetcher:
    """Return a data fetcher bound to the fake session."""
    return DataFetcher(api_client)


@pytest.fixture
def sample_tree() -> dict[str, CWENode]:
    """Return a small linked hierarchy keyed by ID.

    CWE-1000
    ├── CWE-20
    │   ├── CWE-79
    │   └── CWE-89
    └── CWE-284
    """
    nodes = {
        "CWE-1000": CWENode(id="CWE-1000", name="Research Concepts"),
        "CWE-20": CWENode(
            id="CWE-20",
            name="Improper Input Validation",
            description="The product does not validate input properly.",
        ),
        "CWE-79": CWENode(
            id="CWE-79",
            name="Cross-site Scripting",
            description="Improper neutralization of input during web page generation.",
            severity="High",
            mitigations=["Use an output encoding library"],
            examples=["Reflected XSS in a search form"],
        ),
        "CWE-89": CWENode(
            id="CWE-89",
            name="SQL Injection",
            description="Improper neutralization of special elements used in an SQL command.",
        ),
        "CWE-284": CWENode(id="CWE-284", name="Improper Access Control"),
    }
    nodes["CWE-1000"].add_child(nodes["CWE-20"])
    nodes["CWE-20"].add_child(nodes["CWE-79"])
    nodes["CWE-20"].add_child(nodes["CWE-89"])
    nodes["CWE-1000"].add_child(nodes["CWE-284"])
    return nodes
