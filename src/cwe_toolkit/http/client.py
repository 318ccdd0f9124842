"""
Rate-limited HTTP transport with uniform retries on transient failures.
"""

import logging
import time
from collections.abc import Iterable, Mapping
from typing import Any

import requests

from ..shared.exceptions import (
    ConfigurationError,
    RetriesExceededError,
    create_error_context,
    wrap_external_error,
)
from ..shared.models import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    ClientConfig,
)
from .rate_limiter import DEFAULT_RATE_LIMITER, RateLimiter

logger = logging.getLogger(__name__)


class RetryingHTTPClient:
    """Wraps a ``requests.Session`` with pacing and retries.

    Every attempt first waits on the rate limiter, then (on a retry) sleeps
    ``retry_delay``, then dispatches a fresh copy of the prepared request.
    A response with status below 500 is returned as is; transport errors
    and 5xx responses are retried up to ``max_retries`` times before
    ``RetriesExceededError`` is raised.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        rate_limiter: RateLimiter | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        if max_retries < 0:
            raise ConfigurationError(
                "max_retries must not be negative", create_error_context(max_retries=max_retries)
            )
        if retry_delay < 0:
            raise ConfigurationError(
                "retry_delay must not be negative", create_error_context(retry_delay=retry_delay)
            )

        if session is None:
            session = requests.Session()
            session.headers["User-Agent"] = user_agent

        self.session = session
        self.rate_limiter = rate_limiter or DEFAULT_RATE_LIMITER
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout

    @classmethod
    def from_config(
        cls, config: ClientConfig, session: requests.Session | None = None
    ) -> "RetryingHTTPClient":
        """Build a transport with its own limiter from a client configuration."""
        return cls(
            session=session,
            rate_limiter=RateLimiter(config.effective_interval),
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
            timeout=config.timeout,
            user_agent=config.user_agent,
        )

    def __enter__(self) -> "RetryingHTTPClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def get(self, url: str, headers: Mapping[str, str] | None = None) -> requests.Response:
        return self.do(requests.Request("GET", url, headers=dict(headers or {})))

    def post(
        self, url: str, content_type: str = "application/json", body: Any = None
    ) -> requests.Response:
        """POST ``body`` with the given content type.

        ``body`` may be bytes, str, a file-like object or an iterable of
        bytes; it is read once and replayed on every attempt.

        Raises:
            TypeError: For a mapping body (use ``post_form``) or any other
                unsupported type
        """
        data = _capture_body(body) if body is not None else None
        request = requests.Request(
            "POST", url, headers={"Content-Type": content_type}, data=data
        )
        return self.do(request)

    def post_form(self, url: str, form: Mapping[str, Any]) -> requests.Response:
        return self.do(requests.Request("POST", url, data=dict(form)))

    def do(self, request: requests.Request | requests.PreparedRequest) -> requests.Response:
        """Dispatch a request with pacing and retries.

        Raises:
            RetriesExceededError: When every attempt failed with a transport
                error or a status of 500 or above
        """
        if isinstance(request, requests.PreparedRequest):
            prepared = request
        else:
            prepared = self.session.prepare_request(request)

        body = None
        if prepared.body is not None:
            body = _capture_body(prepared.body)
            prepared.headers.pop("Transfer-Encoding", None)
            prepared.headers["Content-Length"] = str(len(body))

        return self._send_with_retry(prepared, body)

    def _send_with_retry(
        self, prepared: requests.PreparedRequest, body: bytes | None
    ) -> requests.Response:
        last_error: Exception | None = None
        last_status: int | None = None
        attempts = self.max_retries + 1
        send_kwargs = self.session.merge_environment_settings(prepared.url, {}, None, None, None)

        for attempt in range(attempts):
            self.rate_limiter.wait()

            if attempt > 0:
                time.sleep(self.retry_delay)

            attempt_request = prepared.copy()
            attempt_request.body = body
            logger.debug(f"{prepared.method} {prepared.url} (attempt {attempt + 1}/{attempts})")

            try:
                response = self.session.send(
                    attempt_request, timeout=self.timeout, **send_kwargs
                )
            except requests.RequestException as e:
                last_error = wrap_external_error(
                    e, create_error_context(url=prepared.url, method=prepared.method)
                )
                last_status = None
                logger.warning(
                    f"Request to {prepared.url} failed on attempt {attempt + 1}/{attempts}: {e}"
                )
                continue

            if response.status_code < 500:
                return response

            last_error = None
            last_status = response.status_code
            response.close()
            logger.warning(
                f"Request to {prepared.url} returned {response.status_code} "
                f"on attempt {attempt + 1}/{attempts}"
            )

        raise RetriesExceededError(
            attempts,
            last_status=last_status,
            last_error=last_error,
            context=create_error_context(url=prepared.url, method=prepared.method),
        ) from last_error


def _capture_body(body: Any) -> bytes:
    """Read a request body fully into memory exactly once."""
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    if hasattr(body, "read"):
        content = body.read()
        return content.encode("utf-8") if isinstance(content, str) else bytes(content)
    if isinstance(body, bytearray | memoryview):
        return bytes(body)
    if isinstance(body, Mapping):
        raise TypeError("Mapping bodies must be sent with post_form")
    if not isinstance(body, Iterable):
        raise TypeError(f"Unsupported request body type: {type(body).__name__}")
    return b"".join(
        chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk) for chunk in body
    )
