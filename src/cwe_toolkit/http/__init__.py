"""
HTTP transport for the CWE REST service.

Contains the minimum-interval rate limiter and the retrying client that
paces every outbound request through it.
"""

from .client import RetryingHTTPClient
from .rate_limiter import DEFAULT_RATE_LIMITER, RateLimiter

__all__ = [
    "RateLimiter",
    "DEFAULT_RATE_LIMITER",
    "RetryingHTTPClient",
]
