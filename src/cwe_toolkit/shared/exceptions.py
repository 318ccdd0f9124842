"""
Custom exception hierarchy for the CWE toolkit.
"""

from typing import Any

import requests


class CWEToolkitError(Exception):
    """Base exception for all CWE toolkit errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        """Initialize with message and optional context.

        Args:
            message: Error message
            context: Additional context information
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """String representation with context."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


# Input validation exceptions
class InvalidIDError(CWEToolkitError, ValueError):
    """CWE ID string does not match any accepted form."""

    pass


class EmptyInputError(CWEToolkitError, ValueError):
    """A required string or collection argument was empty."""

    pass


class ConfigurationError(CWEToolkitError):
    """Invalid client or transport configuration."""

    pass


# Registry-related exceptions
class RegistryError(CWEToolkitError):
    """Base exception for registry operations."""

    pass


class NotFoundError(RegistryError, LookupError):
    """Lookup of a CWE ID failed."""

    pass


class DuplicateIDError(RegistryError):
    """Attempted to register an ID that is already present."""

    pass


class HierarchyError(RegistryError):
    """Linking would give a node two parents or create a cycle."""

    pass


# Upstream API exceptions
class APIError(CWEToolkitError):
    """Base exception for CWE REST API responses."""

    pass


class APIStatusError(APIError):
    """Upstream returned a non-2xx response."""

    def __init__(self, status: int, context: dict[str, Any] | None = None):
        super().__init__(f"API request failed with status {status}", context)
        self.status = status


class DecodeError(APIError):
    """Response body could not be parsed as the expected JSON shape."""

    pass


class MissingFieldError(APIError):
    """Parsed response lacked a required field."""

    def __init__(self, field: str, context: dict[str, Any] | None = None):
        super().__init__(f"Response is missing required field '{field}'", context)
        self.field = field


# Transport exceptions
class HTTPClientError(CWEToolkitError):
    """Base exception for the HTTP transport."""

    pass


class TransportError(HTTPClientError):
    """Underlying HTTP dispatch failed."""

    pass


class RetriesExceededError(HTTPClientError):
    """Retry budget exhausted without a usable response."""

    def __init__(
        self,
        attempts: int,
        last_status: int | None = None,
        last_error: Exception | None = None,
        context: dict[str, Any] | None = None,
    ):
        if last_error is not None:
            message = f"Request failed after {attempts} attempts: {last_error}"
        else:
            message = f"Request failed after {attempts} attempts with status {last_status}"
        super().__init__(message, context)
        self.attempts = attempts
        self.last_status = last_status
        self.last_error = last_error


# Utility functions for error handling
def wrap_external_error(
    error: Exception, context: dict[str, Any] | None = None
) -> CWEToolkitError:
    """Wrap external exceptions in our custom exception hierarchy.

    Args:
        error: External exception to wrap
        context: Additional context information

    Returns:
        Appropriate CWEToolkitError subclass
    """
    if isinstance(error, CWEToolkitError):
        return error

    error_message = str(error)
    error_context = context or {}
    error_context["original_error"] = type(error).__name__

    # JSONDecodeError is also a RequestException, check it first
    if isinstance(error, requests.exceptions.JSONDecodeError):
        return DecodeError(f"Invalid JSON: {error_message}", error_context)

    elif isinstance(error, requests.exceptions.Timeout):
        return TransportError(f"Request timed out: {error_message}", error_context)

    elif isinstance(error, requests.exceptions.ConnectionError):
        return TransportError(f"Network connection error: {error_message}", error_context)

    elif isinstance(error, requests.exceptions.RequestException):
        return TransportError(f"HTTP request failed: {error_message}", error_context)

    else:
        # Generic wrapper for unknown errors
        return CWEToolkitError(f"Unexpected error: {error_message}", error_context)


def create_error_context(**kwargs) -> dict[str, Any]:
    """Create error context dictionary with standardized keys.

    Args:
        **kwargs: Context key-value pairs

    Returns:
        Context dictionary
    """
    context = {}

    for key, value in kwargs.items():
        if value is not None:
            context[key] = value

    return context
