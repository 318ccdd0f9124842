"""
Shared module for core functionality.

Contains configuration and relation models, exceptions, logging, and
registry caching shared across the toolkit.
"""

from .caching import RegistryCache
from .exceptions import (
    APIError,
    APIStatusError,
    ConfigurationError,
    CWEToolkitError,
    DecodeError,
    DuplicateIDError,
    EmptyInputError,
    HierarchyError,
    HTTPClientError,
    InvalidIDError,
    MissingFieldError,
    NotFoundError,
    RegistryError,
    RetriesExceededError,
    TransportError,
    create_error_context,
    wrap_external_error,
)
from .logging import get_logger, setup_logging
from .models import (
    ClientConfig,
    Relation,
    RelationType,
    VersionInfo,
    is_parent_relation,
)

__all__ = [
    # Core models
    "ClientConfig",
    "Relation",
    "RelationType",
    "VersionInfo",
    "is_parent_relation",
    # Core exceptions
    "CWEToolkitError",
    "InvalidIDError",
    "EmptyInputError",
    "ConfigurationError",
    "RegistryError",
    "NotFoundError",
    "DuplicateIDError",
    "HierarchyError",
    "APIError",
    "APIStatusError",
    "DecodeError",
    "MissingFieldError",
    "HTTPClientError",
    "TransportError",
    "RetriesExceededError",
    "wrap_external_error",
    "create_error_context",
    # Utils
    "RegistryCache",
    "setup_logging",
    "get_logger",
]
