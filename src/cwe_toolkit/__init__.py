"""
CWE Toolkit - Client and graph builder for the MITRE CWE REST API.

This toolkit provides functionality for:
- Normalizing CWE identifiers
- Rate-limited, retrying access to the CWE REST service
- Materializing weakness, category and view hierarchies into a registry
- Exporting registries and subtrees as JSON or XML
"""

from .api import CWEAPIClient
from .core import CWENode, CWERegistry, TreeNode, find_by_id, find_by_keyword, parse_cwe_id
from .fetcher import DataFetcher
from .http import RateLimiter, RetryingHTTPClient
from .shared import ClientConfig, CWEToolkitError, RegistryCache, setup_logging

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "CWEAPIClient",
    "CWENode",
    "CWERegistry",
    "ClientConfig",
    "CWEToolkitError",
    "DataFetcher",
    "RateLimiter",
    "RegistryCache",
    "RetryingHTTPClient",
    "TreeNode",
    "find_by_id",
    "find_by_keyword",
    "parse_cwe_id",
    "setup_logging",
]
