"""
Fetching and tree building on top of the CWE API client.
"""

from .convert import convert_to_node, extract_relations
from .data_fetcher import DataFetcher

__all__ = [
    "DataFetcher",
    "convert_to_node",
    "extract_relations",
]
