"""
Core CWE data structures.

Contains ID normalization, the node model, the registry, and search and
tree-view helpers built on top of them.
"""

from .ids import cwe_numeric_id, format_cwe_id, parse_cwe_id
from .node import CWENode
from .registry import CWERegistry
from .search import find_by_id, find_by_keyword
from .tree import TreeNode, sort_tree

__all__ = [
    "CWENode",
    "CWERegistry",
    "TreeNode",
    "parse_cwe_id",
    "format_cwe_id",
    "cwe_numeric_id",
    "find_by_id",
    "find_by_keyword",
    "sort_tree",
]
