"""
Sorted tree view over fetched CWE nodes.

Unlike the node model, a ``TreeNode`` may appear under several parents,
so it can mirror every parent-oriented relation between fetched entries.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .ids import id_sort_key
from .node import CWENode


@dataclass(eq=False)
class TreeNode:
    """A view node wrapping a CWE node."""

    cwe: CWENode
    children: list[TreeNode] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.cwe.id

    def add_child(self, child: TreeNode) -> None:
        self.children.append(child)


def sort_tree(nodes: list[TreeNode]) -> None:
    """Sort ``nodes`` and every nested children list by numeric CWE ID, in place."""
    nodes.sort(key=lambda node: id_sort_key(node.id))
    stack = list(nodes)
    visited: set[int] = set()
    while stack:
        node = stack.pop()
        if id(node) in visited:
            continue
        visited.add(id(node))
        node.children.sort(key=lambda child: id_sort_key(child.id))
        stack.extend(node.children)
