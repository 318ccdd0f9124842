"""
Tests for the sorted tree view.
"""

from cwe_toolkit.core.node import CWENode
from cwe_toolkit.core.tree import TreeNode, sort_tree


def _tree_node(number: int) -> TreeNode:
    return TreeNode(CWENode(id=f"CWE-{number}"))


class TestSortTree:
    """Tests for sort_tree."""

    def test_sorts_roots_and_children_numerically(self) -> None:
        """Test sorting is numeric at every level."""
        roots = [_tree_node(700), _tree_node(1000), _tree_node(20)]
        for number in (100, 9, 20):
            roots[1].add_child(_tree_node(number))

        sort_tree(roots)
        assert [r.id for r in roots] == ["CWE-20", "CWE-700", "CWE-1000"]
        assert [c.id for c in roots[2].children] == ["CWE-9", "CWE-20", "CWE-100"]

    def test_shared_child(self) -> None:
        """Test a node under two parents is sorted once and kept under both."""
        left, right = _tree_node(2), _tree_node(1)
        shared = _tree_node(3)
        shared.add_child(_tree_node(5))
        shared.add_child(_tree_node(4))
        left.add_child(shared)
        right.add_child(shared)

        roots = [left, right]
        sort_tree(roots)
        assert [r.id for r in roots] == ["CWE-1", "CWE-2"]
        assert roots[0].children[0] is roots[1].children[0]
        assert [c.id for c in shared.children] == ["CWE-4", "CWE-5"]
