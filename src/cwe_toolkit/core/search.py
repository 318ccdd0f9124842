"""
Search helpers over a CWE subtree.
"""

from .node import CWENode


def find_by_id(root: CWENode | None, cwe_id: str) -> CWENode | None:
    """Return the first node in ``root``'s subtree whose ID equals ``cwe_id``."""
    if root is None:
        return None
    if root.id == cwe_id:
        return root
    for node in root.iter_descendants():
        if node.id == cwe_id:
            return node
    return None


def find_by_keyword(root: CWENode | None, keyword: str) -> list[CWENode]:
    """Return nodes whose name or description contains ``keyword``.

    Matching is case-insensitive; results follow pre-order traversal.
    """
    if root is None:
        return []

    needle = keyword.lower()
    matches = []
    for node in [root, *root.iter_descendants()]:
        if needle in node.name.lower() or needle in node.description.lower():
            matches.append(node)
    return matches
