"""
CWE node model: a single weakness, category or view and its tree links.
"""

from __future__ import annotations

import json
import weakref
import xml.etree.ElementTree as ET
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from .ids import cwe_numeric_id


@dataclass(eq=False)
class CWENode:
    """A CWE entity with an owned list of children and a weak parent link.

    Nodes compare by identity. ``add_child`` is the only supported way to
    link nodes; it does not check for cycles.
    """

    id: str
    name: str = ""
    description: str = ""
    url: str = ""
    severity: str = ""
    mitigations: list[str] = field(default_factory=list)
    examples: list[str] = field(default_factory=list)
    children: list[CWENode] = field(default_factory=list, repr=False)
    _parent_ref: weakref.ReferenceType[CWENode] | None = field(
        default=None, init=False, repr=False
    )

    @property
    def parent(self) -> CWENode | None:
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    def add_child(self, child: CWENode) -> None:
        """Append ``child`` and point its parent link at this node."""
        child._parent_ref = weakref.ref(self)
        self.children.append(child)

    def is_root(self) -> bool:
        return self.parent is None

    def is_leaf(self) -> bool:
        return not self.children

    def get_root(self) -> CWENode:
        current = self
        while current.parent is not None:
            current = current.parent
        return current

    def get_path(self) -> list[CWENode]:
        """Nodes from the root down to this node, inclusive."""
        path = []
        current: CWENode | None = self
        while current is not None:
            path.append(current)
            current = current.parent
        path.reverse()
        return path

    def depth(self) -> int:
        return len(self.get_path()) - 1

    def numeric_id(self) -> int:
        """Integer suffix of the canonical ID (``CWE-79`` gives ``79``)."""
        return cwe_numeric_id(self.id)

    def iter_descendants(self) -> Iterator[CWENode]:
        """Yield every node below this one, depth-first in child order."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    # Serialization

    def to_dict(self, include_children: bool = True) -> dict[str, Any]:
        """Render the node without its parent back-reference.

        Args:
            include_children: Nest children recursively. When False,
                children are rendered as a list of their IDs.
        """
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "url": self.url,
            "severity": self.severity,
            "mitigations": list(self.mitigations),
            "examples": list(self.examples),
        }
        if include_children:
            data["children"] = [child.to_dict() for child in self.children]
        else:
            data["children"] = [child.id for child in self.children]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CWENode:
        """Build a node (and any nested child objects) from ``to_dict`` output.

        Child entries given as plain ID strings are ignored here; the
        registry resolves them on import.
        """
        node = cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            url=str(data.get("url") or ""),
            severity=str(data.get("severity") or ""),
            mitigations=[str(m) for m in data.get("mitigations") or []],
            examples=[str(e) for e in data.get("examples") or []],
        )
        for child in data.get("children") or []:
            if isinstance(child, dict):
                node.add_child(cls.from_dict(child))
        return node

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def to_xml(self) -> bytes:
        """Render the subtree rooted at this node as XML.

        Children nest inside ``<Children>`` as ``<Child>`` elements; empty
        optional fields are omitted.
        """
        return ET.tostring(self._to_element("CWE"), encoding="utf-8")

    def _to_element(self, tag: str) -> ET.Element:
        element = ET.Element(tag)
        ET.SubElement(element, "ID").text = self.id
        ET.SubElement(element, "Name").text = self.name
        for tag_name, value in (
            ("Description", self.description),
            ("URL", self.url),
            ("Severity", self.severity),
        ):
            if value:
                ET.SubElement(element, tag_name).text = value

        if self.mitigations:
            mitigations = ET.SubElement(element, "Mitigations")
            for mitigation in self.mitigations:
                ET.SubElement(mitigations, "Mitigation").text = mitigation
        if self.examples:
            examples = ET.SubElement(element, "Examples")
            for example in self.examples:
                ET.SubElement(examples, "Example").text = example

        if self.children:
            children = ET.SubElement(element, "Children")
            for child in self.children:
                children.append(child._to_element("Child"))
        return element
