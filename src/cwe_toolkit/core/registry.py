"""
Registry owning a keyed collection of CWE nodes.
"""

import json
import logging
import threading
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

from ..shared.exceptions import (
    DecodeError,
    DuplicateIDError,
    EmptyInputError,
    HierarchyError,
    InvalidIDError,
    NotFoundError,
    create_error_context,
)
from .ids import parse_cwe_id
from .node import CWENode

logger = logging.getLogger(__name__)


class CWERegistry:
    """Maps canonical CWE IDs to nodes, with an optional distinguished root.

    Every registered node is keyed by its own ``id`` and appears once.
    Mutating operations hold the registry lock; readers of a fully built
    registry need no synchronization.
    """

    def __init__(self):
        self.entries: dict[str, CWENode] = {}
        self._root: CWENode | None = None
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, cwe_id: object) -> bool:
        return cwe_id in self.entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self.entries))

    def __repr__(self) -> str:
        root_id = self._root.id if self._root else None
        return f"CWERegistry(size={len(self.entries)}, root={root_id!r})"

    @property
    def root(self) -> CWENode | None:
        return self._root

    @root.setter
    def root(self, node: CWENode | None) -> None:
        with self._lock:
            if node is not None and self.entries.get(node.id) is not node:
                raise NotFoundError(
                    "Root node must be registered first", create_error_context(cwe_id=node.id)
                )
            self._root = node

    def register(self, node: CWENode | None) -> None:
        """Insert a node under its ID.

        Raises:
            EmptyInputError: If the node is None or has an empty ID
            DuplicateIDError: If the ID is already registered
        """
        if node is None:
            raise EmptyInputError("Cannot register an empty node")
        if not node.id:
            raise EmptyInputError("Node must have an ID")

        with self._lock:
            if node.id in self.entries:
                raise DuplicateIDError(
                    "CWE already registered", create_error_context(cwe_id=node.id)
                )
            self.entries[node.id] = node

    def get_by_id(self, cwe_id: str) -> CWENode:
        """Return the node registered under exactly ``cwe_id``.

        Raises:
            NotFoundError: If no node has that ID
        """
        try:
            return self.entries[cwe_id]
        except KeyError:
            raise NotFoundError("CWE not found", create_error_context(cwe_id=cwe_id)) from None

    def get(self, cwe_id: str, default: CWENode | None = None) -> CWENode | None:
        return self.entries.get(cwe_id, default)

    def nodes(self) -> list[CWENode]:
        return list(self.entries.values())

    def build_hierarchy(self, parent_child_map: Mapping[str, list[str]]) -> None:
        """Link registered nodes according to a parent to children-IDs mapping.

        All references are validated before any link is made, so a failure
        leaves the registry untouched.

        Raises:
            NotFoundError: If a parent or child ID is not registered
            HierarchyError: If a child would end up with two parents or a
                link would close a cycle
        """
        with self._lock:
            for parent_id, child_ids in parent_child_map.items():
                if parent_id not in self.entries:
                    raise NotFoundError(
                        "Parent is not registered", create_error_context(cwe_id=parent_id)
                    )
                for child_id in child_ids:
                    if child_id not in self.entries:
                        raise NotFoundError(
                            "Child is not registered",
                            create_error_context(cwe_id=child_id, parent_id=parent_id),
                        )

            self._check_forest(parent_child_map)

            for parent_id, child_ids in parent_child_map.items():
                parent = self.entries[parent_id]
                for child_id in child_ids:
                    parent.add_child(self.entries[child_id])

    def _check_forest(self, parent_child_map: Mapping[str, list[str]]) -> None:
        """Simulate the requested links and reject any that break the forest."""
        parent_of: dict[str, str] = {}
        for node in self.entries.values():
            if node.parent is not None:
                parent_of[node.id] = node.parent.id

        for parent_id, child_ids in parent_child_map.items():
            for child_id in child_ids:
                if child_id in parent_of:
                    raise HierarchyError(
                        "Child already has a parent",
                        create_error_context(
                            cwe_id=child_id,
                            parent_id=parent_id,
                            existing_parent=parent_of[child_id],
                        ),
                    )
                ancestor: str | None = parent_id
                while ancestor is not None:
                    if ancestor == child_id:
                        raise HierarchyError(
                            "Link would create a cycle",
                            create_error_context(cwe_id=child_id, parent_id=parent_id),
                        )
                    ancestor = parent_of.get(ancestor)
                parent_of[child_id] = parent_id

    # JSON import / export

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Keyed-by-ID mapping with children rendered as ID references."""
        with self._lock:
            return {
                cwe_id: node.to_dict(include_children=False)
                for cwe_id, node in self.entries.items()
            }

    def export_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def import_json(self, data: str | bytes) -> None:
        """Replace the registry contents with a previously exported mapping.

        Keys win over the ``id`` field of their payload. Parent links are
        rebuilt from each node's ``children`` references; references to
        unknown IDs, or that would give a node a second parent, are dropped.

        Raises:
            EmptyInputError: On an empty payload or mapping
            DecodeError: On malformed JSON or a non-object payload
            InvalidIDError: On an entry with an empty ID or an invalid key
            DuplicateIDError: If two keys name the same CWE ID
        """
        if not data:
            raise EmptyInputError("Empty JSON data")

        try:
            payload = json.loads(data)
        except ValueError as e:
            raise DecodeError(f"Failed to parse registry JSON: {e}") from e

        self.import_dict(payload)

    def import_dict(self, payload: Any) -> None:
        """Replace the registry contents with an already-parsed mapping.

        See ``import_json`` for the accepted shape and the errors raised.
        """
        if not isinstance(payload, dict):
            raise DecodeError(
                "Registry JSON must be an object keyed by CWE ID",
                create_error_context(type=type(payload).__name__),
            )
        if not payload:
            raise EmptyInputError("No entries found in JSON data")

        parsed: dict[str, CWENode] = {}
        child_refs: dict[str, list[Any]] = {}
        for key, value in payload.items():
            if not isinstance(value, dict):
                raise DecodeError("Registry entry must be an object", create_error_context(key=key))
            if not value.get("id"):
                raise InvalidIDError("Entry without ID found", create_error_context(key=key))

            cwe_id = parse_cwe_id(key)
            if cwe_id in parsed:
                raise DuplicateIDError(
                    "Duplicate CWE ID in JSON data", create_error_context(cwe_id=cwe_id, key=key)
                )
            node = CWENode.from_dict({**value, "children": []})
            node.id = cwe_id
            parsed[cwe_id] = node
            child_refs[cwe_id] = list(value.get("children") or [])

        self._relink(parsed, child_refs)

        with self._lock:
            self.entries = parsed
            self._root = None

    @staticmethod
    def _relink(parsed: dict[str, CWENode], child_refs: dict[str, list[Any]]) -> None:
        for parent_id, refs in child_refs.items():
            parent = parsed[parent_id]
            for ref in refs:
                raw_id = ref.get("id") if isinstance(ref, dict) else ref
                try:
                    child_id = parse_cwe_id(str(raw_id))
                except InvalidIDError:
                    logger.debug(f"Dropping invalid child reference {raw_id!r} of {parent_id}")
                    continue
                child = parsed.get(child_id)
                if child is None or child.parent is not None or child is parent:
                    logger.debug(f"Dropping child reference {child_id} of {parent_id}")
                    continue
                if any(ancestor is child for ancestor in parent.get_path()):
                    logger.debug(f"Dropping cyclic child reference {child_id} of {parent_id}")
                    continue
                parent.add_child(child)

    def save(self, path: Path) -> Path:
        """Write the exported mapping to ``path``."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.export_json(indent=2), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "CWERegistry":
        """Create a registry from a file written by ``save``."""
        registry = cls()
        registry.import_json(Path(path).read_bytes())
        return registry
