"""
Graph builder that materializes CWE subgraphs into a registry.
"""

import logging
from collections.abc import Iterator
from typing import Any

import requests

from ..api.client import CWEAPIClient
from ..core.ids import parse_cwe_id
from ..core.node import CWENode
from ..core.registry import CWERegistry
from ..core.tree import TreeNode, sort_tree
from ..shared.caching import RegistryCache
from ..shared.exceptions import (
    CWEToolkitError,
    DuplicateIDError,
    EmptyInputError,
    NotFoundError,
    create_error_context,
)
from ..shared.models import ClientConfig
from .convert import convert_to_node, extract_relations


class DataFetcher:
    """Composes API calls and a registry into navigable CWE trees.

    Traversals are depth-first and left-to-right in the order the children
    endpoint returns IDs. They run on an explicit stack of pending child
    iterators, so deep subtrees do not grow the Python call stack.
    """

    def __init__(self, client: CWEAPIClient | None = None, cache: RegistryCache | None = None):
        self.client = client or CWEAPIClient()
        self.cache = cache
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        session: requests.Session | None = None,
        cache: RegistryCache | None = None,
    ) -> "DataFetcher":
        return cls(CWEAPIClient.from_config(config, session=session), cache=cache)

    def get_current_version(self) -> str:
        return self.client.get_version().version

    # Single entities

    def fetch_weakness(self, cwe_id: str) -> CWENode:
        return convert_to_node(self.client.get_weakness(parse_cwe_id(cwe_id)))

    def fetch_category(self, cwe_id: str) -> CWENode:
        return convert_to_node(self.client.get_category(parse_cwe_id(cwe_id)))

    def fetch_view(self, cwe_id: str) -> CWENode:
        return convert_to_node(self.client.get_view(parse_cwe_id(cwe_id)))

    def fetch_multiple(self, ids: list[str]) -> CWERegistry:
        """Fetch several entries in one request and register them.

        Entries that cannot be converted are skipped, so a response without
        any usable entry yields an empty registry.

        Raises:
            EmptyInputError: If ``ids`` is empty
            InvalidIDError: If any ID is invalid (before any request)
        """
        registry, _ = self._fetch_multiple_raw(ids)
        return registry

    def _fetch_multiple_raw(
        self, ids: list[str]
    ) -> tuple[CWERegistry, dict[str, dict[str, Any]]]:
        if not ids:
            raise EmptyInputError("At least one CWE ID is required")

        normalized_ids = [parse_cwe_id(cwe_id) for cwe_id in ids]
        data = self.client.get_cwes(normalized_ids)

        registry = CWERegistry()
        raw_by_id: dict[str, dict[str, Any]] = {}
        for key, item in data.items():
            try:
                node = convert_to_node(item)
                registry.register(node)
            except DuplicateIDError:
                self.logger.debug(f"Skipping duplicate entry {key}")
                continue
            except CWEToolkitError as e:
                self.logger.warning(f"Skipping unparseable entry {key}: {e}")
                continue
            raw_by_id[node.id] = item

        return registry, raw_by_id

    # Relations

    def fetch_with_relations(self, cwe_id: str, view_id: str | None = None) -> CWENode:
        """Fetch an entry of any kind and populate its subtree.

        The entry is tried as a weakness, then a category, then a view.
        A failure while populating children is logged and the partially
        populated node is returned.

        Raises:
            InvalidIDError: If ``cwe_id`` is invalid
            NotFoundError: If the entry could not be fetched as any kind
        """
        normalized_id = parse_cwe_id(cwe_id)

        node = None
        last_error: CWEToolkitError | None = None
        for kind, fetch in (
            ("weakness", self.fetch_weakness),
            ("category", self.fetch_category),
            ("view", self.fetch_view),
        ):
            try:
                node = fetch(normalized_id)
                break
            except CWEToolkitError as e:
                self.logger.debug(f"{normalized_id} is not available as a {kind}: {e}")
                last_error = e

        if node is None:
            raise NotFoundError(
                "Unable to fetch CWE as weakness, category or view",
                create_error_context(cwe_id=normalized_id),
            ) from last_error

        try:
            self.populate_children_recursive(node, view_id)
        except CWEToolkitError as e:
            self.logger.warning(f"Failed to populate children of {normalized_id}: {e}")

        return node

    def populate_children_recursive(self, node: CWENode, view_id: str | None = None) -> None:
        """Fetch and attach the whole subtree below ``node``.

        Children are fetched as weaknesses, falling back to categories;
        children that are neither are skipped, as is any ID already placed
        in this subtree. Failures below the first level never abort
        siblings.

        Raises:
            CWEToolkitError: If the children of ``node`` itself cannot be listed
        """
        placed = CWERegistry()
        placed.register(node)
        for existing in node.iter_descendants():
            if existing.id not in placed:
                placed.register(existing)
        self._descend(node, view_id, placed, strict=True)

    def build_tree_with_view(self, view_id: str) -> CWERegistry:
        """Materialize the tree below a view into a new registry.

        The view becomes the registry root. Registry membership stops the
        descent: an ID met a second time is neither fetched again nor
        linked a second time, which also terminates upstream cycles.

        Raises:
            InvalidIDError: If ``view_id`` is invalid
            CWEToolkitError: If the view itself cannot be fetched
        """
        normalized_view_id = parse_cwe_id(view_id)

        version = None
        if self.cache is not None:
            try:
                version = self.get_current_version()
            except CWEToolkitError as e:
                self.logger.warning(f"Cannot determine CWE version, bypassing cache: {e}")
            else:
                cached = self.cache.load(normalized_view_id, version)
                if cached is not None:
                    self.logger.debug(f"Using cached tree for {normalized_view_id} ({version})")
                    return cached

        view = self.fetch_view(normalized_view_id)

        registry = CWERegistry()
        registry.register(view)
        registry.root = view

        self._descend(view, normalized_view_id, registry, strict=False)
        self.logger.debug(f"Built tree for {normalized_view_id} with {len(registry)} entries")

        if self.cache is not None and version:
            self.cache.save(registry, normalized_view_id, version)

        return registry

    def _descend(
        self, start: CWENode, view_id: str | None, registry: CWERegistry, strict: bool
    ) -> None:
        try:
            root_children = self.client.get_children(start.id, view_id)
        except CWEToolkitError as e:
            if strict:
                raise
            self.logger.warning(f"Failed to list children of {start.id}: {e}")
            return

        frames: list[tuple[CWENode, Iterator[str]]] = [(start, iter(root_children))]
        while frames:
            node, pending = frames[-1]
            child_id = next(pending, None)
            if child_id is None:
                frames.pop()
                continue

            if child_id in registry:
                self.logger.debug(f"{child_id} already placed, not linking under {node.id}")
                continue

            child = self._fetch_child(child_id)
            if child is None or child.id in registry:
                continue

            registry.register(child)
            node.add_child(child)

            try:
                grandchildren = self.client.get_children(child.id, view_id)
            except CWEToolkitError as e:
                self.logger.warning(f"Failed to list children of {child.id}: {e}")
                continue
            frames.append((child, iter(grandchildren)))

    def _fetch_child(self, child_id: str) -> CWENode | None:
        try:
            return self.fetch_weakness(child_id)
        except CWEToolkitError as e:
            self.logger.debug(f"{child_id} is not available as a weakness: {e}")

        try:
            return self.fetch_category(child_id)
        except CWEToolkitError as e:
            self.logger.warning(f"Skipping child {child_id}: {e}")
            return None

    # Sorted views

    def build_cwe_tree(self, ids: list[str]) -> tuple[dict[str, CWENode], list[TreeNode]]:
        """Fetch ``ids`` and arrange them by their parent-oriented relations.

        A node is placed under every fetched entry it names through a
        parent-oriented relation; nodes with no such parent are roots.
        Roots and all children lists are sorted by numeric CWE ID.

        Returns:
            Mapping of ID to node, and the sorted root tree nodes
        """
        registry, raw_by_id = self._fetch_multiple_raw(ids)
        tree_nodes = {cwe_id: TreeNode(node) for cwe_id, node in registry.entries.items()}

        roots = []
        for cwe_id, tree_node in tree_nodes.items():
            parent_ids = {
                relation.cwe_id
                for relation in extract_relations(raw_by_id[cwe_id])
                if relation.is_parent and relation.cwe_id in tree_nodes and relation.cwe_id != cwe_id
            }
            if not parent_ids:
                roots.append(tree_node)
            for parent_id in parent_ids:
                tree_nodes[parent_id].add_child(tree_node)

        sort_tree(roots)
        return dict(registry.entries), roots
