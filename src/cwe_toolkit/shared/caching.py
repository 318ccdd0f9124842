"""
Caching utilities for materialized CWE registries.
"""

import hashlib
import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from .exceptions import CWEToolkitError

if TYPE_CHECKING:
    from ..core.registry import CWERegistry


class RegistryCache:
    """Stores exported registries on disk, keyed by view and CWE version."""

    def __init__(self, cache_dir: Path):
        """Initialize cache manager.

        Args:
            cache_dir: Directory to store cache files
        """
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.logger = logging.getLogger(__name__)

    def compute_cache_key(self, view_id: str, version: str | None = None) -> str:
        """Compute a unique cache key for a view at a given CWE version.

        Args:
            view_id: Canonical view ID
            version: Upstream CWE content version

        Returns:
            SHA256 hash as cache key
        """
        key = f"{view_id}|{version or ''}"
        return hashlib.sha256(key.encode()).hexdigest()

    def generate_cache_filename(
        self, base_name: str, cache_key: str, extension: str = ".json"
    ) -> Path:
        """Generate a cache filename with the given parameters.

        Args:
            base_name: Base name for the file
            cache_key: Cache key to include in filename
            extension: File extension

        Returns:
            Full path for the cache file
        """
        filename = f"{base_name}_registry_{cache_key}{extension}"
        return self.cache_dir / filename

    def get_cached_path(self, view_id: str, version: str | None = None) -> Path | None:
        """Return the path to a cached registry if it exists.

        Args:
            view_id: Canonical view ID
            version: Upstream CWE content version

        Returns:
            Path to cached registry file, or None if not found
        """
        path = self.generate_cache_filename(view_id, self.compute_cache_key(view_id, version))
        return path if self.cache_exists(path) else None

    def save(self, registry: "CWERegistry", view_id: str, version: str | None = None) -> Path:
        """Write a registry snapshot, remembering its root.

        Args:
            registry: Registry to store
            view_id: Canonical view ID the registry was built from
            version: Upstream CWE content version

        Returns:
            Path of the written cache file
        """
        path = self.generate_cache_filename(view_id, self.compute_cache_key(view_id, version))
        snapshot = {
            "view_id": view_id,
            "version": version,
            "root": registry.root.id if registry.root else None,
            "saved_at": datetime.now(UTC).isoformat(),
            "entries": registry.to_dict(),
        }
        with open(path, "w", encoding="utf-8") as f:
            json.dump(snapshot, f, ensure_ascii=False)
        self.logger.debug(f"Cached registry for {view_id} at {path}")
        return path

    def load(self, view_id: str, version: str | None = None) -> "CWERegistry | None":
        """Load a cached registry, or None on a miss or an unreadable file.

        Args:
            view_id: Canonical view ID
            version: Upstream CWE content version

        Returns:
            Registry with its root restored, or None
        """
        from ..core.registry import CWERegistry

        path = self.get_cached_path(view_id, version)
        if path is None:
            return None

        try:
            with open(path, encoding="utf-8") as f:
                snapshot = json.load(f)
            registry = CWERegistry()
            registry.import_dict(snapshot["entries"])
            root_id = snapshot.get("root")
            if root_id:
                registry.root = registry.get_by_id(root_id)
        except (OSError, ValueError, KeyError, TypeError, CWEToolkitError) as e:
            self.logger.warning(f"Ignoring unreadable registry cache {path}: {e}")
            return None

        self.logger.debug(f"Loaded cached registry for {view_id} from {path}")
        return registry

    def clean_cache(self, pattern: str = "*_registry_*.json") -> int:
        """Clean cache files matching the given pattern.

        Args:
            pattern: Glob pattern for files to delete

        Returns:
            Number of files removed
        """
        removed = 0
        for file in self.cache_dir.glob(pattern):
            try:
                file.unlink()
                removed += 1
                self.logger.debug(f"Removed cache file: {file}")
            except OSError as e:
                self.logger.warning(f"Error removing cache file {file}: {e}")
        return removed

    def cache_exists(self, cache_path: Path) -> bool:
        """Check if a cache file exists.

        Args:
            cache_path: Path to cache file

        Returns:
            True if cache file exists, False otherwise
        """
        return cache_path.exists() and cache_path.is_file()
