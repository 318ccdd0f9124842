"""
Typed read-only client for the MITRE CWE REST API.
"""

from typing import Any

import requests

from ..core.ids import cwe_numeric_id, parse_cwe_id
from ..http.client import RetryingHTTPClient
from ..shared.exceptions import (
    APIStatusError,
    DecodeError,
    EmptyInputError,
    MissingFieldError,
    create_error_context,
)
from ..shared.models import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, ClientConfig, VersionInfo
from .responses import (
    CATEGORY_ENVELOPE,
    VIEW_ENVELOPE,
    WEAKNESS_ENVELOPE,
    extract_entities,
    extract_entity,
    extract_id_list,
    get_field,
)


class CWEAPIClient:
    """Client for the CWE REST endpoints.

    All requests go through a ``RetryingHTTPClient``, whose rate limiter
    serializes them; the client itself holds no mutable state and is safe
    to share between threads.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        http_client: RetryingHTTPClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.http_client = http_client or RetryingHTTPClient(timeout=timeout)

    @classmethod
    def from_config(
        cls, config: ClientConfig, session: requests.Session | None = None
    ) -> "CWEAPIClient":
        return cls(
            base_url=config.base_url,
            http_client=RetryingHTTPClient.from_config(config, session=session),
        )

    def close(self) -> None:
        self.http_client.close()

    # Version and entities

    def get_version(self) -> VersionInfo:
        """Fetch the CWE content version served by the API."""
        url = f"{self.base_url}/cwe/version"
        payload = self._get_json(url)
        if not isinstance(payload, dict):
            raise DecodeError("Expected a JSON object", create_error_context(url=url))

        version = get_field(payload, "version") or get_field(payload, "ContentVersion")
        if not version:
            raise MissingFieldError("version", create_error_context(url=url))

        release_date = get_field(payload, "release_date") or get_field(payload, "ContentDate")
        return VersionInfo(version=str(version), release_date=release_date)

    def get_cwes(self, ids: list[str]) -> dict[str, dict[str, Any]]:
        """Fetch several entries in one request, keyed as returned upstream."""
        if not ids:
            raise EmptyInputError("At least one CWE ID is required")

        path_ids = ",".join(self._path_id(cwe_id) for cwe_id in ids)
        url = f"{self.base_url}/cwe/{path_ids}"
        return extract_entities(self._get_json(url), url=url)

    def get_weakness(self, cwe_id: str) -> dict[str, Any]:
        url = f"{self.base_url}/cwe/weakness/{self._path_id(cwe_id)}"
        return extract_entity(self._get_json(url), WEAKNESS_ENVELOPE, url=url)

    def get_category(self, cwe_id: str) -> dict[str, Any]:
        url = f"{self.base_url}/cwe/category/{self._path_id(cwe_id)}"
        return extract_entity(self._get_json(url), CATEGORY_ENVELOPE, url=url)

    def get_view(self, cwe_id: str) -> dict[str, Any]:
        url = f"{self.base_url}/cwe/view/{self._path_id(cwe_id)}"
        return extract_entity(self._get_json(url), VIEW_ENVELOPE, url=url)

    # Relations

    def get_parents(self, cwe_id: str, view_id: str | None = None) -> list[str]:
        return self._get_relations(cwe_id, "parents", view_id)

    def get_children(self, cwe_id: str, view_id: str | None = None) -> list[str]:
        return self._get_relations(cwe_id, "children", view_id)

    def get_ancestors(self, cwe_id: str, view_id: str | None = None) -> list[str]:
        return self._get_relations(cwe_id, "ancestors", view_id)

    def get_descendants(self, cwe_id: str, view_id: str | None = None) -> list[str]:
        return self._get_relations(cwe_id, "descendants", view_id)

    def _get_relations(self, cwe_id: str, relation: str, view_id: str | None) -> list[str]:
        url = f"{self.base_url}/cwe/{self._path_id(cwe_id)}/{relation}"
        if view_id:
            url = f"{url}?view={self._path_id(view_id)}"
        return extract_id_list(self._get_json(url), url=url)

    # Plumbing

    @staticmethod
    def _path_id(cwe_id: str) -> str:
        """Numeric form used in URL paths (``CWE-89`` becomes ``89``)."""
        return str(cwe_numeric_id(parse_cwe_id(cwe_id)))

    def _get_json(self, url: str) -> Any:
        response = self.http_client.get(url, headers={"Accept": "application/json"})
        try:
            if not 200 <= response.status_code < 300:
                raise APIStatusError(response.status_code, create_error_context(url=url))
            try:
                return response.json()
            except ValueError as e:
                raise DecodeError(
                    f"Failed to parse JSON response: {e}", create_error_context(url=url)
                ) from e
        finally:
            response.close()
