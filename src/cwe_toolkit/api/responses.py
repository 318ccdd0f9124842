"""
Helpers for the JSON shapes returned by the CWE REST service.

Entity endpoints answer either with a bare object or with an envelope such
as ``{"Weaknesses": [...]}``; relation endpoints answer with an array of
IDs that may be strings, integers, or objects carrying an ``ID`` field.
"""

import logging
from typing import Any

from ..core.ids import format_cwe_id, parse_cwe_id
from ..shared.exceptions import (
    DecodeError,
    InvalidIDError,
    MissingFieldError,
    create_error_context,
)

logger = logging.getLogger(__name__)

WEAKNESS_ENVELOPE = "weaknesses"
CATEGORY_ENVELOPE = "categories"
VIEW_ENVELOPE = "views"
CWES_ENVELOPE = "cwes"


def get_field(data: dict[str, Any], name: str, default: Any = None) -> Any:
    """Look up ``name`` in ``data``, falling back to a case-insensitive match."""
    if name in data:
        return data[name]
    lowered = name.lower()
    for key, value in data.items():
        if isinstance(key, str) and key.lower() == lowered:
            return value
    return default


def canonical_entity_id(value: Any) -> str:
    """Canonicalize an ``id`` value that may be numeric or a string."""
    if isinstance(value, bool):
        raise InvalidIDError("Invalid entity ID", create_error_context(value=value))
    if isinstance(value, int):
        return format_cwe_id(value)
    if isinstance(value, float) and value.is_integer():
        return format_cwe_id(int(value))
    return parse_cwe_id(str(value))


def extract_entity(payload: Any, envelope: str, url: str | None = None) -> dict[str, Any]:
    """Unwrap a single entity from a bare object or an envelope array.

    The returned mapping is a copy whose ``id`` key holds the canonical ID.

    Raises:
        DecodeError: If the payload is neither shape or the envelope is empty
        MissingFieldError: If the entity carries no ID
    """
    context = create_error_context(url=url, envelope=envelope)
    if not isinstance(payload, dict):
        raise DecodeError("Expected a JSON object", context)

    wrapped = get_field(payload, envelope)
    if wrapped is not None:
        if not isinstance(wrapped, list):
            raise DecodeError(f"Envelope '{envelope}' is not an array", context)
        if not wrapped:
            raise DecodeError(f"Envelope '{envelope}' is empty", context)
        entity = wrapped[0]
        if not isinstance(entity, dict):
            raise DecodeError(f"Envelope '{envelope}' does not contain an object", context)
    else:
        entity = payload

    raw_id = get_field(entity, "id")
    if raw_id is None or raw_id == "":
        raise MissingFieldError("id", context)

    result = dict(entity)
    result["id"] = canonical_entity_id(raw_id)
    return result


def extract_entities(payload: Any, url: str | None = None) -> dict[str, dict[str, Any]]:
    """Return the ``{id: entity}`` mapping of a multi-entity response.

    Accepts the mapping itself or a ``{"cwes": {...}}`` envelope. Values
    that are not objects are dropped.
    """
    if not isinstance(payload, dict):
        raise DecodeError("Expected a JSON object", create_error_context(url=url))

    wrapped = get_field(payload, CWES_ENVELOPE)
    if isinstance(wrapped, dict):
        payload = wrapped

    return {str(key): value for key, value in payload.items() if isinstance(value, dict)}


def extract_id_list(payload: Any, url: str | None = None) -> list[str]:
    """Canonicalize the array returned by a relation endpoint.

    Items without a usable ID are skipped one by one, so a single bad
    entry never hides its siblings.

    Raises:
        DecodeError: If the payload is not an array
    """
    if not isinstance(payload, list):
        raise DecodeError("Expected a JSON array of CWE IDs", create_error_context(url=url))

    ids = []
    for item in payload:
        raw = get_field(item, "id") if isinstance(item, dict) else item
        if raw is None:
            logger.warning(f"Skipping relation entry without an ID from {url}")
            continue
        try:
            ids.append(canonical_entity_id(raw))
        except InvalidIDError:
            logger.warning(f"Skipping relation entry with an invalid ID {raw!r} from {url}")
    return ids
