"""
Conversion of API entity payloads into CWE nodes and relations.
"""

from typing import Any

from ..api.responses import canonical_entity_id, get_field
from ..core.ids import cwe_numeric_id
from ..core.node import CWENode
from ..shared.exceptions import MissingFieldError
from ..shared.models import Relation

DEFINITION_URL = "https://cwe.mitre.org/data/definitions/{number}.html"
UNKNOWN_NAME = "Unknown"

MITIGATION_KEYS = ("mitigations", "potential_mitigations", "PotentialMitigations")
EXAMPLE_KEYS = (
    "examples",
    "observed_examples",
    "ObservedExamples",
    "demonstrative_examples",
    "DemonstrativeExamples",
)
RELATION_KEYS = ("related_weaknesses", "RelatedWeaknesses")

# Fields checked, in order, when a list item is an object instead of text
_TEXT_FIELDS = ("description", "text", "note", "intro_text", "reference")


def convert_to_node(data: dict[str, Any]) -> CWENode:
    """Build a node from an entity payload.

    Raises:
        MissingFieldError: If the payload has no ID
        InvalidIDError: If the ID cannot be canonicalized
    """
    raw_id = get_field(data, "id")
    if raw_id is None or raw_id == "":
        raise MissingFieldError("id")
    cwe_id = canonical_entity_id(raw_id)

    name = get_field(data, "name") or UNKNOWN_NAME
    description = get_field(data, "description") or get_field(data, "summary") or ""
    url = get_field(data, "url") or DEFINITION_URL.format(number=cwe_numeric_id(cwe_id))
    severity = (
        get_field(data, "severity")
        or get_field(data, "likelihood_of_exploit")
        or get_field(data, "LikelihoodOfExploit")
        or ""
    )

    node = CWENode(
        id=cwe_id,
        name=str(name),
        description=str(description),
        url=str(url),
        severity=str(severity),
    )
    node.mitigations = _flatten_text(_first_list(data, MITIGATION_KEYS))
    node.examples = _flatten_text(_first_list(data, EXAMPLE_KEYS))
    return node


def extract_relations(data: dict[str, Any]) -> list[Relation]:
    """Parse the related-weakness entries of an entity payload.

    Entries without a nature or a usable target ID are skipped.
    """
    relations = []
    for item in _first_list(data, RELATION_KEYS):
        if not isinstance(item, dict):
            continue
        nature = get_field(item, "nature")
        target = get_field(item, "cwe_id", get_field(item, "cweid"))
        if not nature or target is None:
            continue
        try:
            target_id = canonical_entity_id(target)
        except ValueError:
            continue
        view_id = get_field(item, "view_id", get_field(item, "viewid"))
        ordinal = get_field(item, "ordinal")
        relations.append(
            Relation(
                nature=str(nature),
                cwe_id=target_id,
                view_id=str(view_id) if view_id is not None else None,
                ordinal=str(ordinal) if ordinal is not None else None,
            )
        )
    return relations


def _first_list(data: dict[str, Any], keys: tuple[str, ...]) -> list[Any]:
    for key in keys:
        value = get_field(data, key)
        if isinstance(value, list):
            return value
    return []


def _flatten_text(items: list[Any]) -> list[str]:
    texts = []
    for item in items:
        if isinstance(item, str):
            text = item
        elif isinstance(item, dict):
            text = next(
                (str(get_field(item, f)) for f in _TEXT_FIELDS if get_field(item, f)), ""
            )
        else:
            continue
        if text:
            texts.append(text)
    return texts
