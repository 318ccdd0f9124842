"""
Client for the MITRE CWE REST API.
"""

from .client import CWEAPIClient
from .responses import extract_entities, extract_entity, extract_id_list, get_field

__all__ = [
    "CWEAPIClient",
    "extract_entity",
    "extract_entities",
    "extract_id_list",
    "get_field",
]
