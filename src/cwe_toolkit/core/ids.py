"""
Parsing and normalization of CWE identifiers.

Canonical IDs have the form ``CWE-<n>`` where ``<n>`` is a decimal integer
without leading zeros. Accepted inputs, after trimming surrounding
whitespace:

- ``CWE-79`` in any letter case
- ``CWE 79`` with one or more spaces
- ``CWE- 79`` or ``CWE -79`` (a single whitespace run next to the hyphen)
- bare digits such as ``79`` or ``0079``
"""

import re

from ..shared.exceptions import InvalidIDError, create_error_context

CWE_PREFIX = "CWE-"

_PREFIXED_ID = re.compile(r"^CWE(?:-|\s+|-\s+|\s+-)0*([0-9]+)$", re.IGNORECASE)
_BARE_ID = re.compile(r"^0*([0-9]+)$")
_CANONICAL_ID = re.compile(r"CWE-([0-9]+)")


def parse_cwe_id(cwe_id: str) -> str:
    """Normalize a CWE ID string to its canonical ``CWE-<n>`` form.

    Args:
        cwe_id: Raw identifier in any of the accepted forms

    Returns:
        Canonical CWE ID

    Raises:
        InvalidIDError: If the input is empty or matches no accepted form
    """
    if not isinstance(cwe_id, str):
        raise InvalidIDError(
            "CWE ID must be a string", create_error_context(value=repr(cwe_id))
        )

    candidate = cwe_id.strip()
    if not candidate:
        raise InvalidIDError("Cannot parse an empty CWE ID")

    match = _PREFIXED_ID.match(candidate) or _BARE_ID.match(candidate)
    if match is None:
        raise InvalidIDError("Cannot parse CWE ID", create_error_context(value=cwe_id))

    return format_cwe_id(int(match.group(1)))


def format_cwe_id(number: int) -> str:
    """Render an integer as a canonical CWE ID."""
    return f"{CWE_PREFIX}{number}"


def cwe_numeric_id(cwe_id: str) -> int:
    """Extract the integer suffix of a canonical CWE ID.

    Raises:
        InvalidIDError: If the ID does not contain a ``CWE-<n>`` run
    """
    match = _CANONICAL_ID.search(cwe_id or "")
    if match is None:
        raise InvalidIDError("Invalid CWE ID format", create_error_context(value=cwe_id))
    return int(match.group(1))


def id_sort_key(cwe_id: str) -> tuple[int, str]:
    """Sort key ordering canonical IDs numerically, anything else last."""
    try:
        return (cwe_numeric_id(cwe_id), cwe_id)
    except InvalidIDError:
        return (2**63, cwe_id)
