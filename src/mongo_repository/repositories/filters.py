"""
Query helpers shared by the repositories: filter/sort text parsing (shell syntax or Extended
JSON), sort-field resolution, paging windows, case-insensitive search and redaction of filters
before logging.
"""

import re
from typing import Any, Dict, List, Optional, Set, Tuple

from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING

from mongo_repository.metadata.descriptor import IDENTIFIER_FIELD
from mongo_repository.metadata.query_text import parse_query_document

SortSpec = List[Tuple[str, int]]

# Values of `sort_by` meaning "no explicit sort field", as sent by JavaScript clients.
_EMPTY_SORT_VALUES = {"", "null", "undefined"}

SENSITIVE_KEYS: Set[str] = {"password", "password_hash", "secret", "token", "api_key"}
REDACTED = "[REDACTED]"


def parse_json_filter(json_filter: Optional[str]) -> Dict[str, Any]:
    """
    Parse filter text such as `{ status: 'active', age: { $gt: 18 } }` or the Extended JSON
    `{"_id": {"$oid": "..."}}`.

    Blank text means "match everything".

    Raises:
        ValueError: If the text does not parse or is not a document.
    """
    if json_filter is None or not json_filter.strip():
        return {}
    return parse_query_document(json_filter)


def parse_json_sort(json_sort: Optional[str]) -> Optional[SortSpec]:
    """
    Parse sort text such as `{ name: 1, created_at: -1 }`.

    Returns:
        Optional[SortSpec]: `(field, direction)` pairs in document order, `None` for blank text.

    Raises:
        ValueError: If the text is not a document or a direction is not 1 or -1.
    """
    if json_sort is None or not json_sort.strip():
        return None
    parsed = parse_query_document(json_sort)
    spec: SortSpec = []
    for field, direction in parsed.items():
        if isinstance(direction, bool) or direction not in (ASCENDING, DESCENDING):
            raise ValueError(f"Sort direction of {field!r} must be 1 or -1")
        spec.append((field, int(direction)))
    return spec


def resolve_sort_field(entity_type: type, sort_by: Optional[str]) -> str:
    """
    Map a caller-supplied sort name onto a stored field name.

    Matching is case-insensitive against both attribute names and aliases. Empty values,
    `"null"` and `"undefined"` select the identifier. Unknown names (e.g. dotted nested paths)
    are passed through unchanged.
    """
    if sort_by is None or sort_by.strip().lower() in _EMPTY_SORT_VALUES:
        return IDENTIFIER_FIELD
    wanted = sort_by.strip().lower()
    if isinstance(entity_type, type) and issubclass(entity_type, BaseModel):
        for attribute, info in entity_type.model_fields.items():
            stored = info.serialization_alias or info.alias or attribute
            if wanted in (attribute.lower(), stored.lower()):
                return stored
    return sort_by.strip()


def page_window(page: Optional[int], page_size: Optional[int]) -> Optional[Tuple[int, int]]:
    """
    Compute `(skip, limit)` for a page request.

    Paging applies only when both values are given; values below 1 are clamped to 1.
    """
    if page is None or page_size is None:
        return None
    page = max(page, 1)
    page_size = max(page_size, 1)
    return (page - 1) * page_size, page_size


def search_filter(field: Optional[str], value: Optional[str]) -> Dict[str, Any]:
    """
    Case-insensitive "contains" filter.

    `value` is escaped and matched literally, unlike a raw `$regex` search, so `"a.b"` does not
    match `"axb"`. A blank field or value yields `{}`, which matches everything.
    """
    if not field or not field.strip() or not value or not value.strip():
        return {}
    return {field: {"$regex": re.escape(value), "$options": "i"}}


def redact_filter(document: Any) -> Any:
    """Copy of a filter/document with values of sensitive keys replaced, for logging."""
    if isinstance(document, dict):
        return {
            key: REDACTED if str(key).lower() in SENSITIVE_KEYS else redact_filter(value)
            for key, value in document.items()
        }
    if isinstance(document, list):
        return [redact_filter(item) for item in document]
    return document
