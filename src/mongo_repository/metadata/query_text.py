"""
Parsing of query text into filter documents.

Accepts the relaxed shell syntax (`{ status: 'open', archived: { '$exists': false } }`: unquoted
keys, single quotes, `true`/`false`/`null`) as well as MongoDB Extended JSON
(`{"_id": {"$oid": "..."}}`). Extended JSON wrappers are converted to their BSON types.
"""

from typing import Any, Dict

import json5
from bson import json_util


def parse_query_document(text: str) -> Dict[str, Any]:
    """
    Parse query text into a document.

    Args:
        text (`str`): Shell-style or Extended JSON text.

    Returns:
        `Dict[str, Any]`: The parsed document.

    Raises:
        ValueError: If the text does not parse or does not describe a document.
    """
    value = json5.loads(text, object_hook=json_util.object_hook)
    if not isinstance(value, dict):
        raise ValueError(f"Query text must describe a document, got {type(value).__name__}")
    return value
