"""
Document ingestion helpers.

Identity is always derived from content: the same JSON (regardless of key
order) yields the same document id. Human-readable names are kept apart as
display metadata and never participate in identity.
"""

import hashlib
import json
import re
from typing import Any, Dict, Optional

from .exceptions import ValidationError
from .result import Err, Ok, Result

ID_PREFIX = "json-"
ID_HASH_LENGTH = 16

# Fields that usually name a document, checked in order
NAME_FIELDS = ("name", "title", "id", "slug", "username", "key")
MAX_NAME_LENGTH = 40


def canonical_json(value: Any) -> str:
    """Key-order independent serialization used for hashing."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def document_id_for(value: Any) -> str:
    """Deterministic content-derived document id, e.g. ``json-3f2a9c...``."""
    digest = hashlib.sha256(canonical_json(value).encode("utf-8")).hexdigest()
    return f"{ID_PREFIX}{digest[:ID_HASH_LENGTH]}"


def slugify(text: str) -> str:
    slug = text.lower().strip()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"[\s-]+", "-", slug)
    return slug.strip("-")[:MAX_NAME_LENGTH]


def display_name_for(value: Any, fallback: Optional[str] = None) -> str:
    """
    Pick a readable label for a document.

    Tries well-known name fields, then any top-level string, then the
    fallback (typically a file name), then the document id.
    """
    if isinstance(value, dict):
        for name_field in NAME_FIELDS:
            candidate = value.get(name_field)
            if isinstance(candidate, str):
                slug = slugify(candidate)
                if slug:
                    return slug
        for candidate in value.values():
            if isinstance(candidate, str) and candidate.strip():
                slug = slugify(candidate)
                if slug:
                    return slug
    if fallback:
        return fallback
    return document_id_for(value)


def parse_document(text: str) -> Result[Dict[str, Any], ValidationError]:
    """
    Parse raw text into a visualizable document.

    Returns:
        Ok(dict) for a JSON object root, Err(ValidationError) otherwise.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        return Err(ValidationError(f"Invalid JSON format: {e.msg} at line {e.lineno}"))

    if not isinstance(data, dict):
        return Err(ValidationError(f"Root must be a JSON object, got {type(data).__name__}"))
    return Ok(data)


def _depth(value: Any, level: int = 0) -> int:
    if isinstance(value, dict):
        children = list(value.values())
    elif isinstance(value, list):
        children = value
    else:
        return level
    if not children:
        return level
    return max(_depth(child, level + 1) for child in children)


def _total_keys(value: Any) -> int:
    """Keys of this object plus keys of nested objects (arrays are not entered)."""
    if not isinstance(value, dict):
        return 0
    return len(value) + sum(_total_keys(child) for child in value.values() if isinstance(child, dict))


def document_metadata(value: Any) -> Dict[str, int]:
    """Summary figures for a document: pretty-printed lines, keys, depth, byte size."""
    pretty = json.dumps(value, indent=2, ensure_ascii=False)
    return {
        "lines": pretty.count("\n") + 1,
        "keys": _total_keys(value),
        "depth": _depth(value),
        "size": len(pretty.encode("utf-8")),
    }
