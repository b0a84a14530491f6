"""
Level processor.

Expands exactly one JSON value into descriptors of its direct children.
Deeper levels are only produced later, one explicit expansion at a time.
"""

import logging
from typing import Any, List

from .classifier import classify
from .exceptions import ValidationError
from .paths import ROOT_PATH, compose_path, parent_path_of
from .types import LevelDescriptor, LevelResult, NodeKind, SemanticType

logger = logging.getLogger(__name__)

_JSON_SCALARS = (str, int, float, bool)


def is_json_value(value: Any) -> bool:
    """Shallow check: scalars, None, lists, and dicts with string keys."""
    if value is None or isinstance(value, _JSON_SCALARS):
        return True
    if isinstance(value, list):
        return True
    if type(value) is dict:
        return all(isinstance(k, str) for k in value)
    return False


def is_leaf(value: Any) -> bool:
    """Scalars and empty containers have nothing to expand."""
    if isinstance(value, (dict, list)):
        return len(value) == 0
    return True


def child_count(value: Any) -> int:
    if isinstance(value, (dict, list)):
        return len(value)
    return 0


def make_descriptor(key: str, value: Any, path: str, parent_path: str | None) -> LevelDescriptor:
    if not is_json_value(value):
        raise ValidationError(f"Invalid JSON value of type {type(value).__name__}", path)

    count = child_count(value)
    return LevelDescriptor(
        key=key,
        path=path,
        parent_path=parent_path,
        semantic_type=classify(value, key),
        value=value,
        is_leaf=is_leaf(value),
        child_count=count if count > 0 else None,
    )


def process_level(value: Any, path: str = ROOT_PATH, key: str = ROOT_PATH) -> LevelResult:
    """
    Describe the direct children of ``value``.

    Args:
        value: The JSON value being expanded.
        path: Its own PathId.
        key: The key it sits under (classification hint for primitives).

    Returns:
        LevelResult with one descriptor per child; a primitive yields a single
        descriptor for itself.

    Raises:
        ValidationError: If ``value`` is not a JSON value, or if it is the
            document root and not a plain object.
    """
    if not is_json_value(value):
        raise ValidationError(f"Invalid JSON value of type {type(value).__name__}", path)
    if path == ROOT_PATH and not isinstance(value, dict):
        raise ValidationError("Root must be a JSON object", path)

    own_type = classify(value, key)
    descriptors: List[LevelDescriptor] = []

    if isinstance(value, list):
        for index, item in enumerate(value):
            child_path = compose_path(path, index, NodeKind.ARRAY)
            descriptors.append(make_descriptor(str(index), item, child_path, path))
    elif isinstance(value, dict):
        for child_key, child_value in value.items():
            child_path = compose_path(path, child_key, NodeKind.OBJECT)
            descriptors.append(make_descriptor(child_key, child_value, child_path, path))
    else:
        descriptors.append(make_descriptor(key, value, path, parent_path_of(path)))

    logger.debug(f"Processed level {path}: {len(descriptors)} descriptor(s), type={own_type}")

    return LevelResult(
        descriptors=tuple(descriptors),
        has_children=own_type in (SemanticType.OBJECT, SemanticType.ARRAY) and bool(descriptors),
        own_type=own_type,
    )
