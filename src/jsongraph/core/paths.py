"""
PathId construction and parsing.

A PathId names one location in the JSON tree and doubles as graph node
identity. Grammar::

    path     := "root" segment*
    segment  := "." NAME            object key without . [ ] or "
              | "[" DIGITS "]"      array index, or an all-digit object key
              | "[" JSON_STRING "]" any other object key, JSON-quoted

Every child path is its parent path plus exactly one segment, and the
encoding is reversible, so two different routes can never share an id.
"""

import json
import re
from dataclasses import dataclass
from typing import List, Optional

from .types import NodeKind

ROOT_PATH = "root"

_INDEX_KEY = re.compile(r"^\d+$")
_PLAIN_KEY = re.compile(r'^[^.\[\]"]+$')


@dataclass(frozen=True)
class PathSegment:
    """One step of a PathId: the raw key and whether it used bracket notation."""
    key: str
    bracketed: bool = False
    quoted: bool = False

    def render(self) -> str:
        if self.quoted:
            return f"[{json.dumps(self.key)}]"
        if self.bracketed:
            return f"[{self.key}]"
        return f".{self.key}"


def encode_segment(key: str | int, parent_kind: NodeKind = NodeKind.OBJECT) -> PathSegment:
    """Choose the notation for one key under a container of ``parent_kind``."""
    key = str(key)
    if _INDEX_KEY.match(key):
        return PathSegment(key, bracketed=True)
    if parent_kind == NodeKind.ARRAY:
        raise ValueError(f"Array index must be a non-negative integer, got {key!r}")
    if _PLAIN_KEY.match(key):
        return PathSegment(key)
    return PathSegment(key, bracketed=True, quoted=True)


def compose_path(parent_path: str, key: str | int, parent_kind: NodeKind = NodeKind.OBJECT) -> str:
    """
    Build the PathId of ``key`` under ``parent_path``.

    Examples:
        >>> compose_path("root", "users")
        'root.users'
        >>> compose_path("root.users", 0, NodeKind.ARRAY)
        'root.users[0]'
        >>> compose_path("root", "a.b")
        'root["a.b"]'
    """
    return parent_path + encode_segment(key, parent_kind).render()


def parse_path(path: str) -> List[PathSegment]:
    """
    Split a PathId into segments.

    Raises:
        ValueError: If the string does not follow the PathId grammar.
    """
    if not path.startswith(ROOT_PATH):
        raise ValueError(f"PathId must start with '{ROOT_PATH}': {path!r}")

    segments: List[PathSegment] = []
    pos = len(ROOT_PATH)
    decoder = json.JSONDecoder()

    while pos < len(path):
        char = path[pos]
        if char == ".":
            end = pos + 1
            while end < len(path) and path[end] not in ".[":
                end += 1
            name = path[pos + 1:end]
            if not name or not _PLAIN_KEY.match(name):
                raise ValueError(f"Malformed key segment at offset {pos} in {path!r}")
            segments.append(PathSegment(name))
            pos = end
        elif char == "[":
            if pos + 1 < len(path) and path[pos + 1] == '"':
                try:
                    key, end = decoder.raw_decode(path, pos + 1)
                except json.JSONDecodeError as e:
                    raise ValueError(f"Malformed quoted segment in {path!r}: {e}") from e
                if end >= len(path) or path[end] != "]":
                    raise ValueError(f"Unterminated quoted segment in {path!r}")
                segments.append(PathSegment(key, bracketed=True, quoted=True))
                pos = end + 1
            else:
                end = path.find("]", pos)
                index = path[pos + 1:end] if end != -1 else ""
                if not _INDEX_KEY.match(index):
                    raise ValueError(f"Malformed index segment at offset {pos} in {path!r}")
                segments.append(PathSegment(index, bracketed=True))
                pos = end + 1
        else:
            raise ValueError(f"Unexpected character {char!r} at offset {pos} in {path!r}")

    return segments


def join_segments(segments: List[PathSegment]) -> str:
    return ROOT_PATH + "".join(segment.render() for segment in segments)


def parent_path_of(path: str) -> Optional[str]:
    """PathId of the containing node, or None for the root."""
    segments = parse_path(path)
    if not segments:
        return None
    return join_segments(segments[:-1])


def last_key_of(path: str) -> str:
    """The raw key of the final segment (``"root"`` for the root itself)."""
    segments = parse_path(path)
    return segments[-1].key if segments else ROOT_PATH


def is_ancestor_path(ancestor: str, path: str) -> bool:
    """True when ``path`` lies strictly below ``ancestor``."""
    outer = parse_path(ancestor)
    inner = parse_path(path)
    return len(inner) > len(outer) and inner[:len(outer)] == outer


def depth_of(path: str) -> int:
    return len(parse_path(path))
