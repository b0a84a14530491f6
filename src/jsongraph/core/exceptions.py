"""
Error taxonomy for jsongraph.

Two families live here:

- Exceptions (``ValidationError``, ``InvariantViolation``) for input that can
  never be visualized and for programming errors that must abort.
- Plain error values (``GraphLookupError``) that travel inside ``Err`` when an
  expansion cannot be resolved. These are returned, not raised.
"""

from dataclasses import dataclass
from enum import StrEnum


class JsonGraphError(Exception):
    """Base class for all jsongraph exceptions."""


class ValidationError(JsonGraphError):
    """
    Raised when a value cannot be turned into a graph.

    Attributes:
        message: Human-readable description.
        path: PathId of the offending value, when known.
    """

    def __init__(self, message: str, path: str | None = None):
        self.message = message
        self.path = path
        super().__init__(f"{message} (at {path})" if path else message)


class InvariantViolation(JsonGraphError, AssertionError):
    """A graph invariant was broken: duplicate id, bad child path or a cycle."""


class LookupReason(StrEnum):
    """Why an expansion could not be resolved."""
    UNKNOWN_DOCUMENT = "unknown_document"
    UNKNOWN_PARENT = "unknown_parent"
    UNKNOWN_KEY = "unknown_key"
    UNRESOLVABLE_PATH = "unresolvable_path"
    VALUE_MISMATCH = "value_mismatch"


@dataclass(frozen=True)
class GraphLookupError:
    """Structured error for a failed expand; the graph is left untouched."""
    message: str
    reason: LookupReason
    document_id: str
    parent_path: str | None = None
    child_key: str | None = None

    def __str__(self) -> str:
        return self.message
