"""
Persisted snapshot layout.

A persisted workspace is a JSON array with one entry per document::

    [{"documentId": "...",
      "displayName": "...",            (optional)
      "rawDocument": {...},            (optional)
      "nodes": [{"id", "kind", "payload", "parentPath"}],
      "edges": [{"id", "source", "target"}]}]

Loading is tolerant: an entry that fails validation or breaks the tree
invariants is dropped with a warning instead of failing the whole load.
"""

import logging
from typing import Any, Dict, List

from pydantic import ValidationError as PydanticValidationError

from ..exceptions import InvariantViolation
from ..graph import TreeIndex
from ..paths import ROOT_PATH, parent_path_of
from ..types import GraphState

logger = logging.getLogger(__name__)


def dump_state(state: GraphState) -> Dict[str, Any]:
    """Serialize one document into its persisted entry."""
    return {
        "documentId": state.document_id,
        "displayName": state.display_name,
        "rawDocument": state.raw_document,
        "nodes": [
            node.model_dump(by_alias=True, mode="json", exclude={"position"})
            for node in state.nodes
        ],
        "edges": [edge.model_dump(by_alias=True, mode="json") for edge in state.edges],
    }



def _fill_parent_paths(entry: Dict[str, Any]) -> Dict[str, Any]:
    """Older entries carry only {id, kind, payload}; derive parentPath from the id."""
    nodes = []
    for node in entry.get("nodes") or []:
        if isinstance(node, dict) and "parentPath" not in node and "parent_path" not in node:
            node = {**node, "parentPath": None if node.get("id") == ROOT_PATH else parent_path_of(node["id"])}
        nodes.append(node)
    return {**entry, "nodes": nodes}


def load_state(entry: Dict[str, Any]) -> GraphState:
    """
    Rebuild a GraphState from a persisted entry.

    Raises:
        ValueError: If the entry is malformed or violates the tree invariants.
    """
    if not isinstance(entry, dict):
        raise ValueError(f"Snapshot entry must be an object, got {type(entry).__name__}")

    try:
        state = GraphState.model_validate(_fill_parent_paths(entry))
    except PydanticValidationError as e:
        raise ValueError(f"Invalid snapshot entry: {e}") from e

    if not state.has_node(ROOT_PATH):
        raise ValueError(f"Snapshot for {state.document_id} has no root node")
    try:
        report = TreeIndex.build(state.nodes, state.edges, strict=True).validate()
    except InvariantViolation as e:
        raise ValueError(f"Snapshot for {state.document_id} is not a tree: {e}") from e
    if not report.valid:
        raise ValueError(f"Snapshot for {state.document_id} is not a tree: {'; '.join(report.issues)}")
    return state


def load_states(data: Any) -> List[GraphState]:
    """Load every valid entry; anything unreadable is skipped."""
    if not isinstance(data, list):
        logger.warning(f"Ignoring persisted snapshot: expected a list, got {type(data).__name__}")
        return []

    states: List[GraphState] = []
    for position, entry in enumerate(data):
        try:
            states.append(load_state(entry))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Skipping corrupt snapshot entry #{position}: {e}")
    return states
