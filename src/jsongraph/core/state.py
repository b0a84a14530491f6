"""
Graph state store.

Owns one immutable ``GraphState`` per open document and grows it one child
at a time. Every mutation builds a new snapshot and swaps it in under a
lock, so concurrent readers see either the state before an expansion or
the state after it, never a node without its edge.
"""

import logging
import threading
from typing import Any, Dict, Iterable, List, Optional

from .exceptions import GraphLookupError, InvariantViolation, LookupReason, ValidationError
from .graph import TreeIndex, TreeReport
from .identity import canonical_json, document_id_for
from .levels import process_level
from .paths import ROOT_PATH, compose_path, parent_path_of, parse_path
from .result import Err, Ok, Result
from .storage.base import StorageAdapter
from .storage.debounce import DebouncedWriter
from .types import GraphEdge, GraphNode, GraphState, NodeKind

logger = logging.getLogger(__name__)


def _same_json(value: Any, expected: Any, path: str) -> bool:
    """Strict JSON equality: ``True`` and ``1`` differ, key order does not matter."""
    try:
        return canonical_json(value) == canonical_json(expected)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid JSON value: {e}", path) from e


class GraphRepository:
    """
    Registry of open documents and their materialized graphs.

    Persistence is optional: when a storage adapter is supplied, every
    published snapshot is handed to a ``DebouncedWriter`` so bursts of
    expansions collapse into a single write.
    """

    def __init__(
        self,
        storage: Optional[StorageAdapter] = None,
        debounce_seconds: float = 0.5,
        writer: Optional[DebouncedWriter] = None,
    ):
        self.storage = storage
        self._writer = writer
        if self._writer is None and storage is not None:
            self._writer = DebouncedWriter(storage, delay=debounce_seconds)
        self._states: Dict[str, GraphState] = {}
        self._lock = threading.RLock()

    @classmethod
    def load(cls, storage: StorageAdapter, debounce_seconds: float = 0.5) -> "GraphRepository":
        """
        Restore every readable document from storage.

        A storage backend that cannot be read at all yields an empty
        repository rather than an error.
        """
        repository = cls(storage=storage, debounce_seconds=debounce_seconds)
        try:
            states = storage.load_all_states()
        except Exception as e:
            logger.warning(f"Could not restore persisted graphs, starting empty: {e}")
            states = []
        with repository._lock:
            for state in states:
                repository._states[state.document_id] = state
        logger.debug(f"Restored {len(states)} document(s) from storage")
        return repository

    # ---- publishing -------------------------------------------------------

    def _publish(self, state: GraphState) -> None:
        with self._lock:
            self._states[state.document_id] = state
        if self._writer is not None:
            self._writer.schedule_save(state)

    def flush(self) -> int:
        """Force pending writes to storage."""
        if self._writer is None:
            return 0
        return self._writer.flush()

    def close(self) -> None:
        if self._writer is not None:
            self._writer.close()
        if self.storage is not None:
            self.storage.close()

    # ---- documents --------------------------------------------------------

    def open_document(
        self,
        document_id: str,
        json_value: Any,
        display_name: Optional[str] = None,
    ) -> GraphState:
        """
        Create the root-only graph for a document.

        Idempotent: reopening an id that is already open returns the
        existing state unchanged, including any expansions.

        Raises:
            ValidationError: If ``json_value`` is not a JSON object.
        """
        with self._lock:
            existing = self._states.get(document_id)
            if existing is not None:
                return existing

            level = process_level(json_value, ROOT_PATH, ROOT_PATH)
            root = GraphNode(
                id=ROOT_PATH,
                kind=NodeKind.OBJECT,
                payload=level.descriptors,
                parent_path=None,
            )
            state = GraphState(
                document_id=document_id,
                raw_document=json_value,
                display_name=display_name,
                nodes=(root,),
                edges=(),
            )
            self._publish(state)

        logger.info(f"Opened document {document_id} with {len(level.descriptors)} top-level key(s)")
        return state

    def open_json(self, json_value: Any, display_name: Optional[str] = None) -> GraphState:
        """Open a document under its content-derived id."""
        if not isinstance(json_value, dict):
            raise ValidationError("Root must be a JSON object")
        return self.open_document(document_id_for(json_value), json_value, display_name)

    def close_document(self, document_id: str) -> bool:
        """Drop a document; other documents are unaffected. Returns True if it was open."""
        with self._lock:
            removed = self._states.pop(document_id, None)
        if removed is None:
            return False
        if self._writer is not None:
            self._writer.schedule_delete(document_id)
        logger.info(f"Closed document {document_id}")
        return True

    remove = close_document

    def get_state(self, document_id: str) -> Optional[GraphState]:
        with self._lock:
            return self._states.get(document_id)

    snapshot = get_state

    def document_ids(self) -> List[str]:
        with self._lock:
            return list(self._states)

    def __contains__(self, document_id: str) -> bool:
        with self._lock:
            return document_id in self._states

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    # ---- expansion --------------------------------------------------------

    def expand(
        self,
        document_id: str,
        parent_path: str,
        child_key: str | int,
        child_value: Any,
    ) -> Result[GraphNode, GraphLookupError]:
        """
        Materialize one child of an existing node.

        The node is built from the descriptor in the parent's payload;
        ``child_value`` must equal that descriptor's value. Returns the
        existing node unchanged when the child is already materialized.
        Lookup failures return ``Err`` and leave the graph exactly as it was.

        Raises:
            ValidationError: If ``child_value`` is not a JSON value.
        """
        key = str(child_key)

        with self._lock:
            state = self._states.get(document_id)
            if state is None:
                return Err(GraphLookupError(
                    message=f"Unknown document: {document_id}",
                    reason=LookupReason.UNKNOWN_DOCUMENT,
                    document_id=document_id,
                    parent_path=parent_path,
                    child_key=key,
                ))

            parent = state.get_node(parent_path)
            if parent is None:
                return Err(GraphLookupError(
                    message=f"Parent node {parent_path} is not materialized in {document_id}",
                    reason=LookupReason.UNKNOWN_PARENT,
                    document_id=document_id,
                    parent_path=parent_path,
                    child_key=key,
                ))

            descriptor = None if parent.kind == NodeKind.PRIMITIVE else parent.descriptor_for(key)
            if descriptor is None:
                return Err(GraphLookupError(
                    message=f"Key {key!r} is not a child of {parent_path}",
                    reason=LookupReason.UNKNOWN_KEY,
                    document_id=document_id,
                    parent_path=parent_path,
                    child_key=key,
                ))

            child_path = compose_path(parent_path, key, parent.kind)
            if not _same_json(child_value, descriptor.value, child_path):
                return Err(GraphLookupError(
                    message=f"Value given for {child_path} differs from the one in {parent_path}",
                    reason=LookupReason.VALUE_MISMATCH,
                    document_id=document_id,
                    parent_path=parent_path,
                    child_key=key,
                ))

            existing = state.get_node(child_path)
            if existing is not None:
                return Ok(existing)

            level = process_level(descriptor.value, child_path, key)
            node = GraphNode(
                id=child_path,
                kind=NodeKind.of(descriptor.value),
                payload=level.descriptors,
                parent_path=parent_path,
            )
            edge = GraphEdge(
                id=GraphEdge.make_id(parent_path, child_path),
                source=parent_path,
                target=child_path,
            )
            if parent_path_of(child_path) != parent_path:
                raise InvariantViolation(f"{child_path} does not extend {parent_path} by one segment")

            self._publish(state.model_copy(update={
                "nodes": state.nodes + (node,),
                "edges": state.edges + (edge,),
            }))

        logger.debug(f"Expanded {document_id}: {parent_path} -> {child_path}")
        return Ok(node)

    def expand_path(self, document_id: str, path: str) -> Result[GraphNode, GraphLookupError]:
        """
        Materialize every node on the way from the root to ``path``.

        Values are read from the stored raw document, so this only works for
        documents opened with their content.
        """
        state = self.get_state(document_id)
        if state is None:
            return Err(GraphLookupError(
                message=f"Unknown document: {document_id}",
                reason=LookupReason.UNKNOWN_DOCUMENT,
                document_id=document_id,
            ))

        def unresolvable(message: str) -> Err:
            return Err(GraphLookupError(
                message=message,
                reason=LookupReason.UNRESOLVABLE_PATH,
                document_id=document_id,
                parent_path=path,
            ))

        try:
            segments = parse_path(path)
        except ValueError as e:
            return unresolvable(str(e))
        if state.raw_document is None:
            return unresolvable(f"Document {document_id} has no stored content to walk")

        current_path = ROOT_PATH
        current_value = state.raw_document
        node = state.get_node(ROOT_PATH)

        for segment in segments:
            if isinstance(current_value, list):
                if not segment.key.isdigit() or int(segment.key) >= len(current_value):
                    return unresolvable(f"No index {segment.key} under {current_path}")
                child_value = current_value[int(segment.key)]
            elif isinstance(current_value, dict):
                if segment.key not in current_value:
                    return unresolvable(f"No key {segment.key!r} under {current_path}")
                child_value = current_value[segment.key]
            else:
                return unresolvable(f"{current_path} is a primitive and has no children")

            result = self.expand(document_id, current_path, segment.key, child_value)
            if result.is_err():
                return result
            node = result.value
            current_path = node.id
            current_value = child_value

        return Ok(node)

    # ---- queries ----------------------------------------------------------

    def get_node(self, document_id: str, node_id: str) -> Optional[GraphNode]:
        state = self.get_state(document_id)
        return state.get_node(node_id) if state else None

    def get_node_edges(self, document_id: str, node_id: str) -> List[GraphEdge]:
        """Edges touching a node, incoming first."""
        state = self.get_state(document_id)
        if state is None:
            return []
        incoming = [e for e in state.edges if e.target == node_id]
        outgoing = [e for e in state.edges if e.source == node_id]
        return incoming + outgoing

    def get_connected_nodes(self, document_id: str, node_id: str) -> List[GraphNode]:
        """Parent and materialized children of a node."""
        state = self.get_state(document_id)
        if state is None:
            return []
        index = TreeIndex.build(state.nodes, state.edges, strict=False)
        return [n for n in (state.get_node(nid) for nid in index.neighbors(node_id)) if n is not None]

    def validate_document(self, document_id: str) -> Optional[TreeReport]:
        """Structural check of a document's graph, or None if it is not open."""
        state = self.get_state(document_id)
        if state is None:
            return None
        return TreeIndex.build(state.nodes, state.edges, strict=False).validate()

    def states(self) -> Iterable[GraphState]:
        with self._lock:
            return list(self._states.values())
