"""
Expansion coordinator.

Expanding a node is two-phase. ``request_expand`` commits the new node to
the repository immediately and hands back a ``PendingLayout``. The caller
signals ``ready()`` once the renderer has committed and measured the new
node; only then is the layout recomputed and the focus callback fired.
Focus is "last call wins": a pending expansion that has been overtaken by a
newer one still relayouts but does not steal focus.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from .config import DEFAULT_CONTAINER_HEIGHT, DEFAULT_CONTAINER_WIDTH
from .core.exceptions import GraphLookupError
from .core.result import Result, map_ok
from .core.state import GraphRepository
from .core.types import ContainerSize, GraphNode, Position
from .layout.tree import layout

logger = logging.getLogger(__name__)

LayoutCallback = Callable[[str, List[GraphNode]], None]
FocusCallback = Callable[[str, str], None]


@dataclass
class PendingLayout:
    """Handle for the deferred half of an expansion."""
    document_id: str
    node: GraphNode
    generation: int
    _coordinator: "ExpansionCoordinator" = field(repr=False)
    done: bool = False

    @property
    def node_id(self) -> str:
        return self.node.id

    def ready(self) -> Optional[List[GraphNode]]:
        """
        Run layout and focus. Returns the laid-out nodes, or None if this
        handle was already completed.
        """
        return self._coordinator._complete(self)


class ExpansionCoordinator:
    """Drives expand -> commit -> layout -> focus for a repository."""

    def __init__(
        self,
        repository: GraphRepository,
        container_size: Optional[ContainerSize] = None,
        on_layout: Optional[LayoutCallback] = None,
        on_focus: Optional[FocusCallback] = None,
        layout_overrides: Optional[Mapping[str, Any]] = None,
    ):
        self.repository = repository
        self.container_size = container_size or ContainerSize(
            width=DEFAULT_CONTAINER_WIDTH, height=DEFAULT_CONTAINER_HEIGHT
        )
        self.on_layout = on_layout
        self.on_focus = on_focus
        self.layout_overrides = dict(layout_overrides or {})
        self._generation = 0
        self._positions: Dict[str, Dict[str, Position]] = {}
        self._pinned: Dict[str, Dict[str, Position]] = {}
        self._lock = threading.Lock()

    def request_expand(
        self,
        document_id: str,
        parent_path: str,
        child_key: str | int,
        child_value: Any,
    ) -> Result[PendingLayout, GraphLookupError]:
        """Phase one: commit the child. Layout waits for ``ready()``."""
        result = self.repository.expand(document_id, parent_path, child_key, child_value)
        if result.is_err():
            logger.info(f"Expand rejected: {result.error}")
            return result
        return map_ok(result, lambda node: self._pending_for(document_id, node))

    def request_expand_path(self, document_id: str, path: str) -> Result[PendingLayout, GraphLookupError]:
        """Phase one for a whole path; the target node receives focus."""
        result = self.repository.expand_path(document_id, path)
        if result.is_err():
            logger.info(f"Expand to {path} rejected: {result.error}")
            return result
        return map_ok(result, lambda node: self._pending_for(document_id, node))

    def _pending_for(self, document_id: str, node: GraphNode) -> PendingLayout:
        with self._lock:
            self._generation += 1
            generation = self._generation
        return PendingLayout(
            document_id=document_id,
            node=node,
            generation=generation,
            _coordinator=self,
        )

    def _complete(self, pending: PendingLayout) -> Optional[List[GraphNode]]:
        with self._lock:
            if pending.done:
                return None
            pending.done = True
            is_latest = pending.generation == self._generation

        nodes = self.relayout(pending.document_id)
        if is_latest and self.on_focus is not None:
            self.on_focus(pending.document_id, pending.node_id)
        return nodes

    def relayout(self, document_id: str) -> List[GraphNode]:
        """Recompute positions for a document; pinned nodes stay where they were put."""
        state = self.repository.get_state(document_id)
        if state is None:
            return []

        with self._lock:
            previous = dict(self._positions.get(document_id, {}))
            pinned = dict(self._pinned.get(document_id, {}))

        current = [
            node.with_position(previous[node.id].x, previous[node.id].y) if node.id in previous else node
            for node in state.nodes
        ]
        placed = layout(current, state.edges, self.container_size, self.layout_overrides)
        placed = [
            node.with_position(pinned[node.id].x, pinned[node.id].y) if node.id in pinned else node
            for node in placed
        ]

        with self._lock:
            self._positions[document_id] = {n.id: n.position for n in placed if n.position is not None}

        if self.on_layout is not None:
            self.on_layout(document_id, placed)
        return placed

    def positions(self, document_id: str) -> Dict[str, Position]:
        with self._lock:
            return dict(self._positions.get(document_id, {}))

    def pin(self, document_id: str, node_id: str, x: float, y: float) -> None:
        """Record a user-placed position that survives relayout."""
        position = Position(x=x, y=y)
        with self._lock:
            self._pinned.setdefault(document_id, {})[node_id] = position
            self._positions.setdefault(document_id, {})[node_id] = position

    def unpin(self, document_id: str, node_id: Optional[str] = None) -> None:
        """Release one pinned node, or every pin in the document."""
        with self._lock:
            if node_id is None:
                self._pinned.pop(document_id, None)
            else:
                self._pinned.get(document_id, {}).pop(node_id, None)

    def set_container_size(self, container_size: ContainerSize) -> None:
        self.container_size = container_size

    def close_document(self, document_id: str) -> bool:
        with self._lock:
            self._positions.pop(document_id, None)
            self._pinned.pop(document_id, None)
        return self.repository.close_document(document_id)
