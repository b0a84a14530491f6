"""
Tree index backed by rustworkx.

Wraps a ``PyDiGraph`` with a bimap between PathIds and rustworkx integer
indices, keeps children in insertion order, and answers the structural
questions the store and the layout engine ask: which node is the root, who
are a node's children, and whether the whole set is still a single
connected, acyclic tree.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set

import rustworkx as rx

from .exceptions import InvariantViolation
from .paths import ROOT_PATH, parent_path_of
from .types import GraphEdge, GraphNode


@dataclass
class TreeReport:
    """Outcome of a structural validation pass."""
    valid: bool
    issues: List[str] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)


class TreeIndex:
    """
    Structural index over a node/edge set.

    In strict mode every edge must point from a node to its direct child
    path, ids must be unique and both endpoints must exist; violations raise
    ``InvariantViolation``. Non-strict mode (used by the layout engine on
    arbitrary input) skips dangling and duplicate entries instead.
    """

    def __init__(self, strict: bool = True):
        self.strict = strict
        self._graph = rx.PyDiGraph(multigraph=False)
        self._id_to_idx: Dict[str, int] = {}
        self._idx_to_id: Dict[int, str] = {}
        self._children: Dict[str, List[str]] = defaultdict(list)
        self._parent: Dict[str, str] = {}
        self._order: List[str] = []
        self._dangling: List[GraphEdge] = []

    @classmethod
    def build(
        cls,
        nodes: Iterable[GraphNode],
        edges: Iterable[GraphEdge],
        strict: bool = True,
    ) -> "TreeIndex":
        index = cls(strict=strict)
        for node in nodes:
            index.add_node(node.id)
        for edge in edges:
            index.add_edge(edge)
        return index

    def add_node(self, node_id: str) -> None:
        if node_id in self._id_to_idx:
            if self.strict:
                raise InvariantViolation(f"Duplicate node id: {node_id}")
            return
        idx = self._graph.add_node(node_id)
        self._id_to_idx[node_id] = idx
        self._idx_to_id[idx] = node_id
        self._order.append(node_id)

    def add_edge(self, edge: GraphEdge) -> None:
        if edge.source not in self._id_to_idx or edge.target not in self._id_to_idx:
            if self.strict:
                raise InvariantViolation(
                    f"Edge {edge.id} references a missing node ({edge.source} -> {edge.target})"
                )
            self._dangling.append(edge)
            return

        if self.strict:
            try:
                expected_parent = parent_path_of(edge.target)
            except ValueError as e:
                raise InvariantViolation(f"Edge {edge.id}: malformed target path: {e}") from e
            if expected_parent != edge.source:
                raise InvariantViolation(
                    f"Edge {edge.id}: {edge.target} is not a direct child path of {edge.source}"
                )

        u = self._id_to_idx[edge.source]
        v = self._id_to_idx[edge.target]
        if self._graph.has_edge(u, v):
            if self.strict:
                raise InvariantViolation(f"Duplicate edge {edge.source} -> {edge.target}")
            return
        if edge.target in self._parent:
            if self.strict:
                raise InvariantViolation(f"Node {edge.target} already has parent {self._parent[edge.target]}")
            return

        self._graph.add_edge(u, v, edge)
        self._children[edge.source].append(edge.target)
        self._parent[edge.target] = edge.source

    def has_node(self, node_id: str) -> bool:
        return node_id in self._id_to_idx

    def children(self, node_id: str) -> List[str]:
        """Direct children in the order their edges were added."""
        return list(self._children.get(node_id, ()))

    def parent(self, node_id: str) -> Optional[str]:
        return self._parent.get(node_id)

    def roots(self) -> List[str]:
        """Nodes that are the target of no edge, in insertion order."""
        return [nid for nid in self._order if nid not in self._parent]

    def find_root(self) -> Optional[str]:
        """
        The layout root: ``"root"`` when it qualifies, else the first
        parentless node, else None.
        """
        candidates = self.roots()
        if not candidates:
            return None
        if ROOT_PATH in candidates:
            return ROOT_PATH
        return candidates[0]

    def get_descendants(self, node_id: str) -> Set[str]:
        if node_id not in self._id_to_idx:
            return set()
        return {self._idx_to_id[i] for i in rx.descendants(self._graph, self._id_to_idx[node_id])}

    def get_ancestors(self, node_id: str) -> Set[str]:
        if node_id not in self._id_to_idx:
            return set()
        return {self._idx_to_id[i] for i in rx.ancestors(self._graph, self._id_to_idx[node_id])}

    def neighbors(self, node_id: str) -> List[str]:
        """Parent (if any) followed by children."""
        result = []
        if node_id in self._parent:
            result.append(self._parent[node_id])
        result.extend(self.children(node_id))
        return result

    def is_acyclic(self) -> bool:
        return rx.is_directed_acyclic_graph(self._graph)

    def is_connected(self) -> bool:
        if self._graph.num_nodes() == 0:
            return True
        return rx.is_weakly_connected(self._graph)

    @property
    def node_count(self) -> int:
        return self._graph.num_nodes()

    @property
    def edge_count(self) -> int:
        return self._graph.num_edges()

    def validate(self) -> TreeReport:
        """Report dangling edges, orphans, cycles and the edge/node count invariant."""
        issues: List[str] = []

        for edge in self._dangling:
            if edge.source not in self._id_to_idx:
                issues.append(f"Edge {edge.id}: source node {edge.source!r} not found")
            if edge.target not in self._id_to_idx:
                issues.append(f"Edge {edge.id}: target node {edge.target!r} not found")

        orphans = [nid for nid in self.roots() if nid != ROOT_PATH]
        for nid in orphans:
            issues.append(f"Node {nid}: no incoming edges (orphaned node)")

        if self.node_count and not self.has_node(ROOT_PATH):
            issues.append("Root node is missing")
        if not self.is_acyclic():
            issues.append("Edge set contains a cycle")
        if self.node_count and self.edge_count != self.node_count - 1:
            issues.append(
                f"Expected {self.node_count - 1} edges for {self.node_count} nodes, found {self.edge_count}"
            )

        return TreeReport(
            valid=not issues,
            issues=issues,
            stats={
                "nodes": self.node_count,
                "edges": self.edge_count,
                "orphaned_nodes": len(orphans),
                "connected": self.is_connected(),
            },
        )
