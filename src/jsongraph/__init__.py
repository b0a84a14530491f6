"""
jsongraph - Incremental JSON graph materialization and layout.

A JSON document opens as a single root node. Each expansion materializes
exactly one child (one node plus one edge), and the resulting tree is laid
out with a responsive tidy tree algorithm.

Key Components:
- core.classifier: Semantic typing of JSON values (url, email, uuid, ...)
- core.levels: One-level expansion into child descriptors
- core.state: Per-document graph store with atomic snapshots
- layout: Two-pass tidy tree positioning
- session: Two-phase expand -> layout -> focus coordination

Usage:
    from jsongraph import GraphRepository, layout

    repo = GraphRepository()
    state = repo.open_json({"a": {"b": 1}})
    repo.expand(state.document_id, "root", "a", {"b": 1})
"""

__version__ = "0.1.0"

from .core.state import GraphRepository
from .core.types import (
    ContainerSize, Direction, GraphEdge, GraphNode, GraphState,
    LevelDescriptor, NodeKind, SemanticType,
)
from .layout import layout
from .session import ExpansionCoordinator

__all__ = [
    "__version__",
    "GraphRepository",
    "ExpansionCoordinator",
    "layout",
    "ContainerSize",
    "Direction",
    "GraphEdge",
    "GraphNode",
    "GraphState",
    "LevelDescriptor",
    "NodeKind",
    "SemanticType",
]
