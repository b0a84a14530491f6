"""
Tidy tree layout.

Two passes over the materialized tree:

1. Bottom-up, every node gets a ``subtree_width``: 1 for a leaf, otherwise
   the sum of its children's widths (never below 1).
2. Top-down, each node advances one rank along the growth axis per depth
   and is centred inside a spread-axis band proportional to its width.
   Children take consecutive sub-bands, so sibling bands never overlap.

Input is never mutated; nodes that are not reachable from the root keep
whatever position they came in with.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict

from ..config import (
    BAND_BUFFER,
    HORIZONTAL_RANK_BUFFER,
    LAYOUT_ORIGIN,
    LAYOUT_PRESETS,
    TABLET_BREAKPOINT,
    VERTICAL_RANK_BUFFER,
    WIDE_BREAKPOINT,
)
from ..core.graph import TreeIndex
from ..core.types import ContainerSize, Direction, GraphEdge, GraphNode

logger = logging.getLogger(__name__)


class LayoutOptions(BaseModel):
    """Node footprint, spacing and growth direction for one layout run."""
    model_config = ConfigDict(frozen=True)

    node_width: float = 300
    node_height: float = 200
    horizontal_spacing: float = 100
    vertical_spacing: float = 150
    direction: Direction = Direction.HORIZONTAL
    band_buffer: float = BAND_BUFFER
    rank_buffer: Optional[float] = None
    origin_x: float = LAYOUT_ORIGIN[0]
    origin_y: float = LAYOUT_ORIGIN[1]

    @property
    def rank_step(self) -> float:
        """Distance between consecutive depths along the growth axis."""
        if self.direction == Direction.HORIZONTAL:
            buffer = HORIZONTAL_RANK_BUFFER if self.rank_buffer is None else self.rank_buffer
            return self.node_width + self.horizontal_spacing + buffer
        buffer = VERTICAL_RANK_BUFFER if self.rank_buffer is None else self.rank_buffer
        return self.node_height + self.vertical_spacing + buffer

    @property
    def band_unit(self) -> float:
        """Spread-axis space allotted per unit of subtree width."""
        if self.direction == Direction.HORIZONTAL:
            return self.node_height + self.vertical_spacing + self.band_buffer
        return self.node_width + self.horizontal_spacing + self.band_buffer

    @property
    def spread_size(self) -> float:
        """Node extent along the spread axis."""
        if self.direction == Direction.HORIZONTAL:
            return self.node_height
        return self.node_width


@dataclass
class TreeLayoutNode:
    """Working node for the two layout passes."""
    id: str
    depth: int = 0
    subtree_width: int = 0
    children: List["TreeLayoutNode"] = field(default_factory=list)
    band_start: float = 0.0
    band_size: float = 0.0
    x: float = 0.0
    y: float = 0.0

    def walk(self) -> Iterable["TreeLayoutNode"]:
        """Pre-order traversal."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


def build_layout_tree(nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> Optional[TreeLayoutNode]:
    """
    Assemble the working tree from the root, or None if there is no root.

    Each node is visited at most once, so malformed input with shared
    children or cycles still terminates.
    """
    index = TreeIndex.build(nodes, edges, strict=False)
    root_id = index.find_root()
    if root_id is None:
        return None

    root = TreeLayoutNode(id=root_id)
    visited = {root_id}
    stack = [root]
    while stack:
        current = stack.pop()
        for child_id in index.children(current.id):
            if child_id in visited:
                continue
            visited.add(child_id)
            child = TreeLayoutNode(id=child_id, depth=current.depth + 1)
            current.children.append(child)
            stack.append(child)
    return root


def compute_subtree_widths(root: TreeLayoutNode) -> int:
    """Bottom-up width pass; returns the root's width."""
    for node in reversed(list(root.walk())):
        if not node.children:
            node.subtree_width = 1
        else:
            node.subtree_width = max(1, sum(child.subtree_width for child in node.children))
    return root.subtree_width


def assign_positions(root: TreeLayoutNode, options: LayoutOptions) -> None:
    """Top-down position pass."""
    horizontal = options.direction == Direction.HORIZONTAL
    if horizontal:
        growth_origin, spread_origin = options.origin_x, options.origin_y
    else:
        growth_origin, spread_origin = options.origin_y, options.origin_x

    stack = [(root, spread_origin)]
    while stack:
        node, band_start = stack.pop()
        node.band_start = band_start
        node.band_size = node.subtree_width * options.band_unit

        growth = growth_origin + node.depth * options.rank_step
        spread = band_start + node.band_size / 2 - options.spread_size / 2
        if horizontal:
            node.x, node.y = growth, spread
        else:
            node.x, node.y = spread, growth

        child_start = band_start
        for child in node.children:
            stack.append((child, child_start))
            child_start += child.subtree_width * options.band_unit


def compute_tree_layout(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    options: Optional[LayoutOptions] = None,
) -> Optional[TreeLayoutNode]:
    """Run both passes and return the positioned working tree (None if degenerate)."""
    root = build_layout_tree(nodes, edges)
    if root is None:
        return None
    compute_subtree_widths(root)
    assign_positions(root, options or LayoutOptions())
    return root


def calculate_layout(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    options: Optional[LayoutOptions] = None,
) -> List[GraphNode]:
    """
    Position every node reachable from the root.

    Empty or rootless input is returned unchanged.
    """
    nodes = list(nodes)
    if not nodes:
        logger.warning("Skipping layout: no nodes")
        return nodes

    tree = compute_tree_layout(nodes, edges, options)
    if tree is None:
        logger.warning(f"Skipping layout: no root among {len(nodes)} node(s)")
        return nodes

    placed = {n.id: (n.x, n.y) for n in tree.walk()}
    if len(placed) < len(nodes):
        logger.debug(f"{len(nodes) - len(placed)} node(s) unreachable from {tree.id}; keeping their positions")

    return [
        node.with_position(*placed[node.id]) if node.id in placed else node
        for node in nodes
    ]


def options_for_container(
    container_size: ContainerSize,
    overrides: Optional[Mapping[str, Any]] = None,
) -> LayoutOptions:
    """
    Pick the preset for a container width.

    Wider than 1024 uses the wide horizontal preset, wider than 768 the
    tablet horizontal preset, anything else the compact vertical one.
    """
    if container_size.width > WIDE_BREAKPOINT:
        preset = LAYOUT_PRESETS["wide"]
    elif container_size.width > TABLET_BREAKPOINT:
        preset = LAYOUT_PRESETS["tablet"]
    else:
        preset = LAYOUT_PRESETS["compact"]
    return LayoutOptions(**{**preset, **dict(overrides or {})})


def calculate_responsive_layout(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    container_size: ContainerSize,
    overrides: Optional[Mapping[str, Any]] = None,
) -> List[GraphNode]:
    return calculate_layout(nodes, edges, options_for_container(container_size, overrides))


def layout(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    container_size: Union[ContainerSize, Mapping[str, float]],
    options: Optional[Union[LayoutOptions, Mapping[str, Any]]] = None,
) -> List[GraphNode]:
    """
    Lay out a materialized tree for a container.

    The root is the node that is the target of no edge. When several
    qualify, ``"root"`` wins if present, otherwise the first of them in
    ``nodes`` order; the rest keep their incoming positions.

    ``options`` may be a full ``LayoutOptions`` (used as is) or a mapping of
    fields overriding the responsive preset.
    """
    if not isinstance(container_size, ContainerSize):
        container_size = ContainerSize.model_validate(container_size)
    if isinstance(options, LayoutOptions):
        return calculate_layout(nodes, edges, options)
    return calculate_responsive_layout(nodes, edges, container_size, options)


