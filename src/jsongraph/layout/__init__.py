"""Tree layout for materialized JSON graphs."""

from .tree import (
    LayoutOptions,
    TreeLayoutNode,
    calculate_layout,
    calculate_responsive_layout,
    compute_tree_layout,
    layout,
    options_for_container,
)

__all__ = [
    "LayoutOptions",
    "TreeLayoutNode",
    "calculate_layout",
    "calculate_responsive_layout",
    "compute_tree_layout",
    "layout",
    "options_for_container",
]
