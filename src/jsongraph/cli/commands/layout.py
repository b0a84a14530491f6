"""
Layout Command - Print tidy tree positions for a document.
"""

from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from ...core.types import ContainerSize
from ...layout.tree import layout as tree_layout
from ...layout.tree import options_for_container
from ..utils import echo_json, get_config, open_repository, resolve_document_id

console = Console()


@click.command()
@click.argument("document_id")
@click.option("--width", type=float, default=None, help="Container width (default from config)")
@click.option("--height", type=float, default=None, help="Container height (default from config)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def layout(
    ctx: click.Context,
    document_id: str,
    width: Optional[float],
    height: Optional[float],
    as_json: bool,
) -> None:
    """
    Compute node positions for DOCUMENT_ID.

    The container width picks the preset: above 1024 wide horizontal,
    above 768 medium horizontal, otherwise compact vertical.
    """
    config = get_config(ctx)
    size = ContainerSize(
        width=width or config.layout.container_width,
        height=height or config.layout.container_height,
    )

    repository = open_repository(config)
    try:
        resolved = resolve_document_id(repository, document_id)
        if resolved is None:
            ctx.exit(1)
        state = repository.get_state(resolved)
    finally:
        repository.close()

    options = options_for_container(size)
    placed = tree_layout(state.nodes, state.edges, size)

    if as_json:
        echo_json({
            "documentId": resolved,
            "direction": str(options.direction),
            "positions": {
                n.id: {"x": n.position.x, "y": n.position.y}
                for n in placed if n.position is not None
            },
        })
        return

    table = Table(title=f"{resolved} ({options.direction}, {size.width:g}x{size.height:g})")
    table.add_column("Node", style="cyan")
    table.add_column("x", justify="right")
    table.add_column("y", justify="right")
    for node in placed:
        if node.position is None:
            table.add_row(node.id, "-", "-")
        else:
            table.add_row(node.id, f"{node.position.x:g}", f"{node.position.y:g}")
    console.print(table)
