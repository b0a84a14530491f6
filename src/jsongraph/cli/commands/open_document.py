"""
Open Command - Load a JSON file as a root-only graph.
"""

from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from ...core.identity import display_name_for, document_id_for, document_metadata
from ..utils import echo_error, echo_info, echo_json, echo_success, echo_warning, get_config, open_repository, read_document

console = Console()


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-n", "--name", "display_name", default=None, help="Display name (default: derived from content)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def open_document(ctx: click.Context, file: Path, display_name: Optional[str], as_json: bool) -> None:
    """
    Open FILE as a new document.

    Reopening identical content (in any key order) returns the existing
    document and keeps its expansions.
    """
    parsed = read_document(file)
    if parsed.is_err():
        echo_error(f"{file}: {parsed.error}")
        ctx.exit(1)

    data = parsed.value
    document_id = document_id_for(data)
    name = display_name or display_name_for(data, fallback=file.stem)

    repository = open_repository(get_config(ctx))
    try:
        already_open = document_id in repository
        state = repository.open_document(document_id, data, display_name=name)
    finally:
        repository.close()

    metadata = document_metadata(data)

    if as_json:
        echo_json({
            "documentId": state.document_id,
            "displayName": state.display_name,
            "reopened": already_open,
            "nodes": state.node_count,
            "edges": state.edge_count,
            "metadata": metadata,
        })
        return

    if already_open:
        echo_warning(f"Document already open: {document_id}")
    else:
        echo_success(f"Opened {file.name} as {document_id}")
    echo_info(f"Display name: {state.display_name}")

    root = state.get_node("root")
    table = Table(title=f"root ({state.node_count} node(s) materialized)")
    table.add_column("Key", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Children", justify="right")
    for descriptor in root.payload:
        table.add_row(
            descriptor.key,
            str(descriptor.semantic_type),
            str(descriptor.child_count or 0),
        )
    console.print(table)
    echo_info(
        f"{metadata['lines']} lines, {metadata['keys']} keys, "
        f"depth {metadata['depth']}, {metadata['size']} bytes"
    )
