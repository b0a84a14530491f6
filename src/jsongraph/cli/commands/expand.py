"""
Expand Command - Materialize a node and every missing ancestor.
"""

import click
from rich.console import Console
from rich.table import Table

from ..utils import echo_error, echo_json, echo_success, get_config, open_repository, resolve_document_id

console = Console()


@click.command()
@click.argument("document_id")
@click.argument("path")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def expand(ctx: click.Context, document_id: str, path: str, as_json: bool) -> None:
    """
    Expand PATH (e.g. root.users[0].address) in DOCUMENT_ID.

    DOCUMENT_ID may be any unambiguous prefix of an open document id.
    """
    repository = open_repository(get_config(ctx))
    try:
        resolved = resolve_document_id(repository, document_id)
        if resolved is None:
            ctx.exit(1)

        before = repository.get_state(resolved).node_count
        result = repository.expand_path(resolved, path)
        if result.is_err():
            echo_error(str(result.error))
            ctx.exit(1)

        node = result.value
        state = repository.get_state(resolved)
    finally:
        repository.close()

    if as_json:
        echo_json({
            "documentId": resolved,
            "node": node.model_dump(by_alias=True, mode="json", exclude={"position"}),
            "created": state.node_count - before,
        })
        return

    echo_success(f"{node.id} ({node.kind}) - {state.node_count - before} node(s) created")

    if not node.payload:
        return
    table = Table(title=node.id)
    table.add_column("Key", style="cyan")
    table.add_column("Path", style="dim")
    table.add_column("Type", style="magenta")
    table.add_column("Value")
    for descriptor in node.payload:
        value = "…" if not descriptor.is_leaf else repr(descriptor.value)
        table.add_row(descriptor.key, descriptor.path, str(descriptor.semantic_type), value)
    console.print(table)
