"""
Close Command - Discard a document's graph.
"""

import click

from ..utils import echo_success, get_config, open_repository, resolve_document_id


@click.command()
@click.argument("document_id")
@click.pass_context
def close(ctx: click.Context, document_id: str) -> None:
    """Close DOCUMENT_ID; other open documents are untouched."""
    repository = open_repository(get_config(ctx))
    try:
        resolved = resolve_document_id(repository, document_id)
        if resolved is None:
            ctx.exit(1)
        repository.close_document(resolved)
    finally:
        repository.close()

    echo_success(f"Closed {resolved}")
