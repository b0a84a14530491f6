"""
CLI Utilities - Shared helper functions for command line operations.

Formatted printing plus the plumbing every command needs: resolving the
active configuration and opening the persisted repository.
"""

import json
from pathlib import Path
from typing import Any, Optional

import click

from ..config import GraphConfig
from ..core.exceptions import ValidationError
from ..core.identity import parse_document
from ..core.result import Result
from ..core.state import GraphRepository
from ..core.storage import create_storage


def echo_success(message: str) -> None:
    """
    Print a success message with a green checkmark.

    Args:
        message (str): The message to display.
    """
    click.echo(click.style(f"✅ {message}", fg="green"))


def echo_error(message: str) -> None:
    """
    Print an error message with a red cross.

    Args:
        message (str): The error message to display.
    """
    click.echo(click.style(f"❌ {message}", fg="red"), err=True)


def echo_warning(message: str) -> None:
    click.echo(click.style(f"⚠️  {message}", fg="yellow"))


def echo_info(message: str) -> None:
    click.echo(click.style(f"   {message}", dim=True))


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def get_config(ctx: click.Context) -> GraphConfig:
    """The configuration resolved by the top-level group."""
    obj = ctx.find_root().obj or {}
    return obj.get("config") or GraphConfig()


def open_repository(config: GraphConfig) -> GraphRepository:
    """
    Load the persisted repository described by ``config``.

    Each CLI invocation is short-lived, so writes are flushed synchronously.
    """
    storage = create_storage(config.storage.backend, Path(config.storage.path))
    return GraphRepository.load(storage, debounce_seconds=0)


def read_document(file_path: Path) -> Result[dict, ValidationError]:
    """Read and validate a JSON document from disk."""
    return parse_document(Path(file_path).read_text(encoding="utf-8"))


def resolve_document_id(repository: GraphRepository, prefix: str) -> Optional[str]:
    """
    Accept a full document id or an unambiguous prefix of one.

    Prints an error and returns None when nothing (or more than one
    document) matches.
    """
    if prefix in repository:
        return prefix
    matches = [doc_id for doc_id in repository.document_ids() if doc_id.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        echo_error(f"No open document matches: {prefix}")
        click.echo("Run 'jsongraph open <file>' first.")
    else:
        echo_error(f"Ambiguous document id {prefix!r}: {', '.join(sorted(matches))}")
    return None
