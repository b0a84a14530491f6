"""
jsongraph CLI - Main entry point.

This module registers all CLI commands. Each command is implemented
in its own module under cli/commands/.
"""

from pathlib import Path
from typing import Optional

import click

from ..config import configure_logging, load_config
from .commands import classify, close, expand, init, layout, open_document


@click.group()
@click.version_option(package_name="jsongraph")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
@click.option("-c", "--config", "config_path", type=click.Path(path_type=Path),
              default=None, help="Path to config.yaml (default: .jsongraph/config.yaml)")
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_path: Optional[Path]):
    """jsongraph: Incremental JSON graph explorer.

    Opens a JSON document as a one-node graph, materializes children
    on demand and lays the result out as a tidy tree.

    \b
    Quick Start:
      jsongraph init
      jsongraph open data.json
      jsongraph expand <document-id> root.users[0]
      jsongraph layout <document-id>
    """
    config = load_config(config_path)
    configure_logging("DEBUG" if verbose else config.logging.level)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# Register commands
main.add_command(init.init)
main.add_command(open_document.open_document, name="open")
main.add_command(expand.expand)
main.add_command(layout.layout)
main.add_command(close.close)
main.add_command(classify.classify)

if __name__ == "__main__":
    main()
