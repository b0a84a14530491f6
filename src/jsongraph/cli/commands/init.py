"""
Init Command - Project bootstrap.

Creates ``.jsongraph/config.yaml`` with the default storage, layout and
logging settings, and keeps the state directory out of git.
"""

import copy
from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm

from ...config import CONFIG_DIR, DEFAULT_CONFIG, DEFAULT_JSON_STATE_PATH

console = Console()


def create_gitignore(state_dir: Path):
    """Ensure the .jsongraph/ directory is ignored by git."""
    gitignore = state_dir.parent / ".gitignore"
    entry = "\n# jsongraph\n.jsongraph/\n"

    if not gitignore.exists():
        with open(gitignore, "w") as f:
            f.write(entry)
    else:
        content = gitignore.read_text()
        if ".jsongraph" not in content:
            with open(gitignore, "a") as f:
                f.write(entry)


def _init_project(root_dir: Path, backend: str) -> Path:
    state_dir = root_dir / CONFIG_DIR
    config_file = state_dir / "config.yaml"

    config = copy.deepcopy(DEFAULT_CONFIG)
    config["storage"]["backend"] = backend
    if backend == "json":
        config["storage"]["path"] = str(DEFAULT_JSON_STATE_PATH)

    state_dir.mkdir(parents=True, exist_ok=True)
    with open(config_file, "w") as f:
        yaml.dump(config, f, sort_keys=False, default_flow_style=False)

    create_gitignore(state_dir)
    return config_file


@click.command()
@click.option("--force", is_flag=True, help="Overwrite existing configuration")
@click.option("--backend", type=click.Choice(["sqlite", "json", "memory"]), default="sqlite",
              show_default=True, help="Where expanded graphs are persisted")
def init(force: bool, backend: str):
    """
    Initialize jsongraph in the current directory.
    """
    console.print(Panel.fit("🚀 [bold blue]jsongraph Initialization[/bold blue]", border_style="blue"))

    root_dir = Path.cwd()
    config_file = root_dir / CONFIG_DIR / "config.yaml"

    if config_file.exists() and not force:
        console.print(f"[yellow]Configuration already exists at {config_file}[/yellow]")
        if not Confirm.ask("Do you want to overwrite it?"):
            console.print("Aborted.")
            return

    written = _init_project(root_dir, backend)

    console.print("\n✨ [bold green]Initialized successfully![/bold green]")
    console.print(f"   Config created at: [dim]{written}[/dim]")
