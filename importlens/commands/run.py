"""Run command - execute a module in the isolated loader."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.markup import escape
from rich.table import Table

from ..console import console
from ..console import error_console
from ..exceptions import ImportResolutionError
from ..paths import ResolutionContext
from ..paths import create_loader
from ..paths import create_registry
from ..ui import display_import_error


@click.command("run")
@click.argument("name", required=False)
@click.option(
    "--file",
    "script",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Run a script file as __main__ instead of a module",
)
@click.pass_obj
def run_cmd(state: dict, name: str | None, script: Path | None):
    """Import module NAME (or run a script) without touching sys.modules.

    Like "python script.py", the script's directory is searched first.
    Prints the project modules that were loaded, in load order.
    """
    rc: ResolutionContext = state["resolution"]

    if (name is None) == (script is None):
        console.print("[red]Error:[/red] Give either a module NAME or --file PATH")
        sys.exit(2)

    loader = rc.loader
    if script is not None:
        roots = [(script.resolve().parent, "script"), *rc.roots]
        loader = create_loader(create_registry(roots), rc.system_fallback)

    try:
        if script is not None:
            loader.run_path(script)
            target = str(script)
        else:
            loader.load(name)
            target = name
    except ImportResolutionError as e:
        display_import_error(error_console, e, verbose=state["verbose"])
        sys.exit(1)

    loaded = loader.cache.entries()
    console.print(f"[green]✓[/green] Ran {escape(target)}")
    if not loaded:
        console.print("[dim]No project modules loaded[/dim]")
        return

    table = Table(title="Loaded Modules", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Module", style="green")
    table.add_column("Kind", style="yellow")
    table.add_column("File", style="dim")

    for index, entry in enumerate(loaded, start=1):
        origin = entry.spec.origin or "(namespace package)"
        table.add_row(str(index), escape(entry.name), entry.spec.kind, escape(str(origin)))

    console.print(table)
