"""Search root commands - inspect and edit where modules are looked up."""

from __future__ import annotations

from typing import Literal
from typing import cast

import click
from rich.markup import escape
from rich.table import Table

from ..console import console
from ..paths import ResolutionContext
from ..settings import SettingsManager


@click.group("paths", invoke_without_command=True)
@click.pass_context
def paths_group(ctx: click.Context):
    """Manage search roots (the project's sys.path)."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(paths_show)


@paths_group.command("show")
@click.pass_obj
def paths_show(state: dict):
    """Show search roots in lookup order and where each one came from."""
    rc: ResolutionContext = state["resolution"]

    table = Table(title="Search Roots", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Path", style="green")
    table.add_column("Layer", style="yellow")
    table.add_column("Exists", style="dim")

    for index, (root, layer) in enumerate(rc.roots, start=1):
        table.add_row(str(index), escape(str(root)), layer, "yes" if root.is_dir() else "no")

    console.print(table)
    fallback = "on" if rc.system_fallback else "off"
    console.print(f"[dim]System fallback (stdlib/installed packages): {fallback}[/dim]")


def _scope_option(help_verb: str):
    return click.option(
        "--scope",
        type=click.Choice(["local", "project", "user"]),
        default="project",
        show_default=True,
        help=f"Settings file to {help_verb}",
    )


@paths_group.command("add")
@click.argument("path")
@_scope_option("write to")
def paths_add(path: str, scope: str):
    """Add PATH as a search root in a settings file."""
    manager = SettingsManager()
    manager.add_search_path(path, cast(Literal["local", "project", "user"], scope))
    console.print(f"[green]✓ Added {escape(path)}[/green]")
    console.print(f"  Scope: {scope}")


@paths_group.command("remove")
@click.argument("path")
@_scope_option("remove from")
def paths_remove(path: str, scope: str):
    """Remove PATH from a settings file's search roots."""
    manager = SettingsManager()
    if manager.remove_search_path(path, cast(Literal["local", "project", "user"], scope)):
        console.print(f"[green]✓ Removed {escape(path)} from {scope}[/green]")
    else:
        console.print(f"[yellow]{escape(path)} is not a search root in {scope} settings[/yellow]")
