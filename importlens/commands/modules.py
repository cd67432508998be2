"""Module listing and inspection commands."""

from __future__ import annotations

import sys

import click
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..console import console
from ..console import error_console
from ..exceptions import ImportResolutionError
from ..exceptions import RelativeImportError
from ..paths import ResolutionContext
from ..ui import display_import_error

_LOCATION_STYLES = {"project": "green", "system": "blue", "unresolved": "red"}


@click.command("list")
@click.argument("prefix", required=False, default="")
@click.option(
    "--kind",
    type=click.Choice(["all", "module", "package", "namespace"]),
    default="all",
    help="Filter by module kind",
)
@click.pass_obj
def list_modules(state: dict, prefix: str, kind: str):
    """List importable modules (optionally only PREFIX and below)."""
    rc: ResolutionContext = state["resolution"]

    try:
        specs = rc.registry.iter_modules(prefix)
    except ImportResolutionError as e:
        display_import_error(error_console, e, verbose=state["verbose"])
        sys.exit(1)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    if kind != "all":
        specs = [spec for spec in specs if spec.kind == kind]

    if not specs:
        console.print("[dim]No importable modules found[/dim]")
        return

    table = Table(title="Importable Modules", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="green")
    table.add_column("Kind", style="yellow")
    table.add_column("Location", style="dim")

    for spec in specs:
        location = spec.origin if spec.origin is not None else spec.search_locations[0]
        table.add_row(escape(spec.name), spec.kind, escape(str(location)))

    console.print(table)
    console.print(f"\n[bold]Total:[/bold] {len(specs)} modules")


@click.command("show")
@click.argument("name")
@click.pass_obj
def show_module(state: dict, name: str):
    """Show what module NAME imports and exports."""
    rc: ResolutionContext = state["resolution"]

    try:
        spec = rc.registry.find_spec(name)
        info = rc.resolver.info(spec)
    except ImportResolutionError as e:
        display_import_error(error_console, e, verbose=state["verbose"])
        sys.exit(1)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    exports = info.exports
    export_label = "__all__" if info.all_names is not None else "public names"
    panel_content = f"""[bold]Name:[/bold] {escape(spec.name)}
[bold]Kind:[/bold] {spec.kind}
[bold]File:[/bold] {escape(str(spec.origin)) if spec.origin else "(namespace package)"}
[bold]Exports ({export_label}):[/bold] {escape(", ".join(exports)) if exports else "(none)"}"""
    console.print(Panel(panel_content, title=f"Module: {escape(spec.name)}", border_style="cyan"))

    if not info.imports:
        console.print("[dim]No imports[/dim]")
        return

    table = Table(title="Imports", show_header=True, header_style="bold cyan")
    table.add_column("Line", justify="right", style="dim")
    table.add_column("Statement")
    table.add_column("Target", style="magenta")
    table.add_column("Location")

    for statement in info.imports:
        try:
            resolved = rc.resolver.resolve(statement, spec)
        except RelativeImportError as e:
            table.add_row(str(statement.lineno), escape(statement.render()), "-", f"[red]{escape(str(e))}[/red]")
            continue

        style = _LOCATION_STYLES[resolved.location]
        location = f"[{style}]{resolved.location}[/{style}]"
        if resolved.missing_names:
            location += f" [red](missing: {escape(', '.join(resolved.missing_names))})[/red]"
        if statement.guarded:
            location += " [dim](guarded)[/dim]"
        table.add_row(str(statement.lineno), escape(statement.render()), escape(resolved.target), location)

    console.print(table)
