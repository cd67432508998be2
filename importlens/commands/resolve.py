"""Resolve command - explain where an import comes from."""

from __future__ import annotations

import sys

import click
from rich.markup import escape
from rich.panel import Panel

from ..console import console
from ..console import error_console
from ..exceptions import ImportResolutionError
from ..exceptions import ModuleNotFoundError
from ..module_resolution import split_relative
from ..module_resolution.resolvers import is_system_module
from ..module_resolution.resolvers import resolve_name
from ..paths import ResolutionContext
from ..ui import display_import_error


@click.command("resolve")
@click.argument("reference")
@click.option("--from", "importer", default=None, help="Module the import is written in (needed for relative imports)")
@click.option(
    "--level",
    type=click.IntRange(min=0),
    default=None,
    help="Number of leading dots (overrides dots written in REFERENCE)",
)
@click.pass_obj
def resolve_cmd(state: dict, reference: str, importer: str | None, level: int | None):
    """Show how REFERENCE resolves: canonical name, kind, file and search root.

    REFERENCE may be absolute (app.utils) or relative (..utils, requires --from).
    """
    rc: ResolutionContext = state["resolution"]
    name, dots = split_relative(reference)
    if level is None:
        level = dots

    try:
        importer_spec = rc.registry.find_spec(importer) if importer else None
    except ImportResolutionError as e:
        display_import_error(error_console, e, verbose=state["verbose"])
        sys.exit(1)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    try:
        spec, layer = rc.resolver.resolve_with_layer(name, importer_spec, level)
    except ModuleNotFoundError as e:
        if level == 0 and rc.system_fallback and is_system_module(name):
            console.print(
                f"[bold]{escape(name)}[/bold] is not part of the project; "
                f"it is provided by the standard library or an installed package"
            )
            return
        display_import_error(error_console, e, verbose=state["verbose"])
        sys.exit(1)
    except ImportResolutionError as e:
        display_import_error(error_console, e, verbose=state["verbose"])
        sys.exit(1)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    canonical = resolve_name(name, importer_spec.package if importer_spec else None, level)

    lines = [
        f"[bold]Reference:[/bold] {escape(reference if not importer else f'{reference} (from {importer})')}",
        f"[bold]Canonical name:[/bold] {escape(canonical)}",
        f"[bold]Kind:[/bold] {spec.kind}",
    ]
    if spec.origin is not None:
        lines.append(f"[bold]File:[/bold] {escape(str(spec.origin))}")
    if spec.is_package:
        locations = ", ".join(escape(str(path)) for path in spec.search_locations)
        lines.append(f"[bold]Search locations:[/bold] {locations}")
    lines.append(f"[bold]__package__:[/bold] {escape(spec.package) or '(top level)'}")
    lines.append(f"[bold]Search root:[/bold] {escape(str(spec.root))} [dim]({escape(layer)})[/dim]")

    console.print(Panel("\n".join(lines), title=f"Module: {escape(spec.name)}", border_style="cyan"))
