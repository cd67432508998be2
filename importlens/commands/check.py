"""Check command - report imports that would fail."""

from __future__ import annotations

import sys

import click
from rich.markup import escape
from rich.table import Table

from ..console import console
from ..console import error_console
from ..diagnostics import check_project
from ..exceptions import ImportResolutionError
from ..paths import ResolutionContext
from ..ui import display_import_error


@click.command("check")
@click.argument("prefix", required=False, default="")
@click.option("--strict", is_flag=True, help="Treat warnings (guarded imports) as failures")
@click.pass_obj
def check_cmd(state: dict, prefix: str, strict: bool):
    """Resolve every import in the project and report broken ones.

    Exits with status 1 when errors are found (or warnings, with --strict).
    """
    rc: ResolutionContext = state["resolution"]

    try:
        report = check_project(rc.resolver, prefix)
    except ImportResolutionError as e:
        display_import_error(error_console, e, verbose=state["verbose"])
        sys.exit(1)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    if report.diagnostics:
        table = Table(title="Import Problems", show_header=True, header_style="bold cyan")
        table.add_column("Severity")
        table.add_column("Module", style="green")
        table.add_column("Line", justify="right", style="dim")
        table.add_column("Code", style="yellow")
        table.add_column("Message")

        for diagnostic in report.diagnostics:
            severity = "[red]error[/red]" if diagnostic.severity == "error" else "[yellow]warning[/yellow]"
            table.add_row(
                severity,
                escape(diagnostic.module),
                str(diagnostic.lineno),
                diagnostic.code,
                escape(diagnostic.message),
            )
        console.print(table)

    summary = (
        f"{report.modules_checked} modules, {report.imports_checked} imports: "
        f"{len(report.errors)} errors, {len(report.warnings)} warnings"
    )
    failed = not report.ok or (strict and report.warnings)
    if failed:
        console.print(f"\n[red]✗[/red] {summary}")
        sys.exit(1)
    console.print(f"\n[green]✓[/green] {summary}")
