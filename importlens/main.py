"""importlens CLI - explain, check and run Python imports."""

import logging
import os
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.markup import escape

from .commands.check import check_cmd
from .commands.modules import list_modules
from .commands.modules import show_module
from .commands.resolve import resolve_cmd
from .commands.run import run_cmd
from .commands.search_paths import paths_group
from .console import error_console
from .logging_setup import init_console_logging
from .logging_setup import init_json_logging
from .paths import create_resolution_context

logger = logging.getLogger(__name__)


@click.group(invoke_without_command=True)
@click.option(
    "--path",
    "-p",
    "search_paths",
    multiple=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Search root (repeatable, highest precedence first)",
)
@click.option("--no-system", is_flag=True, help="Do not fall back to stdlib/installed packages")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logs and tracebacks")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write JSONL logs to this file (also IMPORTLENS_LOG_PATH)",
)
@click.version_option(package_name="importlens")
@click.pass_context
def cli(ctx: click.Context, search_paths: tuple[Path, ...], no_system: bool, verbose: bool, log_file: Path | None):
    """Explain how Python resolves imports in a source tree."""
    if log_file is not None or os.environ.get("IMPORTLENS_LOG_PATH"):
        init_json_logging(log_file)
    if verbose:
        init_console_logging()

    try:
        resolution = create_resolution_context(search_paths, no_system)
    except ValidationError as e:
        error_console.print(f"[red]Error:[/red] Invalid importlens settings:\n{escape(str(e))}")
        sys.exit(1)

    logger.debug(f"[cli] search roots: {[str(root) for root, _layer in resolution.roots]}")
    ctx.obj = {"resolution": resolution, "verbose": verbose}

    if ctx.invoked_subcommand is None:
        click.echo("\n" + ctx.get_help())
        ctx.exit()


cli.add_command(resolve_cmd)
cli.add_command(list_modules)
cli.add_command(show_module)
cli.add_command(check_cmd)
cli.add_command(run_cmd)
cli.add_command(paths_group)


def main() -> None:
    """Entry point for the importlens console script."""
    cli()


if __name__ == "__main__":
    main()
