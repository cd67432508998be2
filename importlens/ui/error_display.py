"""Clean error display for import resolution errors."""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from ..exceptions import CircularImportError
from ..exceptions import ImportResolutionError
from ..exceptions import ModuleLoadError
from ..exceptions import ModuleNotFoundError
from ..exceptions import RelativeImportError

# ---- Maximum message length before truncation ----
_MAX_MESSAGE_LEN = 400


def _truncate(message: str, limit: int = _MAX_MESSAGE_LEN) -> str:
    """Truncate a long error message, adding an ellipsis if shortened."""
    if len(message) <= limit:
        return message
    return message[:limit] + "…"


def _title_for(error: ImportResolutionError) -> str:
    if isinstance(error, ModuleNotFoundError):
        return "Module Not Found"
    if isinstance(error, RelativeImportError):
        return "Relative Import Failed"
    if isinstance(error, CircularImportError):
        return "Circular Import"
    if isinstance(error, ModuleLoadError):
        return "Module Failed To Load"
    return "Import Failed"


def _get_actionable_tip(error: ImportResolutionError) -> str:
    """Generate an actionable tip based on the error."""
    if isinstance(error, ModuleNotFoundError):
        if "is not a package" in str(error):
            return "The parent is a plain module; turn it into a package directory with an __init__.py"
        return "Check the search roots (importlens paths show) or add one with --path / IMPORTLENS_PATH"

    if isinstance(error, RelativeImportError):
        if error.beyond_top:
            return "Use fewer leading dots, or add the directory above the top-level package as a search root"
        return "Relative imports only work inside a package; import the file as part of its package or use an absolute import"

    if isinstance(error, CircularImportError):
        return "Move the shared name to a third module, or import the module instead of the name (import a; a.x)"

    if isinstance(error, ModuleLoadError):
        if error.lineno:
            return f"Fix the source near line {error.lineno}"
        return "Run again with --verbose to see the underlying exception"

    return "Check that the imported name is defined (or listed in __all__) by the module"


def display_import_error(console: Console, error: Exception, verbose: bool = False) -> bool:
    """Display an ImportResolutionError with clean Rich formatting.

    Args:
        console: Rich console for output
        error: The error to display
        verbose: If True, also print traceback

    Returns:
        True if error was handled as an import error, False if not (caller should handle)
    """
    if not isinstance(error, ImportResolutionError):
        return False

    content = Text()

    if error.name:
        content.append("Module: ", style="dim")
        content.append(error.name, style="bold cyan")
        content.append("\n")

    if error.path:
        content.append("File: ", style="dim")
        content.append(str(error.path), style="yellow")
        if isinstance(error, ModuleLoadError) and error.lineno:
            content.append(f":{error.lineno}", style="yellow")
        content.append("\n")

    if content.plain:
        content.append("\n")
    content.append(_truncate(str(error)), style="red")

    console.print()
    console.print(
        Panel(
            content,
            title=f"[bold red]{_title_for(error)}[/bold red]",
            border_style="red",
            padding=(1, 2),
        )
    )

    if isinstance(error, ModuleLoadError) and error.__cause__ is not None and not error.lineno:
        cause = error.__cause__
        console.print(f"[dim]Caused by {cause.__class__.__name__}: {escape(_truncate(str(cause)))}[/dim]")

    console.print(f"[dim]Tip: {_get_actionable_tip(error)}[/dim]")
    console.print()

    if verbose:
        console.print("[dim]─── Traceback ───[/dim]")
        console.print_exception()

    return True
