"""Clean error display for resolution, vendoring and execution failures."""

from rich.console import Console

from ..console import error_console
from ..errors import ExecutionFailure
from ..errors import NetImportError
from ..errors import NoDependenciesFound
from ..errors import VendorCopyFailure
from ..utils.error_format import escape_markup
from ..utils.error_format import format_error_message

_HINTS: dict[type, str] = {
    NoDependenciesFound: "Vendoring only makes sense for scripts that import other modules.",
    VendorCopyFailure: "Check that the vendor directory is writable.",
}


def display_error(error: BaseException, console: Console | None = None) -> None:
    """Print a one-line diagnostic for an error, naming the failing specifier.

    Args:
        error: Exception to display
        console: Console to print to (default: stderr console)
    """
    console = console or error_console

    if isinstance(error, ExecutionFailure):
        console.print(f"[red]Execution failed:[/red] {escape_markup(format_error_message(error, include_type=False))}")
        return

    if isinstance(error, NetImportError):
        console.print(f"[red]Failed[/red] {escape_markup(format_error_message(error, include_type=False))}")
        if error.specifier:
            console.print(f"  [dim]specifier:[/dim] {escape_markup(error.specifier)}")
        for exc_type, hint in _HINTS.items():
            if isinstance(error, exc_type):
                console.print(f"  [dim]{hint}[/dim]")
        return

    console.print(f"[red]Error:[/red] {escape_markup(format_error_message(error))}")
