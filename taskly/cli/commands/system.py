"""
FILE: taskly/cli/commands/system.py
PURPOSE: System commands (version, repl, clean)
"""

import typer

# Import shared objects from main module
# These will be available after main.py imports this module
from ..main import app, console, error_console, state, __version__
from ...core import service
from ...core.exceptions import TasklyError


@app.command()
def version():
    """Show Taskly version."""
    console.print(f"Taskly v{__version__}")


@app.command()
def repl():
    """
    Launch interactive REPL mode.

    The REPL hosts the planning, board, archive and introduction views at
    once; a change made in one shows up in the others.

    Example:
        taskly repl
        taskly --tutorial repl
    """
    # Import here to avoid loading REPL dependencies for one-shot commands
    from ...repl import main as repl_main

    repl_main(tutorial=state["tutorial"])


@app.command()
def clean(
    tutorial_only: bool = typer.Option(False, "--tutorial-only", help="Only wipe the introduction's data"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    """
    Delete all items and sprints.

    Example:
        taskly clean --tutorial-only
        taskly clean --force
    """
    what = "all tutorial data" if tutorial_only else "ALL items and sprints"
    if not force and not typer.confirm(f"Delete {what}?"):
        console.print("[dim]Cancelled[/dim]")
        return

    try:
        service.clean(tutorial_only=tutorial_only)
        console.print(f"[green]✓ Deleted {what}[/green]")
    except TasklyError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
