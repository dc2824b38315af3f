"""
FILE: taskly/cli/main.py
PURPOSE: Typer-based CLI for one-shot backlog and sprint commands
EXPORTS:
  - app (Typer application)
  - sprint_app (Typer sub-application for 'taskly sprint ...')
  - state (global options of the current invocation)
  - own_item() / own_sprint() (lookups limited to the --tutorial partition)
  - main() (entry point)
  - add() / ls() / show() / edit() / rm() - Backlog items
  - start() / back() / board() / archive() - Sprint workflow
  - sprint_create() / sprint_ls() / sprint_add() / sprint_remove() /
    sprint_archive() / sprint_restore() / sprint_rm() / sprint_edit()
  - version() / repl() / clean() - System
DEPENDENCIES:
  - typer (CLI framework)
  - rich (formatted output)
  - logging (stdlib, --verbose)
  - taskly.repl (interactive mode)
NOTES:
  - All listing commands support --json and --raw flags
  - Error messages go to stderr
  - Exit codes: 0=success, 1=error
  - Global options: --tutorial works on the tutorial data, --verbose
    turns on debug logging
  - Commands taking an item or sprint ID refuse IDs from the other
    partition
  - Every write bumps the store revision, so a REPL open in another
    terminal reloads its views on its next prompt
"""

import logging
import sys

import typer
from rich.console import Console

from ..core import lifecycle, service
from ..core.exceptions import ValidationError
from ..core.models import BacklogItem, Sprint


# Typer app setup
app = typer.Typer(
    name="taskly",
    help="Backlog and sprint planning in the terminal",
    add_completion=False,
)

# Sprint sub-command group
sprint_app = typer.Typer(
    name="sprint",
    help="Sprint lifecycle commands",
)
app.add_typer(sprint_app, name="sprint")

# Rich console for formatted output
console = Console()
error_console = Console(stderr=True)

# Version
__version__ = "0.1.0"

# Global options of the current invocation (set by the callback)
state = {"tutorial": False}


def _partition_name(is_tutorial: bool) -> str:
    return "tutorial" if is_tutorial else "main"


def own_item(item_id: int) -> BacklogItem:
    """
    Fetch an item of the partition selected by --tutorial.

    Raises:
        ItemNotFoundError: If item_id doesn't exist
        ValidationError: If the item is in the other partition
    """
    item = service.get_item(item_id)
    if item.is_tutorial != state["tutorial"]:
        raise ValidationError(
            f"{item.type} #{item.id} belongs to the {_partition_name(item.is_tutorial)} data"
        )
    return item


def own_sprint(sprint_id: int) -> Sprint:
    """Fetch a sprint of the partition selected by --tutorial."""
    sprint = lifecycle.get_sprint(sprint_id)
    if sprint.is_tutorial != state["tutorial"]:
        raise ValidationError(
            f"Sprint #{sprint.id} belongs to the {_partition_name(sprint.is_tutorial)} data"
        )
    return sprint


@app.callback(invoke_without_command=True)
def default_command(
    ctx: typer.Context,
    tutorial: bool = typer.Option(False, "--tutorial", help="Work on the introduction's tutorial data"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print debug logs to stderr"),
):
    """
    Default callback - applies global options, launches REPL when no
    command is specified.
    """
    state["tutorial"] = tutorial
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s %(message)s", stream=sys.stderr)

    if ctx.invoked_subcommand is None:
        from ..repl import main as repl_main
        repl_main(tutorial=tutorial)


# Import command modules to register commands with app
# Commands are decorated with @app.command() in their modules
from .commands import (  # noqa: E402
    # System commands
    version,
    repl,
    clean,
    # Item commands
    add,
    ls,
    show,
    edit,
    rm,
    # Workflow commands
    start,
    back,
    board,
    archive,
    # Sprint commands
    sprint_create,
    sprint_ls,
    sprint_add,
    sprint_remove,
    sprint_archive,
    sprint_restore,
    sprint_rm,
    sprint_edit,
)


def main():
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
