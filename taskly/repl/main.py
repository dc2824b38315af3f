"""
FILE: taskly/repl/main.py
PURPOSE: Interactive REPL hosting every view over one signal bus
EXPORTS:
  - REPLContext (dataclass: bus, views, current view, watcher, console)
  - create_context(tutorial, console) -> REPLContext
  - execute_command(ctx, result) -> bool
  - run_repl(tutorial) - Main REPL loop
  - main(tutorial) - Entry point for REPL mode
DEPENDENCIES:
  - prompt_toolkit (REPL interface, history, completion)
  - rich (formatted output)
  - taskly.sync (SignalBus, RevisionWatcher)
  - taskly.views (the four view controllers)
  - taskly.repl.parser / taskly.repl.commands / taskly.repl.completer
NOTES:
  - All four views live for the whole session, each with its own cache;
    a change made in one reaches the others through the bus
  - Before and after each command the revision watcher checks whether another
    process wrote to the store; if so every view reloads
  - Bottom toolbar shows the active sprint and counts from the current
    view's cache
  - Ctrl+D or "exit"/"quit" to exit
"""

import logging
import sys
from dataclasses import dataclass
from typing import Dict, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import InMemoryHistory
from rich.console import Console

from ..core.exceptions import TasklyError
from ..core.models import IssueType
from ..sync.bus import SignalBus
from ..sync.watcher import RevisionWatcher
from ..views import BaseView, create_views
from .commands import GLOBAL_HANDLERS, VIEW_HANDLERS
from .completer import create_completer
from .parser import ParseResult, parse_command


logger = logging.getLogger(__name__)

# Rich console for formatted output
console = Console()


# --- REPL Context (Session State) ---


@dataclass
class REPLContext:
    """
    State of one REPL session.

    Attributes:
        bus: Signal bus shared by the views
        views: View controllers keyed by name (planning, board, archive, intro)
        watcher: Polls the store for writes made by other processes
        console: Where handlers print
        current: Name of the view on screen
    """
    bus: SignalBus
    views: Dict[str, BaseView]
    watcher: RevisionWatcher
    console: Console
    current: str = "planning"

    @property
    def view(self) -> BaseView:
        return self.views[self.current]

    def get_prompt(self) -> str:
        """
        Prompt string for the current view.

        Returns:
            Prompt like "taskly:[planning]> " or "taskly:[tutorial|board]> "
        """
        parts = []
        if self.view.tutorial:
            parts.append("tutorial")
        parts.append(self.current)
        return f"taskly:[{'|'.join(parts)}]> "

    def close(self) -> None:
        for view in self.views.values():
            view.close()


def create_context(tutorial: bool = False, console_instance: Optional[Console] = None) -> REPLContext:
    """
    Build the views over a fresh bus and start watching the store.

    Args:
        tutorial: Partition for the planning, board and archive views
        console_instance: Console to print to (defaults to module console)
    """
    bus = SignalBus()
    views = create_views(bus, tutorial)
    watcher = RevisionWatcher(bus)
    watcher.mark_seen()
    return REPLContext(
        bus=bus,
        views=views,
        watcher=watcher,
        console=console_instance or console,
    )


def format_prompt(ctx: REPLContext) -> HTML:
    prefix = "<ansiyellow>tutorial</ansiyellow>|" if ctx.view.tutorial else ""
    return HTML(f"<b>taskly:[{prefix}<cyan>{ctx.current}</cyan>]&gt; </b>")


def get_bottom_toolbar(ctx: REPLContext) -> HTML:
    """
    Toolbar with the active sprint and item counts of the current view.
    """
    cache = ctx.view.cache
    sprint = cache.current_sprint
    sprint_text = f"Sprint: {sprint.name} ({len(sprint.item_ids)} stories)" if sprint else "No active sprint"
    counts = " | ".join(
        f"{len(cache.items_of_type(t))} {t.value.lower()}s" for t in IssueType
    )
    archived = len(cache.archived_sprints)
    text = f"{ctx.view.title} | {sprint_text} | {counts} | {archived} archived | 'help' for commands"
    return HTML(f"<style bg='#444444' fg='#ffffff'> {text} </style>")


def execute_command(ctx: REPLContext, result: ParseResult) -> bool:
    """
    Execute a parsed command.

    Args:
        ctx: Session state
        result: Parsed command from parser

    Returns:
        True to continue REPL loop, False to exit

    Notes:
        - Global commands work in every view; the rest are looked up in
          the current view's table
        - Writes made by this command are settled afterwards: the views
          already reloaded them, and any other write lands as a refresh
    """
    command = result.command.lower()

    if command in ("exit", "quit"):
        ctx.console.print("[dim]Goodbye![/dim]")
        return False

    if not command:
        return True

    ctx.watcher.poll()

    handler = GLOBAL_HANDLERS.get(command) or VIEW_HANDLERS.get(ctx.current, {}).get(command)
    if handler is None:
        ctx.console.print(f"[red]Unknown command:[/red] {command}")
        views = [name for name, table in VIEW_HANDLERS.items() if command in table]
        if views:
            ctx.console.print(f"[dim]'{command}' works in: {', '.join(views)} (use 'view <name>')[/dim]")
        else:
            ctx.console.print("[dim]Type 'help' for available commands[/dim]")
        ctx.console.print()
        return True

    handler(ctx, result)
    ctx.watcher.settle()
    ctx.console.print()
    return True


def run_repl(tutorial: bool = False) -> None:
    """
    Main REPL loop.

    Sets up prompt_toolkit session with:
    - Command history (in-memory, not persisted)
    - Autocomplete (commands of the current view, IDs, flags)
    - Bottom toolbar

    Exits on:
    - Ctrl+D (EOFError)
    - "exit" or "quit" commands
    """
    ctx = create_context(tutorial)

    # In piped/test environments, skip prompt_toolkit entirely
    has_tty = sys.stdin.isatty() and sys.stdout.isatty()
    session = None
    if has_tty:
        session = PromptSession(
            history=InMemoryHistory(),
            completer=create_completer(ctx),
            complete_while_typing=True,
            bottom_toolbar=lambda: get_bottom_toolbar(ctx),
        )

    console.print("[bold cyan]Taskly REPL[/bold cyan] - Type 'help' for commands, 'view <name>' to switch, 'exit' to quit")
    if session is None:
        console.print("[dim](Running in simple mode - no autocomplete)[/dim]")
    console.print()
    ctx.view.render(ctx.console)
    console.print()

    try:
        while True:
            try:
                if session is None:
                    user_input = input(ctx.get_prompt())
                else:
                    user_input = session.prompt(lambda: format_prompt(ctx))

                if not execute_command(ctx, parse_command(user_input)):
                    break

            except KeyboardInterrupt:
                console.print("[dim]^C (Press Ctrl+D or type 'exit' to quit)[/dim]")
                continue
            except EOFError:
                console.print()
                console.print("[dim]Goodbye![/dim]")
                break
            except TasklyError as e:
                # Store failures during a refresh or a render
                logger.debug("Command failed", exc_info=True)
                console.print(f"[red]Error:[/red] {e}")
    finally:
        ctx.close()


def main(tutorial: bool = False) -> None:
    """
    Entry point for REPL mode.

    Called when user runs: taskly repl (or just taskly)
    """
    run_repl(tutorial=tutorial)


if __name__ == "__main__":
    main()
