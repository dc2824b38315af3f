"""
FILE: taskly/repl/commands.py
PURPOSE: REPL command handlers, dispatched to the view that is on screen
EXPORTS:
  - GLOBAL_HANDLERS (dict: command -> handler, any view)
  - VIEW_HANDLERS (dict: view name -> {command -> handler})
  - handler signature: handler(ctx: REPLContext, result: ParseResult) -> None
DEPENDENCIES:
  - rich (formatted output, through ctx.console)
  - taskly.views (the view controllers)
  - taskly.core.exceptions (TasklyError)
NOTES:
  - Handlers never touch the store directly; they call the current
    view, which mutates, reloads and broadcasts to the other views
  - Errors are printed and the REPL keeps going; the view keeps its
    last good state
"""

from typing import Callable, Dict, List

from ..core.exceptions import TasklyError
from ..views.render import parse_ids, status_markup
from .parser import ParseResult


Handler = Callable[..., None]


def _ids(ctx, result: ParseResult, usage: str) -> List[int]:
    if not result.args:
        ctx.console.print("[red]Error:[/red] ID required")
        ctx.console.print(f"[dim]Usage: {usage}[/dim]")
        return []
    try:
        return parse_ids(",".join(result.args))
    except ValueError:
        ctx.console.print(f"[red]Error:[/red] Invalid ID '{' '.join(result.args)}'")
        return []


def _for_each_id(ctx, result: ParseResult, usage: str, action: Callable[[int], str]) -> None:
    for item_id in _ids(ctx, result, usage):
        try:
            ctx.console.print(action(item_id))
        except TasklyError as e:
            ctx.console.print(f"[red]Error:[/red] {e}")


# --- Any view ---


def handle_help_command(ctx, result: ParseResult) -> None:
    """Show the commands of the current view."""
    console = ctx.console
    console.print(f"\n[bold cyan]Taskly REPL[/bold cyan] [dim]- {ctx.view.title} view[/dim]\n")
    console.print("[bold]Everywhere:[/bold]")
    for cmd, desc in GLOBAL_HELP:
        console.print(f"  [green]{cmd:28}[/green] {desc}")
    console.print(f"\n[bold]In the {ctx.view.title.lower()} view:[/bold]")
    for cmd, desc in VIEW_HELP[ctx.current]:
        console.print(f"  [green]{cmd:28}[/green] {desc}")


def handle_view_command(ctx, result: ParseResult) -> None:
    """Switch the rendered view: view <planning|board|archive|intro>."""
    if not result.args:
        names = ", ".join(ctx.views)
        ctx.console.print(f"[dim]Current view: {ctx.current}. Available: {names}[/dim]")
        return

    name = result.args[0].lower()
    name = VIEW_ALIASES.get(name, name)
    if name not in ctx.views:
        ctx.console.print(f"[red]Error:[/red] Unknown view '{result.args[0]}'")
        ctx.console.print(f"[dim]Available: {', '.join(ctx.views)}[/dim]")
        return

    ctx.current = name
    ctx.view.render(ctx.console)


def handle_show_command(ctx, result: ParseResult) -> None:
    """Render the current view again."""
    ctx.view.render(ctx.console)


def handle_clear_command(ctx, result: ParseResult) -> None:
    ctx.console.clear()


# --- Planning view ---


def handle_add_command(ctx, result: ParseResult) -> None:
    """
    Create an item: add <type> <title> [--parent ID] [--points N] [--desc TEXT]
    """
    if len(result.args) < 2:
        ctx.console.print("[red]Error:[/red] Type and title required")
        ctx.console.print("[dim]Usage: add <epic|story|task|bug> <title> [--parent ID] [--points N][/dim]")
        return

    try:
        parent_id = result.flag_int("parent")
        points = result.flag_int("points")
    except ValueError as e:
        ctx.console.print(f"[red]Error:[/red] {e}")
        return

    desc = result.flags.get("desc")
    try:
        item = ctx.view.add_item(
            " ".join(result.args[1:]),
            result.args[0],
            parent_id=parent_id,
            description=desc if isinstance(desc, str) else None,
            story_points=1 if points is None else points,
        )
    except TasklyError as e:
        ctx.console.print(f"[red]Error:[/red] {e}")
        return

    ctx.console.print(f"[green]✓ Created {item.type} [bold]#{item.id}[/bold]:[/green] {item.title}")
    if item.sprint_id is not None:
        ctx.console.print(f"[dim]Joined sprint #{item.sprint_id} with its story[/dim]")


def handle_edit_command(ctx, result: ParseResult) -> None:
    """
    Edit an item: edit <id> [--title T] [--desc D] [--points N] [--priority N]
    [--status S] [--parent ID|none]
    """
    if not result.args:
        ctx.console.print("[red]Error:[/red] Item ID required")
        ctx.console.print("[dim]Usage: edit <id> [--title T] [--points N] [--status S] [--parent ID|none][/dim]")
        return

    changes = {}
    try:
        item_id = int(result.args[0])
        for flag, field_name in (("points", "story_points"), ("priority", "priority")):
            value = result.flag_int(flag)
            if value is not None:
                changes[field_name] = value
        parent = result.flags.get("parent")
        if isinstance(parent, str):
            changes["parent_id"] = None if parent.lower() == "none" else int(parent)
    except ValueError as e:
        ctx.console.print(f"[red]Error:[/red] {e}")
        return

    for flag, field_name in (("title", "title"), ("desc", "description"), ("status", "status")):
        value = result.flags.get(flag)
        if isinstance(value, str):
            changes[field_name] = value
    if len(result.args) > 1 and "title" not in changes:
        changes["title"] = " ".join(result.args[1:])

    if not changes:
        ctx.console.print("[yellow]Nothing to change[/yellow]")
        return

    try:
        item = ctx.view.edit_item(item_id, **changes)
    except TasklyError as e:
        ctx.console.print(f"[red]Error:[/red] {e}")
        return
    ctx.console.print(f"[green]✓ Updated {item.type} [bold]#{item.id}[/bold]:[/green] {item.title}")


def handle_rm_command(ctx, result: ParseResult) -> None:
    """Delete item(s): rm <id[,id...]>"""
    def delete(item_id: int) -> str:
        ctx.view.delete_item(item_id)
        return f"[green]✓ Deleted item #{item_id}[/green]"

    _for_each_id(ctx, result, "rm <id[,id...]>", delete)


def handle_sprint_command(ctx, result: ParseResult) -> None:
    """Create the sprint: sprint <name> [--goal TEXT]"""
    if not result.args:
        ctx.console.print("[red]Error:[/red] Sprint name required")
        ctx.console.print("[dim]Usage: sprint <name> [--goal TEXT][/dim]")
        return

    goal = result.flags.get("goal")
    try:
        sprint = ctx.view.create_sprint(" ".join(result.args), goal=goal if isinstance(goal, str) else "")
    except TasklyError as e:
        ctx.console.print(f"[red]Error:[/red] {e}")
        return
    ctx.console.print(
        f"[green]✓ Sprint [bold]#{sprint.id}[/bold] started:[/green] {sprint.name} "
        f"[dim]({sprint.start_date} to {sprint.end_date})[/dim]"
    )


def handle_plan_command(ctx, result: ParseResult) -> None:
    """Add stories to the sprint: plan <id[,id...]>"""
    def add(item_id: int) -> str:
        story = ctx.view.add_to_sprint(item_id)
        return f"[green]✓ Story #{story.id} added to sprint #{story.sprint_id}[/green]"

    _for_each_id(ctx, result, "plan <story id[,id...]>", add)


def handle_unplan_command(ctx, result: ParseResult) -> None:
    """Take stories out of the sprint: unplan <id[,id...]>"""
    def remove(item_id: int) -> str:
        story = ctx.view.remove_from_sprint(item_id)
        return f"[green]✓ Story #{story.id} back in the backlog[/green]"

    _for_each_id(ctx, result, "unplan <story id[,id...]>", remove)


def handle_archive_command(ctx, result: ParseResult) -> None:
    """Archive the active sprint."""
    try:
        sprint = ctx.view.archive_sprint()
    except TasklyError as e:
        ctx.console.print(f"[red]Error:[/red] {e}")
        return
    ctx.console.print(f"[green]✓ Archived sprint [bold]#{sprint.id}[/bold]:[/green] {sprint.name}")


# --- Board ---


def handle_start_command(ctx, result: ParseResult) -> None:
    """Move item(s) one stage forward: start <id[,id...]>"""
    def step(item_id: int) -> str:
        item = ctx.view.advance(item_id)
        return f"[green]✓[/green] #{item.id} {item.title} -> {status_markup(item.status)}"

    _for_each_id(ctx, result, "start <id[,id...]>", step)


def handle_back_command(ctx, result: ParseResult) -> None:
    """Move item(s) one stage back: back <id[,id...]>"""
    def step(item_id: int) -> str:
        item = ctx.view.revert(item_id)
        return f"[green]✓[/green] #{item.id} {item.title} -> {status_markup(item.status)}"

    _for_each_id(ctx, result, "back <id[,id...]>", step)


# --- Archive ---


def handle_restore_command(ctx, result: ParseResult) -> None:
    """Restore an archived sprint: restore <sprint id>"""
    def restore(sprint_id: int) -> str:
        sprint = ctx.view.restore(sprint_id)
        return f"[green]✓ Sprint [bold]#{sprint.id}[/bold] is active again:[/green] {sprint.name}"

    _for_each_id(ctx, result, "restore <sprint id>", restore)


def handle_delete_command(ctx, result: ParseResult) -> None:
    """Delete a sprint: delete <sprint id>"""
    def delete(sprint_id: int) -> str:
        reset = ctx.view.delete(sprint_id)
        return f"[green]✓ Deleted sprint #{sprint_id}[/green] [dim]({len(reset)} item(s) back to backlog)[/dim]"

    _for_each_id(ctx, result, "delete <sprint id>", delete)


# --- Introduction ---


def _intro_create(kind: str) -> Handler:
    def handler(ctx, result: ParseResult) -> None:
        if not result.args:
            ctx.console.print("[red]Error:[/red] Title required")
            ctx.console.print(f"[dim]Usage: {kind} <title>[/dim]")
            return

        title = " ".join(result.args)
        view = ctx.view
        try:
            if kind == "epic":
                item = view.create_epic(title)
            elif kind == "story":
                item = view.create_story(title)
            else:
                item = view.create_task(title, kind)
        except TasklyError as e:
            ctx.console.print(f"[red]Error:[/red] {e}")
            return

        ctx.console.print(f"[green]✓ Created {item.type} [bold]#{item.id}[/bold]:[/green] {item.title}")
        ctx.view.render(ctx.console)

    handler.__doc__ = f"Tutorial: create a {kind}"
    return handler


def handle_intro_sprint_command(ctx, result: ParseResult) -> None:
    if not result.args:
        ctx.console.print("[red]Error:[/red] Sprint name required")
        return
    goal = result.flags.get("goal")
    try:
        ctx.view.create_sprint(" ".join(result.args), goal=goal if isinstance(goal, str) else "")
    except TasklyError as e:
        ctx.console.print(f"[red]Error:[/red] {e}")
        return
    ctx.view.render(ctx.console)


def handle_next_command(ctx, result: ParseResult) -> None:
    try:
        ctx.view.next_step()
    except TasklyError as e:
        ctx.console.print(f"[yellow]{e}[/yellow]")
        return
    ctx.view.render(ctx.console)


def handle_restart_command(ctx, result: ParseResult) -> None:
    try:
        ctx.view.restart()
    except TasklyError as e:
        ctx.console.print(f"[red]Error:[/red] {e}")
        return
    ctx.console.print("[green]✓ Tutorial data cleared[/green]")
    ctx.view.render(ctx.console)


def _then_render(handler: Handler) -> Handler:
    def wrapped(ctx, result: ParseResult) -> None:
        handler(ctx, result)
        ctx.view.render(ctx.console)

    wrapped.__doc__ = handler.__doc__
    return wrapped


# --- Dispatch tables ---

VIEW_ALIASES = {
    "plan": "planning",
    "backlog": "planning",
    "sprint": "board",
    "kanban": "board",
    "introduction": "intro",
    "tutorial": "intro",
}

GLOBAL_HANDLERS: Dict[str, Handler] = {
    "help": handle_help_command,
    "view": handle_view_command,
    "show": handle_show_command,
    "ls": handle_show_command,
    "clear": handle_clear_command,
}

VIEW_HANDLERS: Dict[str, Dict[str, Handler]] = {
    "planning": {
        "add": handle_add_command,
        "edit": handle_edit_command,
        "rm": handle_rm_command,
        "sprint": handle_sprint_command,
        "plan": handle_plan_command,
        "unplan": handle_unplan_command,
        "archive": handle_archive_command,
    },
    "board": {
        "start": handle_start_command,
        "advance": handle_start_command,
        "back": handle_back_command,
        "archive": handle_archive_command,
    },
    "archive": {
        "restore": handle_restore_command,
        "delete": handle_delete_command,
    },
    "intro": {
        "sprint": handle_intro_sprint_command,
        "epic": _intro_create("epic"),
        "story": _intro_create("story"),
        "task": _intro_create("task"),
        "bug": _intro_create("bug"),
        "plan": _then_render(handle_plan_command),
        "start": _then_render(handle_start_command),
        "back": _then_render(handle_back_command),
        "archive": _then_render(handle_archive_command),
        "next": handle_next_command,
        "restart": handle_restart_command,
    },
}

GLOBAL_HELP = [
    ("view <name>", "Switch view: planning, board, archive, intro"),
    ("show / ls", "Render the current view"),
    ("help", "Show this help message"),
    ("clear", "Clear the screen"),
    ("exit / quit", "Leave the REPL (or Ctrl+D)"),
]

VIEW_HELP = {
    "planning": [
        ("add <type> <title>", "Create an item [--parent ID] [--points N] [--desc D]"),
        ("edit <id>", "Edit [--title] [--desc] [--points] [--priority] [--status] [--parent]"),
        ("rm <id[,id...]>", "Delete item(s); children are kept"),
        ("sprint <name>", "Start a sprint [--goal TEXT]"),
        ("plan <id[,id...]>", "Add stories to the sprint"),
        ("unplan <id[,id...]>", "Return stories to the backlog"),
        ("archive", "Archive the active sprint"),
    ],
    "board": [
        ("start <id[,id...]>", "Move forward: Todo -> InProgress -> Review -> Done"),
        ("back <id[,id...]>", "Move back one stage"),
        ("archive", "Archive the active sprint"),
    ],
    "archive": [
        ("restore <sprint id>", "Make an archived sprint active again"),
        ("delete <sprint id>", "Delete a sprint; its items go back to the backlog"),
    ],
    "intro": [
        ("sprint <name>", "Step 1: create the tutorial sprint"),
        ("epic <title>", "Step 2: create an epic"),
        ("story <title>", "Step 3: create a story under the epic"),
        ("task|bug <title>", "Step 4: break the story down"),
        ("plan <story id>", "Step 5: add the story to the sprint"),
        ("start|back <id>", "Step 6: work the board"),
        ("archive", "Step 7: archive the sprint"),
        ("next", "Go to the next step"),
        ("restart", "Wipe the tutorial data and start over"),
    ],
}
