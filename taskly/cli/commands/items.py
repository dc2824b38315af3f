"""
FILE: taskly/cli/commands/items.py
PURPOSE: Backlog item commands (add, ls, show, edit, rm)
"""

from typing import Optional

import typer
from rich.panel import Panel

from ..main import app, console, error_console, own_item, state
from ...core import service
from ...core.exceptions import TasklyError
from ...sync.bus import SignalBus
from ...views.planning import PlanningView
from ...views.render import ItemFormatter, parse_ids, status_markup


@app.command()
def add(
    title: str = typer.Argument(..., help="Item title"),
    item_type: str = typer.Option("Story", "--type", "-t", help="Epic, Story, Task or Bug"),
    parent_id: Optional[int] = typer.Option(None, "--parent", "-p", help="Parent item ID"),
    points: int = typer.Option(1, "--points", help="Story points (0-21)"),
    description: Optional[str] = typer.Option(None, "--desc", "-d", help="Description"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Create a new backlog item.

    Example:
        taskly add "Checkout" --type epic
        taskly add "Pay by card" --type story --parent 1 --points 5
        taskly add "Card form" --type task --parent 2
    """
    try:
        item = service.create_item(
            title,
            item_type,
            parent_id=parent_id,
            description=description,
            story_points=points,
            tutorial=state["tutorial"],
        )

        if json_output:
            typer.echo(item.to_json())
        elif raw:
            typer.echo(f"{item.id}: {item.title}")
        else:
            console.print(f"[green]✓ Created {item.type} [bold]#{item.id}[/bold]:[/green] {item.title}")
            if item.sprint_id is not None:
                console.print(f"[dim]Joined sprint #{item.sprint_id} with its story[/dim]")

    except TasklyError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def ls(
    item_type: Optional[str] = typer.Option(None, "--type", "-t", help="Only show one item type"),
    in_sprint: bool = typer.Option(False, "--sprint", help="Only show items in a sprint"),
    tree: bool = typer.Option(False, "--tree", help="Show the Epic -> Story -> Task hierarchy"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    List backlog items.

    Example:
        taskly ls
        taskly ls --type story
        taskly ls --tree
        taskly ls --json
    """
    try:
        if tree and not (json_output or raw):
            view = PlanningView(SignalBus(), tutorial=state["tutorial"])
            view.render(console)
            view.close()
            return

        items = service.list_items(tutorial=state["tutorial"])
        if item_type:
            wanted = service.parse_type(item_type)
            items = [i for i in items if i.type == wanted]
        if in_sprint:
            items = [i for i in items if i.sprint_id is not None]

        if json_output:
            typer.echo(ItemFormatter.to_json_array(items))
        elif raw:
            for line in ItemFormatter.to_raw_lines(items):
                typer.echo(line)
        else:
            if not items:
                console.print("[dim]No items found[/dim]")
                return
            console.print(ItemFormatter.create_table(items))
            console.print(f"\n[dim]Total: {len(items)} item(s)[/dim]")

    except TasklyError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def show(
    item_id: int = typer.Argument(..., help="Item ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    View full item details.

    Example:
        taskly show 3
    """
    try:
        item = own_item(item_id)

        if json_output:
            typer.echo(item.to_json())
            return
        if raw:
            typer.echo(f"{item.id}: [{item.status}] {item.type} {item.title}")
            if item.description:
                typer.echo(item.description)
            return

        lines = [
            f"[bold]Type:[/bold] {item.type}",
            f"[bold]Status:[/bold] {status_markup(item.status)}",
            f"[bold]Points:[/bold] {item.story_points}",
            f"[bold]Priority:[/bold] {item.priority}",
            f"[bold]Parent:[/bold] {'#' + str(item.parent_id) if item.parent_id else '-'}",
            f"[bold]Sprint:[/bold] {'#' + str(item.sprint_id) if item.sprint_id else '-'}",
            f"[dim]Created {item.created_at}, updated {item.updated_at}[/dim]",
        ]
        if item.description:
            lines.insert(0, f"{item.description}\n")
        console.print(Panel("\n".join(lines), title=f"#{item.id} {item.title}", title_align="left"))

    except TasklyError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def edit(
    item_id: int = typer.Argument(..., help="Item ID"),
    title: Optional[str] = typer.Option(None, "--title", help="New title"),
    description: Optional[str] = typer.Option(None, "--desc", "-d", help="New description"),
    points: Optional[int] = typer.Option(None, "--points", help="New story points"),
    priority: Optional[int] = typer.Option(None, "--priority", help="New priority"),
    status: Optional[str] = typer.Option(None, "--status", "-s", help="Set any status directly"),
    parent: Optional[str] = typer.Option(None, "--parent", "-p", help="New parent ID, or 'none'"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Update an item.

    Example:
        taskly edit 3 --title "Pay by card or PayPal"
        taskly edit 7 --parent 4
        taskly edit 7 --status review
    """
    try:
        changes = dict(
            title=title,
            description=description,
            story_points=points,
            priority=priority,
            status=status,
        )
        if parent is not None:
            if parent.strip().lower() in ("none", "-", ""):
                changes["parent_id"] = None
            else:
                try:
                    changes["parent_id"] = int(parent)
                except ValueError:
                    error_console.print(f"[red]Error:[/red] Invalid parent '{parent}'")
                    raise typer.Exit(1)

        own_item(item_id)
        item = service.update_item(item_id, **changes)

        if json_output:
            typer.echo(item.to_json())
        else:
            console.print(f"[green]✓ Updated {item.type} [bold]#{item.id}[/bold]:[/green] {item.title}")

    except TasklyError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def rm(
    item_ids: str = typer.Argument(..., help="Item ID(s), comma-separated"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    """
    Delete item(s) permanently. Children are kept and lose their parent.

    Example:
        taskly rm 5
        taskly rm 3,5,7 --force
    """
    try:
        ids = parse_ids(item_ids)
    except ValueError:
        error_console.print(f"[red]Error:[/red] Invalid ID list '{item_ids}'")
        raise typer.Exit(1)

    if not force and not typer.confirm(f"Delete {len(ids)} item(s)?"):
        console.print("[dim]Cancelled[/dim]")
        return

    failed = 0
    for item_id in ids:
        try:
            own_item(item_id)
            service.delete_item(item_id)
            console.print(f"[green]✓ Deleted item #{item_id}[/green]")
        except TasklyError as e:
            error_console.print(f"[red]Error:[/red] {e}")
            failed += 1

    if failed:
        raise typer.Exit(1)
