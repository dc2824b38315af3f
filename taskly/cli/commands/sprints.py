"""
FILE: taskly/cli/commands/sprints.py
PURPOSE: Sprint lifecycle commands (sprint create/ls/add/remove/archive/restore/rm/edit)
"""

from typing import Optional

import typer
from rich.table import Table

from ..main import console, error_console, own_item, own_sprint, sprint_app, state
from ...core import lifecycle, repository
from ...core.exceptions import TasklyError
from ...views.render import ItemFormatter, parse_ids


@sprint_app.command("create")
def sprint_create(
    name: str = typer.Argument(..., help="Sprint name"),
    goal: str = typer.Option("", "--goal", "-g", help="Sprint goal"),
    start_date: Optional[str] = typer.Option(None, "--start", help="Start date YYYY-MM-DD (default: today)"),
    end_date: Optional[str] = typer.Option(None, "--end", help="End date YYYY-MM-DD (default: start + 14 days)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Start a new sprint. Only one sprint can be active at a time.

    Example:
        taskly sprint create "Sprint 1" --goal "Ship checkout"
    """
    try:
        sprint = lifecycle.create_sprint(
            name,
            goal=goal,
            start_date=start_date,
            end_date=end_date,
            tutorial=state["tutorial"],
        )

        if json_output:
            typer.echo(sprint.to_json())
        elif raw:
            typer.echo(f"{sprint.id}: {sprint.name}")
        else:
            console.print(
                f"[green]✓ Created sprint [bold]#{sprint.id}[/bold]:[/green] {sprint.name} "
                f"[dim]({sprint.start_date} to {sprint.end_date})[/dim]"
            )

    except TasklyError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@sprint_app.command("ls")
def sprint_ls(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    List all sprints, the active one marked.

    Example:
        taskly sprint ls
    """
    try:
        sprints = repository.list_sprints(state["tutorial"])

        if json_output:
            typer.echo(ItemFormatter.to_json_array(sprints))
        elif raw:
            for sprint in sprints:
                marker = "archived" if sprint.is_archived else "active"
                typer.echo(f"{sprint.id}: [{marker}] {sprint.name}")
        else:
            if not sprints:
                console.print("[dim]No sprints yet[/dim]")
                return

            table = Table(title="Sprints", show_header=True, header_style="bold cyan")
            table.add_column("ID", style="cyan", width=6, no_wrap=True)
            table.add_column("Name", style="white")
            table.add_column("State", width=9)
            table.add_column("Dates", style="dim")
            table.add_column("Stories", justify="right", width=7)

            for sprint in sprints:
                state_text = "[dim]archived[/dim]" if sprint.is_archived else "[green]active[/green]"
                table.add_row(
                    str(sprint.id),
                    sprint.name,
                    state_text,
                    f"{sprint.start_date} to {sprint.end_date}",
                    str(len(sprint.item_ids)),
                )
            console.print(table)

    except TasklyError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def _change_membership(item_ids: str, add: bool) -> None:
    try:
        ids = parse_ids(item_ids)
    except ValueError:
        error_console.print(f"[red]Error:[/red] Invalid ID list '{item_ids}'")
        raise typer.Exit(1)

    failed = 0
    for item_id in ids:
        try:
            own_item(item_id)
            if add:
                story = lifecycle.add_item_to_sprint(item_id)
                console.print(f"[green]✓ Added story #{story.id}[/green] to sprint #{story.sprint_id}")
            else:
                story = lifecycle.remove_item_from_sprint(item_id)
                console.print(f"[green]✓ Story #{story.id} back in the backlog[/green]")
        except TasklyError as e:
            error_console.print(f"[red]Error:[/red] {e}")
            failed += 1

    if failed:
        raise typer.Exit(1)


@sprint_app.command("add")
def sprint_add(
    item_ids: str = typer.Argument(..., help="Story ID(s), comma-separated"),
):
    """
    Add stories to the active sprint; their tasks and bugs follow.

    Example:
        taskly sprint add 2,5
    """
    _change_membership(item_ids, add=True)


@sprint_app.command("remove")
def sprint_remove(
    item_ids: str = typer.Argument(..., help="Story ID(s), comma-separated"),
):
    """
    Return stories (and their tasks and bugs) from the active sprint to the backlog.

    Example:
        taskly sprint remove 5
    """
    _change_membership(item_ids, add=False)


@sprint_app.command("archive")
def sprint_archive():
    """
    Archive the active sprint. Item status is kept as a record.

    Example:
        taskly sprint archive
    """
    try:
        sprint = lifecycle.archive_current_sprint(state["tutorial"])
        console.print(f"[green]✓ Archived sprint [bold]#{sprint.id}[/bold]:[/green] {sprint.name}")
    except TasklyError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@sprint_app.command("restore")
def sprint_restore(
    sprint_id: int = typer.Argument(..., help="Archived sprint ID"),
):
    """
    Make an archived sprint active again. The current sprint gets archived.

    Example:
        taskly sprint restore 2
    """
    try:
        own_sprint(sprint_id)
        sprint = lifecycle.restore_sprint(sprint_id)
        console.print(f"[green]✓ Sprint [bold]#{sprint.id}[/bold] is active again:[/green] {sprint.name}")
    except TasklyError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@sprint_app.command("rm")
def sprint_rm(
    sprint_id: int = typer.Argument(..., help="Sprint ID"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    """
    Delete a sprint. Its items go back to the backlog.

    Example:
        taskly sprint rm 3 --force
    """
    if not force and not typer.confirm(f"Delete sprint #{sprint_id}?"):
        console.print("[dim]Cancelled[/dim]")
        return

    try:
        own_sprint(sprint_id)
        reset = lifecycle.delete_sprint(sprint_id)
        console.print(f"[green]✓ Deleted sprint #{sprint_id}[/green] [dim]({len(reset)} item(s) back to backlog)[/dim]")
    except TasklyError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@sprint_app.command("edit")
def sprint_edit(
    sprint_id: int = typer.Argument(..., help="Sprint ID"),
    name: Optional[str] = typer.Option(None, "--name", help="New name"),
    goal: Optional[str] = typer.Option(None, "--goal", "-g", help="New goal"),
    start_date: Optional[str] = typer.Option(None, "--start", help="New start date YYYY-MM-DD"),
    end_date: Optional[str] = typer.Option(None, "--end", help="New end date YYYY-MM-DD"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Edit a sprint's name, goal or dates.

    Example:
        taskly sprint edit 1 --goal "Ship checkout and refunds"
    """
    try:
        own_sprint(sprint_id)
        sprint = lifecycle.update_sprint_details(
            sprint_id, name=name, goal=goal, start_date=start_date, end_date=end_date,
        )
        if json_output:
            typer.echo(sprint.to_json())
        else:
            console.print(f"[green]✓ Updated sprint [bold]#{sprint.id}[/bold]:[/green] {sprint.name}")
    except TasklyError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
