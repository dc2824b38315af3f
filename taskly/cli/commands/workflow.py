"""
FILE: taskly/cli/commands/workflow.py
PURPOSE: Sprint board workflow commands (start, back, board, archive)
"""

import json

import typer

from ..main import app, console, error_console, own_item, state
from ...core import service
from ...core.exceptions import TasklyError
from ...sync.bus import SignalBus
from ...views.archive import SprintArchiveView
from ...views.board import SprintBoardView
from ...views.render import ItemFormatter, parse_ids, status_markup


def _step_items(item_ids: str, forward: bool, raw: bool) -> None:
    try:
        ids = parse_ids(item_ids)
    except ValueError:
        error_console.print(f"[red]Error:[/red] Invalid ID list '{item_ids}'")
        raise typer.Exit(1)

    failed = 0
    for item_id in ids:
        try:
            own_item(item_id)
            item = service.advance_item(item_id) if forward else service.revert_item(item_id)
            if raw:
                typer.echo(f"{item.id}: {item.status}")
            else:
                console.print(f"[green]✓[/green] #{item.id} {item.title} -> {status_markup(item.status)}")
        except TasklyError as e:
            error_console.print(f"[red]Error:[/red] {e}")
            failed += 1

    if failed:
        raise typer.Exit(1)


@app.command()
def start(
    item_ids: str = typer.Argument(..., help="Item ID(s), comma-separated"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Move item(s) one board stage forward (Todo -> InProgress -> Review -> Done).

    Example:
        taskly start 7
        taskly start 7,8,9
    """
    _step_items(item_ids, forward=True, raw=raw)


@app.command("advance", hidden=True)
def advance(
    item_ids: str = typer.Argument(..., help="Item ID(s), comma-separated"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """Alias for 'start'."""
    _step_items(item_ids, forward=True, raw=raw)


@app.command()
def back(
    item_ids: str = typer.Argument(..., help="Item ID(s), comma-separated"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Move item(s) one board stage back (Done -> Review -> InProgress -> Todo).

    Example:
        taskly back 7
    """
    _step_items(item_ids, forward=False, raw=raw)


@app.command()
def board(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Show the sprint board of the active sprint.

    Example:
        taskly board
        taskly board --json
    """
    try:
        view = SprintBoardView(SignalBus(), tutorial=state["tutorial"])
        try:
            if json_output:
                typer.echo(_board_json(view))
            elif raw:
                for lane in view.lanes():
                    typer.echo(f"{lane.story.id}: [{lane.story.status}] {lane.story.title}")
                    for tasks in lane.columns.values():
                        for task in tasks:
                            typer.echo(f"  {task.id}: [{task.status}] {task.title}")
            else:
                view.render(console)
        finally:
            view.close()

    except TasklyError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def _board_json(view: SprintBoardView) -> str:
    data = {
        "sprint": view.sprint.to_dict() if view.sprint else None,
        "lanes": [
            {
                "story": lane.story.to_dict(),
                "epic": lane.epic.to_dict() if lane.epic else None,
                "columns": {
                    str(status): [t.to_dict() for t in tasks]
                    for status, tasks in lane.columns.items()
                },
            }
            for lane in view.lanes()
        ],
    }
    return json.dumps(data, indent=2)


@app.command()
def archive(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    View archived sprints with their completion metrics, newest first.

    Example:
        taskly archive
        taskly sprint restore 2
    """
    try:
        view = SprintArchiveView(SignalBus(), tutorial=state["tutorial"])
        try:
            cards = view.cards()
            if json_output:
                typer.echo(ItemFormatter.to_json_array(sprint for sprint, _ in cards))
            elif raw:
                for sprint, summary in cards:
                    typer.echo(
                        f"{sprint.id}: {sprint.name} "
                        f"{summary.stories_done}/{summary.stories} stories "
                        f"{summary.points_done}/{summary.points} pts"
                    )
            else:
                view.render(console)
        finally:
            view.close()

    except TasklyError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
