"""
FILE: taskly/views/render.py
PURPOSE: Rich rendering shared by the CLI and the REPL views
EXPORTS:
  - ItemFormatter (class: tables, JSON and raw lines for items)
  - status_markup(status) -> str
  - sprint_line(sprint) -> str
  - hierarchy_tree(nodes, title) -> Tree
  - board_table(lanes) -> Table
  - archive_card(sprint, summary) -> Panel
  - summary_line(summary) -> str
  - parse_ids(id_string) -> List[int]
DEPENDENCIES:
  - rich (tables, trees, panels)
  - json (stdlib)
  - taskly.core.models (BacklogItem, Sprint, ItemStatus)
NOTES:
  - Pure presentation: takes data the view controllers already computed,
    never reads the store
  - Used by both CLI and REPL so the two look the same
"""

import json
from typing import Iterable, List, Optional

from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from ..core.constants import BOARD_STATUSES
from ..core.models import BacklogItem, IssueType, ItemStatus, Sprint


# Color code status: backlog=dim, todo=white, in progress=yellow, review=blue, done=green
STATUS_STYLES = {
    ItemStatus.BACKLOG: "dim",
    ItemStatus.TODO: "white",
    ItemStatus.IN_PROGRESS: "yellow",
    ItemStatus.REVIEW: "blue",
    ItemStatus.DONE: "green",
}

TYPE_STYLES = {
    IssueType.EPIC: "bold magenta",
    IssueType.STORY: "cyan",
    IssueType.TASK: "white",
    IssueType.BUG: "red",
}


def status_markup(status: ItemStatus) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status}[/{style}]"


def item_label(item: BacklogItem) -> str:
    """One-line label: '#id Type  Title  (status, n pts)'."""
    style = TYPE_STYLES.get(item.type, "white")
    return (
        f"[cyan]#{item.id}[/cyan] [{style}]{item.type}[/{style}] {item.title} "
        f"[dim]({item.story_points} pts)[/dim] {status_markup(item.status)}"
    )


def sprint_line(sprint: Optional[Sprint]) -> str:
    if sprint is None:
        return "[dim]No active sprint[/dim]"
    goal = f" [dim]- {sprint.goal}[/dim]" if sprint.goal else ""
    return (
        f"[bold cyan]Sprint #{sprint.id}:[/bold cyan] {sprint.name}{goal} "
        f"[dim]({sprint.start_date} to {sprint.end_date})[/dim]"
    )


class ItemFormatter:
    """Centralized backlog item display formatting."""

    @staticmethod
    def create_table(
        items: List[BacklogItem],
        title: str = "Backlog",
        show_sprint: bool = True,
    ) -> Table:
        """
        Create Rich table for backlog items.

        Args:
            items: Items to display
            title: Table title
            show_sprint: Whether to show the sprint column

        Returns:
            Rich Table object ready for display
        """
        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("ID", style="cyan", width=6, no_wrap=True)
        table.add_column("Type", width=6)
        table.add_column("Title", style="white")
        table.add_column("Status", width=11)
        table.add_column("Pts", justify="right", width=4)
        table.add_column("Parent", style="dim", width=7)
        if show_sprint:
            table.add_column("Sprint", style="blue", width=7)

        for item in items:
            style = TYPE_STYLES.get(item.type, "white")
            row = [
                str(item.id),
                f"[{style}]{item.type}[/{style}]",
                item.title,
                status_markup(item.status),
                str(item.story_points),
                f"#{item.parent_id}" if item.parent_id else "-",
            ]
            if show_sprint:
                row.append(f"#{item.sprint_id}" if item.sprint_id else "-")
            table.add_row(*row)

        return table

    @staticmethod
    def to_json_array(objects: Iterable) -> str:
        """Serialize items or sprints (anything with to_dict()) as a JSON array."""
        return json.dumps([o.to_dict() for o in objects], indent=2)

    @staticmethod
    def to_raw_lines(items: List[BacklogItem]) -> List[str]:
        """
        Convert items to plain text lines.

        Returns:
            One 'id: [status] Type title' line per item
        """
        return [f"{i.id}: [{i.status}] {i.type} {i.title}" for i in items]


def hierarchy_tree(nodes, title: str = "Backlog") -> Tree:
    """
    Build the Epic -> Story -> Task/Bug tree of the planning view.

    Args:
        nodes: TreeNode roots (see taskly.views.planning)
        title: Tree label
    """
    tree = Tree(f"[bold]{title}[/bold]")

    def add(branch: Tree, node) -> None:
        label = item_label(node.item)
        if node.item.sprint_id is not None and node.item.type == IssueType.STORY:
            label += f" [blue]in sprint #{node.item.sprint_id}[/blue]"
        child_branch = branch.add(label)
        for child in node.children:
            add(child_branch, child)

    for node in nodes:
        add(tree, node)

    if not nodes:
        tree.add("[dim]Nothing here yet. Start with an Epic.[/dim]")
    return tree


def board_table(lanes) -> Table:
    """
    Kanban table: one row per sprint Story, one column per board status.

    Args:
        lanes: BoardLane rows (see taskly.views.board)
    """
    table = Table(show_header=True, header_style="bold cyan", show_lines=True)
    table.add_column("Story", style="cyan", ratio=2)
    for status in BOARD_STATUSES:
        table.add_column(status_markup(ItemStatus(status)), ratio=1)

    for lane in lanes:
        epic = f"[magenta]{lane.epic.title}[/magenta]\n" if lane.epic else ""
        header = (
            f"{epic}#{lane.story.id} {lane.story.title}\n"
            f"[dim]{lane.story.story_points} pts[/dim] {status_markup(lane.story.status)}"
        )
        cells = [header]
        for status in BOARD_STATUSES:
            tasks = lane.columns.get(ItemStatus(status), [])
            cells.append("\n".join(
                f"[cyan]#{t.id}[/cyan] {'[red]Bug[/red] ' if t.type == IssueType.BUG else ''}{t.title}"
                for t in tasks
            ))
        table.add_row(*cells)

    return table


def summary_line(summary) -> str:
    """'2/3 stories done, 5/8 points' plus task counts per status."""
    tasks = ", ".join(
        f"{count} {status}" for status, count in summary.tasks_by_status.items() if count
    )
    line = (
        f"{summary.stories_done}/{summary.stories} stories done, "
        f"{summary.points_done}/{summary.points} points"
    )
    return f"{line} [dim]| tasks: {tasks or 'none'}[/dim]"


def archive_card(sprint: Sprint, summary) -> Panel:
    """Card for one archived sprint: dates, goal and completion metrics."""
    body = [f"[dim]{sprint.start_date} to {sprint.end_date}[/dim]"]
    if sprint.goal:
        body.append(f"Goal: {sprint.goal}")
    body.append(summary_line(summary))
    return Panel(
        "\n".join(body),
        title=f"[bold]#{sprint.id} {sprint.name}[/bold]",
        title_align="left",
        border_style="green" if summary.stories and summary.stories == summary.stories_done else "dim",
    )


def parse_ids(id_string: str) -> List[int]:
    """
    Parse comma-separated IDs.

    Args:
        id_string: Comma-separated string of IDs (e.g., "1,2,3")

    Returns:
        List of integers

    Raises:
        ValueError: If any ID is not a valid integer
    """
    ids = [part.strip() for part in str(id_string).split(",")]
    return [int(part) for part in ids if part]
