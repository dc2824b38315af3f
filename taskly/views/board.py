"""
FILE: taskly/views/board.py
PURPOSE: Sprint board view - kanban of the active sprint grouped by Epic/Story
EXPORTS:
  - BoardLane (dataclass)
  - SprintBoardView (class)
DEPENDENCIES:
  - taskly.views.base (BaseView)
  - taskly.views.render (board table, summary line)
  - taskly.core.service (advance_item, revert_item)
  - taskly.core.lifecycle (archive, sprint_summary)
NOTES:
  - One lane per Story listed in the active sprint, ordered by Epic then id
  - Stepping works on Stories and Tasks/Bugs alike, one stage at a time
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..core import lifecycle, service
from ..core.constants import BOARD_STATUSES
from ..core.hierarchy import children_of
from ..core.models import BacklogItem, ItemStatus, Sprint
from .base import BaseView
from .render import board_table, sprint_line, summary_line


@dataclass
class BoardLane:
    story: BacklogItem
    epic: Optional[BacklogItem] = None
    columns: Dict[ItemStatus, List[BacklogItem]] = field(default_factory=dict)


class SprintBoardView(BaseView):
    """Kanban board of the active sprint."""

    name = "board"
    title = "Sprint Board"

    @property
    def sprint(self) -> Optional[Sprint]:
        return self.cache.current_sprint

    def lanes(self) -> List[BoardLane]:
        if self.sprint is None:
            return []

        items = self.cache.backlog_items
        lanes = []
        for story in self.cache.sprint_stories():
            epic = self.cache.get_item(story.parent_id) if story.parent_id else None
            lane = BoardLane(
                story=story,
                epic=epic,
                columns={ItemStatus(s): [] for s in BOARD_STATUSES},
            )
            for task in children_of(story, items):
                if task.sprint_id == self.sprint.id and task.status in lane.columns:
                    lane.columns[task.status].append(task)
            lanes.append(lane)

        return sorted(lanes, key=lambda l: (l.epic.id if l.epic else 0, l.story.id))

    def column(self, status) -> List[BacklogItem]:
        """Every Task/Bug of the board in one status."""
        status = ItemStatus(status)
        return [t for lane in self.lanes() for t in lane.columns.get(status, [])]

    def summary(self) -> Optional[lifecycle.SprintSummary]:
        if self.sprint is None:
            return None
        return lifecycle.sprint_summary(self.sprint, self.cache.backlog_items)

    def advance(self, item_id: int) -> BacklogItem:
        """Start / complete: one stage towards Done."""
        self.own_item(item_id)
        return self.perform(service.advance_item, item_id)

    def revert(self, item_id: int) -> BacklogItem:
        """Reverse: one stage back towards Todo."""
        self.own_item(item_id)
        return self.perform(service.revert_item, item_id)

    def archive_sprint(self) -> Sprint:
        return self.perform(lifecycle.archive_current_sprint, self.tutorial)

    def render(self, console) -> None:
        console.print(sprint_line(self.sprint))
        if self.sprint is None:
            console.print("[dim]Create a sprint in the planning view first[/dim]")
            return

        console.print(summary_line(self.summary()))
        lanes = self.lanes()
        if not lanes:
            console.print("[dim]No stories in this sprint yet[/dim]")
            return
        console.print(board_table(lanes))
