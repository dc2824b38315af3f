"""
FILE: taskly/views/planning.py
PURPOSE: Planning view - backlog hierarchy, item editing and sprint planning
EXPORTS:
  - TreeNode (dataclass)
  - PlanningView (class)
DEPENDENCIES:
  - taskly.views.base (BaseView)
  - taskly.views.render (hierarchy tree, sprint line)
  - taskly.core.service (item CRUD)
  - taskly.core.lifecycle (sprint creation, membership, archive)
  - taskly.core.hierarchy (children_of)
NOTES:
  - Reads only from its own cache; writes go through perform()
  - Epics are ordered by priority then id, children by id
  - Items whose parent was deleted are listed as extra roots so nothing
    disappears from the tree
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..core import lifecycle, service
from ..core.constants import DEFAULT_STORY_POINTS
from ..core.hierarchy import children_of
from ..core.models import BacklogItem, IssueType, Sprint
from .base import BaseView
from .render import hierarchy_tree, sprint_line


@dataclass
class TreeNode:
    item: BacklogItem
    children: List["TreeNode"] = field(default_factory=list)


class PlanningView(BaseView):
    """Backlog tree plus the actions that shape the next sprint."""

    name = "planning"
    title = "Planning"

    # --- Derived state ---

    @property
    def current_sprint(self) -> Optional[Sprint]:
        return self.cache.current_sprint

    def hierarchy(self) -> List[TreeNode]:
        """
        Build the Epic -> Story -> Task/Bug tree from the cache.

        Returns:
            Root nodes: Epics first, then orphaned Stories and Tasks/Bugs
        """
        items = self.cache.backlog_items
        known = {i.id for i in items}

        def node(item: BacklogItem) -> TreeNode:
            return TreeNode(item, [node(child) for child in children_of(item, items)])

        epics = sorted(
            (i for i in items if i.type == IssueType.EPIC),
            key=lambda i: (i.priority, i.id),
        )
        orphans = [
            i for i in items
            if i.type != IssueType.EPIC and (i.parent_id is None or i.parent_id not in known)
        ]
        return [node(e) for e in epics] + [node(o) for o in orphans]

    def sprint_candidates(self) -> List[BacklogItem]:
        """Stories not in any sprint, ordered by id."""
        return [
            i for i in self.cache.items_of_type(IssueType.STORY)
            if i.sprint_id is None
        ]

    def sprint_members(self) -> List[BacklogItem]:
        return self.cache.sprint_stories()

    # --- Items ---

    def add_item(
        self,
        title: str,
        item_type,
        parent_id: Optional[int] = None,
        description: Optional[str] = None,
        story_points: int = DEFAULT_STORY_POINTS,
    ) -> BacklogItem:
        """Create an item in this view's partition (see service.create_item)."""
        return self.perform(
            service.create_item,
            title,
            item_type,
            parent_id=parent_id,
            description=description,
            story_points=story_points,
            tutorial=self.tutorial,
        )

    def edit_item(self, item_id: int, **changes) -> BacklogItem:
        self.own_item(item_id)
        return self.perform(service.update_item, item_id, **changes)

    def delete_item(self, item_id: int) -> None:
        self.own_item(item_id)
        self.perform(service.delete_item, item_id)

    # --- Sprint ---

    def create_sprint(
        self,
        name: str,
        goal: str = "",
        start_date=None,
        end_date=None,
    ) -> Sprint:
        return self.perform(
            lifecycle.create_sprint,
            name,
            goal=goal,
            start_date=start_date,
            end_date=end_date,
            tutorial=self.tutorial,
        )

    def add_to_sprint(self, item_id: int) -> BacklogItem:
        self.own_item(item_id)
        return self.perform(lifecycle.add_item_to_sprint, item_id)

    def remove_from_sprint(self, item_id: int) -> BacklogItem:
        self.own_item(item_id)
        return self.perform(lifecycle.remove_item_from_sprint, item_id)

    def archive_sprint(self) -> Sprint:
        return self.perform(lifecycle.archive_current_sprint, self.tutorial)

    def render(self, console) -> None:
        console.print(sprint_line(self.current_sprint))
        members = self.sprint_members()
        if self.current_sprint is not None:
            ids = ", ".join(f"#{s.id}" for s in members) or "none"
            console.print(f"[dim]Stories in sprint: {ids}[/dim]")
        console.print()
        console.print(hierarchy_tree(self.hierarchy(), title="Backlog"))
