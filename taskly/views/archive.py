"""
FILE: taskly/views/archive.py
PURPOSE: Sprint archive view - archived sprint cards with restore and delete
EXPORTS:
  - SprintArchiveView (class)
DEPENDENCIES:
  - taskly.views.base (BaseView)
  - taskly.views.render (archive cards)
  - taskly.core.lifecycle (restore, delete, sprint_summary)
"""

from typing import List, Tuple

from ..core import lifecycle
from ..core.exceptions import ValidationError
from ..core.models import BacklogItem, Sprint
from .base import BaseView
from .render import archive_card, sprint_line


class SprintArchiveView(BaseView):
    """Past sprints, newest first."""

    name = "archive"
    title = "Sprint Archive"

    def cards(self) -> List[Tuple[Sprint, lifecycle.SprintSummary]]:
        items = self.cache.backlog_items
        return [
            (sprint, lifecycle.sprint_summary(sprint, items))
            for sprint in self.cache.archived_sprints
        ]

    def _own_sprint(self, sprint_id: int) -> Sprint:
        sprint = lifecycle.get_sprint(sprint_id)
        if sprint.is_tutorial != self.tutorial:
            where = "tutorial" if sprint.is_tutorial else "main"
            raise ValidationError(f"Sprint #{sprint.id} belongs to the {where} data")
        return sprint

    def restore(self, sprint_id: int) -> Sprint:
        """Make an archived sprint active again (the current one gets archived)."""
        self._own_sprint(sprint_id)
        return self.perform(lifecycle.restore_sprint, sprint_id)

    def delete(self, sprint_id: int) -> List[BacklogItem]:
        self._own_sprint(sprint_id)
        return self.perform(lifecycle.delete_sprint, sprint_id)

    def render(self, console) -> None:
        console.print(f"[dim]Current:[/dim] {sprint_line(self.cache.current_sprint)}")
        cards = self.cards()
        if not cards:
            console.print("[dim]No archived sprints[/dim]")
            return
        for sprint, summary in cards:
            console.print(archive_card(sprint, summary))
