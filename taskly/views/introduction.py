"""
FILE: taskly/views/introduction.py
PURPOSE: Introduction view - guided walkthrough on the tutorial partition
EXPORTS:
  - STEPS (tuple of step titles)
  - IntroductionView (class)
DEPENDENCIES:
  - taskly.views.base (BaseView)
  - taskly.core.service / taskly.core.lifecycle (the same operations the
    other views use, on tutorial data)
  - taskly.core.exceptions (ValidationError)
NOTES:
  - Always works on the tutorial partition; main data is never touched
  - Steps are 1-based; a step is left with next_step() only once its goal
    holds in the tutorial data, or automatically by the action that
    satisfies it
  - The tutorial's "current" epic and story are the newest ones
  - restart() wipes tutorial data only and goes back to step 1
"""

from typing import Optional

from ..core import lifecycle, service
from ..core.exceptions import ValidationError
from ..core.models import BacklogItem, IssueType, ItemStatus, Sprint
from ..sync.bus import SignalBus
from .base import BaseView
from .render import sprint_line


STEPS = (
    "Create a Sprint",
    "Create an Epic",
    "Create Stories",
    "Break Down Stories into Tasks",
    "Add Stories to the Sprint",
    "Work the Sprint Board",
    "Archive the Sprint",
    "Congratulations",
)

STEP_HINTS = (
    "A Sprint is a time-boxed iteration. Use 'sprint <name>' to create one.",
    "An Epic is a large feature or initiative. Use 'epic <title>'.",
    "Stories deliver value to users. Use 'story <title>' to add one under the epic.",
    "Tasks and Bugs are the actual work. Use 'task <title>' or 'bug <title>'.",
    "Use 'plan <story id>' to pull a story into the sprint.",
    "Use 'start <id>' and 'back <id>' to move work across the board.",
    "Use 'archive' to close the sprint and review it in the archive.",
    "You're done! Use 'restart' to run the introduction again.",
)


_LAST_CHECKED_STEP = 5


class IntroductionView(BaseView):
    """Eight-step walkthrough of the planning workflow."""

    name = "intro"
    title = "Introduction"

    def __init__(self, bus: SignalBus, share_snapshots: bool = False):
        super().__init__(bus, tutorial=True, share_snapshots=share_snapshots)
        self.step = 1
        # Resume where existing tutorial data leaves off (board steps are manual)
        while self.step <= _LAST_CHECKED_STEP and self.can_proceed():
            self.step += 1

    @property
    def total_steps(self) -> int:
        return len(STEPS)

    @property
    def step_title(self) -> str:
        return STEPS[self.step - 1]

    @property
    def progress(self) -> int:
        """Percent complete."""
        return self.step * 100 // self.total_steps

    def on_refreshed(self) -> None:
        # Tutorial data wiped elsewhere (clean, another intro's restart)
        cache = self.cache
        if not cache.backlog_items and cache.current_sprint is None and not cache.archived_sprints:
            self.step = 1

    # --- Tutorial state ---

    def _latest(self, item_type: IssueType) -> Optional[BacklogItem]:
        items = self.cache.items_of_type(item_type)
        return items[-1] if items else None

    @property
    def epic(self) -> Optional[BacklogItem]:
        return self._latest(IssueType.EPIC)

    @property
    def story(self) -> Optional[BacklogItem]:
        return self._latest(IssueType.STORY)

    def can_proceed(self) -> bool:
        """Whether the goal of the current step holds in the tutorial data."""
        cache = self.cache
        sprint = cache.current_sprint
        checks = {
            1: lambda: sprint is not None or bool(cache.archived_sprints),
            2: lambda: self.epic is not None,
            3: lambda: self.story is not None,
            4: lambda: bool(cache.items_of_type(IssueType.TASK) or cache.items_of_type(IssueType.BUG)),
            5: lambda: sprint is not None and bool(sprint.item_ids),
            6: lambda: True,
            7: lambda: True,
        }
        check = checks.get(self.step)
        return bool(check and check())

    def next_step(self) -> int:
        """
        Move to the next step.

        Raises:
            ValidationError: If the current step isn't finished, or this is
                the last step
        """
        if self.step >= self.total_steps:
            raise ValidationError("The introduction is already complete")
        if not self.can_proceed():
            raise ValidationError(f"Finish step {self.step} ({self.step_title}) first")
        self.step += 1
        return self.step

    def _advance_from(self, step: int) -> None:
        if self.step == step and self.can_proceed():
            self.step += 1

    # --- Actions ---

    def create_sprint(self, name: str, goal: str = "") -> Sprint:
        sprint = self.perform(lifecycle.create_sprint, name, goal=goal, tutorial=True)
        self._advance_from(1)
        return sprint

    def create_epic(self, title: str, description: Optional[str] = None) -> BacklogItem:
        epic = self.perform(service.create_item, title, IssueType.EPIC, description=description, tutorial=True)
        self._advance_from(2)
        return epic

    def create_story(self, title: str, story_points: int = 3) -> BacklogItem:
        if self.epic is None:
            raise ValidationError("Create an epic first")
        story = self.perform(
            service.create_item, title, IssueType.STORY,
            parent_id=self.epic.id, story_points=story_points, tutorial=True,
        )
        self._advance_from(3)
        return story

    def create_task(self, title: str, item_type=IssueType.TASK) -> BacklogItem:
        if self.story is None:
            raise ValidationError("Create a story first")
        task = self.perform(
            service.create_item, title, item_type,
            parent_id=self.story.id, tutorial=True,
        )
        self._advance_from(4)
        return task

    def add_to_sprint(self, item_id: int) -> BacklogItem:
        self.own_item(item_id)
        story = self.perform(lifecycle.add_item_to_sprint, item_id)
        self._advance_from(5)
        return story

    def advance(self, item_id: int) -> BacklogItem:
        self.own_item(item_id)
        return self.perform(service.advance_item, item_id)

    def revert(self, item_id: int) -> BacklogItem:
        self.own_item(item_id)
        return self.perform(service.revert_item, item_id)

    def archive_sprint(self) -> Sprint:
        sprint = self.perform(lifecycle.archive_current_sprint, True)
        if self.step in (6, 7):
            self.step = 8
        return sprint

    def restart(self) -> None:
        """Wipe the tutorial data and start over."""
        self.perform(service.clean, tutorial_only=True)
        self.step = 1

    def render(self, console) -> None:
        console.print(
            f"[bold cyan]Getting Started with Taskly[/bold cyan]  "
            f"[dim]Step {self.step} of {self.total_steps} ({self.progress}%)[/dim]"
        )
        console.print(f"[bold]Step {self.step}: {self.step_title}[/bold]")
        console.print(STEP_HINTS[self.step - 1])
        console.print(sprint_line(self.cache.current_sprint))

        if self.epic:
            console.print(f"[magenta]Epic:[/magenta] #{self.epic.id} {self.epic.title}")
        if self.story:
            console.print(f"[cyan]Story:[/cyan] #{self.story.id} {self.story.title} ({self.story.status})")
        tasks = [
            i for i in self.cache.backlog_items
            if i.type in (IssueType.TASK, IssueType.BUG)
        ]
        for task in tasks:
            done = "[green]✓[/green]" if task.status == ItemStatus.DONE else "[dim]·[/dim]"
            console.print(f"  {done} #{task.id} {task.type} {task.title} [dim]({task.status})[/dim]")
