"""
FILE: taskly/core/lifecycle.py
PURPOSE: Sprint lifecycle state machine (create -> active -> archived -> restored -> deleted)
EXPORTS:
  - get_active_sprint(tutorial) -> Sprint | None
  - list_archived_sprints(tutorial) -> List[Sprint]
  - get_sprint(sprint_id) -> Sprint
  - create_sprint(name, goal, start_date, end_date, tutorial) -> Sprint
  - update_sprint_details(sprint_id, name, goal, start_date, end_date) -> Sprint
  - archive_current_sprint(tutorial) -> Sprint
  - restore_sprint(sprint_id) -> Sprint
  - delete_sprint(sprint_id) -> List[BacklogItem]
  - add_item_to_sprint(item_id) -> BacklogItem
  - remove_item_from_sprint(item_id) -> BacklogItem
  - SprintSummary (dataclass)
  - sprint_summary(sprint, items) -> SprintSummary
DEPENDENCIES:
  - taskly.core.repository (store access, transactions)
  - taskly.core.cascade (Story -> Task/Bug propagation)
  - taskly.core.hierarchy (validation helpers)
  - taskly.core.exceptions (ValidationError, ConflictError, SprintNotFoundError, ItemNotFoundError)
  - datetime (stdlib, sprint dates)
  - logging (stdlib)
NOTES:
  - At most one non-archived sprint per partition (is_tutorial), kept by
    construction: a sprint is only created when none is active, and a
    restore archives the active one in the same transaction
  - Archiving and restoring never touch item status or sprint_id
  - Only Stories join a sprint directly; their Tasks/Bugs follow through
    taskly.core.cascade
  - The partition of a membership change is the item's own partition
  - A Story is listed in at most one sprint's item_ids; adding a carried-over
    Story moves it out of the archived sprint
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Union

from . import repository
from .cascade import cascade_sprint_assignment
from .constants import DEFAULT_SPRINT_DAYS
from .exceptions import (
    ConflictError,
    ItemNotFoundError,
    SprintNotFoundError,
    ValidationError,
)
from .hierarchy import validate_title
from .models import BacklogItem, IssueType, ItemStatus, Sprint


logger = logging.getLogger(__name__)

DateLike = Union[str, date, None]


def _parse_date(value: DateLike, what: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Invalid {what} '{value}'. Use YYYY-MM-DD")


def _resolve_dates(start_date: DateLike, end_date: DateLike) -> tuple:
    start = _parse_date(start_date, "start date") or date.today()
    end = _parse_date(end_date, "end date") or start + timedelta(days=DEFAULT_SPRINT_DAYS)

    if end < start:
        raise ValidationError("Sprint end date cannot be before its start date")

    return start.isoformat(), end.isoformat()


# --- Queries ---


def get_active_sprint(tutorial: bool = False) -> Optional[Sprint]:
    """Return the active sprint of a partition, or None."""
    return repository.get_active_sprint(tutorial)


def list_archived_sprints(tutorial: bool = False) -> List[Sprint]:
    """
    List archived sprints of a partition.

    Returns:
        Archived sprints, newest first (as the archive view shows them)
    """
    sprints = [s for s in repository.list_sprints(tutorial) if s.is_archived]
    return sorted(sprints, key=lambda s: s.id, reverse=True)


def get_sprint(sprint_id: int) -> Sprint:
    """
    Fetch a sprint, raising if it doesn't exist.

    Raises:
        SprintNotFoundError: If sprint_id doesn't exist
    """
    sprint = repository.get_sprint(sprint_id)
    if not sprint:
        raise SprintNotFoundError(sprint_id)
    return sprint


# --- State Transitions ---


def create_sprint(
    name: str,
    goal: str = "",
    start_date: DateLike = None,
    end_date: DateLike = None,
    tutorial: bool = False,
) -> Sprint:
    """
    Start a new sprint in a partition.

    Args:
        name: Sprint name (required)
        goal: Optional sprint goal
        start_date: ISO date, defaults to today
        end_date: ISO date, defaults to start + 14 days
        tutorial: Partition the sprint belongs to

    Returns:
        The new active Sprint with no items

    Raises:
        ValidationError: Empty name, bad or inverted dates
        ConflictError: The partition already has an active sprint
    """
    name = validate_title(name, "Sprint name")
    start, end = _resolve_dates(start_date, end_date)

    with repository.transaction() as conn:
        active = repository.get_active_sprint(tutorial, conn=conn)
        if active:
            raise ConflictError(
                f"Sprint '{active.name}' (#{active.id}) is still active. "
                "Archive it before starting a new one"
            )

        sprint = repository.create_sprint(
            name=name,
            start_date=start,
            end_date=end,
            goal=(goal or "").strip(),
            is_tutorial=tutorial,
            conn=conn,
        )

    logger.info("Created sprint #%s '%s'", sprint.id, sprint.name)
    return sprint


def update_sprint_details(
    sprint_id: int,
    name: Optional[str] = None,
    goal: Optional[str] = None,
    start_date: DateLike = None,
    end_date: DateLike = None,
) -> Sprint:
    """
    Edit a sprint's name, goal or dates.

    Notes:
        - Omitted fields are left unchanged
        - The archive flag and item_ids are not touched here
    """
    with repository.transaction() as conn:
        sprint = repository.get_sprint(sprint_id, conn=conn)
        if not sprint:
            raise SprintNotFoundError(sprint_id)

        if name is not None:
            sprint.name = validate_title(name, "Sprint name")
        if goal is not None:
            sprint.goal = goal.strip()
        sprint.start_date, sprint.end_date = _resolve_dates(
            start_date or sprint.start_date,
            end_date or sprint.end_date,
        )

        return repository.update_sprint(sprint, conn=conn)


def archive_current_sprint(tutorial: bool = False) -> Sprint:
    """
    Archive the active sprint of a partition.

    Returns:
        The archived Sprint

    Raises:
        ConflictError: If no sprint is active

    Notes:
        Member items keep their status and sprint_id; the archive is a
        record of the work as it stood.
    """
    with repository.transaction() as conn:
        sprint = repository.get_active_sprint(tutorial, conn=conn)
        if not sprint:
            raise ConflictError("There is no active sprint to archive")

        sprint.is_archived = True
        sprint = repository.update_sprint(sprint, conn=conn)

    logger.info("Archived sprint #%s '%s'", sprint.id, sprint.name)
    return sprint


def restore_sprint(sprint_id: int) -> Sprint:
    """
    Make an archived sprint the active one again.

    Args:
        sprint_id: Sprint to restore

    Returns:
        The restored (now active) Sprint

    Raises:
        SprintNotFoundError: If sprint_id doesn't exist

    Notes:
        - Archives whichever sprint is active in the same partition first
        - Both flips commit together, so no reader sees zero or two
          active sprints
        - Restoring the sprint that is already active returns it unchanged
    """
    with repository.transaction() as conn:
        target = repository.get_sprint(sprint_id, conn=conn)
        if not target:
            raise SprintNotFoundError(sprint_id)

        if not target.is_archived:
            return target

        current = repository.get_active_sprint(target.is_tutorial, conn=conn)
        if current:
            current.is_archived = True
            repository.update_sprint(current, conn=conn)
            logger.info("Archived sprint #%s to make room for #%s", current.id, target.id)

        target.is_archived = False
        target = repository.update_sprint(target, conn=conn)

    logger.info("Restored sprint #%s '%s'", target.id, target.name)
    return target


def delete_sprint(sprint_id: int) -> List[BacklogItem]:
    """
    Delete a sprint and return its items to the backlog.

    Returns:
        The items that were reset to {Backlog, sprint_id=None}

    Raises:
        SprintNotFoundError: If sprint_id doesn't exist
    """
    with repository.transaction() as conn:
        sprint = repository.get_sprint(sprint_id, conn=conn)
        if not sprint:
            raise SprintNotFoundError(sprint_id)

        reset = []
        for item in repository.list_items_in_sprint(sprint_id, conn=conn):
            item.sprint_id = None
            item.status = ItemStatus.BACKLOG
            reset.append(repository.update_backlog_item(item, conn=conn))

        repository.delete_sprint(sprint_id, conn=conn)

    logger.info("Deleted sprint #%s, %d item(s) back to backlog", sprint_id, len(reset))
    return reset


# --- Membership ---


def _load_story(item_id: int, conn) -> BacklogItem:
    item = repository.get_backlog_item(item_id, conn=conn)
    if not item:
        raise ItemNotFoundError(item_id)
    if item.type != IssueType.STORY:
        raise ValidationError(
            f"Only stories can join a sprint; {item.type} #{item.id} "
            "follows its parent story"
        )
    return item


def _require_active(tutorial: bool, conn) -> Sprint:
    sprint = repository.get_active_sprint(tutorial, conn=conn)
    if not sprint:
        raise ConflictError("There is no active sprint. Create one first")
    return sprint


def _detach_story(item: BacklogItem, keep_sprint_id: Optional[int], conn) -> List[int]:
    """Drop the Story from every sprint's item_ids except keep_sprint_id."""
    detached = []
    for sprint in repository.list_sprints(item.is_tutorial, conn=conn):
        if sprint.id == keep_sprint_id or item.id not in sprint.item_ids:
            continue
        sprint.item_ids = [i for i in sprint.item_ids if i != item.id]
        repository.update_sprint(sprint, conn=conn)
        detached.append(sprint.id)
    return detached


def add_item_to_sprint(item_id: int) -> BacklogItem:
    """
    Add a Story to the active sprint of its partition.

    Args:
        item_id: Story to add

    Returns:
        The updated Story (status Todo, sprint_id set)

    Raises:
        ItemNotFoundError: If item_id doesn't exist
        ValidationError: If the item is not a Story
        ConflictError: If no sprint is active

    Notes:
        - Set semantics: adding a current member changes nothing
        - A Story carried over from an archived sprint moves: it leaves
          the old sprint's item_ids, so only one sprint lists it
        - The Story's Tasks/Bugs join with status Todo in the same transaction
    """
    with repository.transaction() as conn:
        item = _load_story(item_id, conn)
        sprint = _require_active(item.is_tutorial, conn)

        if item.sprint_id == sprint.id and item.id in sprint.item_ids:
            return item

        moved_from = _detach_story(item, sprint.id, conn)
        if moved_from:
            logger.info("Story #%s carried over from sprint(s) %s", item.id, moved_from)

        if item.id not in sprint.item_ids:
            sprint.item_ids.append(item.id)
            repository.update_sprint(sprint, conn=conn)

        item.sprint_id = sprint.id
        item.status = ItemStatus.TODO
        item = repository.update_backlog_item(item, conn=conn)

        cascade_sprint_assignment(item.id, sprint.id, conn=conn)

    logger.info("Added story #%s to sprint #%s", item.id, sprint.id)
    return item


def remove_item_from_sprint(item_id: int) -> BacklogItem:
    """
    Return a Story to the backlog.

    Returns:
        The updated Story (status Backlog, sprint_id None)

    Raises:
        ItemNotFoundError: If item_id doesn't exist
        ValidationError: If the item is not a Story
        ConflictError: If no sprint is active

    Notes:
        - Any membership is cleared, including one left over from an
          archived sprint
        - Removing a Story that is not a member is a no-op, so calling
          this twice ends in the same state as calling it once
        - The Story's Tasks/Bugs return to the Backlog in the same transaction
    """
    with repository.transaction() as conn:
        item = _load_story(item_id, conn)
        _require_active(item.is_tutorial, conn)
        previous = item.sprint_id

        detached = _detach_story(item, None, conn)
        if not detached and item.sprint_id is None:
            return item

        item.sprint_id = None
        item.status = ItemStatus.BACKLOG
        item = repository.update_backlog_item(item, conn=conn)

        cascade_sprint_assignment(item.id, None, conn=conn)

    logger.info("Removed story #%s from sprint #%s", item.id, previous)
    return item


# --- Reporting ---


@dataclass
class SprintSummary:
    """Counts shown on the board header and on archive cards."""

    stories: int = 0
    stories_done: int = 0
    points: int = 0
    points_done: int = 0
    tasks_by_status: Dict[str, int] = field(default_factory=dict)

    @property
    def task_count(self) -> int:
        return sum(self.tasks_by_status.values())


def sprint_summary(sprint: Sprint, items: Iterable[BacklogItem]) -> SprintSummary:
    """
    Summarize a sprint from a partition's items.

    Args:
        sprint: Active or archived sprint
        items: All items of the sprint's partition (e.g. a view cache)

    Returns:
        SprintSummary with story completion, points and task counts per status
    """
    items = list(items)
    members = [i for i in items if i.id in sprint.item_ids]
    member_ids = {i.id for i in members}
    tasks = [
        i for i in items
        if i.type in (IssueType.TASK, IssueType.BUG) and i.parent_id in member_ids
    ]

    summary = SprintSummary(
        stories=len(members),
        stories_done=sum(1 for i in members if i.status == ItemStatus.DONE),
        points=sum(i.story_points for i in members),
        points_done=sum(i.story_points for i in members if i.status == ItemStatus.DONE),
    )
    for status in ItemStatus:
        if status == ItemStatus.BACKLOG:
            continue
        summary.tasks_by_status[status.value] = sum(1 for t in tasks if t.status == status)

    return summary
