"""
FILE: taskly/core/service.py
PURPOSE: Business logic layer for backlog item operations
EXPORTS:
  - parse_type(value) -> IssueType
  - parse_status(value) -> ItemStatus
  - list_items(tutorial) -> List[BacklogItem]
  - get_item(item_id) -> BacklogItem
  - create_item(title, item_type, parent_id, description, story_points, tutorial) -> BacklogItem
  - update_item(item_id, title, description, story_points, priority, status, parent_id) -> BacklogItem
  - delete_item(item_id) -> None
  - advance_item(item_id) -> BacklogItem
  - revert_item(item_id) -> BacklogItem
  - clean(tutorial_only) -> None
DEPENDENCIES:
  - taskly.core.repository (store access, transactions)
  - taskly.core.hierarchy (validation)
  - taskly.core.cascade (inheritance and delete cleanup)
  - taskly.core.exceptions (ValidationError, ConflictError, ItemNotFoundError)
  - logging (stdlib)
NOTES:
  - All functions validate input and raise descriptive errors before writing
  - No direct SQL (use repository layer)
  - Returns domain objects, never dicts or raw SQL results
  - Sprint membership is changed only through taskly.core.lifecycle;
    update_item never touches sprint_id directly except when re-parenting
    a Task/Bug, which follows its new Story
"""

import logging
from typing import List, Optional

from . import repository
from .cascade import inherited_sprint_state, on_item_deleted, on_item_reparented
from .constants import DEFAULT_STORY_POINTS
from .exceptions import ConflictError, ItemNotFoundError, ValidationError
from .hierarchy import (
    next_status,
    parse_issue_type,
    previous_status,
    validate_parent,
    validate_story_points,
    validate_title,
)
from .models import BacklogItem, IssueType, ItemStatus


logger = logging.getLogger(__name__)

# Sentinel for "parent_id not given" (None means "no parent")
_UNSET = object()


def parse_type(item_type) -> IssueType:
    """Parse an issue type case-insensitively ('story' -> IssueType.STORY)."""
    return parse_issue_type(item_type)


def parse_status(status) -> ItemStatus:
    if isinstance(status, ItemStatus):
        return status
    lookup = {s.value.lower(): s for s in ItemStatus}
    key = str(status).replace(" ", "").replace("_", "").replace("-", "").lower()
    if key not in lookup:
        valid = ", ".join(s.value for s in ItemStatus)
        raise ValidationError(f"Invalid status '{status}'. Must be one of: {valid}")
    return lookup[key]


def list_items(tutorial: bool = False) -> List[BacklogItem]:
    """List every backlog item of a partition, ordered by id."""
    return repository.list_backlog_items(tutorial)


def get_item(item_id: int) -> BacklogItem:
    """
    Fetch a backlog item.

    Raises:
        ItemNotFoundError: If item_id doesn't exist
    """
    item = repository.get_backlog_item(item_id)
    if not item:
        raise ItemNotFoundError(item_id)
    return item


def create_item(
    title: str,
    item_type,
    parent_id: Optional[int] = None,
    description: Optional[str] = None,
    story_points: int = DEFAULT_STORY_POINTS,
    tutorial: bool = False,
) -> BacklogItem:
    """
    Create a new backlog item with validation.

    Args:
        title: Item title (required, must not be empty)
        item_type: Epic, Story, Task or Bug (case-insensitive)
        parent_id: Epic for a Story, Story for a Task/Bug, None for an Epic
        description: Optional description
        story_points: Estimate, 0..21
        tutorial: Partition the item belongs to

    Returns:
        Newly created BacklogItem

    Raises:
        ValidationError: Empty title, bad type/points, or a parent that
            breaks the Epic -> Story -> Task|Bug hierarchy
        ItemNotFoundError: If parent_id doesn't exist

    Notes:
        - New items start in the Backlog, except children of an in-sprint
          Story, which join that sprint as Todo
        - Priority defaults to the end of the partition's backlog
    """
    title = validate_title(title)
    item_type = parse_type(item_type)
    story_points = validate_story_points(story_points)
    description = (description or "").strip()

    with repository.transaction() as conn:
        parent = None
        if parent_id is not None:
            parent = repository.get_backlog_item(parent_id, conn=conn)
            if not parent:
                raise ItemNotFoundError(parent_id)

        validate_parent(item_type, parent, tutorial)
        status, sprint_id = inherited_sprint_state(parent)

        item = repository.create_backlog_item(
            title=title,
            item_type=item_type,
            description=description,
            story_points=story_points,
            priority=repository.count_backlog_items(tutorial, conn=conn) + 1,
            status=status,
            sprint_id=sprint_id,
            parent_id=parent_id,
            is_tutorial=tutorial,
            conn=conn,
        )

    logger.info("Created %s #%s '%s'", item.type, item.id, item.title)
    return item


def update_item(
    item_id: int,
    title: Optional[str] = None,
    description: Optional[str] = None,
    story_points: Optional[int] = None,
    priority: Optional[int] = None,
    status=None,
    parent_id=_UNSET,
) -> BacklogItem:
    """
    Edit a backlog item in place.

    Args:
        item_id: Item to update
        title / description / story_points / priority: New values, or None
            to keep the current one
        status: Any workflow status (direct edit, no stepping rules)
        parent_id: New parent; omit to keep the current parent

    Returns:
        Updated BacklogItem

    Raises:
        ItemNotFoundError: If item_id or parent_id doesn't exist
        ValidationError: Bad values or an invalid new parent

    Notes:
        - A Task/Bug moved under another Story takes that Story's sprint
          membership
        - Type and sprint membership are not editable here
    """
    with repository.transaction() as conn:
        item = repository.get_backlog_item(item_id, conn=conn)
        if not item:
            raise ItemNotFoundError(item_id)

        if title is not None:
            item.title = validate_title(title)
        if description is not None:
            item.description = description.strip()
        if story_points is not None:
            item.story_points = validate_story_points(story_points)
        if priority is not None:
            item.priority = priority
        if status is not None:
            item.status = parse_status(status)

        if parent_id is not _UNSET and parent_id != item.parent_id:
            if parent_id == item.id:
                raise ValidationError("An item cannot be its own parent")

            new_parent = None
            if parent_id is not None:
                new_parent = repository.get_backlog_item(parent_id, conn=conn)
                if not new_parent:
                    raise ItemNotFoundError(parent_id)

            validate_parent(item.type, new_parent, item.is_tutorial)
            item.parent_id = parent_id
            on_item_reparented(item, new_parent)

        item = repository.update_backlog_item(item, conn=conn)

    return item


def delete_item(item_id: int) -> None:
    """
    Delete a backlog item permanently.

    Raises:
        ItemNotFoundError: If item_id doesn't exist

    Notes:
        - The item is detached from every sprint's item list
        - Deleting a Story orphans its Tasks/Bugs and returns them to the
          Backlog; deleting an Epic orphans its Stories
        - Everything happens in one transaction
    """
    with repository.transaction() as conn:
        item = repository.get_backlog_item(item_id, conn=conn)
        if not item:
            raise ItemNotFoundError(item_id)

        on_item_deleted(item, conn)
        repository.delete_backlog_item(item_id, conn=conn)

    logger.info("Deleted %s #%s", item.type, item_id)


# --- Sprint Board Workflow ---


def _step(item_id: int, forward: bool) -> BacklogItem:
    with repository.transaction() as conn:
        item = repository.get_backlog_item(item_id, conn=conn)
        if not item:
            raise ItemNotFoundError(item_id)

        active = repository.get_active_sprint(item.is_tutorial, conn=conn)
        if item.sprint_id is None or active is None or item.sprint_id != active.id:
            raise ConflictError(f"{item.type} #{item.id} is not in the active sprint")

        target = next_status(item.status) if forward else previous_status(item.status)
        if target is None:
            where = "last" if forward else "first"
            raise ValidationError(
                f"{item.type} #{item.id} is already at the {where} board stage ({item.status})"
            )

        item.status = target
        return repository.update_backlog_item(item, conn=conn)


def advance_item(item_id: int) -> BacklogItem:
    """
    Move an item one board stage forward (Todo -> InProgress -> Review -> Done).

    Raises:
        ItemNotFoundError: If item_id doesn't exist
        ConflictError: If the item isn't in the active sprint
        ValidationError: If the item is already Done
    """
    return _step(item_id, forward=True)


def revert_item(item_id: int) -> BacklogItem:
    """
    Move an item one board stage back (Done -> Review -> InProgress -> Todo).

    Raises:
        ItemNotFoundError: If item_id doesn't exist
        ConflictError: If the item isn't in the active sprint
        ValidationError: If the item is already at Todo
    """
    return _step(item_id, forward=False)


def clean(tutorial_only: bool = False) -> None:
    """Delete all items and sprints (only the tutorial partition if asked)."""
    repository.delete_all(tutorial_only=tutorial_only)
