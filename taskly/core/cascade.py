"""
FILE: taskly/core/cascade.py
PURPOSE: Propagate sprint membership and status from a Story to its Tasks/Bugs
EXPORTS:
  - cascade_sprint_assignment(story_id, sprint_id, conn) -> List[BacklogItem]
  - inherited_sprint_state(parent) -> (ItemStatus, sprint_id)
  - on_item_reparented(item, new_parent) -> BacklogItem
  - on_item_deleted(item, conn) -> None
DEPENDENCIES:
  - taskly.core.repository (store access inside the caller's transaction)
  - taskly.core.models (BacklogItem, IssueType, ItemStatus)
  - logging (stdlib)
NOTES:
  - Tasks/Bugs never hold sprint membership independently of their Story
  - Every function that writes takes the caller's connection so the whole
    cascade commits or rolls back with the triggering change
  - Re-running a cascade with the same target converges (plain assignment,
    no increments)
  - Orphan policy: deleting a Story strips sprint membership from its
    children (status Backlog, sprint_id NULL) before they lose their parent
"""

import logging
import sqlite3
from typing import List, Optional, Tuple

from . import repository
from .models import BacklogItem, IssueType, ItemStatus


logger = logging.getLogger(__name__)

_LEAF_TYPES = (IssueType.TASK, IssueType.BUG)


def _membership_status(sprint_id: Optional[int]) -> ItemStatus:
    return ItemStatus.TODO if sprint_id is not None else ItemStatus.BACKLOG


def cascade_sprint_assignment(
    story_id: int,
    sprint_id: Optional[int],
    conn: Optional[sqlite3.Connection] = None,
) -> List[BacklogItem]:
    """
    Give every Task/Bug of a Story the Story's new sprint membership.

    Args:
        story_id: Story whose membership changed
        sprint_id: New sprint (assigning) or None (clearing)
        conn: Open transaction to join; a new one is opened if omitted

    Returns:
        The updated children

    Notes:
        - Assigning sets status Todo, clearing sets status Backlog
        - All children are written before the transaction commits, so no
          reader ever sees a half-cascaded Story
    """
    if conn is None:
        with repository.transaction() as own:
            return cascade_sprint_assignment(story_id, sprint_id, conn=own)

    status = _membership_status(sprint_id)
    updated = []

    for child in repository.list_children(story_id, conn=conn):
        if child.type not in _LEAF_TYPES:
            continue
        child.sprint_id = sprint_id
        child.status = status
        updated.append(repository.update_backlog_item(child, conn=conn))

    if updated:
        logger.info(
            "Cascaded sprint %s to %d child item(s) of story #%s",
            sprint_id, len(updated), story_id,
        )
    return updated


def inherited_sprint_state(
    parent: Optional[BacklogItem],
) -> Tuple[ItemStatus, Optional[int]]:
    """
    Status and sprint a new child starts with.

    An item created under a parent that is in a sprint joins that sprint
    immediately with status Todo; anything else starts in the Backlog.
    """
    if parent is not None and parent.sprint_id is not None:
        return ItemStatus.TODO, parent.sprint_id
    return ItemStatus.BACKLOG, None


def on_item_reparented(
    item: BacklogItem,
    new_parent: Optional[BacklogItem],
) -> BacklogItem:
    """
    Align a Task/Bug's sprint state with the Story it was moved under.

    Returns:
        The same item object, modified in place (not persisted)

    Notes:
        - Moving under an in-sprint Story joins that sprint (Todo), unless
          the item is already in it, in which case its status is kept
        - Moving under a Story outside any sprint drops the item back to
          the Backlog
        - Stories moved between Epics keep their own membership
    """
    if item.type not in _LEAF_TYPES:
        return item

    target_sprint = new_parent.sprint_id if new_parent is not None else None
    if item.sprint_id == target_sprint:
        return item

    item.sprint_id = target_sprint
    item.status = _membership_status(target_sprint)
    return item


def on_item_deleted(
    item: BacklogItem,
    conn: sqlite3.Connection,
) -> None:
    """
    Clean up references to an item that is about to be deleted.

    Args:
        item: The item being deleted (still present in the store)
        conn: The transaction the delete runs in

    Notes:
        - Removes the id from every sprint's item_ids in its partition
        - Story: children become orphans and leave any sprint
        - Epic: Stories become orphans, their own sprint state is kept
    """
    for sprint in repository.list_sprints(item.is_tutorial, conn=conn):
        if item.id in sprint.item_ids:
            sprint.item_ids = [i for i in sprint.item_ids if i != item.id]
            repository.update_sprint(sprint, conn=conn)
            logger.info("Detached #%s from sprint %s", item.id, sprint.id)

    for child in repository.list_children(item.id, conn=conn):
        child.parent_id = None
        if item.type == IssueType.STORY and child.sprint_id is not None:
            child.sprint_id = None
            child.status = ItemStatus.BACKLOG
        repository.update_backlog_item(child, conn=conn)
