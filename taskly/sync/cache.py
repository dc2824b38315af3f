"""
FILE: taskly/sync/cache.py
PURPOSE: Per-view client-side store of items, current sprint and archived sprints
EXPORTS:
  - ViewSnapshot (dataclass, typed broadcast payload)
  - ViewCache (class)
DEPENDENCIES:
  - taskly.core.repository (read_transaction and queries)
  - taskly.core.models (BacklogItem, Sprint, IssueType)
  - copy, dataclasses (stdlib)
  - logging (stdlib)
NOTES:
  - Every view owns one cache; nothing is shared between views
  - reload() replaces the whole cache from one consistent read of the
    store (no incremental diffing)
  - apply() replaces the whole cache from a snapshot another view broadcast
  - A cache only holds one partition (is_tutorial); foreign snapshots are
    ignored
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..core import repository
from ..core.models import BacklogItem, IssueType, Sprint


logger = logging.getLogger(__name__)


@dataclass
class ViewSnapshot:
    """Complete view state of one partition at one point in time."""

    tutorial: bool
    backlog_items: List[BacklogItem] = field(default_factory=list)
    current_sprint: Optional[Sprint] = None
    archived_sprints: List[Sprint] = field(default_factory=list)


class ViewCache:
    """
    In-memory copy of a partition, owned by a single view.

    Attributes:
        tutorial: Partition this cache mirrors
        backlog_items: All items of the partition, ordered by id
        current_sprint: The active sprint, or None
        archived_sprints: Archived sprints, newest first
        reloads: How many times the cache was replaced (reload or apply)
    """

    def __init__(self, tutorial: bool = False):
        self.tutorial = tutorial
        self.backlog_items: List[BacklogItem] = []
        self.current_sprint: Optional[Sprint] = None
        self.archived_sprints: List[Sprint] = []
        self.reloads = 0

    def reload(self) -> ViewSnapshot:
        """
        Re-read the partition from the store and replace the cache.

        Returns:
            The snapshot now held by the cache

        Raises:
            StoreError: If the store can't be read (cache left unchanged)
        """
        with repository.read_transaction() as conn:
            items = repository.list_backlog_items(self.tutorial, conn=conn)
            sprints = repository.list_sprints(self.tutorial, conn=conn)

        active = [s for s in sprints if not s.is_archived]
        archived = sorted(
            (s for s in sprints if s.is_archived),
            key=lambda s: s.id,
            reverse=True,
        )
        snapshot = ViewSnapshot(
            tutorial=self.tutorial,
            backlog_items=items,
            current_sprint=active[-1] if active else None,
            archived_sprints=archived,
        )
        self._replace(snapshot)
        return snapshot

    def apply(self, snapshot: ViewSnapshot) -> bool:
        """
        Replace the cache from a broadcast snapshot.

        Returns:
            True if applied, False if the snapshot is for another partition
        """
        if snapshot.tutorial != self.tutorial:
            return False
        # Each view gets its own objects; never alias another view's cache
        self._replace(copy.deepcopy(snapshot))
        return True

    def snapshot(self) -> ViewSnapshot:
        return ViewSnapshot(
            tutorial=self.tutorial,
            backlog_items=list(self.backlog_items),
            current_sprint=self.current_sprint,
            archived_sprints=list(self.archived_sprints),
        )

    def _replace(self, snapshot: ViewSnapshot) -> None:
        self.backlog_items = list(snapshot.backlog_items)
        self.current_sprint = snapshot.current_sprint
        self.archived_sprints = list(snapshot.archived_sprints)
        self.reloads += 1
        logger.debug(
            "Cache (tutorial=%s) now holds %d item(s), sprint=%s, %d archived",
            self.tutorial,
            len(self.backlog_items),
            self.current_sprint.id if self.current_sprint else None,
            len(self.archived_sprints),
        )

    # --- Lookups over the cached state ---

    def get_item(self, item_id: int) -> Optional[BacklogItem]:
        return next((i for i in self.backlog_items if i.id == item_id), None)

    def items_of_type(self, item_type: IssueType) -> List[BacklogItem]:
        return [i for i in self.backlog_items if i.type == item_type]

    def sprint_stories(self, sprint: Optional[Sprint] = None) -> List[BacklogItem]:
        """Stories listed in a sprint (the current one by default), ordered by id."""
        sprint = sprint or self.current_sprint
        if sprint is None:
            return []
        return [
            i for i in self.backlog_items
            if i.id in sprint.item_ids and i.type == IssueType.STORY
        ]
