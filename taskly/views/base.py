"""
FILE: taskly/views/base.py
PURPOSE: Shared plumbing for the view controllers (cache, bus subscriptions, perform)
EXPORTS:
  - BaseView (class)
DEPENDENCIES:
  - taskly.sync (SignalBus, ViewCache, ViewSnapshot)
  - taskly.core.service (partition checks)
  - taskly.core.exceptions (ValidationError)
  - logging (stdlib)
NOTES:
  - Every mutation goes through perform(): mutate store -> reload own
    cache -> broadcast
  - A failing mutation raises before the cache is touched, so the view
    keeps showing the last good state
  - Refreshes for the other partition are ignored
  - close() must be called when a view goes away, or the bus keeps
    calling it
"""

import logging
from typing import Any, Callable, List, Optional

from ..core import service
from ..core.constants import TOPIC_REFRESH, TOPIC_SNAPSHOT
from ..core.exceptions import ValidationError
from ..core.models import BacklogItem
from ..sync.bus import SignalBus, Subscription
from ..sync.cache import ViewCache, ViewSnapshot


logger = logging.getLogger(__name__)


class BaseView:
    """
    A view controller that owns a cache and listens on the bus.

    Attributes:
        name: Short name used by the REPL 'view' command
        bus: Signal bus shared with the other views
        tutorial: Partition this view works on
        cache: This view's private copy of the partition
        share_snapshots: Broadcast the new cache contents (TOPIC_SNAPSHOT)
            instead of asking every view to reload (TOPIC_REFRESH)
        refreshes: Broadcasts from elsewhere that replaced the cache
    """

    name = "view"
    title = "View"

    def __init__(self, bus: SignalBus, tutorial: bool = False, share_snapshots: bool = False):
        self.bus = bus
        self.tutorial = tutorial
        self.share_snapshots = share_snapshots
        self.cache = ViewCache(tutorial)
        self.refreshes = 0
        self._broadcasting = False

        self.cache.reload()
        self._subscriptions: List[Subscription] = [
            bus.subscribe(TOPIC_REFRESH, self._on_refresh),
            bus.subscribe(TOPIC_SNAPSHOT, self._on_snapshot),
        ]

    # --- Bus handlers ---

    def _on_refresh(self, partition: Optional[bool]) -> None:
        if self._broadcasting:
            return
        if partition is not None and partition != self.tutorial:
            return
        self.cache.reload()
        self.refreshes += 1
        self.on_refreshed()

    def _on_snapshot(self, snapshot: ViewSnapshot) -> None:
        if self._broadcasting:
            return
        if self.cache.apply(snapshot):
            self.refreshes += 1
            self.on_refreshed()

    def on_refreshed(self) -> None:
        """Hook for subclasses that derive state from the cache."""

    # --- Mutations ---

    def perform(self, operation: Callable[..., Any], *args, **kwargs) -> Any:
        """
        Run a store mutation and propagate it to every view.

        Args:
            operation: A service/lifecycle function
            *args, **kwargs: Passed to operation

        Returns:
            Whatever operation returned

        Raises:
            TasklyError: From the operation; nothing is reloaded or broadcast
        """
        result = operation(*args, **kwargs)
        self.cache.reload()
        self.broadcast()
        return result

    def broadcast(self) -> int:
        """Tell the other views the partition changed. Returns handlers reached."""
        self._broadcasting = True
        try:
            if self.share_snapshots:
                return self.bus.publish(TOPIC_SNAPSHOT, self.cache.snapshot())
            return self.bus.publish(TOPIC_REFRESH, self.tutorial)
        finally:
            self._broadcasting = False

    def close(self) -> None:
        for subscription in self._subscriptions:
            self.bus.unsubscribe(subscription)
        self._subscriptions = []

    # --- Helpers ---

    def own_item(self, item_id: int) -> BacklogItem:
        """
        Fetch an item and check it belongs to this view's partition.

        Raises:
            ItemNotFoundError: If item_id doesn't exist
            ValidationError: If the item is in the other partition
        """
        item = service.get_item(item_id)
        if item.is_tutorial != self.tutorial:
            where = "tutorial" if item.is_tutorial else "main"
            raise ValidationError(f"{item.type} #{item.id} belongs to the {where} data")
        return item

    def render(self, console) -> None:
        raise NotImplementedError
