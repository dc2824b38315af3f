"""
FILE: taskly/sync/watcher.py
PURPOSE: Detect writes made by other processes and turn them into refresh signals
EXPORTS:
  - RevisionWatcher (class)
DEPENDENCIES:
  - taskly.core.repository (get_revision, local_commit_count)
  - taskly.sync.bus (SignalBus)
  - logging (stdlib)
NOTES:
  - Every write transaction bumps meta.revision in the database by one
  - poll() compares it with the last value seen and publishes TOPIC_REFRESH
    (payload None = both partitions) when it moved
  - settle() runs after a command: the revision may move by this process's
    own commits only; anything beyond that came from another process
  - The REPL polls before each command and settles after it, so a one-shot
    CLI call in another terminal shows up in the views even when it lands
    while a command runs
"""

import logging
from typing import Optional

from ..core import repository
from ..core.constants import TOPIC_REFRESH
from .bus import SignalBus


logger = logging.getLogger(__name__)


class RevisionWatcher:
    """Poll the store's write counter and broadcast a refresh on change."""

    def __init__(self, bus: SignalBus):
        self.bus = bus
        self._seen: Optional[int] = None
        self._local = repository.local_commit_count()

    def _remember(self, revision: int) -> None:
        self._seen = revision
        self._local = repository.local_commit_count()

    def _publish(self, revision: int) -> None:
        logger.debug("Store revision %s -> %s", self._seen, revision)
        self._remember(revision)
        self.bus.publish(TOPIC_REFRESH, None)

    def mark_seen(self) -> None:
        """Accept the current revision without publishing."""
        self._remember(repository.get_revision())

    def poll(self) -> bool:
        """
        Publish a refresh if the store changed since the last poll.

        Returns:
            True if a refresh was published
        """
        revision = repository.get_revision()
        if self._seen is None:
            self._remember(revision)
            return False

        if revision == self._seen:
            self._remember(revision)
            return False

        self._publish(revision)
        return True

    def settle(self) -> bool:
        """
        Accept this process's own writes since the last check.

        The views that made those writes already reloaded and broadcast,
        so only a revision beyond them triggers a refresh.

        Returns:
            True if another process wrote in between and a refresh was published
        """
        revision = repository.get_revision()
        if self._seen is None:
            self._remember(revision)
            return False

        expected = self._seen + (repository.local_commit_count() - self._local)
        if revision == expected:
            self._remember(revision)
            return False

        self._publish(revision)
        return True
