"""
FILE: taskly/sync/__init__.py
PURPOSE: Cross-view synchronization (signal bus, per-view cache, revision watcher)
EXPORTS:
  - SignalBus, Subscription (from sync.bus)
  - ViewCache, ViewSnapshot (from sync.cache)
  - RevisionWatcher (from sync.watcher)
NOTES:
  - Contract: mutate store -> reload own cache -> broadcast; receivers
    replace their whole cache (no incremental diffing)
"""

from .bus import SignalBus, Subscription
from .cache import ViewCache, ViewSnapshot
from .watcher import RevisionWatcher

__all__ = [
    "SignalBus",
    "Subscription",
    "ViewCache",
    "ViewSnapshot",
    "RevisionWatcher",
]
