"""
FILE: taskly/sync/bus.py
PURPOSE: In-process publish/subscribe signal bus shared by the views
EXPORTS:
  - Subscription (dataclass, unsubscribe token)
  - SignalBus (class)
DEPENDENCIES:
  - dataclasses (stdlib)
  - itertools (stdlib)
  - logging (stdlib)
NOTES:
  - Fire-and-forget: publish() calls every handler of the topic
    synchronously, in subscription order, and keeps no queue
  - A handler that raises is logged and skipped; the others still run
  - Handlers may unsubscribe (themselves or others) while a publish is
    in progress
  - One bus is created by the host (REPL, tests) and passed to each view;
    there is no module-level instance
"""

import itertools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Tuple


logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


@dataclass(frozen=True)
class Subscription:
    """Token returned by subscribe(); pass it to unsubscribe()."""

    topic: str
    token: int


class SignalBus:
    """Topic-keyed broadcast channel between independently-rendered views."""

    def __init__(self):
        self._handlers: Dict[str, Dict[int, Handler]] = {}
        self._tokens = itertools.count(1)
        self.published = 0

    def subscribe(self, topic: str, handler: Handler) -> Subscription:
        token = next(self._tokens)
        self._handlers.setdefault(topic, {})[token] = handler
        return Subscription(topic=topic, token=token)

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a handler. Unknown or already-removed tokens are ignored."""
        handlers = self._handlers.get(subscription.topic)
        if handlers:
            handlers.pop(subscription.token, None)

    def publish(self, topic: str, payload: Any = None) -> int:
        """
        Broadcast a payload to every subscriber of a topic.

        Args:
            topic: Topic name (see taskly.core.constants TOPIC_*)
            payload: Anything; handlers agree on its shape per topic

        Returns:
            Number of handlers that ran without raising
        """
        self.published += 1
        current = self._handlers.get(topic, {})
        handlers: List[Tuple[int, Handler]] = list(current.items())
        delivered = 0

        for token, handler in handlers:
            if token not in current:
                continue
            try:
                handler(payload)
            except Exception:
                logger.exception("Handler for '%s' failed", topic)
                continue
            delivered += 1

        logger.debug("Published '%s' to %d/%d handler(s)", topic, delivered, len(handlers))
        return delivered

    def subscriber_count(self, topic: str) -> int:
        return len(self._handlers.get(topic, {}))
