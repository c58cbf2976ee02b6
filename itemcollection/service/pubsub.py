# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

__all__ = ("PubSub",)

logger = logging.getLogger(__name__)

Subscriber = Callable[[Any], None]


class PubSub:
    """Synchronous in-process pub/sub, one instance per owner.

    Subscribers are called in subscription order on the publishing thread.
    A failing subscriber is logged and does not prevent the remaining ones
    from being called.

    Example::

        bus = PubSub()
        unsubscribe = bus.subscribe("change", print)
        bus.publish("change", {"size": 1})
        unsubscribe()
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Subscriber]] = defaultdict(list)

    def subscribe(self, topic: str, callback: Subscriber) -> Callable[[], None]:
        """Register a callback for a topic (idempotent).

        Returns:
            A zero-argument function removing the subscription.
        """
        if callback not in self._subscribers[topic]:
            self._subscribers[topic].append(callback)

        def unsubscribe() -> None:
            self.unsubscribe(topic, callback)

        return unsubscribe

    def unsubscribe(self, topic: str, callback: Subscriber) -> None:
        """Remove a callback from a topic (idempotent)."""
        subscribers = self._subscribers.get(topic)
        if subscribers and callback in subscribers:
            subscribers.remove(callback)
            if not subscribers:
                del self._subscribers[topic]

    def publish(self, topic: str, payload: Any) -> None:
        # copy so callbacks may (un)subscribe while being notified
        for callback in list(self._subscribers.get(topic, ())):
            try:
                callback(payload)
            except Exception as e:
                logger.error(
                    f"Subscriber {getattr(callback, '__name__', repr(callback))} "
                    f"failed for topic '{topic}': {e}",
                    exc_info=True,
                )

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, ()))

    def has_subscribers(self, topic: str) -> bool:
        return bool(self._subscribers.get(topic))
