"""In-process publish/subscribe for lifecycle notifications.

One logical channel, any number of observers. ``publish`` delivers to the
observers subscribed at the moment of the call, once each, with no retry and
no replay. Publishing happens from FastAPI's threadpool while websocket
observers live on the event loop, so the subscriber set is guarded by a lock
and ``publish`` iterates a snapshot.
"""

from __future__ import annotations

import enum
import itertools
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

Message = dict[str, Any]
Deliver = Callable[[Message], None]


class MessageType(str, enum.Enum):
    NEW_EVENT = "NEW_EVENT"
    UPDATE_EVENT = "UPDATE_EVENT"
    DELETE_EVENT = "DELETE_EVENT"
    APPROVE_EVENT = "APPROVE_EVENT"
    NEW_RSVP = "NEW_RSVP"


def make_message(message_type: MessageType, payload: Any) -> Message:
    return {"type": MessageType(message_type).value, "payload": payload}


@dataclass(eq=False)
class Subscription:
    id: int
    deliver: Deliver = field(repr=False)
    label: str | None = None


class Broadcaster:
    def __init__(self, channel: str = "events") -> None:
        self.channel = channel
        self._lock = threading.Lock()
        self._subscribers: dict[int, Subscription] = {}
        self._ids = itertools.count(1)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self, deliver: Deliver, label: str | None = None) -> Subscription:
        with self._lock:
            subscription = Subscription(id=next(self._ids), deliver=deliver, label=label)
            self._subscribers[subscription.id] = subscription
            count = len(self._subscribers)
        logger.info(
            "realtime_subscribed",
            channel=self.channel,
            subscription_id=subscription.id,
            label=label,
            subscribers=count,
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            removed = self._subscribers.pop(subscription.id, None)
            count = len(self._subscribers)
        if removed is not None:
            logger.info(
                "realtime_unsubscribed",
                channel=self.channel,
                subscription_id=subscription.id,
                label=subscription.label,
                subscribers=count,
            )

    def publish(self, message: Message) -> int:
        """Deliver ``message`` to every current subscriber. Returns how many accepted it."""
        with self._lock:
            snapshot = list(self._subscribers.values())

        delivered = 0
        for subscription in snapshot:
            try:
                subscription.deliver(message)
            except Exception:
                # At-most-once: a failing observer is skipped, never retried.
                logger.exception(
                    "realtime_delivery_failed",
                    channel=self.channel,
                    subscription_id=subscription.id,
                    message_type=message.get("type"),
                )
                continue
            delivered += 1

        logger.debug(
            "realtime_published",
            channel=self.channel,
            message_type=message.get("type"),
            delivered=delivered,
        )
        return delivered
