import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional

from fastapi import Request

logger = logging.getLogger(__name__)


@dataclass
class Subscriber:
    """
    One connected notification stream.
    """
    user_id: int
    role: str
    queue: asyncio.Queue
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class NotificationBroker:
    """
    In-process fan-out of lifecycle event strings to connected sessions.

    publish() is fire-and-forget: it never blocks and never raises, and a
    subscriber whose queue is full simply misses the event.
    """

    def __init__(self, queue_size: int = 100):
        self._queue_size = queue_size
        self._subscribers: Dict[str, Subscriber] = {}

    def subscribe(self, user_id: int, role: str) -> Subscriber:
        subscriber = Subscriber(user_id=user_id, role=role, queue=asyncio.Queue(maxsize=self._queue_size))
        self._subscribers[subscriber.id] = subscriber
        logger.info("Notification subscriber %s connected (user=%s, role=%s)", subscriber.id, user_id, role)
        return subscriber

    def unsubscribe(self, subscriber: Subscriber) -> None:
        if self._subscribers.pop(subscriber.id, None) is not None:
            logger.info("Notification subscriber %s disconnected (user=%s)", subscriber.id, subscriber.user_id)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: str, target_user_ids: Optional[Iterable[int]] = None) -> int:
        """
        Deliver an event to every subscriber, or only to the given users.
        Returns the number of subscribers the event was queued for.
        """
        delivered = 0
        try:
            targets = set(target_user_ids) if target_user_ids is not None else None
            # Snapshot: subscribers may disconnect while we iterate
            for subscriber in list(self._subscribers.values()):
                if targets is not None and subscriber.user_id not in targets:
                    continue
                try:
                    subscriber.queue.put_nowait(event)
                    delivered += 1
                except asyncio.QueueFull:
                    logger.warning("Dropping event %r for slow subscriber %s", event, subscriber.id)
        except Exception:
            logger.exception("Failed to publish event %r", event)
        logger.debug("Published %r to %d subscriber(s)", event, delivered)
        return delivered


def get_notifier(request: Request) -> NotificationBroker:
    """
    FastAPI dependency returning the application's broker (created in main.create_app).
    """
    return request.app.state.notifier
