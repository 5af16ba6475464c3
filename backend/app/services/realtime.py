"""
In-process real-time push hub.

Each websocket connection subscribes to a set of destinations and receives
messages through its own bounded ``asyncio.Queue``. Publishing never blocks:
a message for a full queue is dropped and logged, and destinations without
subscribers simply discard the message. Publishers running outside the
subscriber's event loop (threadpool background tasks) hand the message over
with ``call_soon_threadsafe``.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Set

from app.core.config import settings

logger = logging.getLogger("realtime")

TOPIC_NEW_JOBS = "/topic/new-jobs"
TOPIC_JOB_UPDATES = "/topic/job-updates"
TOPIC_RECRUITERS = "/topic/recruiters"
TOPIC_NOTIFICATIONS = "/topic/notifications"

BROADCAST_TOPICS = (TOPIC_NEW_JOBS, TOPIC_JOB_UPDATES, TOPIC_RECRUITERS, TOPIC_NOTIFICATIONS)


def user_destination(user_id: int) -> str:
    """Private point-to-point destination of one user."""
    return f"/user/{user_id}/queue/notifications"


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


@dataclass(eq=False)
class Subscription:
    destinations: Set[str]
    queue: asyncio.Queue
    loop: Optional[asyncio.AbstractEventLoop] = None
    dropped: int = field(default=0)

    def offer(self, message: Dict[str, Any]) -> bool:
        try:
            self.queue.put_nowait(message)
            return True
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning("Dropped push to %s: subscriber queue full", message.get("destination"))
            return False


class RealtimeHub:
    def __init__(self, queue_size: Optional[int] = None) -> None:
        self.queue_size = queue_size or settings.REALTIME_QUEUE_SIZE
        self._subscribers: Dict[str, Set[Subscription]] = {}

    def subscribe(self, destinations: Iterable[str]) -> Subscription:
        subscription = Subscription(
            destinations=set(destinations),
            queue=asyncio.Queue(maxsize=self.queue_size),
            loop=_running_loop(),
        )
        for destination in subscription.destinations:
            self._subscribers.setdefault(destination, set()).add(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        for destination in subscription.destinations:
            subscribers = self._subscribers.get(destination)
            if not subscribers:
                continue
            subscribers.discard(subscription)
            if not subscribers:
                del self._subscribers[destination]

    def subscriber_count(self, destination: str) -> int:
        return len(self._subscribers.get(destination, ()))

    def publish(self, destination: str, payload: Dict[str, Any]) -> int:
        """
        Offer a message to every subscriber of a destination.

        Returns the number of subscribers the message was handed to.
        """
        message = {"destination": destination, "payload": payload}
        current_loop = _running_loop()
        delivered = 0

        for subscription in list(self._subscribers.get(destination, ())):
            loop = subscription.loop
            if loop is None or loop is current_loop:
                delivered += int(subscription.offer(message))
            elif loop.is_closed():
                logger.warning("Dropped push to %s: subscriber loop closed", destination)
            else:
                loop.call_soon_threadsafe(subscription.offer, message)
                delivered += 1

        return delivered

    def send_to_user(self, user_id: int, payload: Dict[str, Any]) -> int:
        return self.publish(user_destination(user_id), payload)


hub = RealtimeHub()
