"""
In-process change feed for notifications.

Every write to a recipient's notifications bumps that recipient's version and
pushes a NotificationEvent to the recipient's subscriber queues. Clients either
compare versions (cheap polling) or hold a websocket fed from a queue.
"""

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional
from uuid import UUID

logger = logging.getLogger(__name__)

EVENT_CREATED = "created"
EVENT_READ = "read"
EVENT_READ_ALL = "read_all"
EVENT_DELETED = "deleted"
EVENT_CLEANED = "cleaned"


@dataclass(frozen=True)
class NotificationEvent:
    kind: str
    recipient_user_id: UUID
    version: int
    notification_id: Optional[UUID] = None

    def as_dict(self) -> dict:
        return {
            "kind": self.kind,
            "recipient_user_id": str(self.recipient_user_id),
            "version": self.version,
            "notification_id": str(self.notification_id) if self.notification_id else None,
        }


class NotificationHub:
    """Per-recipient version counters and subscriber queues."""

    def __init__(self, queue_size: int = 100) -> None:
        self._versions: Dict[UUID, int] = defaultdict(int)
        self._queues: Dict[UUID, List[asyncio.Queue]] = defaultdict(list)
        self._queue_size = queue_size

    def version(self, recipient_user_id: UUID) -> int:
        return self._versions.get(recipient_user_id, 0)

    def subscribe(self, recipient_user_id: UUID) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        self._queues[recipient_user_id].append(queue)
        logger.debug(
            "Subscriber added for user %s (total %d)",
            recipient_user_id,
            len(self._queues[recipient_user_id]),
        )
        return queue

    def unsubscribe(self, recipient_user_id: UUID, queue: asyncio.Queue) -> None:
        queues = self._queues.get(recipient_user_id)
        if not queues:
            return
        try:
            queues.remove(queue)
        except ValueError:
            logger.warning("Attempted to remove unknown subscriber for user %s", recipient_user_id)
        if not queues:
            del self._queues[recipient_user_id]

    def publish(
        self,
        kind: str,
        recipient_user_id: UUID,
        notification_id: Optional[UUID] = None,
    ) -> NotificationEvent:
        self._versions[recipient_user_id] += 1
        event = NotificationEvent(
            kind=kind,
            recipient_user_id=recipient_user_id,
            version=self._versions[recipient_user_id],
            notification_id=notification_id,
        )
        for queue in list(self._queues.get(recipient_user_id, [])):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                # Slow consumer: it will resync from the version on reconnect
                logger.warning("Dropping %s event for user %s: subscriber queue full", kind, recipient_user_id)
        return event

    def reset(self) -> None:
        self._versions.clear()
        self._queues.clear()


hub = NotificationHub()
