"""Live subscribers for schedule updates."""

import asyncio
from datetime import datetime
from typing import Any, Dict, Optional, Set

from ..utils.logger import get_app_logger


# Sentinel telling a subscriber stream to finish
CLOSE = None


class ScheduleUpdateRegistry:
    """Owns one queue per connected subscriber and fans events out to them."""

    def __init__(self, max_queue_size: int = 100):
        self.max_queue_size = max_queue_size
        self.subscribers: Set[asyncio.Queue] = set()
        self.logger = get_app_logger()

    def register(self) -> asyncio.Queue:
        """Add a subscriber and return its queue."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        self.subscribers.add(queue)
        self.logger.info(f"Schedule subscriber registered ({len(self.subscribers)} active)")
        return queue

    def unregister(self, queue: asyncio.Queue) -> None:
        """Remove a subscriber; unknown queues are ignored."""
        self.subscribers.discard(queue)
        self.logger.info(f"Schedule subscriber unregistered ({len(self.subscribers)} active)")

    def broadcast(self, event_type: str, payload: Dict[str, Any]) -> int:
        """
        Push an event to every subscriber.

        Subscribers whose queue is full are dropped.

        Args:
            event_type: Event name, e.g. "schedule_created"
            payload: JSON-serializable event data

        Returns:
            Number of subscribers that received the event
        """
        event = {
            "type": event_type,
            "timestamp": datetime.now().isoformat(),
            "data": payload,
        }
        delivered = 0
        for queue in list(self.subscribers):
            try:
                queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                self.logger.warning("Dropping slow schedule subscriber")
                self.subscribers.discard(queue)
        return delivered

    def close_all(self) -> None:
        """Tell every subscriber stream to finish and forget them."""
        for queue in list(self.subscribers):
            try:
                queue.put_nowait(CLOSE)
            except asyncio.QueueFull:
                self.logger.warning("Schedule subscriber queue full on shutdown")
        self.subscribers.clear()
        self.logger.info("All schedule subscribers closed")

    @property
    def subscriber_count(self) -> int:
        return len(self.subscribers)


def is_close_event(event: Optional[Dict[str, Any]]) -> bool:
    return event is CLOSE
