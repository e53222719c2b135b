"""
In-Memory Event Broker

Single-process broker for development: every subscriber owns an
``asyncio.Queue`` and publishing puts the event on each queue of the channel.
"""

import asyncio
import logging
from collections import defaultdict
from typing import AsyncIterator

from restaurantos.services.events.base import BaseEventBroker

logger = logging.getLogger(__name__)


class InMemoryEventBroker(BaseEventBroker):
    """Queue-per-subscriber broker living in the API process."""

    def __init__(self, max_queue_size: int = 100):
        self.max_queue_size = max_queue_size
        self._subscribers: dict[str, set[asyncio.Queue]] = defaultdict(set)

    @property
    def provider_name(self) -> str:
        return "memory"

    def subscriber_count(self, channel: str) -> int:
        return len(self._subscribers.get(channel, ()))

    async def publish(self, channel: str, event: dict) -> None:
        for queue in list(self._subscribers.get(channel, ())):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                # Slow listener; it reloads on the next event anyway
                logger.warning(f"Dropping event for slow subscriber on '{channel}'")

    async def subscribe(self, channel: str) -> AsyncIterator[dict]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers[channel].add(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._subscribers[channel].discard(queue)

    async def health_check(self) -> bool:
        return True
