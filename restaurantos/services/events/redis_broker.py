"""
Redis Event Broker

Publishes JSON events on Redis pub/sub so every API worker process can
push them to its WebSocket clients.
"""

import json
import logging
from typing import AsyncIterator

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from restaurantos.services.events.base import BaseEventBroker

logger = logging.getLogger(__name__)


class RedisEventBroker(BaseEventBroker):
    """Redis pub/sub broker."""

    def __init__(self, redis_url: str, prefix: str = "restaurantos:"):
        self.prefix = prefix
        self.client = aioredis.from_url(redis_url, decode_responses=True)
        logger.info("RedisEventBroker initialized")

    @property
    def provider_name(self) -> str:
        return "redis"

    def _channel(self, channel: str) -> str:
        return f"{self.prefix}{channel}"

    async def publish(self, channel: str, event: dict) -> None:
        await self.client.publish(self._channel(channel), json.dumps(event, default=str))

    async def subscribe(self, channel: str) -> AsyncIterator[dict]:
        pubsub = self.client.pubsub()
        await pubsub.subscribe(self._channel(channel))
        try:
            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue
                yield json.loads(message["data"])
        finally:
            await pubsub.unsubscribe(self._channel(channel))
            await pubsub.aclose()

    async def health_check(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.warning(f"Redis health check failed: {e}")
            return False

    async def close(self) -> None:
        await self.client.aclose()
