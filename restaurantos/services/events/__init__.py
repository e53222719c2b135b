"""
Event Broker Factory

Returns the in-memory broker in development and the Redis broker otherwise.
"""

import logging
from datetime import datetime
from functools import lru_cache
from typing import Optional

from restaurantos.core.config import get_settings
from restaurantos.services.events.base import BaseEventBroker, ORDERS_CHANNEL
from restaurantos.services.events.memory import InMemoryEventBroker
from restaurantos.services.events.redis_broker import RedisEventBroker

logger = logging.getLogger(__name__)


@lru_cache()
def get_event_broker() -> BaseEventBroker:
    """Get the configured event broker."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Event Broker: Using InMemoryEventBroker (development mode)")
        return InMemoryEventBroker()
    else:
        logger.info(f"Event Broker: Using RedisEventBroker ({settings.env_mode.value} mode)")
        return RedisEventBroker(settings.redis_url)


def reset_event_broker() -> None:
    """Clear the cached broker instance."""
    get_event_broker.cache_clear()


def order_event(kind: str, order_id: str, table_number: Optional[int], status: str) -> dict:
    """Build the notification pushed to order listeners."""
    return {
        "type": f"order.{kind}",
        "order_id": order_id,
        "table_number": table_number,
        "status": status,
        "at": datetime.now().isoformat(timespec="seconds"),
    }


__all__ = [
    "get_event_broker",
    "reset_event_broker",
    "order_event",
    "BaseEventBroker",
    "InMemoryEventBroker",
    "RedisEventBroker",
    "ORDERS_CHANNEL",
]
