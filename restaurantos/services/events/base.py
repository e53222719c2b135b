"""
Event Broker Abstract Base Class

Realtime fan-out of small notifications such as "order created". Listeners
treat every event as a signal to reload; events carry ids, not state.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator

ORDERS_CHANNEL = "orders"


class BaseEventBroker(ABC):
    """Abstract base class for event brokers."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def publish(self, channel: str, event: dict) -> None:
        """Deliver ``event`` to every current subscriber of ``channel``."""
        pass

    @abstractmethod
    def subscribe(self, channel: str) -> AsyncIterator[dict]:
        """Yield events published on ``channel`` after subscribing."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check broker connectivity."""
        pass

    async def close(self) -> None:
        """Release connections. Called at shutdown."""
        return None
