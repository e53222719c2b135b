"""
AI Service Abstract Base Class

Defines the interface for the external AI backend used by the assistant
chat, the natural-language query box and the voice quick order.

Implementations never raise for provider failures. They return a result
object whose ``error_message`` is ready to show to the user.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional


# User-facing messages for backend failures
QUOTA_EXCEEDED_MESSAGE = (
    "The AI service has reached its usage limit. "
    "Please try again later or contact support."
)
RATE_LIMITED_MESSAGE = "Too many requests. Please wait a moment and try again."
BACKEND_UNAVAILABLE_MESSAGE = "AI backend unavailable. Please try again in a moment."
NETWORK_ERROR_MESSAGE = "Network error. Please check your connection and try again."
NO_RESPONSE_ANSWER = "No response received"


@dataclass
class AIChatResult:
    """Result from a chat request."""
    success: bool
    answer: str = ""
    error_message: Optional[str] = None
    provider: str = "unknown"


@dataclass
class AIQueryResult:
    """Result from a natural-language database query."""
    success: bool
    answer: str = ""
    result: list[Any] = field(default_factory=list)
    sql_query: str = ""
    error_message: Optional[str] = None
    provider: str = "unknown"


@dataclass
class AIClearResult:
    """Result from clearing a user's chat session."""
    success: bool
    error_message: Optional[str] = None


class BaseAIService(ABC):
    """
    Abstract base class for AI backends.

    Implementations:
        - MockAIService: Development mode, answers locally
        - HttpAIService: Calls the hosted chat/query endpoints with httpx
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def send_message(self, message: str, user_id: str) -> AIChatResult:
        """
        Send a chat message on behalf of ``user_id``.

        The backend keeps a conversation per user, identified by the
        ``user-id`` header.
        """
        pass

    @abstractmethod
    async def clear_chat(self, user_id: str) -> AIClearResult:
        """Drop the backend conversation of ``user_id``."""
        pass

    @abstractmethod
    async def query(self, message: str) -> AIQueryResult:
        """Answer a natural-language question with rows from the database."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the backend is reachable."""
        pass
