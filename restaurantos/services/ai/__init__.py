"""
AI Service Factory

Provides a single entry point for obtaining the AI backend client.

Environment Switching:
    - ENV_MODE=development → MockAIService (answers locally)
    - ENV_MODE=staging/production → HttpAIService (hosted backend)

FastAPI routes receive the service through ``Depends(get_ai_service)`` so
tests can override it.
"""

import logging
from functools import lru_cache

from restaurantos.core.config import get_settings
from restaurantos.services.ai.base import (
    AIChatResult,
    AIClearResult,
    AIQueryResult,
    BaseAIService,
)
from restaurantos.services.ai.http import HttpAIService
from restaurantos.services.ai.mock import MockAIService

logger = logging.getLogger(__name__)


@lru_cache()
def get_ai_service() -> BaseAIService:
    """Get the configured AI service instance."""
    settings = get_settings()

    if settings.is_development:
        logger.info("AI Service: Using MockAIService (development mode)")
        return MockAIService(max_latency=settings.mock_max_latency)
    else:
        logger.info(f"AI Service: Using HttpAIService ({settings.env_mode.value} mode)")
        return HttpAIService()


__all__ = [
    "get_ai_service",
    "BaseAIService",
    "AIChatResult",
    "AIClearResult",
    "AIQueryResult",
    "MockAIService",
    "HttpAIService",
]
