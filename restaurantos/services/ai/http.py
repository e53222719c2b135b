"""
HTTP AI Service

Production implementation that talks to the hosted AI backend:

    POST {ai_chat_url}   {"message": ...}   header user-id  → {"answer": ...}
    POST {ai_clear_url}                     header user-id
    POST {ai_query_url}  {"message": ...}                   → {"answer", "result", "sql_query"}

Failures are mapped to the messages defined in ``base``.
"""

import logging
from typing import Any, Optional

import httpx

from restaurantos.core.config import get_settings
from restaurantos.services.ai.base import (
    AIChatResult,
    AIClearResult,
    AIQueryResult,
    BACKEND_UNAVAILABLE_MESSAGE,
    BaseAIService,
    NETWORK_ERROR_MESSAGE,
    NO_RESPONSE_ANSWER,
    QUOTA_EXCEEDED_MESSAGE,
    RATE_LIMITED_MESSAGE,
)

logger = logging.getLogger(__name__)


def _error_payload(response: httpx.Response) -> dict:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _backend_error_text(data: dict) -> Optional[str]:
    error = data.get("error")
    if isinstance(error, dict):
        return error.get("message")
    return error


def error_message_for(response: httpx.Response, label: str = "AI backend error") -> str:
    """
    Turn a non-2xx backend response into a user-facing message.

    Args:
        response: The failed response
        label: Prefix used when the backend sent no usable error text
    """
    data = _error_payload(response)
    error = data.get("error")

    if response.status_code == 429:
        is_quota = isinstance(error, dict) and (
            "quota" in (error.get("message") or "")
            or error.get("code") == "insufficient_quota"
        )
        return QUOTA_EXCEEDED_MESSAGE if is_quota else RATE_LIMITED_MESSAGE

    if response.status_code == 500:
        return BACKEND_UNAVAILABLE_MESSAGE

    return _backend_error_text(data) or f"{label}: {response.status_code}"


class HttpAIService(BaseAIService):
    """AI backend client built on ``httpx.AsyncClient``."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        settings = get_settings()
        self.chat_url = settings.ai_chat_url
        self.clear_url = settings.ai_clear_url
        self.query_url = settings.ai_query_url
        self.timeout = settings.ai_request_timeout
        self._transport = transport
        logger.info(f"HttpAIService initialized (chat={self.chat_url})")

    @property
    def provider_name(self) -> str:
        return "http"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _post(self, url: str, json: Optional[dict] = None, user_id: Optional[str] = None) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        if user_id:
            headers["user-id"] = user_id
        async with self._client() as client:
            return await client.post(url, json=json, headers=headers)

    async def send_message(self, message: str, user_id: str) -> AIChatResult:
        logger.debug(f"AI chat request for user {user_id}: {message[:80]}")
        try:
            response = await self._post(self.chat_url, {"message": message}, user_id=user_id)
        except httpx.HTTPError as e:
            logger.error(f"AI chat network error: {e}")
            return AIChatResult(success=False, error_message=NETWORK_ERROR_MESSAGE, provider="http")

        if response.is_error:
            error = error_message_for(response)
            logger.warning(f"AI chat failed ({response.status_code}): {error}")
            return AIChatResult(success=False, error_message=error, provider="http")

        data = _error_payload(response)
        backend_error = _backend_error_text(data)
        return AIChatResult(
            success=backend_error is None,
            answer=data.get("answer") or NO_RESPONSE_ANSWER,
            error_message=backend_error,
            provider="http",
        )

    async def clear_chat(self, user_id: str) -> AIClearResult:
        logger.info(f"Clearing AI chat session for user {user_id}")
        try:
            response = await self._post(self.clear_url, user_id=user_id)
        except httpx.HTTPError as e:
            logger.error(f"AI clear network error: {e}")
            return AIClearResult(success=False, error_message=NETWORK_ERROR_MESSAGE)

        if response.is_error:
            data = _error_payload(response)
            error = _backend_error_text(data) or f"Clear API error: {response.status_code}"
            return AIClearResult(success=False, error_message=error)

        return AIClearResult(success=True)

    async def query(self, message: str) -> AIQueryResult:
        try:
            response = await self._post(self.query_url, {"message": message})
        except httpx.HTTPError as e:
            logger.error(f"AI query network error: {e}")
            return AIQueryResult(success=False, error_message=NETWORK_ERROR_MESSAGE, provider="http")

        if response.is_error:
            error = error_message_for(response, label="API error")
            return AIQueryResult(success=False, error_message=error, provider="http")

        data = _error_payload(response)
        rows: Any = data.get("result") or []
        backend_error = _backend_error_text(data)
        return AIQueryResult(
            success=backend_error is None,
            answer=data.get("answer") or "",
            result=rows if isinstance(rows, list) else [rows],
            sql_query=data.get("sql_query") or "",
            error_message=backend_error,
            provider="http",
        )

    async def health_check(self) -> bool:
        # The backend exposes no health endpoint; any HTTP answer means it is up
        try:
            async with self._client() as client:
                await client.get(self.chat_url)
            return True
        except httpx.HTTPError:
            return False
