"""
Mock AI Service

Development stand-in for the hosted AI backend. It answers locally:

- Quick-order prompts are answered with a JSON order built by looking for
  the listed menu names in the transcript.
- Other chat messages get a short canned answer.
- Queries return an empty result set.

Tests can queue exact replies with ``script()``.
"""

import asyncio
import json
import logging
import random
import re
from collections import deque
from typing import Optional

from restaurantos.services.ai.base import (
    AIChatResult,
    AIClearResult,
    AIQueryResult,
    BaseAIService,
)

logger = logging.getLogger(__name__)

MENU_LINE = re.compile(r'^"(?P<name>.+)" - €(?P<price>[\d.]+) \((?P<category>.*)\)$', re.MULTILINE)
TRANSCRIPT_LINE = re.compile(r'^TRANSKRIPT: "(?P<transcript>.*)"$', re.MULTILINE)
TABLE_MENTION = re.compile(r"tisch\s*(?:nummer\s*)?(\d+)", re.IGNORECASE)
NAME_MENTION = re.compile(r"\bfür\s+([A-ZÄÖÜ][\wäöüß]+)")


class MockAIService(BaseAIService):
    """Local AI backend for development and tests."""

    def __init__(self, max_latency: float = 0.3):
        self.max_latency = max_latency
        self._replies: deque[AIChatResult] = deque()
        self.sessions: dict[str, list[str]] = {}
        logger.info("MockAIService initialized")

    @property
    def provider_name(self) -> str:
        return "mock"

    async def _simulate_latency(self) -> None:
        await asyncio.sleep(random.uniform(0, self.max_latency))

    def script(self, answer: Optional[str] = None, error_message: Optional[str] = None) -> None:
        """Queue the next chat reply. A reply with ``error_message`` fails."""
        self._replies.append(AIChatResult(
            success=error_message is None,
            answer=answer or "",
            error_message=error_message,
            provider="mock",
        ))

    def _answer_order_prompt(self, prompt: str) -> str:
        transcript_match = TRANSCRIPT_LINE.search(prompt)
        transcript = transcript_match.group("transcript") if transcript_match else ""
        spoken = transcript.lower()

        items = []
        for line in MENU_LINE.finditer(prompt):
            name = line.group("name")
            if name.lower() not in spoken:
                continue
            quantity = re.search(rf"(\d+)\s*(?:x\s*)?{re.escape(name.lower())}", spoken)
            items.append({
                "name": name,
                "quantity": int(quantity.group(1)) if quantity else 1,
                "notes": None,
                "unitPrice": float(line.group("price")),
            })

        table = TABLE_MENTION.search(transcript)
        customer = NAME_MENTION.search(transcript)
        return json.dumps({
            "customerName": customer.group(1) if customer else None,
            "tableNumber": int(table.group(1)) if table else None,
            "items": items,
            "specialInstructions": None,
        }, ensure_ascii=False)

    async def send_message(self, message: str, user_id: str) -> AIChatResult:
        await self._simulate_latency()
        self.sessions.setdefault(user_id, []).append(message)

        if self._replies:
            return self._replies.popleft()

        if TRANSCRIPT_LINE.search(message):
            answer = self._answer_order_prompt(message)
        else:
            answer = f"(mock) I received your message: {message[:200]}"

        logger.info(f"Mock AI reply for user {user_id} ({len(answer)} chars)")
        return AIChatResult(success=True, answer=answer, provider="mock")

    async def clear_chat(self, user_id: str) -> AIClearResult:
        self.sessions.pop(user_id, None)
        return AIClearResult(success=True)

    async def query(self, message: str) -> AIQueryResult:
        await self._simulate_latency()
        return AIQueryResult(
            success=True,
            answer=f"(mock) No data source is connected for: {message[:200]}",
            result=[],
            sql_query="",
            provider="mock",
        )

    async def health_check(self) -> bool:
        return True
