"""
AI Assistant Endpoints

Chat with the hosted AI backend (history is kept per user), natural
language database questions and the quick insight buttons.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurantos.core.security import get_current_user
from restaurantos.database import get_db
from restaurantos.models import Message, MessageType, User
from restaurantos.schemas import (
    ChatMessageResponse,
    ChatRequest,
    ChatResponse,
    ErrorResponse,
    InsightResponse,
    MessageResponse,
    NLQueryResponse,
)
from restaurantos.services.ai import BaseAIService, get_ai_service
from restaurantos.services.insights import QUICK_QUERIES, run_quick_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/assistant", tags=["Assistant"])


@router.post("/chat", response_model=ChatResponse)
async def chat(
    data: ChatRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    ai: BaseAIService = Depends(get_ai_service),
) -> ChatResponse:
    """
    Send a message to the assistant.

    The question is always stored; the answer only when the backend gave one.
    """
    db.add(Message(user_id=user.id, content=data.message, type=MessageType.USER))
    await db.commit()

    result = await ai.send_message(data.message, user.id)
    if not result.success:
        logger.warning(f"💬 Assistant failed for {user.email}: {result.error_message}")
        return ChatResponse(success=False, error=result.error_message)

    db.add(Message(user_id=user.id, content=result.answer, type=MessageType.ASSISTANT))
    await db.commit()
    return ChatResponse(success=True, answer=result.answer)


@router.get("/messages", response_model=list[ChatMessageResponse])
async def chat_history(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[ChatMessageResponse]:
    result = await db.execute(
        select(Message).where(Message.user_id == user.id).order_by(Message.created_at)
    )
    return [ChatMessageResponse.model_validate(message) for message in result.scalars().all()]


@router.post("/clear", response_model=MessageResponse)
async def clear_chat(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    ai: BaseAIService = Depends(get_ai_service),
) -> MessageResponse:
    """Reset the backend conversation, then drop the stored history."""
    result = await ai.clear_chat(user.id)
    if not result.success:
        return MessageResponse(success=False, message=result.error_message or "Failed to clear chat session")

    await db.execute(delete(Message).where(Message.user_id == user.id))
    await db.commit()
    logger.info(f"💬 Chat cleared for {user.email}")
    return MessageResponse(message="Chat cleared")


@router.post("/query", response_model=NLQueryResponse)
async def natural_language_query(
    data: ChatRequest,
    user: User = Depends(get_current_user),
    ai: BaseAIService = Depends(get_ai_service),
) -> NLQueryResponse:
    result = await ai.query(data.message)
    if not result.success:
        return NLQueryResponse(success=False, error=result.error_message)
    return NLQueryResponse(
        success=True,
        answer=result.answer,
        result=result.result,
        sql_query=result.sql_query,
    )


@router.get(
    "/insights/{name}",
    response_model=InsightResponse,
    responses={404: {"model": ErrorResponse}},
)
async def quick_insight(
    name: str,
    category: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> InsightResponse:
    """
    Run one quick insight: cheapest, most-expensive, by-category,
    pending-orders, today-revenue or categories.
    """
    if name != "by-category" and name not in QUICK_QUERIES:
        raise HTTPException(status_code=404, detail=f"Unknown insight '{name}'")

    result = await run_quick_query(db, name, category)
    return InsightResponse(name=name, success=result.success, data=result.data, error=result.error)
