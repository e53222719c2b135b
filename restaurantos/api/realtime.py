"""
Realtime Order Events

``/ws/orders?token=...`` streams small ``order.*`` notifications. They
carry no order data; clients reload their view when one arrives.
"""

import asyncio
import logging
from contextlib import aclosing

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from restaurantos.core.security import decode_access_token
from restaurantos.database import async_session_maker
from restaurantos.models import User
from restaurantos.services.events import ORDERS_CHANNEL, get_event_broker
from restaurantos.services.events.base import BaseEventBroker

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])


async def _authenticate(token: str):
    user_id = decode_access_token(token)
    if not user_id:
        return None
    async with async_session_maker() as db:
        return await db.get(User, user_id)


async def _forward(websocket: WebSocket, events) -> None:
    async for event in events:
        await websocket.send_json(event)


async def _until_disconnect(websocket: WebSocket) -> None:
    # Incoming messages are ignored; clients only listen
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


async def stream_channel(websocket: WebSocket, broker: BaseEventBroker, channel: str) -> None:
    """
    Forward ``channel`` events to an accepted socket until the client leaves.

    The subscription is closed as soon as the client disconnects, even when
    no event is pending.
    """
    async with aclosing(broker.subscribe(channel)) as events:
        tasks = [
            asyncio.create_task(_forward(websocket, events)),
            asyncio.create_task(_until_disconnect(websocket)),
        ]
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    for task in done:
        if task.cancelled():
            continue
        error = task.exception()
        if error is not None and not isinstance(error, WebSocketDisconnect):
            raise error


@router.websocket("/ws/orders")
async def order_events(websocket: WebSocket, token: str = Query("")) -> None:
    user = await _authenticate(token)
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    logger.info(f"🔌 Order listener connected: {user.email}")
    try:
        await stream_channel(websocket, get_event_broker(), ORDERS_CHANNEL)
    finally:
        logger.info(f"🔌 Order listener disconnected: {user.email}")
