"""
Order Endpoints

Order entry for customers, waiters and managers, the edit modal, status
changes for the kitchen and floor staff, and item status updates that
consume bar stock when a drink is ready.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from restaurantos.api.background import queue_ledger_export
from restaurantos.core.security import get_current_user, require_roles
from restaurantos.database import get_db
from restaurantos.models import Order, OrderStatus, User, UserRole
from restaurantos.schemas import (
    ErrorResponse,
    OrderCreate,
    OrderItemStatusUpdate,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
    OrderUpdate,
)
from restaurantos.services.orders import (
    ITEM_STATUS_ROLES,
    OrderLine,
    OrderValidationError,
    can_edit_order,
    can_set_item_status,
    can_set_status,
    can_view_order,
    changes_item_status,
    compose_item_notes,
    create_order,
    list_orders,
    load_order,
    next_status,
    order_response,
    order_responses,
    publish_order_event,
    set_item_status,
    set_order_status,
    update_order,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["Orders"])

order_takers = require_roles(UserRole.MANAGER, UserRole.WAITER, UserRole.CUSTOMER)
item_handlers = require_roles(*ITEM_STATUS_ROLES)


async def get_order_or_404(db: AsyncSession, order_id: str, user: User) -> Order:
    order = await load_order(db, order_id)
    if order is None or not can_view_order(order, user):
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found")
    return order


@router.post(
    "",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def place_order(
    data: OrderCreate,
    user: User = Depends(order_takers),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    """
    Place an order.

    A blank customer name becomes "Guest N". Seat numbers are folded into
    the item notes.
    """
    lines = [
        OrderLine(
            menu_item_id=item.menu_item_id,
            quantity=item.quantity,
            notes=compose_item_notes(item.notes, item.seat_number),
        )
        for item in data.items
    ]
    try:
        order = await create_order(
            db,
            user,
            lines,
            customer_name=data.customer_name,
            table_number=data.table_number,
            notes=data.notes,
        )
    except OrderValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    await publish_order_event("created", order)
    await queue_ledger_export(db, order)
    return await order_response(db, order)


@router.get("", response_model=OrderListResponse)
async def get_orders(
    status: Optional[OrderStatus] = Query(None),
    mine: bool = Query(False, description="Waiters: only orders they took"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OrderListResponse:
    """List orders, newest first. Customers only ever see their own."""
    customer_id = user.id if user.role == UserRole.CUSTOMER else None
    waiter_id = user.id if mine and user.role == UserRole.WAITER else None

    orders = await list_orders(
        db,
        statuses=[status] if status else None,
        customer_id=customer_id,
        waiter_id=waiter_id,
        skip=skip,
        limit=limit,
    )
    return OrderListResponse(total=len(orders), orders=await order_responses(db, orders))


@router.get("/{order_id}", response_model=OrderResponse, responses={404: {"model": ErrorResponse}})
async def get_order(
    order_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    return await order_response(db, await get_order_or_404(db, order_id, user))


@router.patch(
    "/{order_id}",
    response_model=OrderResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def edit_order(
    order_id: str,
    data: OrderUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    order = await get_order_or_404(db, order_id, user)
    if not can_edit_order(order, user):
        raise HTTPException(status_code=403, detail="You cannot edit this order")
    if data.status is not None and data.status != order.status and not can_set_status(order, user, data.status):
        raise HTTPException(
            status_code=403,
            detail=f"Role '{user.role.value}' cannot move this order to {data.status.value}",
        )
    if changes_item_status(order, data) and not can_set_item_status(user):
        raise HTTPException(status_code=403, detail="You cannot change the preparation status of items")

    try:
        order = await update_order(db, order, data)
    except OrderValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    await publish_order_event("updated", order)
    return await order_response(db, order)


@router.patch(
    "/{order_id}/status",
    response_model=OrderResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def change_status(
    order_id: str,
    data: OrderStatusUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    order = await get_order_or_404(db, order_id, user)
    if not can_set_status(order, user, data.status):
        raise HTTPException(
            status_code=403,
            detail=f"Role '{user.role.value}' cannot move this order to {data.status.value}",
        )

    order = await set_order_status(db, order, data.status)
    await publish_order_event("updated", order)
    return await order_response(db, order)


@router.post(
    "/{order_id}/advance",
    response_model=OrderResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def advance_status(
    order_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    """Move the order one step along pending → preparing → ready → served → completed."""
    order = await get_order_or_404(db, order_id, user)
    target = next_status(order.status, user.role)
    if target is None:
        raise HTTPException(status_code=400, detail=f"Order is already {order.status.value}")
    if not can_set_status(order, user, target):
        raise HTTPException(status_code=403, detail="You cannot change the status of this order")

    order = await set_order_status(db, order, target)
    await publish_order_event("updated", order)
    return await order_response(db, order)


@router.patch(
    "/{order_id}/items/{item_id}/status",
    response_model=OrderResponse,
    responses={404: {"model": ErrorResponse}},
)
async def change_item_status(
    order_id: str,
    item_id: str,
    data: OrderItemStatusUpdate,
    user: User = Depends(item_handlers),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    """
    Update one item's preparation status.

    A drink that becomes ready uses one unit of each inventory item it
    requires, and the menu availability of affected items is recomputed.
    """
    order = await get_order_or_404(db, order_id, user)
    item = next((item for item in order.items if item.id == item_id), None)
    if item is None:
        raise HTTPException(status_code=404, detail=f"Order item {item_id} not found")

    await set_item_status(db, item, data.status)
    await db.commit()
    logger.info(f"Order {order.id[:8]} item {item.id[:8]} → {data.status.value}")

    order = await load_order(db, order.id)
    await publish_order_event("updated", order)
    return await order_response(db, order)
