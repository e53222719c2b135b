"""
Floor Plan Endpoints

Tables with their seat layout and the status shown on the floor plan. A
table with an active order shows as occupied whatever its stored status.
"""

import logging
from collections import defaultdict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurantos.core.security import get_current_user, require_roles
from restaurantos.database import get_db
from restaurantos.models import ACTIVE_ORDER_STATUSES, Order, RestaurantTable, User, UserRole
from restaurantos.schemas import ErrorResponse, SeatPositionResponse, TableResponse, TableUpdate
from restaurantos.services.layout import effective_table_status, seat_positions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tables", tags=["Tables"])

floor_staff = require_roles(UserRole.MANAGER, UserRole.WAITER)


def serialize_table(table: RestaurantTable, active_orders: list[Order]) -> TableResponse:
    return TableResponse(
        id=table.id,
        number=table.number,
        seats=table.seats,
        shape=table.shape,
        status=effective_table_status(table.status, [order.status for order in active_orders]),
        stored_status=table.status,
        x=table.pos_x,
        y=table.pos_y,
        seat_positions=[
            SeatPositionResponse(seat=index, x=round(position.x, 2), y=round(position.y, 2))
            for index, position in enumerate(seat_positions(table.shape.value, table.seats), start=1)
        ],
        active_order_ids=[order.id for order in active_orders],
    )


async def _active_orders_by_table(db: AsyncSession) -> dict[int, list[Order]]:
    result = await db.execute(
        select(Order)
        .where(Order.status.in_(ACTIVE_ORDER_STATUSES), Order.table_number.is_not(None))
        .order_by(Order.created_at)
    )
    by_table = defaultdict(list)
    for order in result.scalars().all():
        by_table[order.table_number].append(order)
    return by_table


async def table_responses(db: AsyncSession) -> list[TableResponse]:
    result = await db.execute(select(RestaurantTable).order_by(RestaurantTable.number))
    by_table = await _active_orders_by_table(db)
    return [serialize_table(table, by_table.get(table.number, [])) for table in result.scalars().all()]


async def get_table_or_404(db: AsyncSession, table_id: str) -> RestaurantTable:
    table = await db.get(RestaurantTable, table_id)
    if table is None:
        raise HTTPException(status_code=404, detail=f"Table {table_id} not found")
    return table


@router.get("", response_model=list[TableResponse])
async def list_tables(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[TableResponse]:
    return await table_responses(db)


@router.get("/{table_id}", response_model=TableResponse, responses={404: {"model": ErrorResponse}})
async def get_table(
    table_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TableResponse:
    table = await get_table_or_404(db, table_id)
    by_table = await _active_orders_by_table(db)
    return serialize_table(table, by_table.get(table.number, []))


@router.patch(
    "/{table_id}",
    response_model=TableResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_table(
    table_id: str,
    data: TableUpdate,
    user: User = Depends(floor_staff),
    db: AsyncSession = Depends(get_db),
) -> TableResponse:
    """Edit a table. Waiters may only change the status."""
    table = await get_table_or_404(db, table_id)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)

    if user.role == UserRole.WAITER and set(changes) - {"status"}:
        raise HTTPException(status_code=403, detail="Waiters can only change a table's status")

    if "number" in changes and changes["number"] != table.number:
        taken = await db.execute(select(RestaurantTable.id).where(RestaurantTable.number == changes["number"]))
        if taken.scalar_one_or_none() is not None:
            raise HTTPException(status_code=400, detail=f"Table number {changes['number']} is already in use")

    for field, value in changes.items():
        setattr(table, {"x": "pos_x", "y": "pos_y"}.get(field, field), value)
    await db.commit()
    await db.refresh(table)

    logger.info(f"🪑 Table {table.number} updated by {user.email}: {changes}")
    by_table = await _active_orders_by_table(db)
    return serialize_table(table, by_table.get(table.number, []))
