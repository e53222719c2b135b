"""
Order Numbering

Orders are shown as ``YYYY/DDD/SSS``: year, zero-padded day of the year and
the order's 1-based position among that day's orders by creation time.
"""

import logging
from datetime import datetime, timedelta
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from restaurantos.models import Order

logger = logging.getLogger(__name__)


def format_order_number(created_at: datetime, sequence: int) -> str:
    day_of_year = created_at.timetuple().tm_yday
    return f"{created_at.year}/{day_of_year:03d}/{sequence:03d}"


def fallback_sequence(order_id: str) -> int:
    """Sequence derived from the id, used when the day's orders cannot be read."""
    try:
        return int(order_id[-4:], 16) % 999 + 1
    except ValueError:
        return 1


def sequence_in_day(order_id: str, day_order_ids: Sequence[str]) -> int:
    """1-based position of ``order_id`` among the day's ids (creation order)."""
    try:
        return day_order_ids.index(order_id) + 1
    except ValueError:
        return 1


def day_bounds(moment: datetime) -> tuple[datetime, datetime]:
    start = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


async def order_number_for(db: AsyncSession, order: Order) -> str:
    """Compute the display number of ``order`` from the other orders of its day."""
    start, end = day_bounds(order.created_at)
    try:
        result = await db.execute(
            select(Order.id)
            .where(Order.created_at >= start, Order.created_at < end)
            .order_by(Order.created_at.asc(), Order.id.asc())
        )
        sequence = sequence_in_day(order.id, list(result.scalars().all()))
    except SQLAlchemyError as e:
        logger.warning(f"Order sequence lookup failed for {order.id}: {e}")
        sequence = fallback_sequence(order.id)
    return format_order_number(order.created_at, sequence)


async def order_numbers_for(db: AsyncSession, orders: Sequence[Order]) -> dict[str, str]:
    """Number many orders with one query per distinct day."""
    numbers: dict[str, str] = {}
    days: dict[datetime, list[Order]] = {}
    for order in orders:
        days.setdefault(day_bounds(order.created_at)[0], []).append(order)

    for start, day_orders in days.items():
        try:
            result = await db.execute(
                select(Order.id)
                .where(Order.created_at >= start, Order.created_at < start + timedelta(days=1))
                .order_by(Order.created_at.asc(), Order.id.asc())
            )
            day_ids = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.warning(f"Order sequence lookup failed for {start.date()}: {e}")
            day_ids = None

        for order in day_orders:
            sequence = sequence_in_day(order.id, day_ids) if day_ids is not None else fallback_sequence(order.id)
            numbers[order.id] = format_order_number(order.created_at, sequence)
    return numbers
