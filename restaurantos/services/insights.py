"""
Quick Insights

Canned read queries behind the assistant's quick-question buttons. Each one
is bounded by ``QUICK_QUERY_TIMEOUT`` and reports failures as a message
instead of raising.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from restaurantos.core.config import get_settings
from restaurantos.models import MenuItem, Order, OrderStatus

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Database query timed out"


@dataclass
class QueryResult:
    success: bool
    data: Any = None
    error: Optional[str] = None


def _menu_summary(item: MenuItem) -> dict:
    return {
        "name": item.name,
        "price": item.price,
        "category": item.category,
        "description": item.description,
    }


async def _bounded(
    label: str,
    query: Callable[[], Awaitable[QueryResult]],
    timeout: Optional[float] = None,
) -> QueryResult:
    timeout = timeout if timeout is not None else get_settings().quick_query_timeout
    try:
        return await asyncio.wait_for(query(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Quick query '{label}' timed out after {timeout}s")
        return QueryResult(success=False, error=TIMEOUT_MESSAGE)
    except SQLAlchemyError as e:
        logger.error(f"Quick query '{label}' failed: {e}")
        return QueryResult(success=False, error=f"Failed to fetch {label}")


# =============================================================================
# QUERIES
# =============================================================================

async def cheapest_menu_item(db: AsyncSession, timeout: Optional[float] = None) -> QueryResult:
    async def run() -> QueryResult:
        result = await db.execute(
            select(MenuItem).where(MenuItem.available.is_(True)).order_by(MenuItem.price.asc()).limit(1)
        )
        item = result.scalar_one_or_none()
        if item is None:
            return QueryResult(success=False, error="No menu items found")
        return QueryResult(success=True, data=_menu_summary(item))

    return await _bounded("cheapest menu item", run, timeout)


async def most_expensive_menu_item(db: AsyncSession, timeout: Optional[float] = None) -> QueryResult:
    async def run() -> QueryResult:
        result = await db.execute(
            select(MenuItem).where(MenuItem.available.is_(True)).order_by(MenuItem.price.desc()).limit(1)
        )
        item = result.scalar_one_or_none()
        if item is None:
            return QueryResult(success=False, error="No menu items found")
        return QueryResult(success=True, data=_menu_summary(item))

    return await _bounded("most expensive menu item", run, timeout)


async def menu_items_by_category(
    db: AsyncSession,
    category: str,
    timeout: Optional[float] = None,
) -> QueryResult:
    """Up to ten available items whose category contains ``category``, cheapest first."""
    async def run() -> QueryResult:
        result = await db.execute(
            select(MenuItem)
            .where(MenuItem.available.is_(True), MenuItem.category.ilike(f"%{category}%"))
            .order_by(MenuItem.price.asc())
            .limit(10)
        )
        return QueryResult(success=True, data=[_menu_summary(item) for item in result.scalars().all()])

    return await _bounded("menu items by category", run, timeout)


async def pending_orders_count(db: AsyncSession, timeout: Optional[float] = None) -> QueryResult:
    async def run() -> QueryResult:
        result = await db.execute(
            select(func.count(Order.id)).where(Order.status == OrderStatus.PENDING)
        )
        return QueryResult(success=True, data={"count": result.scalar_one() or 0})

    return await _bounded("pending orders count", run, timeout)


async def today_revenue(
    db: AsyncSession,
    timeout: Optional[float] = None,
    today: Optional[date] = None,
) -> QueryResult:
    """Revenue of today's served and completed orders (first 100)."""
    since = datetime.combine(today or date.today(), time.min)

    async def run() -> QueryResult:
        result = await db.execute(
            select(Order.total)
            .where(
                Order.created_at >= since,
                Order.status.in_([OrderStatus.COMPLETED, OrderStatus.SERVED]),
            )
            .limit(100)
        )
        totals = [float(total) for total in result.scalars().all()]
        return QueryResult(success=True, data={"revenue": sum(totals), "order_count": len(totals)})

    return await _bounded("today's revenue", run, timeout)


async def menu_categories(db: AsyncSession, timeout: Optional[float] = None) -> QueryResult:
    async def run() -> QueryResult:
        result = await db.execute(
            select(MenuItem.category).where(MenuItem.available.is_(True)).limit(50)
        )
        # dict keeps first-seen order
        categories = list(dict.fromkeys(result.scalars().all()))
        return QueryResult(success=True, data=categories)

    return await _bounded("menu categories", run, timeout)


QUICK_QUERIES = {
    "cheapest": cheapest_menu_item,
    "most-expensive": most_expensive_menu_item,
    "pending-orders": pending_orders_count,
    "today-revenue": today_revenue,
    "categories": menu_categories,
}


async def run_quick_query(db: AsyncSession, name: str, category: Optional[str] = None) -> QueryResult:
    """
    Dispatch a quick insight by name.

    ``by-category`` needs ``category``; an unknown name raises KeyError.
    """
    if name == "by-category":
        if not category or not category.strip():
            return QueryResult(success=False, error="A category is required")
        return await menu_items_by_category(db, category.strip())
    return await QUICK_QUERIES[name](db)
