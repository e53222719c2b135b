"""
Role Dashboards

One read endpoint per role, plus ``/api/dashboard`` which picks the one
matching the signed-in user. Clients refetch these on every order event.
"""

import logging
from collections import Counter
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurantos.api.tables import table_responses
from restaurantos.core.security import get_current_user, require_roles
from restaurantos.database import get_db
from restaurantos.models import (
    ACTIVE_ORDER_STATUSES,
    InventoryItem,
    ItemStatus,
    MenuItem,
    OrderStatus,
    User,
    UserRole,
)
from restaurantos.schemas import (
    BarDashboardResponse,
    CustomerDashboardResponse,
    DrinkItemResponse,
    InventoryItemResponse,
    KitchenDashboardResponse,
    ManagerDashboardResponse,
    MenuItemResponse,
    WaiterDashboardResponse,
)
from restaurantos.services.inventory import is_drink_category, load_stock, missing_critical
from restaurantos.services.numbering import day_bounds, order_numbers_for
from restaurantos.services.orders import list_orders, order_responses, serialize_item

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["Dashboards"])

KITCHEN_ACTIVE = (OrderStatus.PENDING, OrderStatus.PREPARING)
KITCHEN_RECENT = (OrderStatus.READY, OrderStatus.SERVED, OrderStatus.COMPLETED)
BAR_ACTIVE = (OrderStatus.PENDING, OrderStatus.PREPARING, OrderStatus.READY)
RECENT_LIMIT = 20


async def low_stock_items(db: AsyncSession) -> list[InventoryItemResponse]:
    result = await db.execute(
        select(InventoryItem)
        .where(InventoryItem.quantity <= InventoryItem.threshold)
        .order_by(InventoryItem.name)
    )
    return [InventoryItemResponse.model_validate(item) for item in result.scalars().all()]


# =============================================================================
# ROLE VIEWS
# =============================================================================

@router.get("/kitchen", response_model=KitchenDashboardResponse)
async def kitchen_dashboard(
    user: User = Depends(require_roles(UserRole.KITCHEN, UserRole.MANAGER)),
    db: AsyncSession = Depends(get_db),
) -> KitchenDashboardResponse:
    """Food tickets to cook, oldest first, and recently finished orders."""
    active = await order_responses(
        db, await list_orders(db, statuses=KITCHEN_ACTIVE, newest_first=False)
    )
    tickets = []
    for order in active:
        food = [item for item in order.items if not is_drink_category(item.category)]
        if food:
            tickets.append(order.model_copy(update={"items": food}))

    recent = await list_orders(db, statuses=KITCHEN_RECENT, limit=RECENT_LIMIT)
    return KitchenDashboardResponse(
        active_orders=tickets,
        recent_orders=await order_responses(db, recent),
    )


@router.get("/bar", response_model=BarDashboardResponse)
async def bar_dashboard(
    user: User = Depends(require_roles(UserRole.BAR, UserRole.MANAGER)),
    db: AsyncSession = Depends(get_db),
) -> BarDashboardResponse:
    """Drink items of open orders, split into to-do and ready."""
    orders = await list_orders(db, statuses=BAR_ACTIVE, newest_first=False)
    numbers = await order_numbers_for(db, orders)

    drink_lines = [
        (order, item)
        for order in orders
        for item in order.items
        if item.menu_item is not None and is_drink_category(item.menu_item.category)
    ]
    needed = {name for _, item in drink_lines for name in (item.menu_item.required_inventory or ())}
    stock = await load_stock(db, needed) if needed else {}

    active, ready = [], []
    for order, item in drink_lines:
        missing = missing_critical(item.menu_item.required_inventory, stock)
        entry = DrinkItemResponse(
            order_id=order.id,
            order_number=numbers[order.id],
            table_number=order.table_number,
            customer_name=order.customer_name,
            item=serialize_item(item),
            can_prepare=not missing,
            missing_critical=missing,
        )
        (ready if item.status == ItemStatus.READY else active).append(entry)

    return BarDashboardResponse(
        active_drinks=active,
        ready_drinks=ready,
        low_stock=await low_stock_items(db),
    )


@router.get("/waiter", response_model=WaiterDashboardResponse)
async def waiter_dashboard(
    user: User = Depends(require_roles(UserRole.WAITER, UserRole.MANAGER)),
    db: AsyncSession = Depends(get_db),
) -> WaiterDashboardResponse:
    orders = await list_orders(db, statuses=ACTIVE_ORDER_STATUSES, waiter_id=user.id)
    return WaiterDashboardResponse(
        orders=await order_responses(db, orders),
        tables=await table_responses(db),
    )


@router.get("/customer", response_model=CustomerDashboardResponse)
async def customer_dashboard(
    user: User = Depends(require_roles(UserRole.CUSTOMER)),
    db: AsyncSession = Depends(get_db),
) -> CustomerDashboardResponse:
    menu = await db.execute(
        select(MenuItem).where(MenuItem.available.is_(True)).order_by(MenuItem.category, MenuItem.name)
    )
    orders = await list_orders(db, customer_id=user.id)
    return CustomerDashboardResponse(
        menu=[MenuItemResponse.model_validate(item) for item in menu.scalars().all()],
        orders=await order_responses(db, orders),
    )


@router.get("/manager", response_model=ManagerDashboardResponse)
async def manager_dashboard(
    user: User = Depends(require_roles(UserRole.MANAGER)),
    db: AsyncSession = Depends(get_db),
) -> ManagerDashboardResponse:
    since, until = day_bounds(datetime.now())
    today = await list_orders(db, since=since, until=until)

    counts = Counter(order.status.value for order in today)
    return ManagerDashboardResponse(
        today_orders=await order_responses(db, today),
        today_revenue=round(sum(order.total for order in today), 2),
        today_order_count=len(today),
        status_counts={status.value: counts.get(status.value, 0) for status in OrderStatus},
        low_stock=await low_stock_items(db),
    )


# =============================================================================
# DISPATCH
# =============================================================================

ROLE_VIEWS = {
    UserRole.KITCHEN: kitchen_dashboard,
    UserRole.BAR: bar_dashboard,
    UserRole.WAITER: waiter_dashboard,
    UserRole.CUSTOMER: customer_dashboard,
    UserRole.MANAGER: manager_dashboard,
}


@router.get("")
async def my_dashboard(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """The dashboard of the signed-in user's role."""
    view = await ROLE_VIEWS[user.role](user=user, db=db)
    return {"role": user.role.value, "dashboard": view.model_dump(mode="json")}
