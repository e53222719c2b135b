"""
Order Service

Creating and editing orders, who may touch which order, and the response
and ledger shapes shared by the order, dashboard and voice endpoints.
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurantos.models import (
    ItemStatus,
    MenuItem,
    Order,
    OrderItem,
    OrderStatus,
    User,
    UserRole,
)
from restaurantos.schemas import OrderItemResponse, OrderResponse, OrderUpdate
from restaurantos.services.events import ORDERS_CHANNEL, get_event_broker, order_event
from restaurantos.services.inventory import consume_for_menu_item, is_drink_category
from restaurantos.services.numbering import order_number_for, order_numbers_for

logger = logging.getLogger(__name__)

STATUS_FLOW = {
    OrderStatus.PENDING: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.READY,
    OrderStatus.READY: OrderStatus.SERVED,
    OrderStatus.SERVED: OrderStatus.COMPLETED,
}

KITCHEN_EDITABLE = (OrderStatus.PENDING, OrderStatus.PREPARING)
KITCHEN_TARGETS = (OrderStatus.PREPARING, OrderStatus.READY)
ITEM_STATUS_ROLES = (UserRole.MANAGER, UserRole.WAITER, UserRole.KITCHEN, UserRole.BAR)


class OrderValidationError(ValueError):
    """Order input was rejected."""


@dataclass
class OrderLine:
    """A requested order item before pricing."""
    menu_item_id: str
    quantity: int = 1
    notes: Optional[str] = None


# =============================================================================
# SMALL RULES
# =============================================================================

def generate_guest_name(prefix: str = "Guest") -> str:
    return f"{prefix} {random.randint(1, 9999)}"


def compose_item_notes(notes: Optional[str], seat_number: Optional[int]) -> Optional[str]:
    """Fold the seat a dish is for into the item notes."""
    notes = (notes or "").strip()
    if seat_number:
        return f"{notes} (Seat {seat_number})" if notes else f"Seat {seat_number}"
    return notes or None


def next_status(current: OrderStatus, role: UserRole) -> Optional[OrderStatus]:
    """The status the "advance" action moves to. Kitchen stops at ready."""
    if role == UserRole.KITCHEN and current not in KITCHEN_EDITABLE:
        return None
    return STATUS_FLOW.get(current)


def can_view_order(order: Order, user: User) -> bool:
    if user.role == UserRole.CUSTOMER:
        return order.customer_id == user.id
    return True


def can_edit_order(order: Order, user: User) -> bool:
    if user.role == UserRole.MANAGER:
        return True
    if user.role == UserRole.WAITER:
        return order.waiter_id == user.id
    if user.role == UserRole.CUSTOMER:
        return order.customer_id == user.id
    return False


def can_set_status(order: Order, user: User, status: OrderStatus) -> bool:
    if user.role == UserRole.MANAGER:
        return True
    if user.role == UserRole.WAITER:
        return order.waiter_id == user.id
    if user.role == UserRole.KITCHEN:
        return order.status in KITCHEN_EDITABLE and status in KITCHEN_TARGETS
    return False


def can_set_item_status(user: User) -> bool:
    return user.role in ITEM_STATUS_ROLES


def changes_item_status(order: Order, data: OrderUpdate) -> bool:
    """Whether an edit moves any item to a different preparation status."""
    if data.items is None:
        return False
    current = {item.id: item.status for item in order.items}
    return any(
        edit.status is not None and current.get(edit.id, ItemStatus.PENDING) != edit.status
        for edit in data.items
    )


# =============================================================================
# LOADING
# =============================================================================

async def load_order(db: AsyncSession, order_id: str) -> Optional[Order]:
    """Load an order with its items and their menu items, refreshing any cached copy."""
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_orders(
    db: AsyncSession,
    statuses: Optional[Iterable[OrderStatus]] = None,
    customer_id: Optional[str] = None,
    waiter_id: Optional[str] = None,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    skip: int = 0,
    limit: Optional[int] = None,
    newest_first: bool = True,
) -> list[Order]:
    query = select(Order)
    if statuses is not None:
        query = query.where(Order.status.in_(list(statuses)))
    if customer_id is not None:
        query = query.where(Order.customer_id == customer_id)
    if waiter_id is not None:
        query = query.where(Order.waiter_id == waiter_id)
    if since is not None:
        query = query.where(Order.created_at >= since)
    if until is not None:
        query = query.where(Order.created_at < until)
    query = query.order_by(Order.created_at.desc() if newest_first else Order.created_at.asc())
    if skip:
        query = query.offset(skip)
    if limit is not None:
        query = query.limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def _menu_lookup(db: AsyncSession, menu_item_ids: Iterable[str]) -> dict[str, MenuItem]:
    ids = set(menu_item_ids)
    if not ids:
        return {}
    result = await db.execute(select(MenuItem).where(MenuItem.id.in_(ids)))
    return {item.id: item for item in result.scalars().all()}


def _orderable(menu: dict[str, MenuItem], menu_item_id: str) -> MenuItem:
    menu_item = menu.get(menu_item_id)
    if menu_item is None:
        raise OrderValidationError(f"Menu item {menu_item_id} not found")
    if not menu_item.available:
        raise OrderValidationError(f"'{menu_item.name}' is currently unavailable")
    return menu_item


# =============================================================================
# WRITES
# =============================================================================

async def create_order(
    db: AsyncSession,
    user: User,
    lines: Sequence[OrderLine],
    customer_name: Optional[str] = None,
    table_number: Optional[int] = None,
    notes: Optional[str] = None,
    guest_prefix: str = "Guest",
) -> Order:
    """
    Persist a new pending order.

    Prices are copied from the menu. Customers are linked as ``customer_id``,
    waiters and managers as ``waiter_id``.

    Raises:
        OrderValidationError: On empty items, a bad quantity or table number,
            or an unknown or unavailable menu item
    """
    if not lines:
        raise OrderValidationError("Please add at least one item to the order")
    if table_number is not None and table_number <= 0:
        raise OrderValidationError("Please enter a valid table number or leave it empty")
    for line in lines:
        if line.quantity < 1:
            raise OrderValidationError("Quantity must be at least 1")

    menu = await _menu_lookup(db, (line.menu_item_id for line in lines))
    order = Order(
        customer_id=user.id if user.role == UserRole.CUSTOMER else None,
        waiter_id=user.id if user.role in (UserRole.WAITER, UserRole.MANAGER) else None,
        customer_name=(customer_name or "").strip() or generate_guest_name(guest_prefix),
        table_number=table_number,
        status=OrderStatus.PENDING,
        notes=notes,
    )
    order.items = [
        OrderItem(
            menu_item_id=line.menu_item_id,
            quantity=line.quantity,
            price=_orderable(menu, line.menu_item_id).price,
            notes=line.notes,
            status=ItemStatus.PENDING,
        )
        for line in lines
    ]
    order.recalculate_total()

    db.add(order)
    await db.commit()
    logger.info(
        f"📝 Order {order.id[:8]} created by {user.role.value} {user.email}: "
        f"{len(lines)} items, €{order.total:.2f}"
    )
    return await load_order(db, order.id)


async def update_order(db: AsyncSession, order: Order, data: OrderUpdate) -> Order:
    """
    Apply an edit to ``order`` and recompute its total.

    Raises:
        OrderValidationError: On an unknown item id or an unusable menu item
    """
    if data.customer_name is not None:
        order.customer_name = data.customer_name.strip() or order.customer_name
    if "table_number" in data.model_fields_set:
        order.table_number = data.table_number
    if data.status is not None:
        order.status = data.status
    if data.notes is not None:
        order.notes = data.notes or None

    if data.items is not None:
        existing = {item.id: item for item in order.items}
        menu = await _menu_lookup(db, (edit.menu_item_id for edit in data.items))
        kept = []
        status_changes = []
        for edit in data.items:
            if edit.id is not None:
                item = existing.get(edit.id)
                if item is None:
                    raise OrderValidationError(f"Order item {edit.id} does not belong to this order")
                if edit.menu_item_id != item.menu_item_id:
                    item.menu_item_id = edit.menu_item_id
                    item.price = _orderable(menu, edit.menu_item_id).price
                item.quantity = edit.quantity
                item.notes = edit.notes
            else:
                item = OrderItem(
                    menu_item_id=edit.menu_item_id,
                    quantity=edit.quantity,
                    price=_orderable(menu, edit.menu_item_id).price,
                    notes=edit.notes,
                    status=ItemStatus.PENDING,
                )
            if edit.status is not None:
                status_changes.append((item, edit.status, menu.get(edit.menu_item_id)))
            kept.append(item)
        # delete-orphan removes the items left out
        order.items = kept

        for item, item_status, menu_item in status_changes:
            await set_item_status(db, item, item_status, menu_item)

    order.recalculate_total()
    await db.commit()
    logger.info(f"✏️ Order {order.id[:8]} updated (€{order.total:.2f})")
    return await load_order(db, order.id)


async def set_item_status(
    db: AsyncSession,
    item: OrderItem,
    status: ItemStatus,
    menu_item: Optional[MenuItem] = None,
) -> list[str]:
    """
    Set an item's preparation status. The caller commits.

    A drink that becomes ready uses one unit of each inventory item it
    requires, and the availability of affected menu items is recomputed.

    Returns:
        Names of inventory items that were used
    """
    becomes_ready = status == ItemStatus.READY and item.status != ItemStatus.READY
    item.status = status

    menu_item = menu_item if menu_item is not None else item.menu_item
    if not becomes_ready or menu_item is None or not is_drink_category(menu_item.category):
        return []

    consumed = await consume_for_menu_item(db, menu_item)
    if consumed:
        logger.info(f"🍸 {menu_item.name} ready: used {', '.join(consumed)}")
    return consumed


async def set_order_status(db: AsyncSession, order: Order, status: OrderStatus) -> Order:
    previous = order.status
    order.status = status
    await db.commit()
    logger.info(f"Order {order.id[:8]} status {previous.value} → {status.value}")
    return await load_order(db, order.id)


# =============================================================================
# EVENTS AND SERIALIZATION
# =============================================================================

async def publish_order_event(kind: str, order: Order) -> None:
    """Notify realtime listeners. Delivery is best effort."""
    broker = get_event_broker()
    try:
        await broker.publish(
            ORDERS_CHANNEL,
            order_event(kind, order.id, order.table_number, order.status.value),
        )
    except Exception as e:
        logger.warning(f"Could not publish order.{kind} for {order.id[:8]}: {e}")


def serialize_item(item: OrderItem) -> OrderItemResponse:
    menu_item = item.menu_item
    return OrderItemResponse(
        id=item.id,
        menu_item_id=item.menu_item_id,
        menu_item_name=menu_item.name if menu_item is not None else None,
        category=menu_item.category if menu_item is not None else None,
        quantity=item.quantity,
        price=item.price,
        notes=item.notes,
        status=item.status,
    )


def serialize_order(order: Order, order_number: str) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        order_number=order_number,
        customer_id=order.customer_id,
        waiter_id=order.waiter_id,
        customer_name=order.customer_name,
        table_number=order.table_number,
        status=order.status,
        total=order.total,
        notes=order.notes,
        created_at=order.created_at,
        items=[serialize_item(item) for item in order.items],
    )


async def order_response(db: AsyncSession, order: Order) -> OrderResponse:
    return serialize_order(order, await order_number_for(db, order))


async def order_responses(db: AsyncSession, orders: Sequence[Order]) -> list[OrderResponse]:
    numbers = await order_numbers_for(db, orders)
    return [serialize_order(order, numbers[order.id]) for order in orders]


def ledger_row(order: Order, order_number: str, source: str = "manual") -> dict:
    """Flat row for the Excel sales ledger."""
    return {
        "order_id": order.id,
        "order_number": order_number,
        "created_at": order.created_at.isoformat(timespec="seconds"),
        "customer_name": order.customer_name,
        "table_number": order.table_number,
        "items": ", ".join(
            f"{item.quantity}x {item.menu_item.name if item.menu_item else item.menu_item_id}"
            for item in order.items
        ),
        "item_count": sum(item.quantity for item in order.items),
        "total": order.total,
        "status": order.status.value,
        "source": source,
    }
