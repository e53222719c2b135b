"""
SQLAlchemy Database Models

Tables for the restaurant floor:
- Users with a single role (manager, waiter, kitchen, bar, customer)
- Menu items with detail fields and required inventory
- Orders and their line items
- Bar inventory
- Restaurant tables with floor position
- Stored AI assistant chat messages

Ids are UUID strings. Timestamps are naive local time, the same clock the
dashboards use for "today".
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from restaurantos.database import Base


def new_id() -> str:
    return str(uuid.uuid4())


class UserRole(str, enum.Enum):
    MANAGER = "manager"
    WAITER = "waiter"
    KITCHEN = "kitchen"
    BAR = "bar"
    CUSTOMER = "customer"


class OrderStatus(str, enum.Enum):
    """Order status workflow: pending → preparing → ready → served → completed."""
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    SERVED = "served"
    COMPLETED = "completed"


class ItemStatus(str, enum.Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"


class TableShape(str, enum.Enum):
    ROUND = "round"
    SQUARE = "square"
    RECTANGULAR = "rectangular"
    OVAL = "oval"


class TableStatus(str, enum.Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    RESERVED = "reserved"
    CLEANING = "cleaning"


class MessageType(str, enum.Enum):
    USER = "user"
    ASSISTANT = "assistant"


# Orders that keep a table occupied
ACTIVE_ORDER_STATUSES = (
    OrderStatus.PENDING,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.SERVED,
)


class User(Base):
    """Staff member or customer account."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.CUSTOMER, index=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False)

    def __repr__(self):
        return f"<User {self.email} - {self.role.value}>"


class MenuItem(Base):
    """
    A dish or drink on the menu.

    ``required_inventory`` lists inventory item names consumed when a drink
    is marked ready. ``available`` is recomputed whenever one of them changes.
    """
    __tablename__ = "menu_items"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(150), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Float, nullable=False)
    category = Column(String(50), nullable=False, default="Food", index=True)
    image_url = Column(String(500), nullable=True)
    available = Column(Boolean, nullable=False, default=True)

    # =========================================================================
    # DETAIL FIELDS
    # =========================================================================
    ingredients = Column(JSON, nullable=False, default=list)
    allergens = Column(JSON, nullable=False, default=list)
    preparation_time = Column(Integer, nullable=True)  # minutes
    calories = Column(Integer, nullable=True)
    dietary_info = Column(JSON, nullable=False, default=list)
    required_inventory = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.now, nullable=False)

    def __repr__(self):
        return f"<MenuItem {self.name} - €{self.price:.2f}>"


class Order(Base):
    """A guest order, created by a customer, a waiter or the voice quick order."""
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)

    customer_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)
    waiter_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)
    customer_name = Column(String(100), nullable=True)
    table_number = Column(Integer, nullable=True, index=True)

    status = Column(
        Enum(OrderStatus),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True
    )
    total = Column(Float, nullable=False, default=0.0)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.now, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItem.created_at",
    )

    def recalculate_total(self) -> float:
        self.total = round(sum(item.price * item.quantity for item in self.items), 2)
        return self.total

    def __repr__(self):
        return f"<Order {self.id[:8]} - {self.customer_name} - {self.status.value}>"


class OrderItem(Base):
    """One menu line of an order. ``price`` is the menu price at order time."""
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    menu_item_id = Column(String(36), ForeignKey("menu_items.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Float, nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(Enum(ItemStatus), nullable=False, default=ItemStatus.PENDING)
    created_at = Column(DateTime, default=datetime.now, nullable=False)

    order = relationship("Order", back_populates="items")
    menu_item = relationship("MenuItem", lazy="selectin")

    def __repr__(self):
        return f"<OrderItem {self.quantity}x {self.menu_item_id[:8]} - {self.status.value}>"


class InventoryItem(Base):
    """Bar stock. Critical items block the menu items that need them when empty."""
    __tablename__ = "inventory_items"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False, unique=True, index=True)
    category = Column(String(50), nullable=False, default="General")
    quantity = Column(Float, nullable=False, default=0.0)
    unit = Column(String(30), nullable=False, default="pieces")
    threshold = Column(Float, nullable=False, default=5.0)
    is_critical = Column(Boolean, nullable=False, default=True)
    notes = Column(Text, nullable=True)
    last_updated = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.threshold

    def __repr__(self):
        return f"<InventoryItem {self.name} - {self.quantity} {self.unit}>"


class RestaurantTable(Base):
    """A table on the floor plan. Positions are floor coordinates in pixels."""
    __tablename__ = "restaurant_tables"

    id = Column(String(36), primary_key=True, default=new_id)
    number = Column(Integer, nullable=False, unique=True, index=True)
    seats = Column(Integer, nullable=False, default=4)
    shape = Column(Enum(TableShape), nullable=False, default=TableShape.SQUARE)
    status = Column(Enum(TableStatus), nullable=False, default=TableStatus.AVAILABLE)
    pos_x = Column(Integer, nullable=False, default=0)
    pos_y = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<Table {self.number} - {self.seats} seats - {self.status.value}>"


class Message(Base):
    """AI assistant chat history, cleared when the user signs out."""
    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    type = Column(Enum(MessageType), nullable=False)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
