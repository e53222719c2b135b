"""
Pydantic Schemas for Request/Response Validation

Covers authentication, menu, orders, floor plan, inventory, sales
reports, the voice quick order with its invoice, the AI assistant and
company settings.
"""

import re
from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from restaurantos.core.config import get_settings
from restaurantos.models import (
    ItemStatus,
    MessageType,
    OrderStatus,
    TableShape,
    TableStatus,
    UserRole,
)


EMAIL_PATTERN = re.compile(r'^[\w\.+-]+@[\w\.-]+\.\w+$')


def _required_text(value: Optional[str], message: str) -> str:
    if value is None or not value.strip():
        raise ValueError(message)
    return value.strip()


def _password(value: str) -> str:
    minimum = get_settings().min_password_length
    if len(value) < minimum:
        raise ValueError(f'Password must be at least {minimum} characters')
    return value


# =============================================================================
# AUTH SCHEMAS
# =============================================================================

class SignUpRequest(BaseModel):
    email: str = Field(..., examples=["waiter@restaurantos.de"])
    password: str
    name: str = Field(..., max_length=100, examples=["Anna Schmidt"])
    role: UserRole = Field(default=UserRole.CUSTOMER)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not EMAIL_PATTERN.match(v):
            raise ValueError('Invalid email format')
        return v

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _password(v)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _required_text(v, 'Name is required')


class SignInRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    role: UserRole
    created_at: datetime


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class ForgotPasswordRequest(BaseModel):
    email: str

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str

    @field_validator('new_password')
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return _password(v)


class MessageResponse(BaseModel):
    success: bool = True
    message: str


# =============================================================================
# MENU SCHEMAS
# =============================================================================

class MenuItemCreate(BaseModel):
    name: str = Field(..., max_length=150, examples=["Pizza Margherita"])
    description: str = Field(..., examples=["Tomato, mozzarella, basil"])
    price: float = Field(..., gt=0, examples=[12.5])
    category: str = Field(default="Food", max_length=50)
    image_url: Optional[str] = Field(None, max_length=500)
    available: bool = True
    ingredients: List[str] = Field(default_factory=list)
    allergens: List[str] = Field(default_factory=list)
    preparation_time: Optional[int] = Field(None, ge=0)
    calories: Optional[int] = Field(None, ge=0)
    dietary_info: List[str] = Field(default_factory=list)
    required_inventory: List[str] = Field(default_factory=list)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _required_text(v, 'Menu item name is required')

    @field_validator('description')
    @classmethod
    def validate_description(cls, v: str) -> str:
        return _required_text(v, 'Menu item description is required')

    @field_validator('category')
    @classmethod
    def default_category(cls, v: str) -> str:
        return v.strip() or "Food"


class MenuItemUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=150)
    description: Optional[str] = None
    price: Optional[float] = Field(None, gt=0)
    category: Optional[str] = Field(None, max_length=50)
    image_url: Optional[str] = Field(None, max_length=500)
    available: Optional[bool] = None
    ingredients: Optional[List[str]] = None
    allergens: Optional[List[str]] = None
    preparation_time: Optional[int] = Field(None, ge=0)
    calories: Optional[int] = Field(None, ge=0)
    dietary_info: Optional[List[str]] = None
    required_inventory: Optional[List[str]] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _required_text(v, 'Menu item name is required')

    @field_validator('description')
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _required_text(v, 'Menu item description is required')


class MenuItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str
    price: float
    category: str
    image_url: Optional[str]
    available: bool
    ingredients: List[str]
    allergens: List[str]
    preparation_time: Optional[int]
    calories: Optional[int]
    dietary_info: List[str]
    required_inventory: List[str]
    created_at: datetime


# =============================================================================
# ORDER SCHEMAS
# =============================================================================

class OrderItemCreate(BaseModel):
    """Single item in an order."""
    menu_item_id: str
    quantity: int = Field(default=1, ge=1, le=99)
    notes: Optional[str] = Field(None, max_length=500)
    seat_number: Optional[int] = Field(None, ge=1)


class OrderCreate(BaseModel):
    """Request schema for creating a new order."""
    customer_name: Optional[str] = Field(None, max_length=100, examples=["Max Mustermann"])
    table_number: Optional[int] = Field(None, gt=0, examples=[4])
    items: List[OrderItemCreate] = Field(..., min_length=1)
    notes: Optional[str] = Field(None, max_length=500)


class OrderItemEdit(BaseModel):
    """An item in the edit modal. Items without ``id`` are added."""
    id: Optional[str] = None
    menu_item_id: str
    quantity: int = Field(..., ge=1, le=99)
    notes: Optional[str] = Field(None, max_length=500)
    status: Optional[ItemStatus] = None


class OrderUpdate(BaseModel):
    """
    Edit an existing order.

    When ``items`` is given it replaces the order's item list: matching ids
    are updated, new entries added and missing ones removed.
    """
    customer_name: Optional[str] = Field(None, max_length=100)
    table_number: Optional[int] = Field(None, gt=0)
    status: Optional[OrderStatus] = None
    notes: Optional[str] = Field(None, max_length=500)
    items: Optional[List[OrderItemEdit]] = Field(None, min_length=1)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderItemStatusUpdate(BaseModel):
    status: ItemStatus


class OrderItemResponse(BaseModel):
    id: str
    menu_item_id: str
    menu_item_name: Optional[str]
    category: Optional[str]
    quantity: int
    price: float
    notes: Optional[str]
    status: ItemStatus


class OrderResponse(BaseModel):
    """Response schema for a single order."""
    id: str
    order_number: str
    customer_id: Optional[str]
    waiter_id: Optional[str]
    customer_name: Optional[str]
    table_number: Optional[int]
    status: OrderStatus
    total: float
    notes: Optional[str]
    created_at: datetime
    items: List[OrderItemResponse]


class OrderListResponse(BaseModel):
    """Response for listing multiple orders."""
    total: int
    orders: List[OrderResponse]


# =============================================================================
# TABLE SCHEMAS
# =============================================================================

class SeatPositionResponse(BaseModel):
    seat: int
    x: float
    y: float


class TableResponse(BaseModel):
    id: str
    number: int
    seats: int
    shape: TableShape
    status: TableStatus
    stored_status: TableStatus
    x: int
    y: int
    seat_positions: List[SeatPositionResponse]
    active_order_ids: List[str]


class TableUpdate(BaseModel):
    number: Optional[int] = Field(None, ge=1)
    seats: Optional[int] = Field(None, ge=1, le=20)
    shape: Optional[TableShape] = None
    status: Optional[TableStatus] = None
    x: Optional[int] = Field(None, ge=0)
    y: Optional[int] = Field(None, ge=0)


# =============================================================================
# DASHBOARD SCHEMAS
# =============================================================================

class DrinkItemResponse(BaseModel):
    order_id: str
    order_number: str
    table_number: Optional[int]
    customer_name: Optional[str]
    item: OrderItemResponse
    can_prepare: bool = True
    missing_critical: List[str] = Field(default_factory=list)


class KitchenDashboardResponse(BaseModel):
    active_orders: List[OrderResponse]
    recent_orders: List[OrderResponse]


class BarDashboardResponse(BaseModel):
    active_drinks: List[DrinkItemResponse]
    ready_drinks: List[DrinkItemResponse]
    low_stock: List["InventoryItemResponse"]


class WaiterDashboardResponse(BaseModel):
    orders: List[OrderResponse]
    tables: List[TableResponse]


class CustomerDashboardResponse(BaseModel):
    menu: List[MenuItemResponse]
    orders: List[OrderResponse]


class ManagerDashboardResponse(BaseModel):
    today_orders: List[OrderResponse]
    today_revenue: float
    today_order_count: int
    status_counts: dict[str, int]
    low_stock: List["InventoryItemResponse"]


# =============================================================================
# INVENTORY SCHEMAS
# =============================================================================

class InventoryItemCreate(BaseModel):
    name: str = Field(..., max_length=100, examples=["Vodka"])
    category: str = Field(default="General", max_length=50)
    quantity: float = Field(default=0.0, ge=0)
    unit: str = Field(default="pieces", max_length=30)
    threshold: float = Field(default=5.0, ge=0)
    is_critical: Optional[bool] = None
    notes: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _required_text(v, 'Inventory item name is required')


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    category: Optional[str] = Field(None, max_length=50)
    quantity: Optional[float] = None
    unit: Optional[str] = Field(None, max_length=30)
    threshold: Optional[float] = Field(None, ge=0)
    is_critical: Optional[bool] = None
    notes: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _required_text(v, 'Inventory item name is required')


class InventoryItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    category: str
    quantity: float
    unit: str
    threshold: float
    is_critical: bool
    is_low_stock: bool
    notes: Optional[str]
    last_updated: Optional[datetime]


BarDashboardResponse.model_rebuild()
ManagerDashboardResponse.model_rebuild()


# =============================================================================
# REPORT SCHEMAS
# =============================================================================

class BillSummaryResponse(BaseModel):
    id: str
    date: date
    time: str
    bill_number: str
    customer_name: str
    table_number: Optional[int]
    item_count: int
    total: float
    status: OrderStatus


class DailySummaryResponse(BaseModel):
    date: date
    bill_count: int
    revenue: float
    average_bill: float


class SalesStatsResponse(BaseModel):
    total_bills: int
    total_revenue: float
    average_bill: float
    today_bills: int
    today_revenue: float
    growth_rate: float


class SalesReportResponse(BaseModel):
    start_date: date
    end_date: date
    status: str
    stats: SalesStatsResponse
    bills: List[BillSummaryResponse]
    daily: List[DailySummaryResponse]


class ExportResponse(BaseModel):
    success: bool
    message: str
    path: Optional[str] = None
    rows: int = 0


# =============================================================================
# VOICE ORDER / INVOICE SCHEMAS
# =============================================================================

class VoiceOrderParseRequest(BaseModel):
    transcript: str

    @field_validator('transcript')
    @classmethod
    def validate_transcript(cls, v: str) -> str:
        return _required_text(v, 'Transcript is empty')


class ParsedItemResponse(BaseModel):
    name: str
    quantity: int
    notes: Optional[str]
    matched: bool
    menu_item_id: Optional[str]
    menu_item_name: Optional[str]
    unit_price: float
    total_price: float
    vat_rate: int
    vat_amount: float


class ParsedOrderResponse(BaseModel):
    customer_name: Optional[str]
    table_number: Optional[int]
    special_instructions: Optional[str]
    items: List[ParsedItemResponse]
    subtotal: float
    total_vat: float
    grand_total: float


class VoiceOrderLine(BaseModel):
    """A previewed line the staff confirmed."""
    menu_item_id: str
    quantity: int = Field(default=1, ge=1, le=99)
    notes: Optional[str] = Field(None, max_length=500)


class VoiceOrderCreateRequest(BaseModel):
    """
    Confirm a previewed quick order.

    ``items`` are the matched lines of the preview; they are priced against
    the menu again but the transcript is not sent to the AI a second time.
    """
    transcript: str
    items: List[VoiceOrderLine] = Field(..., min_length=1)
    customer_name: Optional[str] = Field(None, max_length=100)
    table_number: Optional[int] = Field(None, gt=0)
    special_instructions: Optional[str] = Field(None, max_length=500)
    unmatched_items: List[str] = Field(default_factory=list)

    @field_validator('transcript')
    @classmethod
    def validate_transcript(cls, v: str) -> str:
        return _required_text(v, 'Transcript is empty')


class InvoiceLineSchema(BaseModel):
    name: str
    quantity: int = Field(..., ge=1)
    unit_price: float
    total_price: float
    vat_rate: int = 19
    vat_amount: float
    notes: Optional[str] = None


class InvoiceSchema(BaseModel):
    invoice_number: str
    date: str = Field(..., examples=["19.10.2026"])
    customer_name: str
    table_number: Optional[int] = None
    items: List[InvoiceLineSchema] = Field(..., min_length=1)
    subtotal: float
    total_vat: float
    grand_total: float
    notes: Optional[str] = None
    qr_code: Optional[str] = None

    @field_validator('date')
    @classmethod
    def validate_date(cls, v: str) -> str:
        if not re.match(r'^\d{2}\.\d{2}\.\d{4}$', v):
            raise ValueError('Invoice date must use the DD.MM.YYYY format')
        return v

    @property
    def net_amount(self) -> float:
        return self.subtotal - self.total_vat


class VoiceOrderCreateResponse(BaseModel):
    order: OrderResponse
    invoice: InvoiceSchema
    unmatched_items: List[str]


class InvoiceEmailRequest(BaseModel):
    invoice: InvoiceSchema
    to_email: Optional[str] = None
    cc_email: Optional[str] = None


class DatevExportRequest(BaseModel):
    invoices: List[InvoiceSchema] = Field(..., min_length=1)


# =============================================================================
# AI ASSISTANT SCHEMAS
# =============================================================================

class ChatRequest(BaseModel):
    message: str

    @field_validator('message')
    @classmethod
    def validate_message(cls, v: str) -> str:
        return _required_text(v, 'Message is empty')


class ChatResponse(BaseModel):
    success: bool
    answer: Optional[str] = None
    error: Optional[str] = None


class NLQueryResponse(BaseModel):
    success: bool
    answer: Optional[str] = None
    result: List[Any] = Field(default_factory=list)
    sql_query: Optional[str] = None
    error: Optional[str] = None


class ChatMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    content: str
    type: MessageType
    created_at: datetime


class InsightResponse(BaseModel):
    name: str
    success: bool
    data: Any = None
    error: Optional[str] = None


# =============================================================================
# COMPANY SETTINGS
# =============================================================================

class CompanySettings(BaseModel):
    """Company details printed on invoices."""
    name: str = "RestaurantOS GmbH"
    address: str = "Musterstraße 123"
    city: str = "12345 Musterstadt"
    phone: str = "+49 123 456789"
    email: str = "info@restaurantos.de"
    website: str = "www.restaurantos.de"
    tax_number: str = "DE123456789"
    vat_id: str = "DE987654321"


# =============================================================================
# SYSTEM SCHEMAS
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    redis: str
    ai_service: str
    notification_service: str
    timestamp: datetime
