"""
Bar Inventory Endpoints

Stock CRUD for the bar and managers. Every change re-evaluates the menu
items that depend on the touched stock.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurantos.api.dashboards import low_stock_items
from restaurantos.core.security import require_roles
from restaurantos.database import get_db
from restaurantos.models import InventoryItem, User, UserRole
from restaurantos.schemas import (
    ErrorResponse,
    InventoryItemCreate,
    InventoryItemResponse,
    InventoryItemUpdate,
    MessageResponse,
)
from restaurantos.services.inventory import default_is_critical, refresh_menu_availability

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/inventory", tags=["Inventory"])

stock_keepers = require_roles(UserRole.BAR, UserRole.MANAGER)


async def get_inventory_item_or_404(db: AsyncSession, item_id: str) -> InventoryItem:
    item = await db.get(InventoryItem, item_id)
    if item is None:
        raise HTTPException(status_code=404, detail=f"Inventory item {item_id} not found")
    return item


async def _ensure_unique_name(db: AsyncSession, name: str) -> None:
    result = await db.execute(select(InventoryItem.id).where(InventoryItem.name == name))
    if result.scalar_one_or_none() is not None:
        raise HTTPException(status_code=400, detail=f"Inventory item '{name}' already exists")


@router.get("", response_model=list[InventoryItemResponse])
async def list_inventory(
    user: User = Depends(stock_keepers),
    db: AsyncSession = Depends(get_db),
) -> list[InventoryItemResponse]:
    result = await db.execute(select(InventoryItem).order_by(InventoryItem.category, InventoryItem.name))
    return [InventoryItemResponse.model_validate(item) for item in result.scalars().all()]


@router.get("/low-stock", response_model=list[InventoryItemResponse])
async def list_low_stock(
    user: User = Depends(stock_keepers),
    db: AsyncSession = Depends(get_db),
) -> list[InventoryItemResponse]:
    """Items at or below their reorder threshold."""
    return await low_stock_items(db)


@router.get("/{item_id}", response_model=InventoryItemResponse, responses={404: {"model": ErrorResponse}})
async def get_inventory_item(
    item_id: str,
    user: User = Depends(stock_keepers),
    db: AsyncSession = Depends(get_db),
) -> InventoryItemResponse:
    return InventoryItemResponse.model_validate(await get_inventory_item_or_404(db, item_id))


@router.post(
    "",
    response_model=InventoryItemResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_inventory_item(
    data: InventoryItemCreate,
    user: User = Depends(stock_keepers),
    db: AsyncSession = Depends(get_db),
) -> InventoryItemResponse:
    await _ensure_unique_name(db, data.name)

    values = data.model_dump()
    if values["is_critical"] is None:
        values["is_critical"] = default_is_critical(data.name)
    item = InventoryItem(**values, last_updated=datetime.now())
    db.add(item)
    await db.flush()
    await refresh_menu_availability(db, [item.name])
    await db.commit()
    await db.refresh(item)

    logger.info(f"📦 Inventory item '{item.name}' added ({item.quantity} {item.unit})")
    return InventoryItemResponse.model_validate(item)


@router.patch(
    "/{item_id}",
    response_model=InventoryItemResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_inventory_item(
    item_id: str,
    data: InventoryItemUpdate,
    user: User = Depends(stock_keepers),
    db: AsyncSession = Depends(get_db),
) -> InventoryItemResponse:
    item = await get_inventory_item_or_404(db, item_id)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)

    if "quantity" in changes and changes["quantity"] < 0:
        raise HTTPException(status_code=400, detail="Quantity cannot be negative")
    previous_name = item.name
    if "name" in changes and changes["name"] != previous_name:
        await _ensure_unique_name(db, changes["name"])

    for field, value in changes.items():
        setattr(item, field, value)
    item.last_updated = datetime.now()

    await db.flush()
    await refresh_menu_availability(db, {previous_name, item.name})
    await db.commit()
    await db.refresh(item)

    logger.info(f"📦 Inventory '{item.name}' updated by {user.email}: {changes}")
    return InventoryItemResponse.model_validate(item)


@router.delete("/{item_id}", response_model=MessageResponse, responses={404: {"model": ErrorResponse}})
async def delete_inventory_item(
    item_id: str,
    user: User = Depends(stock_keepers),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    item = await get_inventory_item_or_404(db, item_id)
    name = item.name
    await db.delete(item)
    await db.flush()
    # Unknown names no longer block anything
    await refresh_menu_availability(db, [name])
    await db.commit()

    logger.info(f"🗑️ Inventory item '{name}' deleted by {user.email}")
    return MessageResponse(message=f"Inventory item '{name}' deleted")
