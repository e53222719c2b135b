"""
Menu Endpoints

Browsing is public. Creating, editing, toggling and deleting items is
reserved for managers.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from restaurantos.core.security import require_roles
from restaurantos.database import get_db
from restaurantos.models import MenuItem, OrderItem, User, UserRole
from restaurantos.schemas import (
    ErrorResponse,
    MenuItemCreate,
    MenuItemResponse,
    MenuItemUpdate,
    MessageResponse,
)
from restaurantos.services.inventory import load_stock, missing_critical

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/menu", tags=["Menu"])

manager_only = require_roles(UserRole.MANAGER)


async def get_menu_item_or_404(db: AsyncSession, item_id: str) -> MenuItem:
    item = await db.get(MenuItem, item_id)
    if item is None:
        raise HTTPException(status_code=404, detail=f"Menu item {item_id} not found")
    return item


async def _stock_allows(db: AsyncSession, item: MenuItem) -> bool:
    required = item.required_inventory or []
    if not required:
        return True
    return not missing_critical(required, await load_stock(db, required))


@router.get("", response_model=list[MenuItemResponse])
async def list_menu(
    available_only: bool = Query(False),
    category: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> list[MenuItemResponse]:
    query = select(MenuItem).order_by(MenuItem.category, MenuItem.name)
    if available_only:
        query = query.where(MenuItem.available.is_(True))
    if category:
        query = query.where(MenuItem.category == category)
    result = await db.execute(query)
    return [MenuItemResponse.model_validate(item) for item in result.scalars().all()]


@router.get("/categories", response_model=list[str])
async def list_categories(db: AsyncSession = Depends(get_db)) -> list[str]:
    result = await db.execute(select(MenuItem.category).distinct().order_by(MenuItem.category))
    return list(result.scalars().all())


@router.get("/{item_id}", response_model=MenuItemResponse, responses={404: {"model": ErrorResponse}})
async def get_menu_item(item_id: str, db: AsyncSession = Depends(get_db)) -> MenuItemResponse:
    return MenuItemResponse.model_validate(await get_menu_item_or_404(db, item_id))


@router.post("", response_model=MenuItemResponse, status_code=status.HTTP_201_CREATED)
async def create_menu_item(
    data: MenuItemCreate,
    user: User = Depends(manager_only),
    db: AsyncSession = Depends(get_db),
) -> MenuItemResponse:
    item = MenuItem(**data.model_dump())
    if item.available and not await _stock_allows(db, item):
        item.available = False
    db.add(item)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.error(f"Could not create menu item {data.name}: {e}")
        raise HTTPException(status_code=400, detail="Menu item could not be saved")
    await db.refresh(item)

    logger.info(f"🍽️ Menu item '{item.name}' added by {user.email} (€{item.price:.2f})")
    return MenuItemResponse.model_validate(item)


@router.patch("/{item_id}", response_model=MenuItemResponse, responses={404: {"model": ErrorResponse}})
async def update_menu_item(
    item_id: str,
    data: MenuItemUpdate,
    user: User = Depends(manager_only),
    db: AsyncSession = Depends(get_db),
) -> MenuItemResponse:
    item = await get_menu_item_or_404(db, item_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field in ("name", "description", "price", "available"):
            continue
        setattr(item, field, value)
    if item.available and not await _stock_allows(db, item):
        item.available = False

    await db.commit()
    await db.refresh(item)
    logger.info(f"Menu item '{item.name}' updated by {user.email}")
    return MenuItemResponse.model_validate(item)


@router.post("/{item_id}/toggle", response_model=MenuItemResponse, responses={404: {"model": ErrorResponse}})
async def toggle_menu_item(
    item_id: str,
    user: User = Depends(manager_only),
    db: AsyncSession = Depends(get_db),
) -> MenuItemResponse:
    """Flip ``available``."""
    item = await get_menu_item_or_404(db, item_id)
    item.available = not item.available
    await db.commit()
    await db.refresh(item)
    logger.info(f"Menu item '{item.name}' is now {'available' if item.available else 'unavailable'}")
    return MenuItemResponse.model_validate(item)


@router.delete("/{item_id}", response_model=MessageResponse, responses={404: {"model": ErrorResponse}})
async def delete_menu_item(
    item_id: str,
    user: User = Depends(manager_only),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    item = await get_menu_item_or_404(db, item_id)
    name = item.name
    in_use = await db.execute(
        select(func.count(OrderItem.id)).where(OrderItem.menu_item_id == item_id)
    )
    if in_use.scalar_one():
        raise HTTPException(status_code=400, detail=f"'{name}' appears on existing orders. Mark it unavailable instead.")

    await db.delete(item)
    await db.commit()

    logger.info(f"🗑️ Menu item '{name}' deleted by {user.email}")
    return MessageResponse(message=f"Menu item '{name}' deleted")
