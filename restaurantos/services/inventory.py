"""
Inventory Rules

Drink detection, stock consumption when a drink is marked ready, and menu
availability derived from critical stock.

A menu item is available unless one of its required inventory items is
critical and has quantity <= 0. Unknown inventory names are ignored.
"""

import logging
from datetime import datetime
from typing import Iterable, Mapping, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurantos.models import InventoryItem, MenuItem

logger = logging.getLogger(__name__)

DRINK_CATEGORIES = ("drink", "beverage", "alcohol", "coffee", "tea", "wine", "beer", "cocktail")

# Stock that never blocks a drink; it may simply run out
NON_CRITICAL_NAMES = frozenset({
    "Ice", "Lemons", "Limes", "Mint", "Garnish", "Straw", "Napkin", "Coaster", "Stirrer", "Umbrella",
})

# (name, category, quantity, unit, threshold)
DEFAULT_INVENTORY = (
    ("Vodka", "Spirits", 12, "bottles", 5),
    ("Rum", "Spirits", 8, "bottles", 5),
    ("Gin", "Spirits", 4, "bottles", 5),
    ("Tequila", "Spirits", 2, "bottles", 5),
    ("Coffee Beans", "Coffee", 8, "kg", 3),
    ("Milk", "Dairy", 15, "liters", 10),
    ("Lemons", "Garnish", 25, "pieces", 15),
    ("Limes", "Garnish", 12, "pieces", 15),
    ("Simple Syrup", "Mixers", 3, "bottles", 2),
    ("Mint", "Garnish", 5, "bunches", 3),
    ("Tonic Water", "Mixers", 24, "bottles", 12),
    ("Soda Water", "Mixers", 18, "bottles", 12),
    ("Orange Juice", "Juices", 8, "liters", 5),
    ("Cranberry Juice", "Juices", 3, "liters", 5),
    ("Ice", "Essentials", 25, "kg", 10),
)


def is_drink_category(category: Optional[str]) -> bool:
    lowered = (category or "").lower()
    return any(keyword in lowered for keyword in DRINK_CATEGORIES)


def default_is_critical(name: str) -> bool:
    return name not in NON_CRITICAL_NAMES


def missing_critical(required: Iterable[str], stock: Mapping[str, InventoryItem]) -> list[str]:
    """Names of required items that are critical and out of stock."""
    missing = []
    for name in required or ():
        item = stock.get(name)
        if item is not None and item.is_critical and item.quantity <= 0:
            missing.append(name)
    return missing


def consume_unit(quantity: float, is_critical: bool) -> Optional[float]:
    """
    New quantity after using one unit, or None when nothing may be taken.

    Critical stock is only used while it lasts. Non-critical stock is always
    used but never goes below zero.
    """
    if not is_critical:
        return max(0.0, quantity - 1)
    if quantity > 0:
        return quantity - 1
    return None


async def load_stock(db: AsyncSession, names: Optional[Iterable[str]] = None) -> dict[str, InventoryItem]:
    query = select(InventoryItem)
    if names is not None:
        query = query.where(InventoryItem.name.in_(list(names)))
    result = await db.execute(query)
    return {item.name: item for item in result.scalars().all()}


async def refresh_menu_availability(db: AsyncSession, inventory_names: Iterable[str]) -> list[MenuItem]:
    """
    Recompute ``available`` for menu items that need any of ``inventory_names``.

    Returns:
        The menu items whose availability changed
    """
    touched = set(inventory_names)
    if not touched:
        return []

    result = await db.execute(select(MenuItem))
    dependents = [
        item for item in result.scalars().all()
        if touched.intersection(item.required_inventory or ())
    ]
    if not dependents:
        return []

    needed = {name for item in dependents for name in item.required_inventory}
    stock = await load_stock(db, needed)

    changed = []
    for item in dependents:
        available = not missing_critical(item.required_inventory, stock)
        if item.available != available:
            item.available = available
            changed.append(item)
            logger.info(f"Menu item '{item.name}' is now {'available' if available else 'unavailable'}")
    return changed


async def consume_for_menu_item(db: AsyncSession, menu_item: MenuItem, units: int = 1) -> list[str]:
    """
    Use stock for a prepared drink and refresh menu availability.

    The caller commits.

    Returns:
        Names of inventory items that were decremented
    """
    required: Sequence[str] = menu_item.required_inventory or ()
    if not required:
        return []

    stock = await load_stock(db, required)
    consumed = []
    for name in required:
        item = stock.get(name)
        if item is None:
            logger.warning(f"Inventory item '{name}' required by '{menu_item.name}' not found")
            continue
        taken = 0
        for _ in range(units):
            new_quantity = consume_unit(item.quantity, item.is_critical)
            if new_quantity is None:
                break
            item.quantity = new_quantity
            taken += 1
        if not taken:
            logger.warning(f"No {name} left for {menu_item.name}")
            continue
        item.last_updated = datetime.now()
        consumed.append(name)
        logger.info(f"Consumed stock of {name} for {menu_item.name} ({item.quantity} {item.unit} left)")

    await db.flush()
    await refresh_menu_availability(db, consumed)
    return consumed
