"""
Default Data

Seeds the floor plan and bar inventory into an empty database, and a demo
menu when ``SEED_DEMO_MENU`` is on. Existing rows are never touched.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurantos.models import InventoryItem, MenuItem, RestaurantTable, TableShape, TableStatus
from restaurantos.services.inventory import DEFAULT_INVENTORY, default_is_critical
from restaurantos.services.layout import DEFAULT_TABLES

logger = logging.getLogger(__name__)

# (name, description, price, category, ingredients, allergens, minutes, calories, dietary, required inventory)
DEMO_MENU = (
    ("Margherita Pizza", "Fresh tomatoes, mozzarella cheese, basil, olive oil", 18.99, "Main Course",
     ["Tomatoes", "Mozzarella", "Basil", "Olive Oil"], ["Gluten", "Dairy"], 15, 850, ["Vegetarian"], []),
    ("Caesar Salad", "Romaine lettuce, parmesan, croutons, caesar dressing", 12.99, "Salads",
     ["Romaine", "Parmesan", "Croutons"], ["Gluten", "Dairy", "Eggs"], 8, 420, [], []),
    ("Grilled Salmon", "Atlantic salmon with lemon butter sauce and vegetables", 24.99, "Main Course",
     ["Salmon", "Butter", "Lemon", "Vegetables"], ["Fish", "Dairy"], 20, 620, ["Gluten-Free"], []),
    ("Chicken Alfredo", "Grilled chicken with creamy alfredo sauce over fettuccine", 19.99, "Main Course",
     ["Chicken", "Cream", "Fettuccine", "Parmesan"], ["Gluten", "Dairy"], 18, 980, [], []),
    ("Tiramisu", "Classic Italian dessert with coffee and mascarpone", 7.99, "Desserts",
     ["Mascarpone", "Espresso", "Ladyfingers", "Cocoa"], ["Gluten", "Dairy", "Eggs"], 5, 450, ["Vegetarian"], []),
    ("Iced Coffee", "Chilled coffee served over ice cubes with a splash of milk", 4.50, "Beverage",
     ["Coffee", "Ice", "Milk", "Sugar Syrup"], ["Dairy"], 3, 120, ["Caffeine"],
     ["Coffee Beans", "Milk", "Ice"]),
    ("Gin Tonic", "Dry gin with tonic water, lime and ice", 8.50, "Cocktail",
     ["Gin", "Tonic Water", "Lime", "Ice"], [], 2, 180, ["Vegan"],
     ["Gin", "Tonic Water", "Limes", "Ice"]),
    ("Mojito", "White rum, fresh mint, lime, sugar syrup and soda", 9.00, "Cocktail",
     ["Rum", "Mint", "Lime", "Sugar Syrup", "Soda Water"], [], 4, 220, ["Vegan"],
     ["Rum", "Mint", "Limes", "Simple Syrup", "Soda Water", "Ice"]),
    ("Sparkling Water", "Carbonated mineral water served with a slice of lemon", 3.50, "Beverage",
     ["Carbonated Water", "Lemon"], [], 1, 0, ["Vegan", "Sugar-Free"],
     ["Soda Water", "Lemons"]),
)


async def _is_empty(db: AsyncSession, model) -> bool:
    result = await db.execute(select(func.count()).select_from(model))
    return result.scalar_one() == 0


async def seed_tables(db: AsyncSession) -> int:
    if not await _is_empty(db, RestaurantTable):
        return 0
    for number, seats, shape, status, x, y in DEFAULT_TABLES:
        db.add(RestaurantTable(
            number=number,
            seats=seats,
            shape=TableShape(shape),
            status=TableStatus(status),
            pos_x=x,
            pos_y=y,
        ))
    return len(DEFAULT_TABLES)


async def seed_inventory(db: AsyncSession) -> int:
    if not await _is_empty(db, InventoryItem):
        return 0
    for name, category, quantity, unit, threshold in DEFAULT_INVENTORY:
        db.add(InventoryItem(
            name=name,
            category=category,
            quantity=float(quantity),
            unit=unit,
            threshold=float(threshold),
            is_critical=default_is_critical(name),
        ))
    return len(DEFAULT_INVENTORY)


async def seed_menu(db: AsyncSession) -> int:
    if not await _is_empty(db, MenuItem):
        return 0
    for (name, description, price, category, ingredients, allergens,
         minutes, calories, dietary, required) in DEMO_MENU:
        db.add(MenuItem(
            name=name,
            description=description,
            price=price,
            category=category,
            ingredients=ingredients,
            allergens=allergens,
            preparation_time=minutes,
            calories=calories,
            dietary_info=dietary,
            required_inventory=required,
        ))
    return len(DEMO_MENU)


async def seed_defaults(db: AsyncSession, include_menu: bool = True) -> dict[str, int]:
    """
    Fill empty tables with default rows.

    Returns:
        Number of rows added per table
    """
    counts = {
        "restaurant_tables": await seed_tables(db),
        "inventory_items": await seed_inventory(db),
        "menu_items": await seed_menu(db) if include_menu else 0,
    }
    await db.commit()

    added = {name: count for name, count in counts.items() if count}
    if added:
        logger.info(f"🌱 Seeded default data: {added}")
    return counts
