"""
Database seeding utilities for a demo restaurant.

Seeds:
- Demo owner account (demo@tableside.dev / demo-password)
- Demo restaurant (slug 'demo-bistro') with bank details for delivery checkout
- Menu categories and items
- Tables 1-6
- A supplier and a few inventory items linked to menu items as ingredients

Usage:
  python -m tableside.db.run_migrations upgrade head
  python -m tableside.db.seed
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict

from sqlalchemy.ext.asyncio import AsyncSession

from tableside.core.security import get_password_hash
from tableside.db.models.inventory import InventoryItem, Supplier
from tableside.db.models.menu import Category, MenuItem, MenuItemIngredient
from tableside.db.models.restaurants import Restaurant, RestaurantTable
from tableside.db.models.security import User
from tableside.db.session import get_async_session, tenant_context
from tableside.repositories.restaurants import RestaurantRepository
from tableside.repositories.security import SecurityRepository
from tableside.schemas.restaurants import RestaurantCreate
from tableside.services.restaurants import RestaurantService

logger = logging.getLogger(__name__)

DEMO_EMAIL = "demo@tableside.dev"
DEMO_PASSWORD = "demo-password"
DEMO_SLUG = "demo-bistro"

MENU = {
    ("Starters", 0): [
        ("Bruschetta", "Grilled bread, tomato, basil", 6.50, True),
        ("Soup of the Day", "Ask your server", 5.00, False),
    ],
    ("Mains", 1): [
        ("Margherita Pizza", "Tomato, mozzarella, basil", 11.00, True),
        ("Grilled Salmon", "Seasonal vegetables, lemon butter", 18.50, False),
        ("Beef Burger", "Cheddar, pickles, fries", 14.00, False),
    ],
    ("Drinks", 2): [
        ("Lemonade", "Fresh squeezed", 3.50, False),
        ("Espresso", None, 2.50, False),
    ],
}

INVENTORY = [
    # name, unit, in stock, minimum, cost per unit
    ("Tomatoes", "kg", 12, 5, 2.40),
    ("Mozzarella", "kg", 6, 3, 9.80),
    ("Pizza Dough", "unit", 40, 15, 0.60),
    ("Salmon Fillet", "unit", 8, 10, 6.20),
]

INGREDIENTS = {
    "Margherita Pizza": [("Pizza Dough", 1), ("Mozzarella", 0.15), ("Tomatoes", 0.12)],
    "Bruschetta": [("Tomatoes", 0.08)],
    "Grilled Salmon": [("Salmon Fillet", 1)],
}


# PUBLIC_INTERFACE
async def seed_all() -> None:
    """
    Seed the database with a demo restaurant.

    Idempotent: nothing is written when the demo restaurant already exists.
    """
    async for session in get_async_session():
        if await RestaurantRepository(session).get_by_slug(DEMO_SLUG, active_only=False) is not None:
            logger.info("Demo restaurant already present; skipping seed")
            continue

        owner = await _ensure_owner(session)
        restaurant = await RestaurantService(session).create_restaurant(
            owner,
            RestaurantCreate(
                name="Demo Bistro",
                slug=DEMO_SLUG,
                description="Neighbourhood bistro used for demos",
                address="1 Market Street",
                phone="+1 555 0100",
            ),
        )
        restaurant.bank_name = "Demo Bank"
        restaurant.bank_account_name = "Demo Bistro Ltd"
        restaurant.bank_account_number = "000123456789"

        async with tenant_context(session, restaurant.id):
            items = await _seed_menu(session, restaurant)
            await _seed_tables(session, restaurant)
            await _seed_inventory(session, restaurant, items)
        await session.commit()
        logger.info("Seeded demo restaurant %s (owner %s)", restaurant.slug, owner.email)


async def _ensure_owner(session: AsyncSession) -> User:
    repo = SecurityRepository(session)
    user = await repo.get_user_by_email(DEMO_EMAIL)
    if user is not None:
        return user
    return await repo.create_user(
        email=DEMO_EMAIL,
        full_name="Demo Owner",
        hashed_password=get_password_hash(DEMO_PASSWORD),
    )


async def _seed_menu(session: AsyncSession, restaurant: Restaurant) -> Dict[str, MenuItem]:
    items: Dict[str, MenuItem] = {}
    for (category_name, category_order), dishes in MENU.items():
        category = Category(restaurant_id=restaurant.id, name=category_name, sort_order=category_order)
        session.add(category)
        await session.flush()
        for position, (name, description, price, featured) in enumerate(dishes):
            item = MenuItem(
                restaurant_id=restaurant.id,
                category_id=category.id,
                name=name,
                description=description,
                price=price,
                is_available=True,
                is_featured=featured,
                sort_order=position,
            )
            session.add(item)
            items[name] = item
    await session.flush()
    return items


async def _seed_tables(session: AsyncSession, restaurant: Restaurant) -> None:
    for number in range(1, 7):
        session.add(
            RestaurantTable(
                restaurant_id=restaurant.id,
                table_number=number,
                capacity=2 if number <= 2 else 4,
                status="available",
                location="Terrace" if number > 4 else "Main room",
                is_active=True,
            )
        )
    await session.flush()


async def _seed_inventory(session: AsyncSession, restaurant: Restaurant, menu_items: Dict[str, MenuItem]) -> None:
    supplier = Supplier(
        restaurant_id=restaurant.id,
        name="Fresh Produce Co",
        contact_person="Sam Green",
        email="orders@freshproduce.example",
        is_active=True,
    )
    session.add(supplier)
    await session.flush()

    stock: Dict[str, InventoryItem] = {}
    for name, unit, quantity, minimum, cost in INVENTORY:
        item = InventoryItem(
            restaurant_id=restaurant.id,
            supplier_id=supplier.id,
            name=name,
            unit=unit,
            quantity_in_stock=quantity,
            minimum_stock_level=minimum,
            cost_per_unit=cost,
            category="Ingredients",
            is_active=True,
        )
        session.add(item)
        stock[name] = item
    await session.flush()

    for dish, needs in INGREDIENTS.items():
        for ingredient, quantity in needs:
            session.add(
                MenuItemIngredient(
                    menu_item_id=menu_items[dish].id,
                    inventory_item_id=stock[ingredient].id,
                    quantity_required=quantity,
                )
            )
    await session.flush()


# PUBLIC_INTERFACE
def main() -> None:
    """Entrypoint to run the asynchronous seeding."""
    asyncio.run(seed_all())


if __name__ == "__main__":
    main()
