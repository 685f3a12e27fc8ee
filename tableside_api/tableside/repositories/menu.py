from __future__ import annotations

from typing import Iterable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select, update

from tableside.db.models.menu import Category, MenuItem, MenuItemIngredient
from tableside.db.models.restaurants import Restaurant
from .base import BaseRepository


class CategoryRepository(BaseRepository):
    """Repository for menu categories."""

    async def list_categories(self, restaurant_id: UUID) -> List[Category]:
        stmt = (
            select(Category)
            .where(Category.restaurant_id == restaurant_id)
            .order_by(Category.sort_order, Category.name)
        )
        return list(await self.scalars(stmt))


class MenuItemRepository(BaseRepository):
    """Repository for menu items and their ingredient links."""

    async def list_items(
        self,
        restaurant_id: UUID,
        *,
        category_id: Optional[UUID] = None,
        available_only: bool = False,
        featured_only: bool = False,
    ) -> List[MenuItem]:
        stmt = select(MenuItem).where(MenuItem.restaurant_id == restaurant_id)
        if category_id is not None:
            stmt = stmt.where(MenuItem.category_id == category_id)
        if available_only:
            stmt = stmt.where(MenuItem.is_available.is_(True))
        if featured_only:
            stmt = stmt.where(MenuItem.is_featured.is_(True))
        stmt = stmt.order_by(MenuItem.sort_order, MenuItem.name)
        return list(await self.scalars(stmt))

    async def get_many(self, restaurant_id: UUID, item_ids: Iterable[UUID]) -> dict[UUID, MenuItem]:
        ids = list(set(item_ids))
        if not ids:
            return {}
        stmt = select(MenuItem).where(MenuItem.restaurant_id == restaurant_id, MenuItem.id.in_(ids))
        return {m.id: m for m in await self.scalars(stmt)}

    async def reorder(self, restaurant_id: UUID, positions: Sequence[tuple[UUID, int]]) -> int:
        """Apply sort_order values; returns the number of rows touched."""
        touched = 0
        for item_id, sort_order in positions:
            result = await self.execute(
                update(MenuItem)
                .where(MenuItem.id == item_id, MenuItem.restaurant_id == restaurant_id)
                .values(sort_order=sort_order)
                .execution_options(synchronize_session="fetch")
            )
            touched += result.rowcount or 0
        return touched

    async def list_all_with_restaurant(
        self, *, limit: int = 200, offset: int = 0
    ) -> List[tuple[MenuItem, Restaurant]]:
        stmt = (
            select(MenuItem, Restaurant)
            .join(Restaurant, Restaurant.id == MenuItem.restaurant_id)
            .order_by(Restaurant.name, MenuItem.sort_order, MenuItem.name)
            .offset(offset)
            .limit(limit)
        )
        result = await self.execute(stmt)
        return [(m, r) for m, r in result.all()]

    # Ingredients
    async def list_ingredients(self, menu_item_id: UUID) -> List[MenuItemIngredient]:
        stmt = select(MenuItemIngredient).where(MenuItemIngredient.menu_item_id == menu_item_id)
        return list(await self.scalars(stmt))

    async def get_ingredient(self, menu_item_id: UUID, ingredient_id: UUID) -> Optional[MenuItemIngredient]:
        stmt = select(MenuItemIngredient).where(
            MenuItemIngredient.id == ingredient_id, MenuItemIngredient.menu_item_id == menu_item_id
        )
        return await self.scalar_one_or_none(stmt)

    async def find_ingredient(self, menu_item_id: UUID, inventory_item_id: UUID) -> Optional[MenuItemIngredient]:
        stmt = select(MenuItemIngredient).where(
            MenuItemIngredient.menu_item_id == menu_item_id,
            MenuItemIngredient.inventory_item_id == inventory_item_id,
        )
        return await self.scalar_one_or_none(stmt)
