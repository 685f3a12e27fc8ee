from __future__ import annotations

from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import case, select, update

from tableside.db.models.inventory import InventoryItem, Supplier, WasteLogEntry
from .base import BaseRepository


class SupplierRepository(BaseRepository):
    """Repository for suppliers."""

    async def list_suppliers(self, restaurant_id: UUID, *, include_inactive: bool = False) -> List[Supplier]:
        stmt = select(Supplier).where(Supplier.restaurant_id == restaurant_id)
        if not include_inactive:
            stmt = stmt.where(Supplier.is_active.is_(True))
        stmt = stmt.order_by(Supplier.name)
        return list(await self.scalars(stmt))

    async def names_by_id(self, restaurant_id: UUID, ids: Iterable[Optional[UUID]]) -> dict[UUID, str]:
        wanted = {i for i in ids if i is not None}
        if not wanted:
            return {}
        stmt = select(Supplier.id, Supplier.name).where(Supplier.restaurant_id == restaurant_id, Supplier.id.in_(wanted))
        return {sid: name for sid, name in (await self.execute(stmt)).all()}


class InventoryItemRepository(BaseRepository):
    """
    Repository for inventory items.

    Stock changes are single UPDATE statements relative to the stored value,
    so concurrent adjustments do not overwrite each other.
    """

    async def list_items(
        self,
        restaurant_id: UUID,
        *,
        category: Optional[str] = None,
        low_stock_only: bool = False,
        include_inactive: bool = False,
    ) -> List[InventoryItem]:
        stmt = select(InventoryItem).where(InventoryItem.restaurant_id == restaurant_id)
        if not include_inactive:
            stmt = stmt.where(InventoryItem.is_active.is_(True))
        if category:
            stmt = stmt.where(InventoryItem.category == category)
        if low_stock_only:
            stmt = stmt.where(InventoryItem.quantity_in_stock <= InventoryItem.minimum_stock_level)
        stmt = stmt.order_by(InventoryItem.name)
        return list(await self.scalars(stmt))

    async def names_by_id(self, restaurant_id: UUID, ids: Iterable[UUID]) -> dict[UUID, str]:
        wanted = set(ids)
        if not wanted:
            return {}
        stmt = select(InventoryItem.id, InventoryItem.name).where(
            InventoryItem.restaurant_id == restaurant_id, InventoryItem.id.in_(wanted)
        )
        return {iid: name for iid, name in (await self.execute(stmt)).all()}

    async def adjust_stock(
        self, restaurant_id: UUID, item_id: UUID, delta: float, *, floor_at_zero: bool = False
    ) -> bool:
        """Add delta (may be negative) to the item's stock. Returns False if no row matched."""
        new_value = InventoryItem.quantity_in_stock + delta
        if floor_at_zero:
            new_value = case((new_value < 0, 0), else_=new_value)
        result = await self.execute(
            update(InventoryItem)
            .where(InventoryItem.id == item_id, InventoryItem.restaurant_id == restaurant_id)
            .values(quantity_in_stock=new_value)
            .execution_options(synchronize_session=False)
        )
        return bool(result.rowcount)


class WasteLogRepository(BaseRepository):
    """Repository for waste log entries."""

    async def list_entries(
        self, restaurant_id: UUID, *, inventory_item_id: Optional[UUID] = None, limit: int = 100
    ) -> List[WasteLogEntry]:
        stmt = select(WasteLogEntry).where(WasteLogEntry.restaurant_id == restaurant_id)
        if inventory_item_id is not None:
            stmt = stmt.where(WasteLogEntry.inventory_item_id == inventory_item_id)
        stmt = stmt.order_by(WasteLogEntry.created_at.desc()).limit(limit)
        return list(await self.scalars(stmt))
