from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from tableside.db.models.inventory import InventoryItem, Supplier, WasteLogEntry
from tableside.repositories.inventory import InventoryItemRepository, SupplierRepository
from tableside.schemas.inventory import InventoryItemCreate, InventoryItemUpdate, WasteLogCreate
from tableside.schemas.realtime import InventoryEvent
from tableside.services.base import BaseService
from tableside.services.errors import DomainValidationError, NotFoundError
from tableside.services.realtime import broadcast_manager

logger = logging.getLogger(__name__)


class InventoryService(BaseService):
    """
    Stock bookkeeping for a restaurant.

    Quantity changes go through InventoryItemRepository.adjust_stock, which applies
    them atomically in the database; the item is reloaded afterwards.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.items = InventoryItemRepository(session)
        self.suppliers = SupplierRepository(session)

    async def _get_item(self, restaurant_id: UUID, item_id: UUID) -> InventoryItem:
        item = await self.items.get_scoped(InventoryItem, item_id, restaurant_id)
        if item is None:
            raise NotFoundError("Inventory item not found")
        return item

    async def _check_supplier(self, restaurant_id: UUID, supplier_id: Optional[UUID]) -> None:
        if supplier_id is not None and await self.suppliers.get_scoped(Supplier, supplier_id, restaurant_id) is None:
            raise DomainValidationError("Supplier not found")

    # PUBLIC_INTERFACE
    async def create_item(self, restaurant_id: UUID, payload: InventoryItemCreate) -> InventoryItem:
        """Create an inventory item with its opening stock."""
        await self._check_supplier(restaurant_id, payload.supplier_id)
        item = InventoryItem(restaurant_id=restaurant_id, **payload.model_dump())
        await self.items.add(item)
        await self.items.commit()
        await self._publish(item, "created")
        return item

    # PUBLIC_INTERFACE
    async def update_item(self, restaurant_id: UUID, item_id: UUID, payload: InventoryItemUpdate) -> InventoryItem:
        """Update item metadata (not the stock quantity)."""
        item = await self._get_item(restaurant_id, item_id)
        changes = payload.model_dump(exclude_unset=True)
        if "supplier_id" in changes:
            await self._check_supplier(restaurant_id, changes["supplier_id"])
        for field, value in changes.items():
            if field == "name" and not value:
                continue
            setattr(item, field, value)
        await self.items.commit()
        await self._publish(item, "updated")
        return item

    # PUBLIC_INTERFACE
    async def adjust_stock(
        self, restaurant_id: UUID, item_id: UUID, delta: float, *, reason: str = "adjustment", commit: bool = True
    ) -> InventoryItem:
        """
        Add `delta` to the stock of an item; negative results are floored at zero.

        With commit=False the change joins the caller's transaction and nothing is published.
        """
        await self._get_item(restaurant_id, item_id)
        await self.items.adjust_stock(restaurant_id, item_id, delta, floor_at_zero=True)
        if commit:
            await self.items.commit()
        item = await self._get_item(restaurant_id, item_id)
        await self.items.refresh(item)
        if not commit:
            return item
        await self._publish(item, reason)
        return item

    # PUBLIC_INTERFACE
    async def log_waste(self, restaurant_id: UUID, payload: WasteLogCreate, user_id: Optional[UUID]) -> WasteLogEntry:
        """Record discarded stock and deduct it (never below zero) in one transaction."""
        await self._get_item(restaurant_id, payload.inventory_item_id)
        entry = WasteLogEntry(
            restaurant_id=restaurant_id,
            inventory_item_id=payload.inventory_item_id,
            quantity=payload.quantity,
            reason=payload.reason.strip(),
            logged_by=user_id,
        )
        await self.items.add(entry)
        await self.items.adjust_stock(restaurant_id, payload.inventory_item_id, -payload.quantity, floor_at_zero=True)
        await self.items.commit()

        item = await self._get_item(restaurant_id, payload.inventory_item_id)
        await self.items.refresh(item)
        logger.info(
            "Waste logged for item %s: %.3f (%s); stock now %.3f",
            item.id, payload.quantity, entry.reason, item.quantity_in_stock,
        )
        await self._publish(item, "waste")
        return entry

    async def publish_stock(self, item: InventoryItem, reason: str) -> None:
        """Publish `inventory.changed` for an item whose stock was changed elsewhere."""
        await self._publish(item, reason)

    async def _publish(self, item: InventoryItem, reason: str) -> None:
        try:
            await broadcast_manager.publish_inventory_event(
                InventoryEvent(
                    restaurant_id=item.restaurant_id,
                    inventory_item_id=item.id,
                    quantity_in_stock=item.quantity_in_stock,
                    is_low_stock=item.is_low_stock,
                    reason=reason,
                )
            )
        except Exception:
            logger.exception("Failed to publish inventory change for item %s", item.id)
