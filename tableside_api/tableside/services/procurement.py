from __future__ import annotations

import logging
import time
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from tableside.db.base import utcnow
from tableside.db.models.inventory import InventoryItem, Supplier
from tableside.db.models.procurement import PurchaseOrder, PurchaseOrderItem
from tableside.repositories.inventory import InventoryItemRepository
from tableside.repositories.procurement import PurchaseOrderRepository
from tableside.schemas.procurement import PurchaseOrderCreate, PurchaseOrderReceive
from tableside.services.base import BaseService
from tableside.services.errors import ConflictError, DomainValidationError, NotFoundError
from tableside.services.inventory import InventoryService

logger = logging.getLogger(__name__)

OPEN_PO_STATUSES = frozenset({"pending", "ordered"})


# PUBLIC_INTERFACE
def new_order_number() -> str:
    """Purchase order number in the form PO-<epoch milliseconds>."""
    return f"PO-{int(time.time() * 1000)}"


class ProcurementService(BaseService):
    """Purchase order creation and receiving."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.pos = PurchaseOrderRepository(session)
        self.items = InventoryItemRepository(session)
        self.inventory = InventoryService(session)

    async def _get(self, restaurant_id: UUID, po_id: UUID) -> PurchaseOrder:
        po = await self.pos.get(restaurant_id, po_id)
        if po is None:
            raise NotFoundError("Purchase order not found")
        return po

    # PUBLIC_INTERFACE
    async def create_purchase_order(
        self, restaurant_id: UUID, payload: PurchaseOrderCreate, created_by: Optional[UUID]
    ) -> PurchaseOrder:
        """Create a pending purchase order; total is the sum of quantity x unit cost."""
        if payload.supplier_id is not None:
            if await self.pos.get_scoped(Supplier, payload.supplier_id, restaurant_id) is None:
                raise DomainValidationError("Supplier not found")
        for line in payload.items:
            if await self.items.get_scoped(InventoryItem, line.inventory_item_id, restaurant_id) is None:
                raise DomainValidationError(
                    "Inventory item not found", details={"inventory_item_id": str(line.inventory_item_id)}
                )

        order_number = new_order_number()
        while await self.pos.order_number_exists(restaurant_id, order_number):
            order_number = f"{order_number}-{int(time.time() * 1000) % 1000}"

        po = PurchaseOrder(
            restaurant_id=restaurant_id,
            supplier_id=payload.supplier_id,
            order_number=order_number,
            status="pending",
            notes=payload.notes,
            ordered_at=utcnow(),
            created_by=created_by,
            total_amount=round(sum(i.quantity_ordered * i.unit_cost for i in payload.items), 2),
            items=[
                PurchaseOrderItem(
                    inventory_item_id=i.inventory_item_id,
                    quantity_ordered=i.quantity_ordered,
                    quantity_received=0,
                    unit_cost=i.unit_cost,
                )
                for i in payload.items
            ],
        )
        await self.pos.add(po)
        await self.pos.commit()
        po = await self._get(restaurant_id, po.id)
        logger.info("Created purchase order %s total=%.2f", po.order_number, po.total_amount)
        return po

    # PUBLIC_INTERFACE
    async def receive_purchase_order(
        self, restaurant_id: UUID, po_id: UUID, payload: Optional[PurchaseOrderReceive] = None
    ) -> PurchaseOrder:
        """
        Mark a purchase order received and add the received quantities to stock.

        Lines without an explicit quantity are received in full. Stock updates and
        the status change commit together.
        """
        po = await self._get(restaurant_id, po_id)
        if po.status not in OPEN_PO_STATUSES:
            raise ConflictError(f"Purchase order is already {po.status}")

        received = {r.item_id: r.quantity_received for r in (payload.items if payload else [])}
        unknown = set(received) - {line.id for line in po.items}
        if unknown:
            raise DomainValidationError(
                "Lines do not belong to this purchase order", details={"item_ids": sorted(str(u) for u in unknown)}
            )

        touched: list[UUID] = []
        for line in po.items:
            qty = received.get(line.id, line.quantity_ordered)
            line.quantity_received = qty
            if qty > 0:
                await self.items.adjust_stock(restaurant_id, line.inventory_item_id, qty)
                touched.append(line.inventory_item_id)
        po.status = "received"
        po.received_at = utcnow()
        await self.pos.commit()
        logger.info("Received purchase order %s (%d lines)", po.order_number, len(po.items))

        for item_id in dict.fromkeys(touched):
            item = await self.items.get_scoped(InventoryItem, item_id, restaurant_id)
            if item is not None:
                await self.items.refresh(item)
                await self.inventory.publish_stock(item, "purchase_order")
        return po

    # PUBLIC_INTERFACE
    async def cancel_purchase_order(self, restaurant_id: UUID, po_id: UUID) -> PurchaseOrder:
        """Cancel an open purchase order."""
        po = await self._get(restaurant_id, po_id)
        if po.status not in OPEN_PO_STATUSES:
            raise ConflictError(f"Purchase order is already {po.status}")
        po.status = "cancelled"
        await self.pos.commit()
        return po
