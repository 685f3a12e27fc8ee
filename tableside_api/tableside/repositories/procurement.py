from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select

from tableside.db.models.procurement import PurchaseOrder
from .base import BaseRepository


class PurchaseOrderRepository(BaseRepository):
    """Repository for purchase orders (items load with the header)."""

    async def list_purchase_orders(
        self,
        restaurant_id: UUID,
        *,
        status: Optional[str] = None,
        supplier_id: Optional[UUID] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[PurchaseOrder]:
        stmt = select(PurchaseOrder).where(PurchaseOrder.restaurant_id == restaurant_id)
        if status:
            stmt = stmt.where(PurchaseOrder.status == status)
        if supplier_id:
            stmt = stmt.where(PurchaseOrder.supplier_id == supplier_id)
        stmt = stmt.order_by(PurchaseOrder.created_at.desc()).offset(offset).limit(limit)
        return list(await self.scalars(stmt))

    async def get(self, restaurant_id: UUID, po_id: UUID) -> Optional[PurchaseOrder]:
        return await self.get_scoped(PurchaseOrder, po_id, restaurant_id)

    async def order_number_exists(self, restaurant_id: UUID, order_number: str) -> bool:
        stmt = select(PurchaseOrder.id).where(
            PurchaseOrder.restaurant_id == restaurant_id, PurchaseOrder.order_number == order_number
        )
        return (await self.scalar_one_or_none(stmt)) is not None
