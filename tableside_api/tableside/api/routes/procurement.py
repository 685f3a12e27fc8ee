from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.core.deps import MANAGER, get_current_active_user, get_restaurant_id, get_restaurant_session, require_roles
from tableside.db.models.procurement import PurchaseOrder
from tableside.db.models.security import User
from tableside.repositories.inventory import InventoryItemRepository, SupplierRepository
from tableside.repositories.procurement import PurchaseOrderRepository
from tableside.schemas.procurement import (
    PurchaseOrderCreate,
    PurchaseOrderItemRead,
    PurchaseOrderRead,
    PurchaseOrderReceive,
)
from tableside.services.procurement import ProcurementService

router = APIRouter(prefix="/procurement", tags=["Procurement"])


async def _to_read(session: AsyncSession, restaurant_id: UUID, orders: List[PurchaseOrder]) -> List[PurchaseOrderRead]:
    suppliers = await SupplierRepository(session).names_by_id(restaurant_id, (po.supplier_id for po in orders))
    items = await InventoryItemRepository(session).names_by_id(
        restaurant_id, (line.inventory_item_id for po in orders for line in po.items)
    )
    return [
        PurchaseOrderRead(
            id=po.id,
            order_number=po.order_number,
            supplier_id=po.supplier_id,
            supplier_name=suppliers.get(po.supplier_id) if po.supplier_id else None,
            status=po.status,
            total_amount=po.total_amount,
            notes=po.notes,
            ordered_at=po.ordered_at,
            received_at=po.received_at,
            created_by=po.created_by,
            created_at=po.created_at,
            items=[
                PurchaseOrderItemRead(
                    id=line.id,
                    inventory_item_id=line.inventory_item_id,
                    inventory_item_name=items.get(line.inventory_item_id),
                    quantity_ordered=line.quantity_ordered,
                    quantity_received=line.quantity_received,
                    unit_cost=line.unit_cost,
                )
                for line in po.items
            ],
        )
        for po in orders
    ]


# PUBLIC_INTERFACE
@router.get(
    "/purchase-orders",
    response_model=List[PurchaseOrderRead],
    summary="List purchase orders",
    description="Purchase orders newest first, with their lines.",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def list_purchase_orders(
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
    status_filter: Optional[str] = Query(None, alias="status", description="pending | ordered | received | cancelled"),
    supplier_id: Optional[UUID] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[PurchaseOrderRead]:
    rows = await PurchaseOrderRepository(session).list_purchase_orders(
        restaurant_id, status=status_filter, supplier_id=supplier_id, limit=limit, offset=offset
    )
    return await _to_read(session, restaurant_id, rows)


# PUBLIC_INTERFACE
@router.post(
    "/purchase-orders",
    response_model=PurchaseOrderRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create purchase order",
    description="Order number PO-<epoch ms>; total is the sum of quantity x unit cost.",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def create_purchase_order(
    payload: PurchaseOrderCreate,
    restaurant_id: UUID = Depends(get_restaurant_id),
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_restaurant_session),
) -> PurchaseOrderRead:
    po = await ProcurementService(session).create_purchase_order(restaurant_id, payload, created_by=user.id)
    return (await _to_read(session, restaurant_id, [po]))[0]


# PUBLIC_INTERFACE
@router.get(
    "/purchase-orders/{po_id}",
    response_model=PurchaseOrderRead,
    summary="Get purchase order",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def get_purchase_order(
    po_id: UUID,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> PurchaseOrderRead:
    po = await PurchaseOrderRepository(session).get(restaurant_id, po_id)
    if po is None:
        raise HTTPException(status_code=404, detail="Purchase order not found")
    return (await _to_read(session, restaurant_id, [po]))[0]


# PUBLIC_INTERFACE
@router.post(
    "/purchase-orders/{po_id}/receive",
    response_model=PurchaseOrderRead,
    summary="Receive purchase order",
    description=(
        "Mark the order received and add the received quantities to stock. "
        "Lines not listed in the body are received in full."
    ),
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def receive_purchase_order(
    po_id: UUID,
    payload: Optional[PurchaseOrderReceive] = Body(None),
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> PurchaseOrderRead:
    po = await ProcurementService(session).receive_purchase_order(restaurant_id, po_id, payload)
    return (await _to_read(session, restaurant_id, [po]))[0]


# PUBLIC_INTERFACE
@router.post(
    "/purchase-orders/{po_id}/cancel",
    response_model=PurchaseOrderRead,
    summary="Cancel purchase order",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def cancel_purchase_order(
    po_id: UUID,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> PurchaseOrderRead:
    po = await ProcurementService(session).cancel_purchase_order(restaurant_id, po_id)
    return (await _to_read(session, restaurant_id, [po]))[0]
