from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.core.deps import MANAGER, STAFF, get_current_active_user, get_restaurant_id, get_restaurant_session, require_roles
from tableside.db.models.inventory import Supplier, WasteLogEntry
from tableside.db.models.security import User
from tableside.repositories.inventory import InventoryItemRepository, SupplierRepository, WasteLogRepository
from tableside.schemas.inventory import (
    InventoryItemCreate,
    InventoryItemRead,
    InventoryItemUpdate,
    StockAdjustment,
    SupplierCreate,
    SupplierRead,
    SupplierUpdate,
    WasteLogCreate,
    WasteLogRead,
)
from tableside.services.inventory import InventoryService

router = APIRouter(prefix="/inventory", tags=["Inventory"])


def _waste_read(entry: WasteLogEntry, names: dict[UUID, str]) -> WasteLogRead:
    return WasteLogRead(
        id=entry.id,
        inventory_item_id=entry.inventory_item_id,
        inventory_item_name=names.get(entry.inventory_item_id),
        quantity=entry.quantity,
        reason=entry.reason,
        logged_by=entry.logged_by,
        created_at=entry.created_at,
    )


# Suppliers

# PUBLIC_INTERFACE
@router.get(
    "/suppliers",
    response_model=List[SupplierRead],
    summary="List suppliers",
    description="Active suppliers ordered by name.",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def list_suppliers(
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
    include_inactive: bool = Query(False),
) -> List[SupplierRead]:
    rows = await SupplierRepository(session).list_suppliers(restaurant_id, include_inactive=include_inactive)
    return [SupplierRead.model_validate(s) for s in rows]


# PUBLIC_INTERFACE
@router.post(
    "/suppliers",
    response_model=SupplierRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create supplier",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def create_supplier(
    payload: SupplierCreate,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> SupplierRead:
    repo = SupplierRepository(session)
    supplier = Supplier(restaurant_id=restaurant_id, is_active=True, **payload.model_dump())
    await repo.add(supplier)
    await repo.commit()
    return SupplierRead.model_validate(supplier)


# PUBLIC_INTERFACE
@router.patch(
    "/suppliers/{supplier_id}",
    response_model=SupplierRead,
    summary="Update supplier",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def update_supplier(
    supplier_id: UUID,
    payload: SupplierUpdate,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> SupplierRead:
    repo = SupplierRepository(session)
    supplier = await repo.get_scoped(Supplier, supplier_id, restaurant_id)
    if supplier is None:
        raise HTTPException(status_code=404, detail="Supplier not found")
    for field, value in payload.model_dump(exclude_unset=True).items():
        if field in ("name", "is_active") and value is None:
            continue
        setattr(supplier, field, value)
    await repo.commit()
    return SupplierRead.model_validate(supplier)


# Items

# PUBLIC_INTERFACE
@router.get(
    "/items",
    response_model=List[InventoryItemRead],
    summary="List inventory items",
    description="Active items ordered by name.",
    dependencies=[Depends(require_roles(*STAFF))],
)
async def list_items(
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
    category: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
) -> List[InventoryItemRead]:
    rows = await InventoryItemRepository(session).list_items(
        restaurant_id, category=category, include_inactive=include_inactive
    )
    return [InventoryItemRead.model_validate(i) for i in rows]


# PUBLIC_INTERFACE
@router.get(
    "/items/low-stock",
    response_model=List[InventoryItemRead],
    summary="Low stock items",
    description="Items whose quantity in stock is at or below the minimum stock level.",
    dependencies=[Depends(require_roles(*STAFF))],
)
async def list_low_stock(
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> List[InventoryItemRead]:
    rows = await InventoryItemRepository(session).list_items(restaurant_id, low_stock_only=True)
    return [InventoryItemRead.model_validate(i) for i in rows]


# PUBLIC_INTERFACE
@router.post(
    "/items",
    response_model=InventoryItemRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create inventory item",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def create_item(
    payload: InventoryItemCreate,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> InventoryItemRead:
    item = await InventoryService(session).create_item(restaurant_id, payload)
    return InventoryItemRead.model_validate(item)


# PUBLIC_INTERFACE
@router.patch(
    "/items/{item_id}",
    response_model=InventoryItemRead,
    summary="Update inventory item",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def update_item(
    item_id: UUID,
    payload: InventoryItemUpdate,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> InventoryItemRead:
    item = await InventoryService(session).update_item(restaurant_id, item_id, payload)
    return InventoryItemRead.model_validate(item)


# PUBLIC_INTERFACE
@router.post(
    "/items/{item_id}/adjust",
    response_model=InventoryItemRead,
    summary="Adjust stock",
    description="Add (or with a negative delta remove) stock. The result never goes below zero.",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def adjust_stock(
    item_id: UUID,
    payload: StockAdjustment,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> InventoryItemRead:
    item = await InventoryService(session).adjust_stock(
        restaurant_id, item_id, payload.delta, reason=payload.reason or "adjustment"
    )
    return InventoryItemRead.model_validate(item)


# Waste

# PUBLIC_INTERFACE
@router.get(
    "/waste",
    response_model=List[WasteLogRead],
    summary="List waste log",
    description="Latest waste entries, newest first.",
    dependencies=[Depends(require_roles(*STAFF))],
)
async def list_waste(
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
    inventory_item_id: Optional[UUID] = Query(None),
    limit: int = Query(100, ge=1, le=500),
) -> List[WasteLogRead]:
    entries = await WasteLogRepository(session).list_entries(
        restaurant_id, inventory_item_id=inventory_item_id, limit=limit
    )
    names = await InventoryItemRepository(session).names_by_id(restaurant_id, (e.inventory_item_id for e in entries))
    return [_waste_read(e, names) for e in entries]


# PUBLIC_INTERFACE
@router.post(
    "/waste",
    response_model=WasteLogRead,
    status_code=status.HTTP_201_CREATED,
    summary="Log waste",
    description="Record discarded stock and deduct it from the item (never below zero).",
    dependencies=[Depends(require_roles(*STAFF))],
)
async def log_waste(
    payload: WasteLogCreate,
    restaurant_id: UUID = Depends(get_restaurant_id),
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_restaurant_session),
) -> WasteLogRead:
    entry = await InventoryService(session).log_waste(restaurant_id, payload, user.id)
    names = await InventoryItemRepository(session).names_by_id(restaurant_id, [entry.inventory_item_id])
    return _waste_read(entry, names)
