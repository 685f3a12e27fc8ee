from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class PurchaseOrderItemCreate(BaseModel):
    """Purchase order line."""
    inventory_item_id: UUID = Field(...)
    quantity_ordered: float = Field(..., gt=0)
    unit_cost: float = Field(..., ge=0)


class PurchaseOrderCreate(BaseModel):
    """Create a purchase order with its lines."""
    supplier_id: Optional[UUID] = Field(None)
    notes: Optional[str] = Field(None)
    items: List[PurchaseOrderItemCreate] = Field(..., min_length=1)


class ReceivedQuantity(BaseModel):
    """Quantity actually received for one line."""
    item_id: UUID = Field(..., description="Purchase order line ID")
    quantity_received: float = Field(..., ge=0)


class PurchaseOrderReceive(BaseModel):
    """Receive a purchase order. Lines not listed are received in full."""
    items: List[ReceivedQuantity] = Field(default_factory=list)


class PurchaseOrderItemRead(BaseModel):
    """Purchase order line read model."""
    id: UUID = Field(...)
    inventory_item_id: UUID = Field(...)
    inventory_item_name: Optional[str] = Field(None)
    quantity_ordered: float = Field(...)
    quantity_received: float = Field(...)
    unit_cost: float = Field(...)


class PurchaseOrderRead(BaseModel):
    """Purchase order read model."""
    id: UUID = Field(...)
    order_number: str = Field(...)
    supplier_id: Optional[UUID] = Field(None)
    supplier_name: Optional[str] = Field(None)
    status: str = Field(...)
    total_amount: float = Field(...)
    notes: Optional[str] = Field(None)
    ordered_at: Optional[datetime] = Field(None)
    received_at: Optional[datetime] = Field(None)
    created_by: Optional[UUID] = Field(None)
    created_at: datetime = Field(...)
    items: List[PurchaseOrderItemRead] = Field(default_factory=list)
