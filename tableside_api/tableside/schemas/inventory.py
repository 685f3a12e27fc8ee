from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class SupplierCreate(BaseModel):
    """Create a supplier."""
    name: str = Field(..., min_length=1)
    contact_person: Optional[str] = Field(None)
    email: Optional[str] = Field(None)
    phone: Optional[str] = Field(None)
    address: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)


class SupplierUpdate(BaseModel):
    """Update a supplier."""
    name: Optional[str] = Field(None, min_length=1)
    contact_person: Optional[str] = Field(None)
    email: Optional[str] = Field(None)
    phone: Optional[str] = Field(None)
    address: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)
    is_active: Optional[bool] = Field(None)


class SupplierRead(BaseModel):
    """Supplier read model."""
    id: UUID = Field(...)
    name: str = Field(...)
    contact_person: Optional[str] = Field(None)
    email: Optional[str] = Field(None)
    phone: Optional[str] = Field(None)
    address: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)
    is_active: bool = Field(...)
    created_at: datetime = Field(...)

    class Config:
        from_attributes = True


class InventoryItemCreate(BaseModel):
    """Create an inventory item."""
    name: str = Field(..., min_length=1)
    sku: Optional[str] = Field(None)
    unit: str = Field("unit")
    quantity_in_stock: float = Field(0, ge=0)
    minimum_stock_level: float = Field(0, ge=0)
    cost_per_unit: float = Field(0, ge=0)
    category: Optional[str] = Field(None)
    supplier_id: Optional[UUID] = Field(None)


class InventoryItemUpdate(BaseModel):
    """
    Update item metadata.

    Stock quantity is not editable here; use waste logging, purchase order
    receipts, or the stock adjustment endpoint.
    """
    name: Optional[str] = Field(None, min_length=1)
    sku: Optional[str] = Field(None)
    unit: Optional[str] = Field(None)
    minimum_stock_level: Optional[float] = Field(None, ge=0)
    cost_per_unit: Optional[float] = Field(None, ge=0)
    category: Optional[str] = Field(None)
    supplier_id: Optional[UUID] = Field(None)
    is_active: Optional[bool] = Field(None)


class StockAdjustment(BaseModel):
    """Manual stock correction (e.g. after a stock count)."""
    delta: float = Field(..., description="Quantity to add; negative to remove")
    reason: Optional[str] = Field(None)


class InventoryItemRead(BaseModel):
    """Inventory item read model."""
    id: UUID = Field(...)
    supplier_id: Optional[UUID] = Field(None)
    name: str = Field(...)
    sku: Optional[str] = Field(None)
    unit: str = Field(...)
    quantity_in_stock: float = Field(...)
    minimum_stock_level: float = Field(...)
    cost_per_unit: float = Field(...)
    category: Optional[str] = Field(None)
    is_active: bool = Field(...)
    is_low_stock: bool = Field(...)
    stock_status: str = Field(..., description="Out of Stock | Low Stock | In Stock")
    updated_at: datetime = Field(...)

    class Config:
        from_attributes = True


class WasteLogCreate(BaseModel):
    """Record discarded stock."""
    inventory_item_id: UUID = Field(...)
    quantity: float = Field(..., gt=0)
    reason: str = Field(..., min_length=1, description="e.g. expired, spoiled, damaged")


class WasteLogRead(BaseModel):
    """Waste log entry read model."""
    id: UUID = Field(...)
    inventory_item_id: UUID = Field(...)
    inventory_item_name: Optional[str] = Field(None)
    quantity: float = Field(...)
    reason: str = Field(...)
    logged_by: Optional[UUID] = Field(None)
    created_at: datetime = Field(...)
