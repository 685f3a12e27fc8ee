from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    """Create a menu category."""
    name: str = Field(..., min_length=1)
    description: Optional[str] = Field(None)
    sort_order: int = Field(0)


class CategoryUpdate(BaseModel):
    """Update a menu category."""
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None)
    sort_order: Optional[int] = Field(None)


class CategoryRead(BaseModel):
    """Menu category read model."""
    id: UUID = Field(...)
    name: str = Field(...)
    description: Optional[str] = Field(None)
    sort_order: int = Field(...)
    created_at: datetime = Field(...)
    updated_at: datetime = Field(...)

    class Config:
        from_attributes = True


class MenuItemCreate(BaseModel):
    """Create a menu item."""
    name: str = Field(..., min_length=1)
    description: Optional[str] = Field(None)
    price: float = Field(..., ge=0, description="Unit price")
    category_id: Optional[UUID] = Field(None)
    image_url: Optional[str] = Field(None)
    model_url: Optional[str] = Field(None, description="3D model (GLB/USDZ) used for the AR preview")
    is_available: bool = Field(True)
    is_featured: bool = Field(False)
    sort_order: int = Field(0)


class MenuItemUpdate(BaseModel):
    """Update a menu item; omitted fields are left unchanged."""
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None)
    price: Optional[float] = Field(None, ge=0)
    category_id: Optional[UUID] = Field(None)
    image_url: Optional[str] = Field(None)
    model_url: Optional[str] = Field(None)
    is_available: Optional[bool] = Field(None)
    is_featured: Optional[bool] = Field(None)
    sort_order: Optional[int] = Field(None)


class MenuItemRead(BaseModel):
    """Menu item read model."""
    id: UUID = Field(...)
    category_id: Optional[UUID] = Field(None)
    name: str = Field(...)
    description: Optional[str] = Field(None)
    price: float = Field(...)
    image_url: Optional[str] = Field(None)
    model_url: Optional[str] = Field(None)
    has_ar_model: bool = Field(..., description="True when a 3D model is attached")
    is_available: bool = Field(...)
    is_featured: bool = Field(...)
    sort_order: int = Field(...)
    created_at: datetime = Field(...)
    updated_at: datetime = Field(...)

    class Config:
        from_attributes = True


class MenuItemPosition(BaseModel):
    """New position of a menu item."""
    id: UUID = Field(...)
    sort_order: int = Field(...)


class ReorderRequest(BaseModel):
    """Bulk sort-order update."""
    items: List[MenuItemPosition] = Field(..., min_length=1)


class IngredientLinkCreate(BaseModel):
    """Link an inventory item to a menu item."""
    inventory_item_id: UUID = Field(...)
    quantity_required: float = Field(1, gt=0)


class IngredientLinkRead(BaseModel):
    """Ingredient link read model."""
    id: UUID = Field(...)
    menu_item_id: UUID = Field(...)
    inventory_item_id: UUID = Field(...)
    inventory_item_name: Optional[str] = Field(None)
    unit: Optional[str] = Field(None)
    quantity_required: float = Field(...)


class PublicMenuItem(BaseModel):
    """Menu item as shown to customers."""
    id: UUID = Field(...)
    category_id: Optional[UUID] = Field(None)
    name: str = Field(...)
    description: Optional[str] = Field(None)
    price: float = Field(...)
    image_url: Optional[str] = Field(None)
    model_url: Optional[str] = Field(None)
    has_ar_model: bool = Field(...)
    is_featured: bool = Field(...)

    class Config:
        from_attributes = True


class PublicMenuSection(BaseModel):
    """A category and its available items."""
    category: Optional[CategoryRead] = Field(None, description="None for uncategorized items")
    items: List[PublicMenuItem] = Field(default_factory=list)


class AdminMenuItemRead(MenuItemRead):
    """Menu item with its restaurant, for the platform-wide listing."""
    restaurant_id: UUID = Field(...)
    restaurant_name: str = Field(...)
