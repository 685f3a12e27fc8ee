from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Numeric, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from tableside.db.base import Base, RestaurantScopedMixin, TimestampMixin, UUIDPkMixin


class Supplier(UUIDPkMixin, RestaurantScopedMixin, TimestampMixin, Base):
    """Vendor that supplies inventory items."""
    __tablename__ = "suppliers"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    contact_person: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")


class InventoryItem(UUIDPkMixin, RestaurantScopedMixin, TimestampMixin, Base):
    """Stock-keeping unit tracked in the kitchen inventory."""
    __tablename__ = "inventory_items"

    supplier_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    sku: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    unit: Mapped[str] = mapped_column(Text, nullable=False, default="unit", server_default="unit")
    quantity_in_stock: Mapped[float] = mapped_column(Numeric(12, 3, asdecimal=False), nullable=False, default=0)
    minimum_stock_level: Mapped[float] = mapped_column(Numeric(12, 3, asdecimal=False), nullable=False, default=0)
    cost_per_unit: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    category: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")

    @property
    def is_low_stock(self) -> bool:
        return self.quantity_in_stock <= self.minimum_stock_level

    @property
    def stock_status(self) -> str:
        if self.quantity_in_stock <= 0:
            return "Out of Stock"
        if self.is_low_stock:
            return "Low Stock"
        return "In Stock"


class WasteLogEntry(UUIDPkMixin, RestaurantScopedMixin, TimestampMixin, Base):
    """Record of stock discarded (spoilage, breakage, ...)."""
    __tablename__ = "waste_log"

    inventory_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    quantity: Mapped[float] = mapped_column(Numeric(12, 3, asdecimal=False), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    logged_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
