from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tableside.db.base import Base, RestaurantScopedMixin, TimestampMixin, UUIDPkMixin


class Category(UUIDPkMixin, RestaurantScopedMixin, TimestampMixin, Base):
    """Menu section (e.g. Starters, Mains)."""
    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")


class MenuItem(UUIDPkMixin, RestaurantScopedMixin, TimestampMixin, Base):
    """Dish or drink offered on the menu, optionally with a 3D model for AR preview."""
    __tablename__ = "menu_items"

    category_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    model_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    @property
    def has_ar_model(self) -> bool:
        return bool(self.model_url)


class MenuItemIngredient(UUIDPkMixin, TimestampMixin, Base):
    """Quantity of an inventory item consumed by one serving of a menu item."""
    __tablename__ = "menu_item_ingredients"
    __table_args__ = (
        UniqueConstraint("menu_item_id", "inventory_item_id", name="uq_menu_item_ingredients_item_inventory"),
    )

    menu_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("menu_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    inventory_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False
    )
    quantity_required: Mapped[float] = mapped_column(Numeric(12, 3, asdecimal=False), nullable=False, default=1)

    inventory_item = relationship("InventoryItem", lazy="selectin")
