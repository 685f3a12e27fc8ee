from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import ForeignKey, Index, Integer, Numeric, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tableside.db.base import Base, RestaurantScopedMixin, TimestampMixin, UUIDPkMixin


class Order(UUIDPkMixin, RestaurantScopedMixin, TimestampMixin, Base):
    """Customer order placed from a table (dine-in) or the public checkout (delivery)."""
    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_restaurant_created_at", "restaurant_id", "created_at"),
        Index("ix_orders_restaurant_table", "restaurant_id", "table_number"),
    )

    table_number: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="pending", server_default="pending")
    total_amount: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    order_type: Mapped[str] = mapped_column(Text, nullable=False, default="dine_in", server_default="dine_in")
    customer_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    customer_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    customer_phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    customer_email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    delivery_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    payment_proof_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    items: Mapped[list["OrderItem"]] = relationship(
        "OrderItem", back_populates="order", lazy="selectin", cascade="all, delete-orphan"
    )


class OrderItem(UUIDPkMixin, TimestampMixin, Base):
    """Line of an order; name and unit price are snapshotted from the menu."""
    __tablename__ = "order_items"

    order_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    menu_item_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("menu_items.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    order: Mapped["Order"] = relationship("Order", back_populates="items")

    @property
    def line_total(self) -> float:
        return round(self.quantity * self.unit_price, 2)
