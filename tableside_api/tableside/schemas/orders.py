from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

OrderStatus = Literal["pending", "preparing", "ready", "completed", "cancelled"]
OrderType = Literal["dine_in", "delivery"]


class OrderItemCreate(BaseModel):
    """Requested line; price and name come from the menu, not the client."""
    menu_item_id: UUID = Field(...)
    quantity: int = Field(..., ge=1, le=100)
    notes: Optional[str] = Field(None, max_length=500)


class OrderCreate(BaseModel):
    """
    Customer checkout payload.

    Dine-in orders need a table number. Delivery orders use table number 0 and need
    the customer's name, phone, delivery address and a payment proof upload.
    """
    order_type: OrderType = Field("dine_in")
    table_number: Optional[int] = Field(None, ge=0)
    items: List[OrderItemCreate] = Field(..., min_length=1)
    customer_notes: Optional[str] = Field(None, max_length=1000)
    customer_name: Optional[str] = Field(None)
    customer_phone: Optional[str] = Field(None)
    customer_email: Optional[str] = Field(None)
    delivery_address: Optional[str] = Field(None)
    payment_proof_url: Optional[str] = Field(None)

    @model_validator(mode="after")
    def _check_order_type(self):
        if self.order_type == "dine_in":
            if not self.table_number or self.table_number < 1:
                raise ValueError("Dine-in orders require a table number of 1 or more")
        else:
            missing = [
                name
                for name in ("customer_name", "customer_phone", "delivery_address", "payment_proof_url")
                if not (getattr(self, name) or "").strip()
            ]
            if missing:
                raise ValueError(f"Delivery orders require: {', '.join(missing)}")
            self.table_number = 0
        return self


class OrderItemRead(BaseModel):
    """Order line read model."""
    id: UUID = Field(...)
    menu_item_id: Optional[UUID] = Field(None)
    name: str = Field(...)
    quantity: int = Field(...)
    unit_price: float = Field(...)
    line_total: float = Field(...)
    notes: Optional[str] = Field(None)

    class Config:
        from_attributes = True


class OrderRead(BaseModel):
    """Order read model with its lines."""
    id: UUID = Field(...)
    restaurant_id: UUID = Field(...)
    table_number: int = Field(...)
    status: str = Field(...)
    order_type: str = Field(...)
    total_amount: float = Field(...)
    customer_notes: Optional[str] = Field(None)
    customer_name: Optional[str] = Field(None)
    customer_phone: Optional[str] = Field(None)
    customer_email: Optional[str] = Field(None)
    delivery_address: Optional[str] = Field(None)
    payment_proof_url: Optional[str] = Field(None)
    created_at: datetime = Field(...)
    updated_at: datetime = Field(...)
    items: List[OrderItemRead] = Field(default_factory=list)

    class Config:
        from_attributes = True


class StatusInfo(BaseModel):
    """Customer-facing description of an order status."""
    status: str = Field(...)
    label: str = Field(...)
    description: str = Field(...)
    step: int = Field(..., description="Progress step 1-4; 0 when cancelled")


class OrderTracking(BaseModel):
    """Public order tracking view."""
    order: OrderRead = Field(...)
    status_info: StatusInfo = Field(...)
    restaurant_name: str = Field(...)


class OrderStatusUpdate(BaseModel):
    """Move an order to a new status."""
    status: OrderStatus = Field(...)


class OrderSummary(BaseModel):
    """Aggregates for the orders dashboard and history page."""
    total_orders: int = Field(...)
    total_revenue: float = Field(..., description="Sum of totals, excluding cancelled orders")
    completed_orders: int = Field(...)
    active_orders: int = Field(..., description="pending + preparing + ready")
    by_status: Dict[str, int] = Field(default_factory=dict)
