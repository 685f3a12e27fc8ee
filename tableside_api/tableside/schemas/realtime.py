from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class WsEnvelope(BaseModel):
    """Envelope for WebSocket messages."""
    type: str = Field(..., description="Message type (e.g., 'order.created', 'inventory.changed').")
    payload: Dict[str, Any] = Field(default_factory=dict, description="Message payload.")
    at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="Timestamp (UTC).")
    channel: Optional[str] = Field(default=None, description="Topic the message was published on.")


class OrderEvent(BaseModel):
    """Change notification for an order; clients re-fetch on receipt."""
    order_id: UUID = Field(...)
    restaurant_id: UUID = Field(...)
    table_number: int = Field(...)
    status: str = Field(...)
    previous_status: Optional[str] = Field(None)
    status_changed: bool = Field(False)
    total_amount: float = Field(...)
    order_type: str = Field(...)


class InventoryEvent(BaseModel):
    """Change notification for a stock level."""
    restaurant_id: UUID = Field(...)
    inventory_item_id: UUID = Field(...)
    quantity_in_stock: float = Field(...)
    is_low_stock: bool = Field(...)
    reason: str = Field(..., description="waste | purchase_order | adjustment | created | updated")
