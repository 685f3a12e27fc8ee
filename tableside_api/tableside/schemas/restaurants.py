from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

SubscriptionStatus = Literal["trial", "active", "expired"]
SubscriptionPlan = Literal["starter", "professional", "enterprise"]


class RestaurantCreate(BaseModel):
    """Create a restaurant owned by the caller."""
    name: str = Field(..., min_length=1, description="Restaurant name")
    slug: Optional[str] = Field(
        None, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$", description="URL slug; derived from the name when omitted"
    )
    description: Optional[str] = Field(None)
    address: Optional[str] = Field(None)
    phone: Optional[str] = Field(None)


class RestaurantUpdate(BaseModel):
    """Owner-editable restaurant settings."""
    name: Optional[str] = Field(None, min_length=1)
    slug: Optional[str] = Field(None, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: Optional[str] = Field(None)
    logo_url: Optional[str] = Field(None)
    cover_image_url: Optional[str] = Field(None)
    address: Optional[str] = Field(None)
    phone: Optional[str] = Field(None)
    bank_name: Optional[str] = Field(None)
    bank_account_name: Optional[str] = Field(None)
    bank_account_number: Optional[str] = Field(None)


class RestaurantRead(BaseModel):
    """Restaurant as seen by its owner and staff."""
    id: UUID = Field(..., description="Restaurant ID")
    owner_id: UUID = Field(..., description="Owning user ID")
    name: str = Field(...)
    slug: str = Field(...)
    description: Optional[str] = Field(None)
    logo_url: Optional[str] = Field(None)
    cover_image_url: Optional[str] = Field(None)
    address: Optional[str] = Field(None)
    phone: Optional[str] = Field(None)
    bank_name: Optional[str] = Field(None)
    bank_account_name: Optional[str] = Field(None)
    bank_account_number: Optional[str] = Field(None)
    is_active: bool = Field(...)
    subscription_status: str = Field(...)
    subscription_plan: str = Field(...)
    subscription_expires_at: Optional[datetime] = Field(None)
    created_at: datetime = Field(...)
    updated_at: datetime = Field(...)

    class Config:
        from_attributes = True


class PublicRestaurantRead(BaseModel):
    """Restaurant details shown to customers (bank details are needed for delivery checkout)."""
    id: UUID = Field(...)
    name: str = Field(...)
    slug: str = Field(...)
    description: Optional[str] = Field(None)
    logo_url: Optional[str] = Field(None)
    cover_image_url: Optional[str] = Field(None)
    address: Optional[str] = Field(None)
    phone: Optional[str] = Field(None)
    bank_name: Optional[str] = Field(None)
    bank_account_name: Optional[str] = Field(None)
    bank_account_number: Optional[str] = Field(None)

    class Config:
        from_attributes = True


class ShareLink(BaseModel):
    """Customer-facing link to a restaurant menu."""
    url: str = Field(..., description="Menu URL")
    slug: str = Field(...)
    table_number: Optional[int] = Field(None)
