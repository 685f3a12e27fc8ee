from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field

from tableside.schemas.restaurants import RestaurantRead, SubscriptionPlan, SubscriptionStatus


class PlatformStats(BaseModel):
    """Platform-wide figures for the super admin dashboard."""
    total_restaurants: int = Field(...)
    active_restaurants: int = Field(...)
    restaurants_by_subscription: Dict[str, int] = Field(default_factory=dict)
    total_users: int = Field(...)
    total_orders: int = Field(...)
    total_revenue: float = Field(...)


class AdminRestaurantRead(RestaurantRead):
    """Restaurant with usage figures."""
    order_count: int = Field(0)
    revenue: float = Field(0)


class AdminRestaurantUpdate(BaseModel):
    """Super admin changes to a restaurant's account."""
    is_active: Optional[bool] = Field(None)
    subscription_status: Optional[SubscriptionStatus] = Field(None)
    subscription_plan: Optional[SubscriptionPlan] = Field(None)
    subscription_expires_at: Optional[datetime] = Field(None)
