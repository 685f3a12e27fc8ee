from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.core.deps import get_session_no_tenant, require_super_admin
from tableside.db.models.security import User
from tableside.repositories.menu import MenuItemRepository
from tableside.repositories.orders import OrderRepository
from tableside.repositories.restaurants import RestaurantRepository
from tableside.repositories.security import SecurityRepository
from tableside.schemas.admin import AdminRestaurantRead, AdminRestaurantUpdate, PlatformStats
from tableside.schemas.menu import AdminMenuItemRead, MenuItemRead

router = APIRouter(prefix="/admin", tags=["Admin"])

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
@router.get(
    "/stats",
    response_model=PlatformStats,
    summary="Platform statistics",
    description="Restaurant, user and order totals across the whole platform.",
)
async def platform_stats(
    _: User = Depends(require_super_admin),
    session: AsyncSession = Depends(get_session_no_tenant),
) -> PlatformStats:
    total, active, by_subscription = await RestaurantRepository(session).count_by()
    total_orders, revenue = await OrderRepository(session).platform_totals()
    return PlatformStats(
        total_restaurants=total,
        active_restaurants=active,
        restaurants_by_subscription=by_subscription,
        total_users=await SecurityRepository(session).count_users(),
        total_orders=total_orders,
        total_revenue=revenue,
    )


# PUBLIC_INTERFACE
@router.get(
    "/restaurants",
    response_model=List[AdminRestaurantRead],
    summary="List all restaurants",
    description="Every restaurant, newest first, with order count and revenue. Search matches name or slug.",
)
async def list_restaurants(
    _: User = Depends(require_super_admin),
    session: AsyncSession = Depends(get_session_no_tenant),
    search: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
) -> List[AdminRestaurantRead]:
    rows = await RestaurantRepository(session).list_all(search=search, limit=limit, offset=offset)
    return [
        AdminRestaurantRead.model_validate(r).model_copy(update={"order_count": count, "revenue": revenue})
        for r, count, revenue in rows
    ]


# PUBLIC_INTERFACE
@router.patch(
    "/restaurants/{restaurant_id}",
    response_model=AdminRestaurantRead,
    summary="Update restaurant account",
    description="Activate or deactivate a restaurant or change its subscription.",
)
async def update_restaurant(
    restaurant_id: UUID,
    payload: AdminRestaurantUpdate,
    admin: User = Depends(require_super_admin),
    session: AsyncSession = Depends(get_session_no_tenant),
) -> AdminRestaurantRead:
    repo = RestaurantRepository(session)
    restaurant = await repo.get(restaurant_id)
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if field != "subscription_expires_at" and value is None:
            continue
        setattr(restaurant, field, value)
    await repo.commit()
    logger.info("Super admin %s updated restaurant %s: %s", admin.email, restaurant.slug, sorted(changes))
    return AdminRestaurantRead.model_validate(restaurant)


# PUBLIC_INTERFACE
@router.get(
    "/menu-items",
    response_model=List[AdminMenuItemRead],
    summary="List all menu items",
    description="Menu items of every restaurant, grouped by restaurant name.",
)
async def list_menu_items(
    _: User = Depends(require_super_admin),
    session: AsyncSession = Depends(get_session_no_tenant),
    limit: int = Query(200, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[AdminMenuItemRead]:
    rows = await MenuItemRepository(session).list_all_with_restaurant(limit=limit, offset=offset)
    return [
        AdminMenuItemRead(
            **MenuItemRead.model_validate(item).model_dump(),
            restaurant_id=restaurant.id,
            restaurant_name=restaurant.name,
        )
        for item, restaurant in rows
    ]
