from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.core.deps import (
    OWNER,
    STAFF,
    get_current_active_user,
    get_current_restaurant,
    get_restaurant_session,
    get_session_no_tenant,
    require_roles,
)
from tableside.db.models.restaurants import Restaurant
from tableside.db.models.security import User
from tableside.repositories.restaurants import RestaurantRepository
from tableside.schemas.restaurants import RestaurantCreate, RestaurantRead, RestaurantUpdate, ShareLink
from tableside.services.restaurants import RestaurantService

router = APIRouter(prefix="/restaurants", tags=["Restaurants"])


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=RestaurantRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create restaurant",
    description="Create a restaurant owned by the caller. The caller is granted the restaurant_owner role.",
)
async def create_restaurant(
    payload: RestaurantCreate,
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session_no_tenant),
) -> RestaurantRead:
    restaurant = await RestaurantService(session).create_restaurant(user, payload)
    await session.commit()
    return RestaurantRead.model_validate(restaurant)


# PUBLIC_INTERFACE
@router.get(
    "/mine",
    response_model=List[RestaurantRead],
    summary="List my restaurants",
    description="Restaurants the caller owns or works at.",
)
async def list_my_restaurants(
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session_no_tenant),
) -> List[RestaurantRead]:
    rows = await RestaurantRepository(session).list_for_user(user.id)
    return [RestaurantRead.model_validate(r) for r in rows]


# PUBLIC_INTERFACE
@router.get(
    "/current",
    response_model=RestaurantRead,
    summary="Get current restaurant",
    description="The restaurant selected by the X-Restaurant-ID header.",
    dependencies=[Depends(require_roles(*STAFF))],
)
async def get_restaurant(restaurant: Restaurant = Depends(get_current_restaurant)) -> RestaurantRead:
    return RestaurantRead.model_validate(restaurant)


# PUBLIC_INTERFACE
@router.patch(
    "/current",
    response_model=RestaurantRead,
    summary="Update restaurant settings",
    dependencies=[Depends(require_roles(*OWNER))],
)
async def update_restaurant(
    payload: RestaurantUpdate,
    restaurant: Restaurant = Depends(get_current_restaurant),
    session: AsyncSession = Depends(get_restaurant_session),
) -> RestaurantRead:
    updated = await RestaurantService(session).update_restaurant(restaurant.id, payload)
    return RestaurantRead.model_validate(updated)


# PUBLIC_INTERFACE
@router.get(
    "/current/share-link",
    response_model=ShareLink,
    summary="Menu share link",
    description="Customer-facing menu URL, optionally pinned to a table.",
    dependencies=[Depends(require_roles(*STAFF))],
)
async def share_link(
    table_number: Optional[int] = Query(None, ge=1),
    restaurant: Restaurant = Depends(get_current_restaurant),
    session: AsyncSession = Depends(get_restaurant_session),
) -> ShareLink:
    return RestaurantService(session).share_link(restaurant, table_number)
