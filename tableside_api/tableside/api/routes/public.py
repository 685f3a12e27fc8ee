"""Customer-facing endpoints addressed by restaurant slug; no authentication."""
from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.core.deps import get_session_no_tenant
from tableside.core.logging import restaurant_id_var
from tableside.db.models.restaurants import Restaurant
from tableside.db.session import set_current_restaurant
from tableside.repositories.menu import CategoryRepository, MenuItemRepository
from tableside.repositories.restaurants import RestaurantRepository
from tableside.schemas.menu import CategoryRead, PublicMenuItem, PublicMenuSection
from tableside.schemas.orders import OrderCreate, OrderRead, OrderTracking
from tableside.schemas.restaurants import PublicRestaurantRead
from tableside.services.orders import OrderService, status_info

router = APIRouter(prefix="/public/restaurants", tags=["Public"])


# PUBLIC_INTERFACE
async def get_public_restaurant(
    slug: str = Path(..., description="Restaurant slug"),
    session: AsyncSession = Depends(get_session_no_tenant),
) -> Restaurant:
    """Resolve an active restaurant by slug and scope the session to it."""
    restaurant = await RestaurantRepository(session).get_by_slug(slug)
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    await set_current_restaurant(session, restaurant.id)
    restaurant_id_var.set(str(restaurant.id))
    return restaurant


# PUBLIC_INTERFACE
@router.get(
    "/{slug}",
    response_model=PublicRestaurantRead,
    summary="Public restaurant profile",
    description="Restaurant details for the customer menu and delivery checkout (includes bank details).",
)
async def get_restaurant_by_slug(restaurant: Restaurant = Depends(get_public_restaurant)) -> PublicRestaurantRead:
    return PublicRestaurantRead.model_validate(restaurant)


# PUBLIC_INTERFACE
@router.get(
    "/{slug}/menu",
    response_model=List[PublicMenuSection],
    summary="Public menu",
    description=(
        "Available items grouped by category in category order. Items without a category "
        "come last in a section whose category is null. Empty categories are omitted."
    ),
)
async def get_public_menu(
    restaurant: Restaurant = Depends(get_public_restaurant),
    session: AsyncSession = Depends(get_session_no_tenant),
) -> List[PublicMenuSection]:
    categories = await CategoryRepository(session).list_categories(restaurant.id)
    items = await MenuItemRepository(session).list_items(restaurant.id, available_only=True)

    by_category: dict[UUID | None, list] = {}
    for item in items:
        by_category.setdefault(item.category_id, []).append(PublicMenuItem.model_validate(item))

    known = {c.id for c in categories}
    sections = [
        PublicMenuSection(category=CategoryRead.model_validate(c), items=by_category[c.id])
        for c in categories
        if c.id in by_category
    ]
    orphans = [i for cid, group in by_category.items() if cid not in known for i in group]
    if orphans:
        sections.append(PublicMenuSection(category=None, items=orphans))
    return sections


# PUBLIC_INTERFACE
@router.post(
    "/{slug}/orders",
    response_model=OrderRead,
    status_code=status.HTTP_201_CREATED,
    summary="Place order",
    description=(
        "Place a dine-in order for a table or a delivery order with customer details and payment proof. "
        "Prices come from the menu. Publishes 'order.created'."
    ),
)
async def place_order(
    payload: OrderCreate,
    restaurant: Restaurant = Depends(get_public_restaurant),
    session: AsyncSession = Depends(get_session_no_tenant),
) -> OrderRead:
    order = await OrderService(session).place_order(restaurant, payload)
    return OrderRead.model_validate(order)


# PUBLIC_INTERFACE
@router.get(
    "/{slug}/orders/{order_id}",
    response_model=OrderTracking,
    summary="Track order",
    description="Order with customer-facing status label, description and progress step.",
)
async def track_order(
    order_id: UUID,
    restaurant: Restaurant = Depends(get_public_restaurant),
    session: AsyncSession = Depends(get_session_no_tenant),
) -> OrderTracking:
    order = await OrderService(session).get_order(restaurant.id, order_id)
    return OrderTracking(
        order=OrderRead.model_validate(order),
        status_info=status_info(order.status),
        restaurant_name=restaurant.name,
    )


# PUBLIC_INTERFACE
@router.get(
    "/{slug}/tables/{table_number}/orders",
    response_model=List[OrderRead],
    summary="Recent orders for a table",
    description="Orders placed from the table within the recent window, newest first.",
)
async def recent_table_orders(
    table_number: int = Path(..., ge=1),
    restaurant: Restaurant = Depends(get_public_restaurant),
    session: AsyncSession = Depends(get_session_no_tenant),
) -> List[OrderRead]:
    rows = await OrderService(session).recent_table_orders(restaurant.id, table_number)
    return [OrderRead.model_validate(o) for o in rows]
