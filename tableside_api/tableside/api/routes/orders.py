from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.core.deps import STAFF, get_current_restaurant, get_restaurant_id, get_restaurant_session, require_roles
from tableside.db.models.restaurants import Restaurant
from tableside.repositories.orders import OrderFilters, OrderRepository
from tableside.schemas.orders import OrderRead, OrderStatus, OrderStatusUpdate, OrderSummary, OrderType
from tableside.services.orders import OrderService
from tableside.services.receipts import receipt_filename, render_pdf_receipt, render_text_receipt

router = APIRouter(prefix="/orders", tags=["Orders"])


# PUBLIC_INTERFACE
def order_filters(
    status: Optional[OrderStatus] = Query(None, description="Filter by status"),
    date_from: Optional[date] = Query(None, description="Created on or after this date (UTC)"),
    date_to: Optional[date] = Query(None, description="Created on or before this date (UTC), inclusive"),
    search: Optional[str] = Query(None, description="Order id fragment or table number"),
    table_number: Optional[int] = Query(None, ge=0),
    order_type: Optional[OrderType] = Query(None),
) -> OrderFilters:
    """Query parameters shared by the order list, summary and export."""
    return OrderFilters(
        status=status,
        date_from=date_from,
        date_to=date_to,
        search=search,
        table_number=table_number,
        order_type=order_type,
    )


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[OrderRead],
    summary="List orders",
    description="Order history, newest first.",
    dependencies=[Depends(require_roles(*STAFF))],
)
async def list_orders(
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
    filters: OrderFilters = Depends(order_filters),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[OrderRead]:
    rows = await OrderRepository(session).list_orders(restaurant_id, filters, limit=limit, offset=offset)
    return [OrderRead.model_validate(o) for o in rows]


# PUBLIC_INTERFACE
@router.get(
    "/active",
    response_model=List[OrderRead],
    summary="Kitchen queue",
    description="Pending, preparing and ready orders, oldest first.",
    dependencies=[Depends(require_roles(*STAFF))],
)
async def list_active_orders(
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> List[OrderRead]:
    return [OrderRead.model_validate(o) for o in await OrderRepository(session).list_active(restaurant_id)]


# PUBLIC_INTERFACE
@router.get(
    "/summary",
    response_model=OrderSummary,
    summary="Dashboard summary",
    description="Order counts per status and revenue for the filtered window.",
    dependencies=[Depends(require_roles(*STAFF))],
)
async def order_summary(
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
    filters: OrderFilters = Depends(order_filters),
) -> OrderSummary:
    return await OrderService(session).summary(restaurant_id, filters)


# PUBLIC_INTERFACE
@router.get(
    "/{order_id}",
    response_model=OrderRead,
    summary="Get order",
    dependencies=[Depends(require_roles(*STAFF))],
)
async def get_order(
    order_id: UUID,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> OrderRead:
    return OrderRead.model_validate(await OrderService(session).get_order(restaurant_id, order_id))


# PUBLIC_INTERFACE
@router.patch(
    "/{order_id}/status",
    response_model=OrderRead,
    summary="Update order status",
    description=(
        "Move an order forward through pending -> preparing -> ready -> completed, or cancel it "
        "while it is not completed. Publishes 'order.updated'."
    ),
    dependencies=[Depends(require_roles(*STAFF))],
)
async def update_order_status(
    order_id: UUID,
    payload: OrderStatusUpdate,
    restaurant_id: UUID = Depends(get_restaurant_id),
    session: AsyncSession = Depends(get_restaurant_session),
) -> OrderRead:
    order = await OrderService(session).update_status(restaurant_id, order_id, payload.status)
    return OrderRead.model_validate(order)


# PUBLIC_INTERFACE
@router.get(
    "/{order_id}/receipt",
    summary="Order receipt",
    description="Plain text (default) or PDF receipt.",
    response_description="receipt-<id8>.txt or receipt-<id8>.pdf",
    dependencies=[Depends(require_roles(*STAFF))],
)
async def order_receipt(
    order_id: UUID,
    restaurant: Restaurant = Depends(get_current_restaurant),
    session: AsyncSession = Depends(get_restaurant_session),
    format: Literal["text", "pdf"] = Query("text", description="text | pdf"),
) -> Response:
    order = await OrderService(session).get_order(restaurant.id, order_id)
    if format == "pdf":
        headers = {"Content-Disposition": f'attachment; filename="{receipt_filename(order, "pdf")}"'}
        return Response(render_pdf_receipt(order, restaurant.name), media_type="application/pdf", headers=headers)
    headers = {"Content-Disposition": f'attachment; filename="{receipt_filename(order, "txt")}"'}
    return PlainTextResponse(render_text_receipt(order, restaurant.name), headers=headers)
