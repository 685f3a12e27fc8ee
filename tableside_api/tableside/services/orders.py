from __future__ import annotations

import logging
from datetime import timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from tableside.core.settings import get_app_settings
from tableside.db.base import utcnow
from tableside.db.models.orders import Order, OrderItem
from tableside.db.models.restaurants import Restaurant, StaffNotification
from tableside.repositories.menu import MenuItemRepository
from tableside.repositories.orders import OrderFilters, OrderRepository
from tableside.repositories.tables import TableRepository
from tableside.schemas.orders import OrderCreate, OrderSummary, StatusInfo
from tableside.schemas.realtime import OrderEvent
from tableside.services.base import BaseService
from tableside.services.errors import ConflictError, DomainValidationError, NotFoundError
from tableside.services.realtime import broadcast_manager

logger = logging.getLogger(__name__)

# Kitchen pipeline; an order only moves forward along it.
STATUS_FLOW = ("pending", "preparing", "ready", "completed")
TERMINAL_STATUSES = frozenset({"completed", "cancelled"})
ACTIVE_STATUSES = ("pending", "preparing", "ready")

STATUS_INFO = {
    "pending": ("Order Received", "Your order has been sent to the kitchen.", 1),
    "preparing": ("Preparing", "The kitchen is preparing your order.", 2),
    "ready": ("Ready", "Your order is ready and on its way to you.", 3),
    "completed": ("Completed", "Enjoy your meal!", 4),
    "cancelled": ("Cancelled", "This order was cancelled. Please ask a member of staff.", 0),
}


# PUBLIC_INTERFACE
def status_info(status: str) -> StatusInfo:
    """Customer-facing label, description and progress step for an order status."""
    label, description, step = STATUS_INFO.get(status, (status.title(), "", 0))
    return StatusInfo(status=status, label=label, description=description, step=step)


# PUBLIC_INTERFACE
def can_transition(current: str, new: str) -> bool:
    """
    True when an order may move from `current` to `new`.

    Orders move forward through pending -> preparing -> ready -> completed
    (steps may be skipped) and can be cancelled until they are completed.
    """
    if current in TERMINAL_STATUSES:
        return False
    if new == "cancelled":
        return True
    if new not in STATUS_FLOW or current not in STATUS_FLOW:
        return False
    return STATUS_FLOW.index(new) > STATUS_FLOW.index(current)


def _event(order: Order, previous_status: Optional[str] = None) -> OrderEvent:
    return OrderEvent(
        order_id=order.id,
        restaurant_id=order.restaurant_id,
        table_number=order.table_number,
        status=order.status,
        previous_status=previous_status,
        status_changed=previous_status is not None and previous_status != order.status,
        total_amount=order.total_amount,
        order_type=order.order_type,
    )


class OrderService(BaseService):
    """
    Order placement and lifecycle.

    Prices are always taken from the menu. Every committed change is pushed to
    the realtime topics so staff and customer views re-fetch.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.orders = OrderRepository(session)
        self.menu = MenuItemRepository(session)
        self.tables = TableRepository(session)

    # PUBLIC_INTERFACE
    async def place_order(self, restaurant: Restaurant, payload: OrderCreate) -> Order:
        """
        Validate and persist a customer order, notify assigned staff and publish `order.created`.

        Raises:
            DomainValidationError: unknown/unavailable menu items or a table that does not exist.
        """
        menu_items = await self.menu.get_many(restaurant.id, (i.menu_item_id for i in payload.items))
        unknown = [str(i.menu_item_id) for i in payload.items if i.menu_item_id not in menu_items]
        if unknown:
            raise DomainValidationError("Some menu items do not exist", details={"menu_item_ids": unknown})
        unavailable = sorted({menu_items[i.menu_item_id].name for i in payload.items if not menu_items[i.menu_item_id].is_available})
        if unavailable:
            raise DomainValidationError(
                f"Currently unavailable: {', '.join(unavailable)}", details={"unavailable": unavailable}
            )

        table = None
        if payload.order_type == "dine_in":
            table = await self.tables.get_by_number(restaurant.id, payload.table_number)
            if table is None and await self.tables.has_active_tables(restaurant.id):
                raise DomainValidationError(f"Table {payload.table_number} does not exist")

        lines = [
            OrderItem(
                menu_item_id=menu_items[i.menu_item_id].id,
                name=menu_items[i.menu_item_id].name,
                quantity=i.quantity,
                unit_price=float(menu_items[i.menu_item_id].price),
                notes=i.notes,
            )
            for i in payload.items
        ]
        total = round(sum(line.quantity * line.unit_price for line in lines), 2)

        order = Order(
            restaurant_id=restaurant.id,
            table_number=payload.table_number or 0,
            status="pending",
            order_type=payload.order_type,
            total_amount=total,
            customer_notes=payload.customer_notes,
            customer_name=payload.customer_name,
            customer_phone=payload.customer_phone,
            customer_email=payload.customer_email,
            delivery_address=payload.delivery_address,
            payment_proof_url=payload.payment_proof_url,
            items=lines,
        )
        await self.orders.add(order)
        await self.orders.flush()

        if table is not None:
            assignments = await self.tables.list_assignments(
                restaurant.id, on=utcnow().date(), table_id=table.id, active_staff_only=True
            )
            notified = set()
            for a in assignments:
                if a.staff_user_id in notified:
                    continue
                notified.add(a.staff_user_id)
                await self.orders.add(
                    StaffNotification(
                        restaurant_id=restaurant.id,
                        staff_user_id=a.staff_user_id,
                        order_id=order.id,
                        table_id=table.id,
                        type="new_order",
                        message=f"New order at table {table.table_number} (${total:.2f})",
                    )
                )

        await self.orders.commit()
        logger.info(
            "Order %s placed at restaurant=%s table=%s total=%.2f", order.id, restaurant.id, order.table_number, total
        )
        await self._publish("order.created", order)
        return order

    # PUBLIC_INTERFACE
    async def update_status(self, restaurant_id: UUID, order_id: UUID, new_status: str) -> Order:
        """
        Move an order to `new_status` and publish `order.updated`.

        Setting the current status again is a no-op and publishes nothing.

        Raises:
            NotFoundError: order does not belong to the restaurant.
            ConflictError: the transition is not allowed.
        """
        order = await self.orders.get(restaurant_id, order_id)
        if order is None:
            raise NotFoundError("Order not found")
        if order.status == new_status:
            return order
        if not can_transition(order.status, new_status):
            raise ConflictError(
                f"Cannot change order status from '{order.status}' to '{new_status}'",
                details={"current": order.status, "requested": new_status},
            )
        previous = order.status
        order.status = new_status
        await self.orders.commit()
        logger.info("Order %s status %s -> %s", order.id, previous, new_status)
        await self._publish("order.updated", order, previous_status=previous)
        return order

    # PUBLIC_INTERFACE
    async def get_order(self, restaurant_id: UUID, order_id: UUID) -> Order:
        """Load one order of the restaurant or raise NotFoundError."""
        order = await self.orders.get(restaurant_id, order_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    # PUBLIC_INTERFACE
    async def recent_table_orders(self, restaurant_id: UUID, table_number: int) -> List[Order]:
        """Orders placed from a table within the recent window, newest first."""
        hours = get_app_settings().RECENT_TABLE_ORDERS_HOURS
        since = utcnow() - timedelta(hours=hours)
        return await self.orders.list_recent_for_table(restaurant_id, table_number, since)

    # PUBLIC_INTERFACE
    async def summary(self, restaurant_id: UUID, filters: Optional[OrderFilters] = None) -> OrderSummary:
        """Counts and revenue for the filtered orders."""
        breakdown = await self.orders.status_breakdown(restaurant_id, filters)
        by_status = {status: count for status, (count, _) in breakdown.items()}
        return OrderSummary(
            total_orders=sum(by_status.values()),
            total_revenue=round(sum(total for status, (_, total) in breakdown.items() if status != "cancelled"), 2),
            completed_orders=by_status.get("completed", 0),
            active_orders=sum(by_status.get(s, 0) for s in ACTIVE_STATUSES),
            by_status=by_status,
        )

    async def _publish(self, event_type: str, order: Order, previous_status: Optional[str] = None) -> None:
        try:
            await broadcast_manager.publish_order_event(event_type, _event(order, previous_status))
        except Exception:
            logger.exception("Failed to publish %s for order %s", event_type, order.id)
