from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import Select, String, cast, func, or_, select

from tableside.db.models.orders import Order
from .base import BaseRepository


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass
class OrderFilters:
    """Filters shared by the order history list, its summary and its export."""
    status: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    search: Optional[str] = None
    table_number: Optional[int] = None
    order_type: Optional[str] = None

    def apply(self, stmt: Select) -> Select:
        if self.status:
            stmt = stmt.where(Order.status == self.status)
        if self.order_type:
            stmt = stmt.where(Order.order_type == self.order_type)
        if self.table_number is not None:
            stmt = stmt.where(Order.table_number == self.table_number)
        if self.date_from:
            start = datetime.combine(self.date_from, time.min, tzinfo=timezone.utc)
            stmt = stmt.where(Order.created_at >= start)
        if self.date_to:
            # inclusive of the whole final day
            end = datetime.combine(self.date_to + timedelta(days=1), time.min, tzinfo=timezone.utc)
            stmt = stmt.where(Order.created_at < end)
        term = (self.search or "").strip().lower()
        if term:
            pattern = f"%{escape_like(term)}%"
            stmt = stmt.where(
                or_(
                    func.lower(cast(Order.id, String)).like(pattern, escape="\\"),
                    cast(Order.table_number, String).like(pattern, escape="\\"),
                )
            )
        return stmt


class OrderRepository(BaseRepository):
    """Repository for orders and order items."""

    async def get(self, restaurant_id: UUID, order_id: UUID) -> Optional[Order]:
        return await self.get_scoped(Order, order_id, restaurant_id)

    async def list_orders(
        self,
        restaurant_id: UUID,
        filters: Optional[OrderFilters] = None,
        *,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Order]:
        stmt = select(Order).where(Order.restaurant_id == restaurant_id)
        stmt = (filters or OrderFilters()).apply(stmt)
        stmt = stmt.order_by(Order.created_at.desc()).offset(offset).limit(limit)
        return list(await self.scalars(stmt))

    async def list_active(self, restaurant_id: UUID) -> List[Order]:
        """Orders still being worked on, oldest first (kitchen queue)."""
        stmt = (
            select(Order)
            .where(Order.restaurant_id == restaurant_id, Order.status.in_(("pending", "preparing", "ready")))
            .order_by(Order.created_at)
        )
        return list(await self.scalars(stmt))

    async def list_recent_for_table(self, restaurant_id: UUID, table_number: int, since: datetime) -> List[Order]:
        stmt = (
            select(Order)
            .where(
                Order.restaurant_id == restaurant_id,
                Order.table_number == table_number,
                Order.created_at >= since,
            )
            .order_by(Order.created_at.desc())
        )
        return list(await self.scalars(stmt))

    async def status_breakdown(self, restaurant_id: UUID, filters: Optional[OrderFilters] = None) -> dict[str, tuple[int, float]]:
        """Map of status -> (order count, summed total) for the filtered orders."""
        stmt = select(Order.status, func.count(Order.id), func.coalesce(func.sum(Order.total_amount), 0)).where(
            Order.restaurant_id == restaurant_id
        )
        stmt = (filters or OrderFilters()).apply(stmt).group_by(Order.status)
        result = await self.execute(stmt)
        return {status: (int(count), float(total or 0)) for status, count, total in result.all()}

    async def platform_totals(self) -> tuple[int, float]:
        """Order count and non-cancelled revenue across every restaurant."""
        count = (await self.execute(select(func.count(Order.id)))).scalar_one()
        revenue = (
            await self.execute(
                select(func.coalesce(func.sum(Order.total_amount), 0)).where(Order.status != "cancelled")
            )
        ).scalar_one()
        return int(count or 0), float(revenue or 0)
