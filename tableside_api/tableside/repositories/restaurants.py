from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import case, func, or_, select

from tableside.db.models.orders import Order
from tableside.db.models.restaurants import Restaurant, RestaurantStaff, StaffInvitation
from tableside.db.models.security import User
from .base import BaseRepository


class RestaurantRepository(BaseRepository):
    """Repository for restaurants and platform-wide restaurant listings."""

    async def get(self, restaurant_id: UUID) -> Optional[Restaurant]:
        return await self.scalar_one_or_none(select(Restaurant).where(Restaurant.id == restaurant_id))

    async def get_by_slug(self, slug: str, *, active_only: bool = True) -> Optional[Restaurant]:
        stmt = select(Restaurant).where(Restaurant.slug == slug)
        if active_only:
            stmt = stmt.where(Restaurant.is_active.is_(True))
        return await self.scalar_one_or_none(stmt)

    async def slug_exists(self, slug: str, *, exclude_id: Optional[UUID] = None) -> bool:
        stmt = select(Restaurant.id).where(Restaurant.slug == slug)
        if exclude_id is not None:
            stmt = stmt.where(Restaurant.id != exclude_id)
        return (await self.scalar_one_or_none(stmt)) is not None

    async def list_for_user(self, user_id: UUID) -> List[Restaurant]:
        """Restaurants the user owns or actively works at."""
        staff_sub = select(RestaurantStaff.restaurant_id).where(
            RestaurantStaff.user_id == user_id, RestaurantStaff.is_active.is_(True)
        )
        stmt = (
            select(Restaurant)
            .where(or_(Restaurant.owner_id == user_id, Restaurant.id.in_(staff_sub)))
            .order_by(Restaurant.name)
        )
        return list(await self.scalars(stmt))

    async def list_all(
        self, *, search: Optional[str] = None, limit: int = 100, offset: int = 0
    ) -> List[tuple[Restaurant, int, float]]:
        """All restaurants with their order count and revenue (super admin view)."""
        order_stats = (
            select(
                Order.restaurant_id.label("restaurant_id"),
                func.count(Order.id).label("order_count"),
                func.coalesce(
                    func.sum(case((Order.status != "cancelled", Order.total_amount), else_=0)), 0
                ).label("revenue"),
            )
            .group_by(Order.restaurant_id)
            .subquery()
        )
        stmt = (
            select(
                Restaurant,
                func.coalesce(order_stats.c.order_count, 0),
                func.coalesce(order_stats.c.revenue, 0),
            )
            .outerjoin(order_stats, order_stats.c.restaurant_id == Restaurant.id)
            .order_by(Restaurant.created_at.desc())
        )
        if search:
            like = f"%{search.lower()}%"
            stmt = stmt.where(or_(func.lower(Restaurant.name).like(like), func.lower(Restaurant.slug).like(like)))
        stmt = stmt.offset(offset).limit(limit)
        result = await self.execute(stmt)
        return [(r, int(count or 0), float(revenue or 0)) for r, count, revenue in result.all()]

    async def count_by(self) -> tuple[int, int, dict[str, int]]:
        """Restaurant counts: (total, active, per subscription status)."""
        result = await self.execute(
            select(Restaurant.subscription_status, Restaurant.is_active, func.count(Restaurant.id)).group_by(
                Restaurant.subscription_status, Restaurant.is_active
            )
        )
        total = active = 0
        by_subscription: dict[str, int] = {}
        for status, is_active, count in result.all():
            total += count
            if is_active:
                active += count
            by_subscription[status] = by_subscription.get(status, 0) + count
        return total, active, by_subscription


class StaffRepository(BaseRepository):
    """Repository for restaurant staff memberships and invitations."""

    async def get_membership(self, restaurant_id: UUID, user_id: UUID) -> Optional[RestaurantStaff]:
        stmt = select(RestaurantStaff).where(
            RestaurantStaff.restaurant_id == restaurant_id, RestaurantStaff.user_id == user_id
        )
        return await self.scalar_one_or_none(stmt)

    async def list_memberships_for_user(self, user_id: UUID) -> List[tuple[RestaurantStaff, Restaurant]]:
        stmt = (
            select(RestaurantStaff, Restaurant)
            .join(Restaurant, Restaurant.id == RestaurantStaff.restaurant_id)
            .where(RestaurantStaff.user_id == user_id, RestaurantStaff.is_active.is_(True))
            .order_by(Restaurant.name)
        )
        result = await self.execute(stmt)
        return [(m, r) for m, r in result.all()]

    async def list_members(self, restaurant_id: UUID, *, include_inactive: bool = False) -> List[RestaurantStaff]:
        stmt = (
            select(RestaurantStaff)
            .join(User, User.id == RestaurantStaff.user_id)
            .where(RestaurantStaff.restaurant_id == restaurant_id)
            .order_by(User.full_name, User.email)
        )
        if not include_inactive:
            stmt = stmt.where(RestaurantStaff.is_active.is_(True))
        return list(await self.scalars(stmt))

    # Invitations
    async def get_invitation(self, invitation_id: UUID) -> Optional[StaffInvitation]:
        return await self.scalar_one_or_none(select(StaffInvitation).where(StaffInvitation.id == invitation_id))

    async def get_invitation_by_token(self, token: str) -> Optional[StaffInvitation]:
        return await self.scalar_one_or_none(select(StaffInvitation).where(StaffInvitation.token == token))

    async def list_invitations(self, restaurant_id: UUID, *, status: Optional[str] = None) -> List[StaffInvitation]:
        stmt = select(StaffInvitation).where(StaffInvitation.restaurant_id == restaurant_id)
        if status:
            stmt = stmt.where(StaffInvitation.status == status)
        stmt = stmt.order_by(StaffInvitation.created_at.desc())
        return list(await self.scalars(stmt))

    async def find_pending_invitation(self, restaurant_id: UUID, email: str) -> Optional[StaffInvitation]:
        stmt = select(StaffInvitation).where(
            StaffInvitation.restaurant_id == restaurant_id,
            StaffInvitation.email == email,
            StaffInvitation.status == "pending",
        )
        return (await self.scalars(stmt)).first()

    async def list_pending_for_email(self, email: str, *, now: datetime) -> List[StaffInvitation]:
        stmt = (
            select(StaffInvitation)
            .where(
                StaffInvitation.email == email,
                StaffInvitation.status == "pending",
                StaffInvitation.expires_at > now,
            )
            .order_by(StaffInvitation.created_at.desc())
        )
        return list(await self.scalars(stmt))
