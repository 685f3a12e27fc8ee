from __future__ import annotations

from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, select

from tableside.db.models.restaurants import (
    RestaurantStaff,
    RestaurantTable,
    Shift,
    StaffNotification,
    StaffTableAssignment,
)
from .base import BaseRepository


class TableRepository(BaseRepository):
    """Repository for restaurant tables, shifts and staff assignments."""

    async def list_tables(self, restaurant_id: UUID, *, include_inactive: bool = False) -> List[RestaurantTable]:
        stmt = select(RestaurantTable).where(RestaurantTable.restaurant_id == restaurant_id)
        if not include_inactive:
            stmt = stmt.where(RestaurantTable.is_active.is_(True))
        stmt = stmt.order_by(RestaurantTable.table_number)
        return list(await self.scalars(stmt))

    async def get_by_number(self, restaurant_id: UUID, table_number: int) -> Optional[RestaurantTable]:
        stmt = select(RestaurantTable).where(
            RestaurantTable.restaurant_id == restaurant_id,
            RestaurantTable.table_number == table_number,
            RestaurantTable.is_active.is_(True),
        )
        return (await self.scalars(stmt)).first()

    async def has_active_tables(self, restaurant_id: UUID) -> bool:
        stmt = (
            select(RestaurantTable.id)
            .where(RestaurantTable.restaurant_id == restaurant_id, RestaurantTable.is_active.is_(True))
            .limit(1)
        )
        return (await self.scalar_one_or_none(stmt)) is not None

    # Shifts
    async def list_shifts(self, restaurant_id: UUID) -> List[Shift]:
        stmt = (
            select(Shift)
            .where(Shift.restaurant_id == restaurant_id, Shift.is_active.is_(True))
            .order_by(Shift.start_time)
        )
        return list(await self.scalars(stmt))

    # Assignments
    async def list_assignments(
        self,
        restaurant_id: UUID,
        *,
        on: Optional[date] = None,
        staff_user_id: Optional[UUID] = None,
        table_id: Optional[UUID] = None,
        active_staff_only: bool = False,
    ) -> List[StaffTableAssignment]:
        stmt = select(StaffTableAssignment).where(
            StaffTableAssignment.restaurant_id == restaurant_id,
            StaffTableAssignment.is_active.is_(True),
        )
        if on is not None:
            stmt = stmt.where(StaffTableAssignment.assignment_date == on)
        if staff_user_id is not None:
            stmt = stmt.where(StaffTableAssignment.staff_user_id == staff_user_id)
        if table_id is not None:
            stmt = stmt.where(StaffTableAssignment.table_id == table_id)
        if active_staff_only:
            stmt = stmt.join(
                RestaurantStaff,
                and_(
                    RestaurantStaff.restaurant_id == StaffTableAssignment.restaurant_id,
                    RestaurantStaff.user_id == StaffTableAssignment.staff_user_id,
                ),
            ).where(RestaurantStaff.is_active.is_(True))
        stmt = stmt.order_by(StaffTableAssignment.assignment_date.desc(), StaffTableAssignment.created_at)
        return list(await self.scalars(stmt))


class NotificationRepository(BaseRepository):
    """Repository for staff notifications."""

    async def list_for_staff(
        self, restaurant_id: UUID, staff_user_id: UUID, *, unread_only: bool = True, limit: int = 50
    ) -> List[StaffNotification]:
        stmt = select(StaffNotification).where(
            StaffNotification.restaurant_id == restaurant_id,
            StaffNotification.staff_user_id == staff_user_id,
        )
        if unread_only:
            stmt = stmt.where(StaffNotification.is_read.is_(False))
        stmt = stmt.order_by(StaffNotification.created_at.desc()).limit(limit)
        return list(await self.scalars(stmt))

    async def get_for_staff(self, notification_id: UUID, staff_user_id: UUID) -> Optional[StaffNotification]:
        stmt = select(StaffNotification).where(
            StaffNotification.id == notification_id, StaffNotification.staff_user_id == staff_user_id
        )
        return await self.scalar_one_or_none(stmt)
