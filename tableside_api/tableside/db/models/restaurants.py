from __future__ import annotations

import uuid
from datetime import date, datetime, time
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Text, Time, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tableside.db.base import Base, RestaurantScopedMixin, TimestampMixin, UUIDPkMixin, utcnow


class Restaurant(UUIDPkMixin, TimestampMixin, Base):
    """A restaurant; the unit of tenancy."""
    __tablename__ = "restaurants"

    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    logo_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cover_image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    bank_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    bank_account_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    bank_account_number: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    subscription_status: Mapped[str] = mapped_column(Text, nullable=False, default="trial", server_default="trial")
    subscription_plan: Mapped[str] = mapped_column(Text, nullable=False, default="starter", server_default="starter")
    subscription_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class RestaurantStaff(UUIDPkMixin, RestaurantScopedMixin, TimestampMixin, Base):
    """Membership of a user in a restaurant's staff."""
    __tablename__ = "restaurant_staff"
    __table_args__ = (
        UniqueConstraint("restaurant_id", "user_id", name="uq_restaurant_staff_restaurant_user"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")

    user = relationship("User", lazy="selectin")


class StaffInvitation(UUIDPkMixin, RestaurantScopedMixin, TimestampMixin, Base):
    """Pending offer for an email address to join a restaurant's staff."""
    __tablename__ = "staff_invitations"

    email: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    role: Mapped[str] = mapped_column(Text, nullable=False)
    invited_by: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="pending", server_default="pending")
    token: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    restaurant = relationship("Restaurant", lazy="selectin")


class RestaurantTable(UUIDPkMixin, RestaurantScopedMixin, TimestampMixin, Base):
    """A physical table that customers order from."""
    __tablename__ = "restaurant_tables"

    table_number: Mapped[int] = mapped_column(Integer, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=4, server_default="4")
    status: Mapped[str] = mapped_column(Text, nullable=False, default="available", server_default="available")
    location: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")


class Shift(UUIDPkMixin, RestaurantScopedMixin, TimestampMixin, Base):
    """A named working shift."""
    __tablename__ = "shifts"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")


class StaffTableAssignment(UUIDPkMixin, RestaurantScopedMixin, TimestampMixin, Base):
    """Assignment of a staff member to a table for a day (and optional shift)."""
    __tablename__ = "staff_table_assignments"

    staff_user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    table_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("restaurant_tables.id", ondelete="CASCADE"), nullable=False)
    shift_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("shifts.id", ondelete="SET NULL"), nullable=True)
    assignment_date: Mapped[date] = mapped_column(Date, nullable=False, default=lambda: utcnow().date())
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")

    table = relationship("RestaurantTable", lazy="selectin")
    shift = relationship("Shift", lazy="selectin")


class StaffNotification(UUIDPkMixin, RestaurantScopedMixin, TimestampMixin, Base):
    """In-app notification addressed to one staff member."""
    __tablename__ = "staff_notifications"

    staff_user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    order_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=True)
    table_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("restaurant_tables.id", ondelete="SET NULL"), nullable=True)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
