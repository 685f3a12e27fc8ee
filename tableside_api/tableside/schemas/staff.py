from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

StaffRole = Literal["supervisor", "wait_staff"]


class InvitationCreate(BaseModel):
    """Invite someone to join the restaurant staff."""
    email: EmailStr = Field(...)
    role: StaffRole = Field("wait_staff")


class InvitationRead(BaseModel):
    """Invitation read model."""
    id: UUID = Field(...)
    restaurant_id: UUID = Field(...)
    restaurant_name: Optional[str] = Field(None)
    email: str = Field(...)
    role: str = Field(...)
    status: str = Field(...)
    token: Optional[str] = Field(None, description="Shown to the inviting restaurant only")
    expires_at: datetime = Field(...)
    accepted_at: Optional[datetime] = Field(None)
    created_at: datetime = Field(...)


class InvitationAccept(BaseModel):
    """Accept by token (e.g. from an invite link)."""
    token: str = Field(...)


class StaffMemberRead(BaseModel):
    """A staff member with their profile."""
    id: UUID = Field(..., description="Membership ID")
    user_id: UUID = Field(...)
    email: str = Field(...)
    full_name: Optional[str] = Field(None)
    avatar_url: Optional[str] = Field(None)
    role: str = Field(...)
    is_active: bool = Field(...)
    created_at: datetime = Field(...)


class StaffMemberUpdate(BaseModel):
    """Change a member's role or deactivate them."""
    role: Optional[StaffRole] = Field(None)
    is_active: Optional[bool] = Field(None)


class NotificationRead(BaseModel):
    """Staff notification read model."""
    id: UUID = Field(...)
    type: str = Field(...)
    message: str = Field(...)
    order_id: Optional[UUID] = Field(None)
    table_id: Optional[UUID] = Field(None)
    is_read: bool = Field(...)
    created_at: datetime = Field(...)

    class Config:
        from_attributes = True
