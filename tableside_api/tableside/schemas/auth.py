from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class TokenPair(BaseModel):
    """Access and refresh tokens."""
    token_type: str = Field("bearer", description="Token type, typically 'bearer'")
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")


class RefreshRequest(BaseModel):
    """Request to refresh an access token."""
    refresh_token: str = Field(..., description="Refresh token")


class RegisterRequest(BaseModel):
    """Sign-up details. Supplying a restaurant name signs up a restaurant owner."""
    email: EmailStr = Field(..., description="User email")
    password: str = Field(..., min_length=6, description="User password")
    full_name: Optional[str] = Field(None, description="Full name")
    restaurant_name: Optional[str] = Field(
        None, min_length=1, description="Create a restaurant owned by the new user"
    )


class ForgotPasswordRequest(BaseModel):
    """Start a password reset."""
    email: EmailStr = Field(..., description="Account email")


class ResetPasswordRequest(BaseModel):
    """Finish a password reset."""
    token: str = Field(..., description="Reset token")
    new_password: str = Field(..., min_length=6, description="New password")


class ProfileUpdate(BaseModel):
    """Editable profile fields."""
    full_name: Optional[str] = Field(None)
    avatar_url: Optional[str] = Field(None)


class Membership(BaseModel):
    """A restaurant the user can act in, and the role they hold there."""
    restaurant_id: UUID = Field(..., description="Restaurant ID")
    restaurant_name: str = Field(..., description="Restaurant name")
    slug: str = Field(..., description="Restaurant slug")
    role: str = Field(..., description="restaurant_owner | supervisor | wait_staff")


class UserRead(BaseModel):
    """User read model."""
    id: UUID = Field(..., description="User ID")
    email: EmailStr = Field(..., description="User email")
    full_name: Optional[str] = Field(None)
    avatar_url: Optional[str] = Field(None)
    is_active: bool = Field(..., description="Active flag")
    created_at: datetime = Field(..., description="Created timestamp")
    updated_at: datetime = Field(..., description="Updated timestamp")
    roles: List[str] = Field(default_factory=list, description="Global role names")
    memberships: List[Membership] = Field(default_factory=list, description="Restaurants the user belongs to")

    class Config:
        from_attributes = True


class PasswordResetIssued(BaseModel):
    """Response to a forgot-password request."""
    message: str = Field(...)
    reset_token: Optional[str] = Field(
        None, description="Only returned in dev/test environments, where no email is sent"
    )
