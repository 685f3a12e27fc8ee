from __future__ import annotations

import logging
from typing import Any, Dict, List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.core.deps import get_current_active_user, get_session_no_tenant
from tableside.core.security import (
    create_access_token,
    create_password_reset_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from tableside.core.settings import get_app_settings
from tableside.db.models.security import AppRole, User
from tableside.repositories.restaurants import RestaurantRepository, StaffRepository
from tableside.repositories.security import SecurityRepository
from tableside.schemas.auth import (
    ForgotPasswordRequest,
    Membership,
    PasswordResetIssued,
    ProfileUpdate,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenPair,
    UserRead,
)
from tableside.schemas.common import MessageResponse
from tableside.schemas.restaurants import RestaurantCreate
from tableside.services.restaurants import RestaurantService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


async def _memberships(session: AsyncSession, user: User) -> List[Membership]:
    """Owned restaurants first, then active staff memberships."""
    owned = [r for r in await RestaurantRepository(session).list_for_user(user.id) if r.owner_id == user.id]
    result = [
        Membership(restaurant_id=r.id, restaurant_name=r.name, slug=r.slug, role=AppRole.RESTAURANT_OWNER.value)
        for r in owned
    ]
    owned_ids = {r.id for r in owned}
    for membership, restaurant in await StaffRepository(session).list_memberships_for_user(user.id):
        if restaurant.id not in owned_ids:
            result.append(
                Membership(
                    restaurant_id=restaurant.id, restaurant_name=restaurant.name, slug=restaurant.slug, role=membership.role
                )
            )
    return result


async def _user_to_read(session: AsyncSession, user: User) -> UserRead:
    return UserRead(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        avatar_url=user.avatar_url,
        is_active=user.is_active,
        created_at=user.created_at,
        updated_at=user.updated_at,
        roles=user.role_names,
        memberships=await _memberships(session, user),
    )


def _issue_tokens(user: User) -> TokenPair:
    access = create_access_token(subject=str(user.id), roles=user.role_names)
    refresh = create_refresh_token(subject=str(user.id))
    return TokenPair(access_token=access, refresh_token=refresh)


# PUBLIC_INTERFACE
@router.post(
    "/register",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register user",
    description=(
        "Create an account. With restaurant_name the user becomes a restaurant owner and the "
        "restaurant is created; otherwise the account gets the 'customer' role."
    ),
)
async def register_user(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_session_no_tenant),
) -> UserRead:
    """Register a new user, optionally with their restaurant."""
    repo = SecurityRepository(session)
    existing = await repo.get_user_by_email(payload.email)
    if existing:
        raise HTTPException(status_code=400, detail="User with this email already exists")

    hashed = get_password_hash(payload.password)
    user = await repo.create_user(email=payload.email, full_name=payload.full_name, hashed_password=hashed)

    if payload.restaurant_name:
        await RestaurantService(session).create_restaurant(user, RestaurantCreate(name=payload.restaurant_name))
    else:
        await repo.grant_role(user, AppRole.CUSTOMER)
    await repo.commit()
    logger.info("Registered user %s", user.id)
    return await _user_to_read(session, user)


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=TokenPair,
    summary="Login",
    description="Authenticate using OAuth2 password form (username = email) and receive access/refresh tokens.",
)
async def login_for_tokens(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: AsyncSession = Depends(get_session_no_tenant),
) -> TokenPair:
    """Authenticate user and issue tokens."""
    repo = SecurityRepository(session)
    user = await repo.get_user_by_email(form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=400, detail="User is inactive")
    return _issue_tokens(user)


# PUBLIC_INTERFACE
@router.post(
    "/refresh",
    response_model=TokenPair,
    summary="Refresh access token",
    description="Issue a new token pair from a valid refresh token.",
)
async def refresh_token(
    payload: RefreshRequest,
    session: AsyncSession = Depends(get_session_no_tenant),
) -> TokenPair:
    """Validate refresh token and issue a new access token pair."""
    try:
        claims: Dict[str, Any] = decode_token(payload.refresh_token)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    if claims.get("type") != "refresh":
        raise HTTPException(status_code=401, detail="Invalid token type")

    try:
        user = await SecurityRepository(session).get_user_by_id(UUID(str(claims.get("sub"))))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return _issue_tokens(user)


# PUBLIC_INTERFACE
@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout",
    description="Stateless logout. Clients should discard tokens. No server state maintained.",
)
async def logout() -> MessageResponse:
    """Acknowledge logout in stateless JWT systems."""
    return MessageResponse(message="Logged out")


# PUBLIC_INTERFACE
@router.get(
    "/me",
    response_model=UserRead,
    summary="Read current user",
    description="Return the current user, their global roles and the restaurants they belong to.",
)
async def read_current_user(
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session_no_tenant),
) -> UserRead:
    """Return current user profile."""
    return await _user_to_read(session, user)


# PUBLIC_INTERFACE
@router.patch(
    "/me",
    response_model=UserRead,
    summary="Update profile",
)
async def update_current_user(
    payload: ProfileUpdate,
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session_no_tenant),
) -> UserRead:
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    await session.commit()
    return await _user_to_read(session, user)


# PUBLIC_INTERFACE
@router.post(
    "/forgot-password",
    response_model=PasswordResetIssued,
    summary="Request password reset",
    description=(
        "Always answers with the same message so account existence is not revealed. "
        "In development and test environments the reset token is returned in the body."
    ),
)
async def forgot_password(
    payload: ForgotPasswordRequest,
    session: AsyncSession = Depends(get_session_no_tenant),
) -> PasswordResetIssued:
    settings = get_app_settings()
    response = PasswordResetIssued(message="If an account exists for this email, a reset link has been sent.")
    user = await SecurityRepository(session).get_user_by_email(payload.email)
    if user is None or not user.is_active:
        return response

    token = create_password_reset_token(str(user.id), user.hashed_password)
    logger.info("Password reset requested for user %s", user.id)
    if settings.exposes_debug_tokens:
        response.reset_token = token
    return response


# PUBLIC_INTERFACE
@router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Reset password",
    description="Set a new password using a reset token. A token stops working once the password changes.",
)
async def reset_password(
    payload: ResetPasswordRequest,
    session: AsyncSession = Depends(get_session_no_tenant),
) -> MessageResponse:
    try:
        claims = decode_token(payload.token)
    except JWTError:
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")
    if claims.get("type") != "reset":
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    repo = SecurityRepository(session)
    try:
        user = await repo.get_user_by_id(UUID(str(claims.get("sub"))))
    except ValueError:
        user = None
    if user is None or claims.get("pwd") != user.hashed_password[-12:]:
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    user.hashed_password = get_password_hash(payload.new_password)
    await repo.commit()
    logger.info("Password reset for user %s", user.id)
    return MessageResponse(message="Password updated")


# PUBLIC_INTERFACE
@router.post(
    "/claim-super-admin",
    response_model=UserRead,
    summary="Claim platform administration",
    description="Grant 'super_admin' to the caller, only while no super admin exists.",
)
async def claim_super_admin(
    user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_session_no_tenant),
) -> UserRead:
    repo = SecurityRepository(session)
    if await repo.any_user_with_role(AppRole.SUPER_ADMIN):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A super admin already exists")
    await repo.grant_role(user, AppRole.SUPER_ADMIN)
    await repo.commit()
    logger.warning("User %s claimed super admin", user.id)
    return await _user_to_read(session, user)
